from depcalc import pkgset
from depcalc.context import LoadConfig
from depcalc.graph import Graph, all_imports


def test_graph_restricted_to_set(chain):
	everything = pkgset.new_all(chain.load(LoadConfig(), "A"))
	g = Graph.from_set(pkgset.subtract(everything, {"C": everything["C"]}))
	assert [n.id for n in g.sorted] == ["A", "B"]
	assert [n.id for n in g.packages["A"].imports_nodes] == ["B"]
	assert g.packages["B"].imports_nodes == []
	assert g.stat.package_count == 2


def test_graph_up_and_down(chain):
	g = Graph.from_set(pkgset.new_all(chain.load(LoadConfig(), "A")))
	assert g.packages["A"].down.package_count == 2
	assert g.packages["A"].up.package_count == 0
	assert g.packages["C"].up.package_count == 2
	assert g.packages["B"].up.package_count == 1
	assert g.packages["B"].down.package_count == 1


def test_all_imports_with_cycle(make_loader):
	loader = make_loader({"A": ["B"], "B": ["A", "C"], "C": []})
	imports = all_imports(loader.load(LoadConfig(), "A"))
	assert imports["A"] == {"B", "C"}
	assert imports["C"] == set()


def test_up_and_down_around_a_cycle(make_loader):
	loader = make_loader({"A": ["B"], "B": ["C"], "C": ["A"]})
	g = Graph.from_set(pkgset.new_all(loader.load(LoadConfig(), "A")))
	assert {pid: n.down.package_count for pid, n in g.packages.items()} == {"A": 2, "B": 2, "C": 2}
	assert {pid: n.up.package_count for pid, n in g.packages.items()} == {"A": 2, "B": 2, "C": 2}
	assert all_imports(loader.load(LoadConfig(), "B"))["C"] == {"A", "B"}
