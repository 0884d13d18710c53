from depcalc import pkgset
from depcalc.context import LoadConfig
from depcalc.cut import build, cut, erase, reset
from depcalc.graph import Graph


def graph_of(loader, *patterns):
	return Graph.from_set(pkgset.new_all(loader.load(LoadConfig(), *patterns)))


def cuts(nodes):
	return {n.id: n.cut.package_count for n in nodes}


def test_cut_chain(chain):
	nodes = cut(graph_of(chain, "A"))
	assert cuts(nodes) == {"A": 2, "B": 1, "C": 0}


def test_cut_single_target(chain):
	nodes = cut(graph_of(chain, "A"), targets=["C"])
	assert [n.id for n in nodes] == ["C"]
	assert nodes[0].cut.package_count == 0


def test_cut_diamond(make_loader):
	loader = make_loader({"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []})
	nodes = cut(graph_of(loader, "A"))
	assert cuts(nodes) == {"A": 3, "B": 0, "C": 0, "D": 0}
	assert [n.id for n in nodes] == ["A", "B", "C", "D"]
	assert [(n.in_degree, n.out_degree) for n in nodes] == [(0, 2), (1, 1), (1, 1), (2, 0)]


def test_cut_ordering(make_loader):
	# equal in-degree is ordered by the larger cut first
	loader = make_loader({"Z": [], "X": ["Y"], "Y": []})
	nodes = cut(graph_of(loader, "X", "Z"))
	assert [n.id for n in nodes] == ["X", "Z", "Y"]


def test_cut_with_cycle(make_loader):
	loader = make_loader({"R": ["A"], "A": ["B"], "B": ["A"]})
	nodes = cut(graph_of(loader, "R"))
	assert cuts(nodes) == {"R": 0, "A": 1, "B": 0}


def test_cut_accumulates_stats(make_loader):
	stat = lambda lines: {"stat": {"package_count": 1, "python": {"files": 1, "lines": lines, "size": lines * 10}}}
	loader = make_loader({"A": ["B"], "B": ["C"], "C": []}, A=stat(1), B=stat(10), C=stat(5))
	nodes = {n.id: n for n in cut(graph_of(loader, "A"))}
	assert nodes["A"].cut.python.lines == 15
	assert nodes["A"].cut.all_files.size == 150
	assert nodes["B"].cut.python.lines == 5


def test_cut_exclude(chain):
	nodes = cut(graph_of(chain, "A"), exclude={"B", "C"})
	assert [n.id for n in nodes] == ["A"]
	assert nodes[0].cut.package_count == 2


def test_cut_is_independent_of_other_targets(make_loader):
	loader = make_loader({"A": ["B", "C"], "B": ["D"], "C": ["D", "E"], "D": [], "E": ["D"]})
	graph = graph_of(loader, "A")
	together = cuts(cut(graph))
	alone = {pid: cuts(cut(graph, targets=[pid]))[pid] for pid in graph.packages}
	assert together == alone


def test_cut_never_exceeds_the_rest_of_the_graph(make_loader):
	loader = make_loader({"A": ["B", "C"], "B": ["C", "D"], "C": ["E"], "D": ["E"], "E": [], "F": ["A"]})
	graph = graph_of(loader, "F")
	n = len(graph.packages)
	for node in cut(graph):
		assert node.cut.package_count <= n - 1


def test_erase_after_reset_is_repeatable(chain):
	nodes = {n.id: n for n in build(graph_of(chain, "A"))}
	reset(nodes.values())
	assert erase(nodes["A"]).package_count == 2
	reset(nodes.values())
	assert erase(nodes["A"]).package_count == 2
