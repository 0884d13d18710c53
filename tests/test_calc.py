import threading

import pytest

from conftest import RecordingLoader
from depcalc.calc import Calculator, calc, evaluate
from depcalc.context import Context
from depcalc.deadcode import SymbolGraph
from depcalc.errors import EvalError, LoadError, MultiError, ParseError


def ids(s):
	return sorted(s)


@pytest.fixture
def tested(make_loader):
	return make_loader(
		{"lib": [], "lib.test": ["lib"], "app": ["lib"]},
		**{"lib.test": {"test": True}},
	)


def test_roots_closure_and_imports(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "A")) == ["A"]
	assert ids(calc(ctx, "A:all")) == ["A", "B", "C"]
	assert ids(calc(ctx, "A:import")) == ["B"]


def test_selectors_are_case_insensitive(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "A:ALL")) == ["A", "B", "C"]
	assert ids(calc(ctx, "REACH(A:all, C)")) == ["A", "B", "C"]


def test_selector_combinators(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "A:+import")) == ["A", "B"]
	assert ids(calc(ctx, "A:all:-import")) == ["A", "B", "C"]
	assert ids(calc(ctx, "A:-all")) == []
	assert ids(calc(ctx, "B:+all")) == ["B", "C"]


def test_source_selectors(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "A:all:source")) == ["A"]
	assert ids(calc(ctx, "A:all:nosource")) == ["B", "C"]


def test_module_selector(make_loader, make_context):
	loader = make_loader(
		{"app/cmd": ["app/util", "ext/log"], "app/util": [], "ext/log": []},
		**{
			"app/cmd": {"module": "app"},
			"app/util": {"module": "app"},
			"ext/log": {"module": "ext"},
		},
	)
	assert ids(calc(make_context(loader), "app/cmd:mod")) == ["app/cmd", "app/util"]


def test_main_selector(make_loader, make_context):
	loader = make_loader(
		{"cmd/tool": ["lib"], "cmd/other": ["lib"], "lib": []},
		**{"cmd/tool": {"name": "main"}, "cmd/other": {"entrypoint": True}},
	)
	ctx = make_context(loader)
	assert ids(calc(ctx, "...:main")) == ["cmd/other", "cmd/tool"]
	assert ids(calc(ctx, "lib:+main")) == ["lib"]


def test_set_functions(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "A:all - B")) == ["A", "C"]
	assert ids(calc(ctx, "exclude(A:all, B, C)")) == ["A"]
	assert ids(calc(ctx, "A + C")) == ["A", "C"]
	assert ids(calc(ctx, "or(A, B, C)")) == ["A", "B", "C"]
	assert ids(calc(ctx, "shared(A:all, B:all)")) == ["B", "C"]
	assert ids(calc(ctx, "xor(A:all, B:all)")) == ["A"]
	assert ids(calc(ctx, "reach(A:all, C)")) == ["A", "B", "C"]
	assert ids(calc(ctx, "incoming(A:all, C)")) == ["B", "C"]


def test_transitive(make_loader, make_context):
	loader = make_loader({"a": ["b", "c"], "b": ["c"], "c": []})
	result = calc(make_context(loader), "transitive(a:all)")
	assert ids(result["a"].imports) == ["b"]


def test_function_arity(chain, make_context):
	ctx = make_context(chain)
	with pytest.raises(EvalError, match="reach requires 2 arguments"):
		calc(ctx, "reach(A)")
	with pytest.raises(EvalError, match="transitive requires one argument"):
		calc(ctx, "transitive(A, B)")


def test_unknown_func_and_selector(chain, make_context):
	ctx = make_context(chain)
	with pytest.raises(EvalError, match="unknown func nope"):
		calc(ctx, "nope(A)")
	with pytest.raises(EvalError, match="unknown selector bogus"):
		calc(ctx, "A:bogus")


def test_variables(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "x := A:all; x - B")) == ["A", "C"]
	assert ids(ctx.variables["x"]) == ["A", "B", "C"]


def test_variables_on_separate_lines(chain, make_context):
	assert ids(calc(make_context(chain), ["x := B:all", "\n", "x + A"])) == ["A", "B", "C"]


def test_variable_rebinding_is_an_error(chain, make_context):
	with pytest.raises(EvalError, match="already exists"):
		calc(make_context(chain), "x := A; x := B")


def test_variables_are_visible_inside_context_functions(chain, make_context):
	ctx = make_context(chain)
	assert ids(calc(ctx, "x := C; test=1(x + A)")) == ["A", "C"]


def test_context_function_does_not_leak_into_siblings(make_loader, make_context):
	loader = RecordingLoader(make_loader({"X": [], "Y": []}))
	calc(make_context(loader), "test=1(X) + Y")
	assert [(c.tests, p) for c, p in loader.calls] == [(True, ("X",)), (False, ("Y",))]


def test_context_function_arity(chain, make_context):
	with pytest.raises(EvalError, match="expected 1 argument found 2"):
		calc(make_context(chain), "test=1(A, B)")


def test_env_keys_and_tags(make_loader, make_context):
	loader = RecordingLoader(make_loader({"A": []}))
	ctx = make_context(loader)
	calc(ctx, "goos=linux(pythonpath=/src(typing=1(cgo=0(A))))")
	config, patterns = loader.calls[0]
	assert patterns == ("A",)
	assert sorted(config.env) == ["GOOS=linux", "PYTHONPATH=/src"]
	assert config.tags == ["typing"]
	assert not config.tests


def test_inner_context_overrides_outer(make_loader, make_context):
	loader = RecordingLoader(make_loader({"A": []}))
	calc(make_context(loader), "test=1(test=0(A))")
	assert not loader.calls[0][0].tests


def test_juxtaposed_packages_load_in_one_call(make_loader, make_context):
	loader = RecordingLoader(make_loader({"a": [], "b": [], "c": []}))
	assert ids(calc(make_context(loader), "a b c")) == ["a", "b", "c"]
	assert [p for _, p in loader.calls] == [("a", "b", "c")]


def test_sibling_errors_are_combined(chain, make_context):
	with pytest.raises(MultiError) as info:
		calc(make_context(chain), "+(missing1, A, missing2)")
	assert len(info.value.errors) == 2
	assert "missing1" in str(info.value)
	assert "missing2" in str(info.value)


def test_batch_load_reports_every_missing_pattern(chain, make_context):
	with pytest.raises(LoadError) as info:
		calc(make_context(chain), "A missing1 missing2")
	assert info.value.patterns == ["missing1", "missing2"]


def test_test_selector(tested, make_context):
	ctx = make_context(tested)
	assert ids(calc(ctx, "lib")) == ["lib"]
	assert ids(calc(ctx, "lib:test")) == ["lib.test"]
	assert ids(calc(ctx, "lib:+test")) == ["lib", "lib.test"]
	assert ids(calc(ctx, "lib:-test")) == ["lib"]


def test_test_selector_on_evaluated_set(tested, make_context):
	ctx = make_context(tested)
	assert ids(calc(ctx, "(app + lib):test")) == ["lib.test"]
	assert ids(calc(ctx, "x := lib; x:+test")) == ["lib", "lib.test"]
	assert ids(calc(ctx, "app:all:test")) == ["lib.test"]


def test_test_packages_need_the_test_tag(tested, make_context):
	ctx = make_context(tested)
	assert ids(calc(ctx, "...")) == ["app", "lib"]
	assert ids(calc(ctx, "test=1(...)")) == ["app", "lib", "lib.test"]


class FakeOracle:
	version = 1

	def __init__(self, graph):
		self.graph = graph
		self.asked = []

	def symbol_graph(self, config, ids):
		self.asked.append(list(ids))
		return self.graph


def test_deadcode(make_loader, make_context):
	loader = make_loader({"main": ["web/app", "util"], "web/app": ["tmpl"], "tmpl": [], "util": []})
	graph = SymbolGraph(annotated={"tmpl.(*state).evalField"})
	graph.add_call("web/app.Serve", "tmpl.(*state).evalField")
	graph.add_call("main.main", "web/app.Serve")
	graph.add_call("main.main", "util.Join")
	oracle = FakeOracle(graph)

	result = calc(make_context(loader, oracle=oracle), "deadcode(main:all)")
	assert ids(result) == ["main", "tmpl", "web/app"]
	assert oracle.asked == [["main", "tmpl", "util", "web/app"]]


def test_deadcode_needs_an_oracle(chain, make_context):
	with pytest.raises(EvalError, match="oracle"):
		calc(make_context(chain), "deadcode(A)")


def test_empty_expression_uses_default_pattern(chain, make_context):
	assert ids(calc(make_context(chain), "")) == ["A", "B", "C"]
	assert ids(calc(make_context(chain), [])) == ["A", "B", "C"]


def test_evaluate_nothing(chain):
	with pytest.raises(EvalError, match="empty expression"):
		evaluate(Context(chain), None)


def test_parse_errors_are_wrapped(chain, make_context):
	with pytest.raises(ParseError, match="failed to parse"):
		calc(make_context(chain), "A +")


def test_cancelled_context_stops_loading(chain, make_context):
	cancel = threading.Event()
	cancel.set()
	with pytest.raises(LoadError, match="cancelled"):
		calc(make_context(chain, cancel=cancel), "A")


def test_calculator_hides_std(make_loader):
	loader = make_loader({"app": ["os", "lib"], "lib": [], "os": ["io"], "io": []}, os={"std": True}, io={"std": True})
	calculator = Calculator(loader)
	result = calculator.calc("app:all")
	assert ids(result) == ["app", "io", "lib", "os"]
	assert ids(calculator.without_std(result)) == ["app", "lib"]
	assert calculator.std.is_std("io")


def test_wildcards_skip_std(make_loader, make_context):
	loader = make_loader({"app": ["os"], "os": []}, os={"std": True})
	ctx = make_context(loader)
	assert ids(calc(ctx, "...")) == ["app"]
	assert ids(calc(ctx, "std")) == ["os"]
