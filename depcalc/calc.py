from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from . import pkgset
from .context import DEFAULT_ENV_KEYS, Context, Loader, key_value
from .deadcode import DeadcodeOracle, deadcode
from .errors import CalcError, EvalError, ParseError, TokenizeError, combine_errors
from .expr import Assignment, Expr, Func, Package, Select, Sequence as SequenceExpr, parse_tokens
from .pkgset import PackageSet
from .std import StdPackages
from .tokens import tokenize

log = logging.getLogger(__name__)

SetOp = Callable[[PackageSet, PackageSet], PackageSet]

SET_OPS: Dict[str, SetOp] = {
	"": pkgset.union,
	"+": pkgset.union,
	"add": pkgset.union,
	"or": pkgset.union,
	"-": pkgset.subtract,
	"subtract": pkgset.subtract,
	"exclude": pkgset.subtract,
	"shared": pkgset.intersect,
	"intersect": pkgset.intersect,
	"xor": pkgset.symmetric_difference,
}

Words = Union[str, Iterable[str]]


def _join(expr: Words) -> str:
	if isinstance(expr, str):
		full = expr
	else:
		full = " ".join(expr)
	return full.replace("\n", ";")


def parse(expr: Words) -> Optional[Expr]:
	"""Convert an expression, or the words of one, into its AST."""
	full = _join(expr)
	try:
		tokens = tokenize(full)
	except TokenizeError as e:
		raise TokenizeError(f"failed to tokenize: {e}", e.position) from e
	try:
		return parse_tokens(tokens)
	except ParseError as e:
		raise ParseError(f"failed to parse: {e}") from e


def _keep(base: PackageSet, result: PackageSet) -> PackageSet:
	return result


def _split_combinator(selector: str):
	if selector[:1] == "+":
		return "+", pkgset.union, selector[1:]
	if selector[:1] == "-":
		return "-", pkgset.subtract, selector[1:]
	return "", _keep, selector


def evaluate(ctx: Context, e: Optional[Expr]) -> PackageSet:
	if e is None:
		raise EvalError("empty expression")
	log.debug("evaluating %s", e)

	if isinstance(e, SequenceExpr):
		last: PackageSet = {}
		for x in e.exprs:
			last = evaluate(ctx, x)
		return last

	if isinstance(e, Assignment):
		value = evaluate(ctx, e.expr)
		if e.name in ctx.variables:
			raise EvalError(f"variable {e.name!r} already exists")
		ctx.variables[e.name] = value
		return value

	if isinstance(e, Package):
		if e.name in ctx.variables:
			return ctx.variables[e.name]
		return pkgset.new_root(ctx.load(e.name))

	if isinstance(e, Func):
		return _evaluate_func(ctx, e)

	if isinstance(e, Select):
		return _evaluate_select(ctx, e)

	raise EvalError(f"unknown expression {type(e).__name__}")


def _evaluate_args(ctx: Context, exprs: Sequence[Expr]) -> List[PackageSet]:
	args: List[PackageSet] = []
	errors: List[Exception] = []
	for x in exprs:
		try:
			args.append(evaluate(ctx, x))
		except CalcError as e:
			errors.append(e)
			args.append({})
	if errors:
		raise combine_errors(errors)
	return args


def _load_group(fn: Func) -> Optional[List[str]]:
	names = []
	for arg in fn.args:
		if not isinstance(arg, Package):
			return None
		names.append(arg.name)
	return names


def _expect_args(fn: Func, n: int) -> None:
	if len(fn.args) != n:
		word = "one argument" if n == 1 else f"{n} arguments"
		raise EvalError(f"{fn.name} requires {word}: {fn}")


def _evaluate_func(ctx: Context, e: Func) -> PackageSet:
	if e.is_context:
		if len(e.args) != 1:
			raise EvalError(f"expected 1 argument found {len(e.args)}")
		sub = ctx.clone()
		key, value = key_value(e.name)
		sub.set(key, value)
		return evaluate(sub, e.args[0])

	name = e.name.lower()

	if name == "":
		names = _load_group(e)
		if names:
			variables = [ctx.variables[n] for n in names if n in ctx.variables]
			patterns = [n for n in names if n not in ctx.variables]
			if patterns:
				variables.append(pkgset.new_root(ctx.load(*patterns)))
			return pkgset.union_all(*variables)

	if name in SET_OPS:
		args = _evaluate_args(ctx, e.args)
		if not args:
			return {}
		op = SET_OPS[name]
		base = args[0]
		for arg in args[1:]:
			base = op(base, arg)
		return base

	if name == "reach":
		_expect_args(e, 2)
		a, b = _evaluate_args(ctx, e.args)
		return pkgset.reach(a, b)

	if name == "incoming":
		_expect_args(e, 2)
		a, b = _evaluate_args(ctx, e.args)
		return pkgset.incoming(a, b)

	if name == "transitive":
		_expect_args(e, 1)
		(a,) = _evaluate_args(ctx, e.args)
		return pkgset.transitive(a)

	if name == "deadcode":
		_expect_args(e, 1)
		(a,) = _evaluate_args(ctx, e.args)
		if ctx.oracle is None:
			raise EvalError("deadcode requires a symbol oracle")
		return deadcode(ctx.oracle, ctx.config(), a)

	raise EvalError(f"unknown func {e.name}: {e}")


def _evaluate_select(ctx: Context, e: Select) -> PackageSet:
	combine_op, combine, selector = _split_combinator(e.selector)
	selector = selector.lower()

	if selector == "test":
		return _select_test(ctx, e, combine_op, combine)

	if selector == "all":
		base = evaluate(ctx, e.expr)
		return combine(base, pkgset.new_all(base.values()))

	if selector in ("mod", "module"):
		base = evaluate(ctx, e.expr)
		return pkgset.module_dependencies(base)

	if selector in ("import", "imp"):
		base = evaluate(ctx, e.expr)
		return combine(base, pkgset.direct_dependencies(base))

	if selector == "source":
		base = evaluate(ctx, e.expr)
		return combine(base, pkgset.sources(base))

	if selector == "nosource":
		base = evaluate(ctx, e.expr)
		return combine(base, pkgset.subtract(base, pkgset.sources(base)))

	if selector == "main":
		base = evaluate(ctx, e.expr)
		return combine(base, pkgset.main(base))

	raise EvalError(f"unknown selector {e.selector}: {e}")


def _select_test(ctx: Context, e: Select, combine_op: str, combine: SetOp) -> PackageSet:
	if isinstance(e.expr, Package) and e.expr.name not in ctx.variables:
		name = e.expr.name
		if combine_op == "+":
			return pkgset.new_root(ctx.load_with_tests(name))
		if combine_op == "-":
			return pkgset.new_root(ctx.load_without_tests(name))
		return pkgset.test(pkgset.new_root(ctx.load_with_tests(name)))

	base = evaluate(ctx, e.expr)
	if not base:
		return combine(base, {})
	with_tests = pkgset.new_root(ctx.load_with_tests(*sorted(base)))
	return combine(base, pkgset.test(with_tests))


def calc(ctx: Context, expr: Words) -> PackageSet:
	"""Parse expr and compute the package set it describes."""
	if not isinstance(expr, str):
		expr = list(expr)
	if not expr:
		expr = ctx.loader.default_pattern
	root = parse(expr)
	return evaluate(ctx, root)


class Calculator:
	"""Creates evaluation contexts sharing one loader and one std package handle."""

	def __init__(
		self,
		loader: Loader,
		oracle: Optional[DeadcodeOracle] = None,
		std: Optional[StdPackages] = None,
		env_keys: Iterable[str] = DEFAULT_ENV_KEYS,
	):
		self.loader = loader
		self.oracle = oracle
		self.std = std if std is not None else StdPackages(loader)
		self.env_keys = list(env_keys)

	def new_context(self, cancel: Optional[threading.Event] = None) -> Context:
		return Context(
			self.loader,
			std=self.std,
			oracle=self.oracle,
			env_keys=self.env_keys,
			cancel=cancel,
		)

	def calc(self, expr: Words, cancel: Optional[threading.Event] = None) -> PackageSet:
		return calc(self.new_context(cancel), expr)

	def without_std(self, pkgs: PackageSet) -> PackageSet:
		return pkgset.subtract(pkgs, self.std.get())
