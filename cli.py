from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List

import uvicorn

from depcalc import pkgset
from depcalc.calc import parse
from depcalc.config import settings
from depcalc.cut import cut
from depcalc.errors import CalcError
from depcalc.graph import Graph
from depcalc.loaders import open_calculator
from depcalc.model import CutResult, package_infos
from depcalc.summarize import align, summarize_cut, summarize_set, summarize_tree

log = logging.getLogger("depcalc.cli")


def cmd_list(args: argparse.Namespace) -> None:
	calculator = open_calculator(args.root, args.snapshot)
	result = calculator.calc(args.expr)
	if not args.std:
		result = calculator.without_std(result)

	if args.json:
		print(json.dumps([p.model_dump() for p in package_infos(result.values())], indent=2))
		return
	for line in summarize_set(result, args.format):
		print(line)


def cmd_cut(args: argparse.Namespace) -> None:
	calculator = open_calculator(args.root, args.snapshot)
	result = calculator.calc(args.expr)

	excluded: pkgset.PackageSet = {}
	if args.exclude:
		excluded = calculator.calc(args.exclude.split())

	if not args.std:
		result = calculator.without_std(result)

	graph = Graph.from_set(result)
	nodes = cut(graph, exclude=excluded)

	if args.json:
		out = CutResult(expr=" ".join(args.expr), rows=[n.entry() for n in nodes])
		print(out.model_dump_json(indent=2))
		return
	lines = summarize_cut(nodes, args.format)
	if not args.noalign:
		lines = align(lines)
	for line in lines:
		print(line)


def cmd_parse(args: argparse.Namespace) -> None:
	root = parse(args.expr)
	if root is None:
		return
	if args.tree:
		print(summarize_tree(root.tree()))
	else:
		print(root)


def cmd_serve(args: argparse.Namespace) -> None:
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)


def _add_source_flags(p: argparse.ArgumentParser) -> None:
	p.add_argument("expr", nargs="*", help="Package expression")
	p.add_argument("--root", default=None, help="Python source tree to analyze")
	p.add_argument("--snapshot", default=None, help="JSON snapshot of a dependency graph")
	p.add_argument("--std", action="store_true", default=settings.print_std, help="Include std packages")
	p.add_argument("--json", action="store_true", help="Print JSON instead of text")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="depcalc")
	parser.add_argument("--log-level", default=settings.log_level)
	sub = parser.add_subparsers(dest="cmd", required=True)

	pl = sub.add_parser("list", help="List packages matching an expression")
	_add_source_flags(pl)
	pl.add_argument("-f", "--format", default=settings.list_format, help="Line format")
	pl.set_defaults(func=cmd_list)

	pc = sub.add_parser("cut", help="Show packages whose removal would remove the most dependencies")
	_add_source_flags(pc)
	pc.add_argument("-f", "--format", default=settings.cut_format, help="Row format")
	pc.add_argument("--exclude", default="", help="Package expression to exclude from output")
	pc.add_argument("--noalign", action="store_true", help="Disable aligning columns")
	pc.set_defaults(func=cmd_cut)

	pp = sub.add_parser("parse", help="Print the parsed form of an expression")
	pp.add_argument("expr", nargs="+", help="Package expression")
	pp.add_argument("--tree", action="store_true", help="Print the expression tree")
	pp.set_defaults(func=cmd_parse)

	ps = sub.add_parser("serve", help="Run FastAPI server")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=8000)
	ps.add_argument("--reload", action="store_true")
	ps.set_defaults(func=cmd_serve)
	return parser


def main(argv: List[str] = None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)
	logging.basicConfig(
		level=args.log_level.upper(),
		format="%(asctime)s %(levelname)s %(name)s %(message)s",
		stream=sys.stderr,
	)
	try:
		args.func(args)
	except CalcError as e:
		log.debug("command failed", exc_info=True)
		print(str(e), file=sys.stderr)
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
