from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from depcalc.calc import Calculator, parse
from depcalc.config import settings
from depcalc.cut import cut
from depcalc.errors import CalcError
from depcalc.graph import Graph
from depcalc.loaders import open_calculator
from depcalc.model import CalcResult, CutResult, ParseResult, package_infos


app = FastAPI(title="depcalc")


class ExprRequest(BaseModel):
	expr: str = ""
	root_path: Optional[str] = None
	snapshot: Optional[str] = None
	std: bool = settings.print_std


class CutRequest(ExprRequest):
	exclude: str = ""


class ParseRequest(BaseModel):
	expr: str


def _calculator(req: ExprRequest) -> Calculator:
	if req.root_path is not None and not req.snapshot:
		root = os.path.abspath(req.root_path)
		if not os.path.isdir(root):
			raise HTTPException(status_code=400, detail=f"Invalid root_path: {root}")
		return open_calculator(root=root)
	return open_calculator(snapshot=req.snapshot)


@app.get("/health")
def health() -> dict:
	return {"status": "ok"}


@app.post("/calc", response_model=CalcResult)
def calc(req: ExprRequest) -> CalcResult:
	try:
		calculator = _calculator(req)
		result = calculator.calc(req.expr)
		if not req.std:
			result = calculator.without_std(result)
	except CalcError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return CalcResult(expr=req.expr, packages=package_infos(result.values()))


@app.post("/cut", response_model=CutResult)
def cut_packages(req: CutRequest) -> CutResult:
	try:
		calculator = _calculator(req)
		result = calculator.calc(req.expr)
		excluded = calculator.calc(req.exclude) if req.exclude else {}
		if not req.std:
			result = calculator.without_std(result)
	except CalcError as e:
		raise HTTPException(status_code=400, detail=str(e))

	nodes = cut(Graph.from_set(result), exclude=excluded)
	return CutResult(expr=req.expr, rows=[n.entry() for n in nodes])


@app.post("/parse", response_model=ParseResult)
def parse_expr(req: ParseRequest) -> ParseResult:
	try:
		root = parse(req.expr)
	except CalcError as e:
		raise HTTPException(status_code=400, detail=str(e))
	if root is None:
		raise HTTPException(status_code=400, detail="empty expression")
	return ParseResult(expr=str(root), tree=root.tree())


def create_app() -> FastAPI:
	return app
