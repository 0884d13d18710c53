"""Expression AST and the recursive-descent parser that builds it.

Grammar, informally::

	body     := stmt (';' stmt)*
	stmt     := name ':=' body-expr | expr
	expr     := term+ (OP term+)*
	term     := (name | func '(' args ')' | '(' expr ')') selector*
	args     := expr (',' expr)*

Juxtaposed terms are an unnamed union, `+` and `-` fold to the left.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .errors import ParseError
from .tokens import Kind, Token

# spelled-out operators print as their symbol
OPERATOR_ALIASES = {"add": "+", "or": "+", "subtract": "-", "exclude": "-"}


@dataclass(frozen=True)
class Package:
	name: str

	def __str__(self) -> str:
		return self.name

	def tree(self, indent: int = 0) -> str:
		return "  " * indent + self.name + "\n"


@dataclass(frozen=True)
class Sequence:
	exprs: Tuple["Expr", ...]

	def __str__(self) -> str:
		return "; ".join(str(x) for x in self.exprs)

	def tree(self, indent: int = 0) -> str:
		return "".join(x.tree(indent + 1) for x in self.exprs)


@dataclass(frozen=True)
class Assignment:
	name: str
	expr: "Expr"

	def __str__(self) -> str:
		return f"{self.name} := {self.expr}"

	def tree(self, indent: int = 0) -> str:
		return "  " * indent + self.name + " :=\n" + self.expr.tree(indent + 1)


@dataclass(frozen=True)
class Select:
	expr: "Expr"
	selector: str

	def __str__(self) -> str:
		return f"{self.expr}:{self.selector}"

	def tree(self, indent: int = 0) -> str:
		return "  " * indent + "select " + self.selector + "\n" + self.expr.tree(indent + 1)


@dataclass(frozen=True)
class Func:
	name: str
	args: Tuple["Expr", ...]

	@property
	def canonical_name(self) -> str:
		return OPERATOR_ALIASES.get(self.name.lower(), self.name)

	def __str__(self) -> str:
		return self.canonical_name + "(" + ", ".join(str(a) for a in self.args) + ")"

	def tree(self, indent: int = 0) -> str:
		name = self.canonical_name or "+"
		result = "  " * indent + name + "{\n"
		for arg in self.args:
			result += arg.tree(indent + 1)
		result += "  " * indent + "}\n"
		return result

	@property
	def is_context(self) -> bool:
		return "=" in self.name


Expr = Union[Package, Sequence, Assignment, Select, Func]


def _combine(exprs: List[Expr]) -> Optional[Expr]:
	if not exprs:
		return None
	if len(exprs) == 1:
		return exprs[0]
	return Func("", tuple(exprs))


class _Parser:
	def __init__(self, tokens: List[Token]):
		self.tokens = tokens
		self.p = 0

	def last(self) -> Optional[Token]:
		if self.p == 0:
			return None
		return self.tokens[self.p - 1]

	def last_kind(self) -> Optional[Kind]:
		tok = self.last()
		return tok.kind if tok else None

	def parse_combine(self, looking_for_operator: bool, depth: int) -> Optional[Expr]:
		tokens = self.tokens
		exprs: List[Expr] = []

		while self.p < len(tokens):
			tok = tokens[self.p]

			if tok.kind == Kind.PACKAGE:
				self.p += 1
				if self.p < len(tokens) and tokens[self.p].kind == Kind.ASSIGN:
					self.p += 1
					if exprs or looking_for_operator:
						raise ParseError('expected "<package> := <expr>;"')
					value = self.parse_combine(False, depth)
					if value is None:
						raise ParseError(f"empty expression assigned to {tok.text!r}")
					return Assignment(tok.text, value)
				expr: Expr = Package(tok.text)

			elif tok.kind in (Kind.FUNC, Kind.LEFT_PAREN):
				if tok.kind == Kind.FUNC:
					self.p += 1
				if self.p >= len(tokens) or tokens[self.p].kind != Kind.LEFT_PAREN:
					raise ParseError(f"expected '(' after {tok.text!r}")
				self.p += 1

				args: List[Expr] = []
				while True:
					arg = self.parse_combine(False, depth + 1)
					if arg is None:
						raise ParseError("empty expression")
					args.append(arg)
					closing = self.last_kind()
					if closing == Kind.COMMA:
						continue
					if closing == Kind.RIGHT_PAREN:
						break
					raise ParseError(f"expected ')' to close {tok.text!r}")

				if tok.kind == Kind.LEFT_PAREN:
					if len(args) != 1:
						raise ParseError("comma delimited values between parens")
					expr = args[0]
				else:
					expr = Func(tok.text, tuple(args))

			elif tok.kind == Kind.OP:
				self.p += 1
				if looking_for_operator:
					return _combine(exprs)

				op = tok.text
				left = _combine(exprs)
				if left is None:
					raise ParseError(f"missing left operand for {op!r}")
				while True:
					right = self.parse_combine(True, depth)
					if right is None:
						raise ParseError("empty expression")
					left = Func(op, (left, right))
					last = self.last()
					if last is None or last.kind != Kind.OP:
						return left
					op = last.text

			elif tok.kind == Kind.SELECTOR:
				raise ParseError(f"unexpected selector {tok.text!r}")

			elif tok.kind in (Kind.RIGHT_PAREN, Kind.COMMA):
				if depth == 0:
					raise ParseError(f"unexpected {tok.text!r}")
				self.p += 1
				return _combine(exprs)

			elif tok.kind == Kind.SEMICOLON:
				if depth > 0:
					raise ParseError("unexpected ';' inside parentheses")
				self.p += 1
				return _combine(exprs)

			else:
				raise ParseError(f"unexpected token {tok}")

			while self.p < len(tokens) and tokens[self.p].kind == Kind.SELECTOR:
				expr = Select(expr, tokens[self.p].text)
				self.p += 1

			exprs.append(expr)

		return _combine(exprs)


def parse_tokens(tokens: List[Token]) -> Optional[Expr]:
	if not tokens:
		return None

	parser = _Parser(tokens)
	seq: List[Expr] = []
	while parser.p < len(tokens):
		expr = parser.parse_combine(False, 0)
		if expr is not None:
			seq.append(expr)

	if not seq:
		return None
	if len(seq) == 1:
		return seq[0]
	return Sequence(tuple(seq))
