from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from .errors import TokenizeError


class Kind(str, Enum):
	PACKAGE = "p"
	OP = "o"
	COMMA = ","
	SELECTOR = "s"
	FUNC = "f"
	LEFT_PAREN = "("
	RIGHT_PAREN = ")"
	SEMICOLON = ";"
	ASSIGN = "="

	def __str__(self) -> str:
		return self.name


@dataclass(frozen=True)
class Token:
	kind: Kind
	text: str

	def __str__(self) -> str:
		return f"{self.kind} {self.text}"


def _is_ident_first(c: str) -> bool:
	return c == "." or ("a" <= c <= "z") or ("A" <= c <= "Z") or ("0" <= c <= "9")


def _is_prefix_op(c: str) -> bool:
	return c in "+-"


def _is_ident(c: str) -> bool:
	# '=' is accepted for build tag functions such as test=1(...)
	return _is_ident_first(c) or c in "@_-/="


def _parse_ident(start: int, s: str) -> Tuple[int, str]:
	if start >= len(s) or not _is_ident_first(s[start]):
		return start, ""
	p = start
	while p < len(s) and _is_ident(s[p]):
		p += 1
	return p, s[start:p]


def _parse_selector(start: int, s: str) -> Tuple[int, str]:
	if start >= len(s):
		return start, ""
	if not _is_ident_first(s[start]) and not _is_prefix_op(s[start]):
		return start, ""
	p = start + 1
	while p < len(s) and _is_ident(s[p]):
		p += 1
	return p, s[start:p]


def tokenize(s: str) -> List[Token]:
	tokens: List[Token] = []
	p = 0
	while p < len(s):
		while p < len(s) and s[p] == " ":
			p += 1
		if p >= len(s):
			break

		p, ident = _parse_ident(p, s)
		if ident:
			if p < len(s) and s[p] == "(":
				tokens.append(Token(Kind.FUNC, ident))
				continue
			if "=" in ident:
				raise TokenizeError(f"package name {ident!r} shouldn't contain '='", p - len(ident))
			tokens.append(Token(Kind.PACKAGE, ident))
			continue

		c = s[p]
		if c == "(":
			p += 1
			tokens.append(Token(Kind.LEFT_PAREN, "("))
		elif c == ")":
			p += 1
			tokens.append(Token(Kind.RIGHT_PAREN, ")"))
		elif c == ",":
			p += 1
			tokens.append(Token(Kind.COMMA, ","))
		elif c == ";":
			p += 1
			tokens.append(Token(Kind.SEMICOLON, ";"))
		elif c == ":":
			p += 1
			if p < len(s) and s[p] == "=":
				p += 1
				tokens.append(Token(Kind.ASSIGN, ":="))
				continue
			p, selector = _parse_selector(p, s)
			if not selector:
				raise TokenizeError(f"expected selector at {p}", p)
			tokens.append(Token(Kind.SELECTOR, selector))
		elif c in "+-":
			p += 1
			if p < len(s) and s[p] == "(":
				tokens.append(Token(Kind.FUNC, c))
				continue
			tokens.append(Token(Kind.OP, c))
		else:
			raise TokenizeError(f"unknown symbol at {p}: {c}", p)

	return tokens
