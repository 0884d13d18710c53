from __future__ import annotations

from typing import List, Sequence


class CalcError(Exception):
	"""Base class for every failure raised while computing a package set."""


class TokenizeError(CalcError):
	def __init__(self, message: str, position: int = -1):
		super().__init__(message)
		self.position = position


class ParseError(CalcError):
	pass


class EvalError(CalcError):
	pass


class LoadError(CalcError):
	def __init__(self, message: str, patterns: Sequence[str] = ()):
		super().__init__(message)
		self.patterns = list(patterns)


class MultiError(CalcError):
	"""Several sibling failures reported together."""

	def __init__(self, errors: Sequence[Exception]):
		self.errors: List[Exception] = list(errors)
		super().__init__("[" + "; ".join(str(e) for e in self.errors) + "]")


def combine_errors(errors: Sequence[Exception]) -> Exception:
	if len(errors) == 1:
		return errors[0]
	return MultiError(errors)
