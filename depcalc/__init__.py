"""Package set calculator for dependency graphs.

Modules:
- tokens.py, expr.py: expression tokenizer, AST and parser.
- pkgset.py: set algebra over package sets.
- calc.py, context.py: expression evaluation.
- graph.py, cut.py: graph construction and cascading removal analysis.
- snapshot.py, python_loader.py: loaders resolving package patterns.
- deadcode.py, callgraph.py: symbol oracles for the deadcode function.
- summarize.py: textual output.
"""

from .calc import Calculator, calc, evaluate, parse
from .cut import cut
from .errors import CalcError, EvalError, LoadError, MultiError, ParseError, TokenizeError
from .graph import Graph

__all__ = [
	"Calculator",
	"calc",
	"evaluate",
	"parse",
	"cut",
	"Graph",
	"CalcError",
	"EvalError",
	"LoadError",
	"MultiError",
	"ParseError",
	"TokenizeError",
]
