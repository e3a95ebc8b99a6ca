"""pandi interpreter.

Basic program flow:
    1. Lexer: converts the source text into a list of tokens (lang/lexical.py)
    2. Parser: produces a syntax tree by recursive descent over the tokens (grammar/parser.py)
        - For the grammar rules, see the module docstring of grammar/parser.py
    3. Resolver: walks the syntax tree once to work out, for every variable reference, how many scopes separate it
       from its declaration (lang/resolver.py)
    4. Evaluator: walks the resolved tree and executes it on the fly, no code generation (lang/evaluator.py)

Each stage reports its faults to the same ErrorHandler. A lexical or syntax fault stops the run before resolution, a
resolution fault stops it before evaluation, and a runtime fault stops the remaining statements.
"""

from pandi.lang.error import ErrorHandler
from pandi.lang.session import Session


def run(source, out=None, err=None):
    """Runs source in a fresh session. Program output goes to out and diagnostics to err (stdout and stderr by
    default). Returns (diagnostics, runtime error or None).
    """
    error_handler = ErrorHandler(fatal=False, stream=err)
    runtime_error = Session(error_handler, out=out).run(source)
    return error_handler.diagnostics, runtime_error
