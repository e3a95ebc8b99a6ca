"""Session control for the pandi language. Runs the whole pipeline (scan, parse, resolve, interpret) over a source
text, either once for a file or line by line in command-line mode.

The pipeline is recursive, and pandi programs recurse through it, so every run happens on a worker thread with a
STACK_SIZE stack under a RECURSION_LIMIT that is far higher than Python's default.
"""

import io
import sys
import threading

from pandi.grammar.parser import parse
from pandi.grammar.tokens import TokenType
from pandi.lang.error import ErrorHandler
from pandi.lang.evaluator import Interpreter
from pandi.lang.lexical import scan
from pandi.lang.resolver import resolve


class Worker(threading.Thread):
    """Calls function(*args) on its own thread. Whatever it returns or raises is kept for the thread that joins it."""

    def __init__(self, function, *args):
        super().__init__(daemon=True)
        self.function = function
        self.args = args

        self.result = None
        self.error = None

    def run(self):
        try:
            self.result = self.function(*self.args)
        except BaseException as error:  # re-raised by Session.run in the calling thread
            self.error = error


class Session:
    """Governs a pandi session. The interpreter, and with it the global environment, lives as long as the session."""
    SH_FILE = "<in>"  # command-line interpreter filename
    UNTERMINATED = ("Unterminated string.", "Unterminated comment.")

    RECURSION_LIMIT = 100000        # Python frames; deeper pandi recursion is reported as "Stack overflow."
    STACK_SIZE = 512 * 1024 * 1024  # bytes, for the worker thread

    def __init__(self, error_handler, path=SH_FILE, out=None):
        self.error_handler = error_handler
        self.path = path                          # used for error messages
        self.cmd_line = path == Session.SH_FILE   # whether or not in command-line mode

        self.interpreter = Interpreter(error_handler, out)

        if self.cmd_line:
            self.error_handler.fatal = False

        sys.setrecursionlimit(max(sys.getrecursionlimit(), Session.RECURSION_LIMIT))

    def run(self, source):
        """Runs source through every stage on a worker thread. Stops before resolution if there were lexical or syntax
        faults, and before evaluation if there were resolution faults. Returns the runtime fault that aborted
        evaluation, if any.

        A KeyboardInterrupt while waiting stops the running program before it is re-raised.
        """
        self.interpreter.interrupted.clear()

        previous = threading.stack_size(Session.STACK_SIZE)
        try:
            worker = Worker(self._run, source)
            worker.start()
        finally:
            threading.stack_size(previous)

        try:
            worker.join()
        except KeyboardInterrupt:
            self.interpreter.interrupt()
            worker.join()
            raise

        if worker.error is not None:
            raise worker.error
        return worker.result

    def _run(self, source):
        tokens = scan(source, self.error_handler)
        statements = parse(tokens, self.error_handler)
        if self.error_handler.had_error:
            return None

        resolve(statements, self.interpreter, self.error_handler)
        if self.error_handler.had_error:
            return None

        return self.interpreter.interpret(statements)

    def run_file(self):
        """Reads self.path with the platform default encoding and runs it. Raises OSError if it cannot be read."""
        with open(self.path, "r") as file:
            source = file.read()
        return self.run(source)

    @staticmethod
    def is_incomplete(source):
        """Whether source needs more lines before it can be run: an unclosed '{', string or block comment. Used for
        line continuations in command-line mode.
        """
        scratch = ErrorHandler(fatal=False, stream=io.StringIO())
        tokens = scan(source, scratch)

        if any(diagnostic.message in Session.UNTERMINATED for diagnostic in scratch.diagnostics):
            return True

        depth = 0
        for token in tokens:
            if token.type == TokenType.LEFT_BRACE:
                depth += 1
            elif token.type == TokenType.RIGHT_BRACE:
                depth -= 1
        return depth > 0
