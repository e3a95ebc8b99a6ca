"""Error handling for the pandi language. Every stage of the pipeline reports its faults to an ErrorHandler, which
collects them as Diagnostics and prints them as they arrive. Only GenericExceptions should be encountered while
running: if another type of error makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Python version must be >=3.7, because diagnostics rely on dataclasses.
"""

import sys
from dataclasses import dataclass

from termcolor import colored

from pandi.grammar.tokens import TokenType


class GenericException(Exception):
    """Base class for every pandi fault. token is the offending Token, if one is known."""

    def __init__(self, msg, token=None, internal=False):
        super().__init__(msg)
        self.msg = msg
        self.token = token
        self.internal = internal


class ParseError(GenericException):
    """Raised inside the parser to unwind to the nearest synchronization point. Never escapes Parser.parse."""


class PandiRuntimeError(GenericException):
    """Runtime fault: type mismatch, undefined variable/property, bad call target, arity mismatch."""

    def __init__(self, token, msg):
        super().__init__(msg, token)

    @property
    def line(self):
        return self.token.line if self.token is not None else None

    def __str__(self):
        return f"{self.msg}\n[line {self.line}]"


@dataclass(frozen=True)
class Diagnostic:
    """A single reported fault. where is '' for lexical faults, ' at end' or " at '<lexeme>'" otherwise."""
    line: int
    where: str
    message: str
    runtime: bool = False

    def __str__(self):
        if self.runtime:
            return f"{self.message}\n[line {self.line}]"
        return f"[line {self.line}] Error{self.where}: {self.message}"


class ErrorHandler:
    """Diagnostics collector for a pandi session, and context manager that suppresses Python errors and reports pandi
    errors in their place.
    """
    ERROR = "red"
    INTERNAL = "magenta"

    EX_OK = 0
    EX_USAGE = 64
    EX_DATAERR = 65
    EX_NOINPUT = 66
    EX_SOFTWARE = 70

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream  # defaults to sys.stderr at print time, so that it can be swapped out
        self.diagnostics = []

    @property
    def had_error(self):
        """Whether a lexical, syntax or resolution fault has been reported since the last reset."""
        return any(not diagnostic.runtime for diagnostic in self.diagnostics)

    @property
    def had_runtime_error(self):
        return any(diagnostic.runtime for diagnostic in self.diagnostics)

    def error(self, line, message):
        """Reports a fault that has a line but no token (lexical faults)."""
        self.report(line, "", message)

    def token_error(self, token, message):
        """Reports a syntax or resolution fault located at token."""
        if token.type == TokenType.EOF:
            self.report(token.line, " at end", message)
        else:
            self.report(token.line, f" at '{token.lexeme}'", message)

    def report(self, line, where, message):
        diagnostic = Diagnostic(line, where, message)
        self.diagnostics.append(diagnostic)

        error_msg = colored(f"[line {line}] ", attrs=["bold"])
        error_msg += colored(f"Error{where}: ", ErrorHandler.ERROR, attrs=["bold"]) + message
        self._print(error_msg)

    def runtime_error(self, error):
        """Reports a PandiRuntimeError. The run that raised it is already over by the time this is called."""
        diagnostic = Diagnostic(error.line, "", error.msg, runtime=True)
        self.diagnostics.append(diagnostic)

        self._print(colored(error.msg, ErrorHandler.ERROR, attrs=["bold"]) + f"\n[line {error.line}]")

    def reset(self):
        """Forgets every diagnostic. Called between REPL lines."""
        self.diagnostics = []

    def exit_status(self):
        """Process exit status for the diagnostics collected so far."""
        if self.had_error:
            return ErrorHandler.EX_DATAERR
        if self.had_runtime_error:
            return ErrorHandler.EX_SOFTWARE
        return ErrorHandler.EX_OK

    def throw(self, error, status=EX_SOFTWARE):
        """Reports a GenericException that escaped the pipeline, exiting with status if fatal. Internal errors are
        always fatal.
        """
        error_msg = ""
        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.INTERNAL, attrs=["bold"])
        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        self._print(error_msg)

        if self.fatal or error.internal:
            sys.exit(status)

    def _print(self, msg):
        print(msg, file=self.stream if self.stream is not None else sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self._print(colored("keyboard interrupt", ErrorHandler.ERROR, attrs=["bold"]))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is not None and issubclass(exc_type, PandiRuntimeError):
            self.runtime_error(exc_val)
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))

        return not do_exit
