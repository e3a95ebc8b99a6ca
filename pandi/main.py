"""Uses the pandi pipeline to interpret .pandi files/run in command-line mode. Also uses error handling context
manager. Called from the pandi console script.

Exit statuses follow sysexits.h: 64 for usage errors, 65 if the source had lexical/syntax/resolution faults, 66 if
the file could not be read and 70 if a runtime fault stopped it.
"""

import argparse
import sys

from pandi.lang.error import ErrorHandler, GenericException
from pandi.lang.session import Session
from pandi.lang.shell import Shell


class ArgumentParser(argparse.ArgumentParser):
    """argparse exits with status 2 on bad usage, pandi with 64."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(ErrorHandler.EX_USAGE, f"{self.prog}: error: {message}\n")


def main(argv=None):
    """Runs the pandi interpreter. Called from the pandi console script."""
    with ErrorHandler() as error_handler:
        parser = ArgumentParser(prog="pandi")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        args = parser.parse_args(argv)

        if args.file is not None:
            sess = Session(error_handler, args.file)
            try:
                sess.run_file()
            except OSError as error:
                error_handler.throw(GenericException(f"'{args.file}' could not be opened: {error.strerror}"),
                                    status=ErrorHandler.EX_NOINPUT)

            sys.exit(error_handler.exit_status())

        else:
            Shell(Session(error_handler, Session.SH_FILE)).cmdloop()


if __name__ == "__main__":
    main()
