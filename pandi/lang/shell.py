"""Handles interactive/command-line mode for the pandi interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """pandi interpreter shell."""
    intro = "pandi interpreter :: Python backend\nType 'help' for more information, 'exit' or Ctrl-D to leave."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations
    COMMANDS = ("help", "exit")

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    def onecmd(self, line):
        """Only the bare words in COMMANDS are shell commands, and not inside a continuation. Every other line, like
        'exit = 1;' or 'help(topic);', is pandi code. EOF always leaves.
        """
        command = line.strip()
        if command == "EOF" or (command in Shell.COMMANDS and not self._tmp_line):
            return super().onecmd(command)
        if not command:
            return self.emptyline()
        return self.default(line)

    def default(self, line):
        """Runs an arbitrary line of pandi code. Definitions persist from one line to the next; errors do not."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            source = self._tmp_line + line + "\n"

            if self.sess.is_incomplete(source):
                self._tmp_line = source
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt
            try:
                self.sess.run(source)
            finally:
                self.sess.error_handler.reset()

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the pandi interpreter!\n\n"
              "pandi is a small dynamically-typed scripting language with first-class \n"
              "functions, closures and classes. Statements end with ';'.\n\n"
              "Try it out by typing 'var greeting = \"hello\";'. This will bind the string \n"
              "to the name 'greeting'. Next, try typing 'print greeting + \" world\";'.")

    def emptyline(self):
        """Do not repeat previous command on empty line, but keep blank lines inside a continuation."""
        if self._tmp_line:
            self._tmp_line += "\n"
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
