"""Runtime scopes. An Environment maps names to values and links to the Environment that encloses it; the global
Environment is the only one without a parent.

Frames are never re-linked, so parent chains are acyclic. Closures and bound methods keep references to the frames
they were created in, so those frames outlive the block or call that created them.
"""

from pandi.lang.error import PandiRuntimeError


class Environment:

    def __init__(self, enclosing=None):
        self.enclosing = enclosing
        self.values = {}

    def define(self, name, value):
        """Binds name in this frame. Redefining an existing name replaces its value."""
        self.values[name] = value

    def get(self, name):
        """Looks up name token by walking the parent chain."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing

        raise PandiRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name, value):
        """Rebinds an existing name token in the nearest frame that defines it."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing

        raise PandiRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance):
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
        return environment

    def get_at(self, distance, name):
        """Reads name (a str) exactly distance frames up. The resolver guarantees the binding is there."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance, name, value):
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self):
        return f"Environment({self.values}, enclosing={'None' if self.enclosing is None else '...'})"
