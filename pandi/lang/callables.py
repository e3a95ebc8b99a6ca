"""Callable runtime values: user-defined functions, native functions and classes. Calling a class constructs an
instance of it.
"""

import time
from abc import ABC, abstractmethod

from pandi.lang.environment import Environment
from pandi.lang.error import PandiRuntimeError


class PandiCallable(ABC):
    """Anything that can appear as the callee of a call expression."""

    @abstractmethod
    def arity(self):
        """Number of arguments call expects."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Invokes this callable. Assumes len(arguments) == self.arity()."""


class PandiFunction(PandiCallable):
    """A function declaration together with the environment active where it was declared."""

    def __init__(self, declaration, closure, is_initializer=False):
        self.declaration = declaration
        self.closure = closure  # never reassigned: bind makes a new PandiFunction instead
        self.is_initializer = is_initializer

    def bind(self, instance):
        """Returns a copy of this method whose closure is a new frame defining 'this' as instance."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return PandiFunction(self.declaration, environment, self.is_initializer)

    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        returned = interpreter.execute_block(self.declaration.body, environment)

        # initializers hand back the instance, even on an early 'return;'
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if returned is not None:
            return returned.value
        return None

    def __str__(self):
        return f"<fn {self.declaration.name.lexeme}>"


class NativeFunction(PandiCallable):
    """A function implemented in Python."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(*arguments)

    def __str__(self):
        return "<native fn>"


class PandiClass(PandiCallable):
    """A class: a name and a method table. Calling it constructs a PandiInstance and runs its initializer, if any."""
    INITIALIZER = "init"

    def __init__(self, name, methods):
        self.name = name
        self.methods = methods

    def find_method(self, name):
        return self.methods.get(name)

    def arity(self):
        initializer = self.find_method(PandiClass.INITIALIZER)
        return 0 if initializer is None else initializer.arity()

    def call(self, interpreter, arguments):
        instance = PandiInstance(self)

        initializer = self.find_method(PandiClass.INITIALIZER)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)

        return instance

    def __str__(self):
        return self.name


class PandiInstance:
    """An instance of a PandiClass with its own fields."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        """Looks name token up in fields first, then among the class's methods (bound to this instance)."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise PandiRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name, value):
        """Always writes a field, even if a method of the same name exists."""
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"


def clock():
    """Seconds since the epoch, as a pandi number."""
    return time.time()


NATIVES = [NativeFunction("clock", 0, clock)]
