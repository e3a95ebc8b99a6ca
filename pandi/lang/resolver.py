"""Static scope resolution for pandi. Walks the syntax tree once, before evaluation, and tells the interpreter how
many frames separate each variable reference from its binding.

Scopes are a stack of dicts of name: whether the name's initializer has finished resolving (innermost last). The
global scope is not tracked: a reference found in no scope is left unresolved and is looked up in the global
environment at runtime.
"""

from enum import Enum, auto

from pandi.grammar import nodes
from pandi.lang.callables import PandiClass
from pandi.lang.error import GenericException


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()


class Resolver:
    """Resolution faults are reported to error_handler and never stop the walk."""

    def __init__(self, interpreter, error_handler):
        self.interpreter = interpreter
        self.error_handler = error_handler

        self.scopes = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements):
        for statement in statements:
            self._resolve_stmt(statement)

    def _resolve_stmt(self, stmt):
        if isinstance(stmt, nodes.Block):
            self._begin_scope()
            self.resolve(stmt.statements)
            self._end_scope()

        elif isinstance(stmt, nodes.Var):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)

        elif isinstance(stmt, nodes.Function):
            # defined before the body is resolved, so that functions can recurse
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionType.FUNCTION)

        elif isinstance(stmt, nodes.Class):
            enclosing_class = self.current_class
            self.current_class = ClassType.CLASS

            self._declare(stmt.name)
            self._define(stmt.name)

            self._begin_scope()
            self.scopes[-1]["this"] = True

            for method in stmt.methods:
                if method.name.lexeme == PandiClass.INITIALIZER:
                    self._resolve_function(method, FunctionType.INITIALIZER)
                else:
                    self._resolve_function(method, FunctionType.METHOD)

            self._end_scope()
            self.current_class = enclosing_class

        elif isinstance(stmt, nodes.Expression):
            self._resolve_expr(stmt.expression)

        elif isinstance(stmt, nodes.Print):
            self._resolve_expr(stmt.expression)

        elif isinstance(stmt, nodes.If):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)

        elif isinstance(stmt, nodes.While):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.body)

        elif isinstance(stmt, nodes.Return):
            if self.current_function == FunctionType.NONE:
                self.error_handler.token_error(stmt.keyword, "Can't return from top-level code.")

            if stmt.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.error_handler.token_error(stmt.keyword, "Can't return a value from an initializer.")
                self._resolve_expr(stmt.value)

        else:
            raise GenericException(f"cannot resolve '{type(stmt).__name__}'", internal=True)

    def _resolve_expr(self, expr):
        if isinstance(expr, nodes.Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error_handler.token_error(expr.name, "Can't read local variable in its own initializer.")
            self._resolve_local(expr, expr.name)

        elif isinstance(expr, nodes.Assign):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name)

        elif isinstance(expr, nodes.This):
            if self.current_class == ClassType.NONE:
                self.error_handler.token_error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self._resolve_local(expr, expr.keyword)

        elif isinstance(expr, (nodes.Binary, nodes.Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)

        elif isinstance(expr, nodes.Unary):
            self._resolve_expr(expr.right)

        elif isinstance(expr, nodes.Grouping):
            self._resolve_expr(expr.expression)

        elif isinstance(expr, nodes.Call):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)

        elif isinstance(expr, nodes.Get):
            # properties are looked up dynamically, only the object is resolved
            self._resolve_expr(expr.object)

        elif isinstance(expr, nodes.Set):
            self._resolve_expr(expr.value)
            self._resolve_expr(expr.object)

        elif isinstance(expr, nodes.Literal):
            pass

        else:
            raise GenericException(f"cannot resolve '{type(expr).__name__}'", internal=True)

    def _resolve_function(self, function, function_type):
        enclosing_function = self.current_function
        self.current_function = function_type

        self._begin_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self.resolve(function.body)
        self._end_scope()

        self.current_function = enclosing_function

    def _resolve_local(self, expr, name):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.interpreter.resolve(expr, depth)
                return
        # not found: global

    def _begin_scope(self):
        self.scopes.append({})

    def _end_scope(self):
        self.scopes.pop()

    def _declare(self, name):
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error_handler.token_error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def _define(self, name):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True


def resolve(statements, interpreter, error_handler):
    """Records hop distances for statements in interpreter. Resolution faults are reported to error_handler.

    Top-level statements are resolved one at a time, so that running out of host stack in one of them is reported as
    a fault located in it and the rest are still resolved.
    """
    for statement in statements:
        try:
            Resolver(interpreter, error_handler).resolve([statement])
        except RecursionError:
            token = nodes.token_of(statement)
            if token is None:
                raise
            error_handler.token_error(token, "Nesting too deep.")
