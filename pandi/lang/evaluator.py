"""Tree-walking evaluator for pandi. Executes resolved statements against a chain of Environments.

Statement execution returns a control result rather than raising for 'return': None means the statement completed
normally, a Returned means a 'return' was executed and the enclosing function call should stop with its value.
Blocks and loops check the result after each statement and pass a Returned outward untouched.
"""

import sys
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass

from pandi.grammar import nodes
from pandi.grammar.tokens import TokenType
from pandi.lang.callables import NATIVES, PandiCallable, PandiClass, PandiFunction, PandiInstance
from pandi.lang.environment import Environment
from pandi.lang.error import GenericException, PandiRuntimeError
from pandi.lang.numerical import divide, is_equal, is_number, is_truthy, stringify


@dataclass(frozen=True)
class Returned:
    """Control result of an executed 'return'."""
    value: object


class Interpreter:
    """Holds the global Environment and the resolver's hop distances across runs, so that a REPL session keeps its
    definitions from one line to the next.
    """

    def __init__(self, error_handler, out=None):
        self.error_handler = error_handler
        self.out = out  # defaults to sys.stdout at print time

        self.globals = Environment()
        self.environment = self.globals
        # expression node: hop distance, keyed by node identity. Entries go away with their syntax tree, so that a REPL
        # session only keeps the distances of nodes that are still reachable (function and method bodies).
        self.locals = weakref.WeakKeyDictionary()
        self.interrupted = threading.Event()

        for native in NATIVES:
            self.globals.define(native.name, native)

    def interpret(self, statements):
        """Executes statements in order. A runtime fault stops the remaining statements; it is reported to the error
        handler and returned, otherwise None is returned. Running out of host stack outside of a call, in a deeply
        nested expression, is the runtime fault "Stack overflow." located in the statement.
        """
        try:
            for statement in statements:
                try:
                    self._execute(statement)
                except RecursionError:
                    raise PandiRuntimeError(nodes.token_of(statement), "Stack overflow.") from None
        except PandiRuntimeError as error:
            self.error_handler.runtime_error(error)
            return error
        return None

    def interrupt(self):
        """Asks a running interpret, possibly on another thread, to stop at the next loop iteration or call."""
        self.interrupted.set()

    def resolve(self, expr, depth):
        """Called by the resolver: expr's binding lives depth frames above the environment it is evaluated in."""
        self.locals[expr] = depth

    @contextmanager
    def _scope(self, environment):
        """Makes environment the active one for the duration of the with block, restoring the previous environment on
        any exit.
        """
        previous = self.environment
        self.environment = environment
        try:
            yield environment
        finally:
            self.environment = previous

    def execute_block(self, statements, environment):
        """Executes statements inside environment. Returns a Returned if one of them executed a 'return'."""
        with self._scope(environment):
            for statement in statements:
                returned = self._execute(statement)
                if returned is not None:
                    return returned
        return None

    # ------------------------------------------------------------------------------------------------------------------
    # statements

    def _execute(self, stmt):
        if isinstance(stmt, nodes.Expression):
            self._evaluate(stmt.expression)

        elif isinstance(stmt, nodes.Print):
            value = self._evaluate(stmt.expression)
            print(stringify(value), file=self.out if self.out is not None else sys.stdout)

        elif isinstance(stmt, nodes.Var):
            value = None
            if stmt.initializer is not None:
                value = self._evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)

        elif isinstance(stmt, nodes.Block):
            return self.execute_block(stmt.statements, Environment(self.environment))

        elif isinstance(stmt, nodes.If):
            if is_truthy(self._evaluate(stmt.condition)):
                return self._execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                return self._execute(stmt.else_branch)

        elif isinstance(stmt, nodes.While):
            while is_truthy(self._evaluate(stmt.condition)):
                self._check_interrupted()
                returned = self._execute(stmt.body)
                if returned is not None:
                    return returned

        elif isinstance(stmt, nodes.Function):
            function = PandiFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)

        elif isinstance(stmt, nodes.Return):
            value = None
            if stmt.value is not None:
                value = self._evaluate(stmt.value)
            return Returned(value)

        elif isinstance(stmt, nodes.Class):
            # two-step binding, so that methods can refer to the class by name
            self.environment.define(stmt.name.lexeme, None)

            methods = {}
            for method in stmt.methods:
                is_initializer = method.name.lexeme == PandiClass.INITIALIZER
                methods[method.name.lexeme] = PandiFunction(method, self.environment, is_initializer)

            klass = PandiClass(stmt.name.lexeme, methods)
            self.environment.assign(stmt.name, klass)

        else:
            raise GenericException(f"cannot execute '{type(stmt).__name__}'", internal=True)

        return None

    # ------------------------------------------------------------------------------------------------------------------
    # expressions

    def _evaluate(self, expr):
        if isinstance(expr, nodes.Literal):
            return expr.value

        elif isinstance(expr, nodes.Grouping):
            return self._evaluate(expr.expression)

        elif isinstance(expr, nodes.Logical):
            left = self._evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self._evaluate(expr.right)

        elif isinstance(expr, nodes.Unary):
            return self._unary(expr)

        elif isinstance(expr, nodes.Binary):
            return self._binary(expr)

        elif isinstance(expr, nodes.Variable):
            return self._look_up_variable(expr.name, expr)

        elif isinstance(expr, nodes.Assign):
            value = self._evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is None:
                self.globals.assign(expr.name, value)
            else:
                self.environment.assign_at(distance, expr.name, value)
            return value

        elif isinstance(expr, nodes.Call):
            return self._call(expr)

        elif isinstance(expr, nodes.Get):
            instance = self._evaluate(expr.object)
            if isinstance(instance, PandiInstance):
                return instance.get(expr.name)
            raise PandiRuntimeError(expr.name, "Only instances have properties.")

        elif isinstance(expr, nodes.Set):
            instance = self._evaluate(expr.object)
            if not isinstance(instance, PandiInstance):
                raise PandiRuntimeError(expr.name, "Only instances have fields.")

            value = self._evaluate(expr.value)
            instance.set(expr.name, value)
            return value

        elif isinstance(expr, nodes.This):
            return self._look_up_variable(expr.keyword, expr)

        raise GenericException(f"cannot evaluate '{type(expr).__name__}'", internal=True)

    def _look_up_variable(self, name, expr):
        distance = self.locals.get(expr)
        if distance is None:
            return self.globals.get(name)
        return self.environment.get_at(distance, name.lexeme)

    def _unary(self, expr):
        right = self._evaluate(expr.right)

        if expr.operator.type == TokenType.BANG:
            return not is_truthy(right)
        if expr.operator.type == TokenType.MINUS:
            self._check_number_operands(expr.operator, right)
            return -right

        raise GenericException(f"unknown unary operator '{expr.operator.lexeme}'", internal=True)

    def _binary(self, expr):
        left = self._evaluate(expr.left)
        right = self._evaluate(expr.right)
        operator = expr.operator.type

        if operator == TokenType.BANG_EQUAL:
            return not is_equal(left, right)
        if operator == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)

        if operator == TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise PandiRuntimeError(expr.operator, "Operands must be two numbers or two strings.")

        self._check_number_operands(expr.operator, left, right)

        if operator == TokenType.GREATER:
            return left > right
        if operator == TokenType.GREATER_EQUAL:
            return left >= right
        if operator == TokenType.LESS:
            return left < right
        if operator == TokenType.LESS_EQUAL:
            return left <= right
        if operator == TokenType.MINUS:
            return left - right
        if operator == TokenType.STAR:
            return left * right
        if operator == TokenType.SLASH:
            return divide(left, right)

        raise GenericException(f"unknown binary operator '{expr.operator.lexeme}'", internal=True)

    def _check_interrupted(self):
        if self.interrupted.is_set():
            raise KeyboardInterrupt()

    @staticmethod
    def _check_number_operands(operator, *operands):
        if all(is_number(operand) for operand in operands):
            return
        if len(operands) == 1:
            raise PandiRuntimeError(operator, "Operand must be a number.")
        raise PandiRuntimeError(operator, "Operands must be numbers.")

    def _call(self, expr):
        callee = self._evaluate(expr.callee)
        arguments = [self._evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, PandiCallable):
            raise PandiRuntimeError(expr.paren, "Can only call functions and classes.")

        if len(arguments) != callee.arity():
            raise PandiRuntimeError(expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")

        self._check_interrupted()
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise PandiRuntimeError(expr.paren, "Stack overflow.") from None
