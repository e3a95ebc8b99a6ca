import io
import unittest

from pandi.grammar.parser import parse
from pandi.lang.error import ErrorHandler
from pandi.lang.evaluator import Interpreter
from pandi.lang.lexical import scan
from pandi.lang.resolver import resolve


def resolve_source(source):
    """Returns (statements, interpreter holding the hop distances, formatted diagnostics)."""
    error_handler = ErrorHandler(fatal=False, stream=io.StringIO())
    statements = parse(scan(source, error_handler), error_handler)
    interpreter = Interpreter(error_handler, out=io.StringIO())
    resolve(statements, interpreter, error_handler)
    return statements, interpreter, [str(diagnostic) for diagnostic in error_handler.diagnostics]


class DistanceTestCase(unittest.TestCase):

    def test_shadowing_block(self):
        statements, interpreter, errors = resolve_source("var a = 1; { var a = 2; print a; }")
        self.assertEqual([], errors)
        reference = statements[1].statements[1].expression
        self.assertEqual(0, interpreter.locals[reference])

    def test_global_left_unresolved(self):
        statements, interpreter, errors = resolve_source("var a = 1; { print a; }")
        self.assertEqual([], errors)
        reference = statements[1].statements[0].expression
        self.assertNotIn(reference, interpreter.locals)

    def test_nested_function(self):
        source = "{ var a = 1; { fun f() { print a; a = 2; } } }"
        statements, interpreter, errors = resolve_source(source)
        self.assertEqual([], errors)

        function = statements[0].statements[1].statements[0]
        read = function.body[0].expression
        write = function.body[1].expression
        # function scope -> inner block -> outer block
        self.assertEqual(2, interpreter.locals[read])
        self.assertEqual(2, interpreter.locals[write])

    def test_parameters_and_closure(self):
        source = "fun outer(x) { fun inner() { return x; } return inner; }"
        statements, interpreter, errors = resolve_source(source)
        self.assertEqual([], errors)

        inner = statements[0].body[0]
        self.assertEqual(1, interpreter.locals[inner.body[0].value])
        self.assertEqual(0, interpreter.locals[statements[0].body[1].value])

    def test_identical_references_resolve_independently(self):
        source = "var a = 0; { var a = 1; print a; { print a; } } print a;"
        statements, interpreter, errors = resolve_source(source)
        self.assertEqual([], errors)

        block = statements[1]
        first = block.statements[1].expression
        second = block.statements[2].statements[0].expression
        third = statements[2].expression
        self.assertEqual(0, interpreter.locals[first])
        self.assertEqual(1, interpreter.locals[second])
        self.assertNotIn(third, interpreter.locals)

    def test_this(self):
        statements, interpreter, errors = resolve_source("class A { m() { return this; } }")
        self.assertEqual([], errors)
        this = statements[0].methods[0].body[0].value
        self.assertEqual(1, interpreter.locals[this])

    def test_class_name_visible_to_methods(self):
        statements, interpreter, errors = resolve_source("{ class A { make() { return A(); } } }")
        self.assertEqual([], errors)
        callee = statements[0].statements[0].methods[0].body[0].value.callee
        # method scope -> 'this' scope -> block declaring A
        self.assertEqual(2, interpreter.locals[callee])


class ResolutionFaultTestCase(unittest.TestCase):

    def test_messages(self):
        cases = {
            "{ var a = a; }": ["[line 1] Error at 'a': Can't read local variable in its own initializer."],
            "{ var a; var a; }": ["[line 1] Error at 'a': Already a variable with this name in this scope."],
            "fun f(a, a) {}": ["[line 1] Error at 'a': Already a variable with this name in this scope."],
            "return 1;": ["[line 1] Error at 'return': Can't return from top-level code."],
            "print this;": ["[line 1] Error at 'this': Can't use 'this' outside of a class."],
            "fun f() { return this; }": ["[line 1] Error at 'this': Can't use 'this' outside of a class."],
            "class A { init() { return 1; } }": [
                "[line 1] Error at 'return': Can't return a value from an initializer."
            ],
        }
        for source, expected in cases.items():
            __, __, errors = resolve_source(source)
            self.assertEqual(expected, errors, source)

    def test_allowed(self):
        should_pass = [
            "var a; var a;",                            # globals may be redeclared
            "var a = 1; { var b = a; }",
            "{ var a = 1; { var a = 2; } }",            # shadowing across scopes
            "class A { init() { return; } }",
            "fun f() { return 1; }",
            "fun f() { fun g() { return; } }",
            "class A { m() { fun g() { return this; } } }",
        ]
        for source in should_pass:
            __, __, errors = resolve_source(source)
            self.assertEqual([], errors, source)

    def test_faults_do_not_stop_resolution(self):
        __, __, errors = resolve_source("fun f() { var x; var x; } return; { var y = y; }")
        self.assertEqual([
            "[line 1] Error at 'x': Already a variable with this name in this scope.",
            "[line 1] Error at 'return': Can't return from top-level code.",
            "[line 1] Error at 'y': Can't read local variable in its own initializer.",
        ], errors)


if __name__ == '__main__':
    unittest.main()
