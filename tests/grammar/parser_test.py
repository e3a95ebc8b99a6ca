import io
import unittest

from pandi.grammar import nodes
from pandi.grammar.nodes import display
from pandi.grammar.parser import parse
from pandi.lang.error import ErrorHandler
from pandi.lang.lexical import scan


def parse_source(source):
    error_handler = ErrorHandler(fatal=False, stream=io.StringIO())
    statements = parse(scan(source, error_handler), error_handler)
    return statements, [str(diagnostic) for diagnostic in error_handler.diagnostics]


class ExpressionTestCase(unittest.TestCase):

    def test_precedence(self):
        cases = {
            "1 + 2 * 3;": "(; (+ 1.0 (* 2.0 3.0)))",
            "(1 + 2) * 3;": "(; (* (group (+ 1.0 2.0)) 3.0))",
            "1 - 2 - 3;": "(; (- (- 1.0 2.0) 3.0))",
            "8 / 4 / 2;": "(; (/ (/ 8.0 4.0) 2.0))",
            "!-a;": "(; (! (- a)))",
            "!!true;": "(; (! (! true)))",
            "a or b and c;": "(; (or a (and b c)))",
            "a == b != c;": "(; (!= (== a b) c))",
            "1 < 2 > 3 >= 4 <= 5;": "(; (<= (>= (> (< 1.0 2.0) 3.0) 4.0) 5.0))",
            "-1 + 2 == 1 and nil;": "(; (and (== (+ (- 1.0) 2.0) 1.0) nil))",
            '"s" + "t";': '(; (+ "s" "t"))',
        }
        for source, expected in cases.items():
            statements, errors = parse_source(source)
            self.assertEqual([], errors, source)
            self.assertEqual(expected, display(statements[0]), source)

    def test_assignment(self):
        cases = {
            "a = 1;": "(; (= a 1.0))",
            "a = b = c;": "(; (= a (= b c)))",
            "a.b = 1;": "(; (= (. a b) 1.0))",
            "a.b.c = d.e;": "(; (= (. (. a b) c) (. d e)))",
            "f().x = 1;": "(; (= (. (call f) x) 1.0))",
        }
        for source, expected in cases.items():
            statements, errors = parse_source(source)
            self.assertEqual([], errors, source)
            self.assertEqual(expected, display(statements[0]), source)

        statements, __ = parse_source("a.b = 1;")
        self.assertIsInstance(statements[0].expression, nodes.Set)

    def test_calls(self):
        cases = {
            "f();": "(; (call f))",
            "f(1, 2)(3);": "(; (call (call f 1.0 2.0) 3.0))",
            "a.b(c).d;": "(; (. (call (. a b) c) d))",
            "this.x;": "(; (. this x))",
        }
        for source, expected in cases.items():
            statements, errors = parse_source(source)
            self.assertEqual([], errors, source)
            self.assertEqual(expected, display(statements[0]), source)

    def test_invalid_assignment_target(self):
        should_fail = ["1 = 2;", "a + b = c;", "(a) = 1;", "f() = 1;"]
        for source in should_fail:
            statements, errors = parse_source(source)
            self.assertEqual(["[line 1] Error at '=': Invalid assignment target."], errors, source)
            self.assertEqual(1, len(statements), source)  # statement survives, no synchronization


class StatementTestCase(unittest.TestCase):

    def test_statements(self):
        cases = {
            "var a;": "(var a)",
            "var a = 1;": "(var a = 1.0)",
            "print a;": "(print a)",
            "{ var a; print a; }": "(block (var a) (print a))",
            "{}": "(block)",
            "if (a) print 1;": "(if a (print 1.0))",
            "if (a) print 1; else print 2;": "(if-else a (print 1.0) (print 2.0))",
            "if (a) if (b) print 1; else print 2;": "(if a (if-else b (print 1.0) (print 2.0)))",
            "while (a) a = a - 1;": "(while a (; (= a (- a 1.0))))",
            "fun f() {}": "(fun f ())",
            "fun add(a, b) { return a + b; }": "(fun add (a b) (return (+ a b)))",
            "fun f() { return; }": "(fun f () (return nil))",
            "class A {}": "(class A)",
            "class A { init(x) { this.x = x; } get() { return this.x; } }":
                "(class A (fun init (x) (; (= (. this x) x))) (fun get () (return (. this x))))",
        }
        for source, expected in cases.items():
            statements, errors = parse_source(source)
            self.assertEqual([], errors, source)
            self.assertEqual(1, len(statements), source)
            self.assertEqual(expected, display(statements[0]), source)

    def test_for_desugaring(self):
        cases = {
            "for (var i = 0; i < 3; i = i + 1) print i;":
                "(block (var i = 0.0) (while (< i 3.0) (block (print i) (; (= i (+ i 1.0))))))",
            "for (i = 0; i < 3;) print i;": "(block (; (= i 0.0)) (while (< i 3.0) (print i)))",
            "for (;;) print 1;": "(while true (print 1.0))",
            "for (; a;) {}": "(while a (block))",
        }
        for source, expected in cases.items():
            statements, errors = parse_source(source)
            self.assertEqual([], errors, source)
            self.assertEqual(expected, display(statements[0]), source)

    def test_determinism(self):
        source = "class A { m(x) { return x * 2; } } var a = A(); for (var i = 0; i < 2; i = i + 1) print a.m(i);"
        error_handler = ErrorHandler(fatal=False, stream=io.StringIO())
        tokens = scan(source, error_handler)

        first = parse(tokens, error_handler)
        second = parse(tokens, error_handler)
        self.assertEqual([display(statement) for statement in first], [display(statement) for statement in second])
        self.assertIsNot(first[0], second[0])
        self.assertNotEqual(first[0], second[0])  # nodes compare by identity


class SyntaxFaultTestCase(unittest.TestCase):

    def test_messages(self):
        cases = {
            "1 + ;": "[line 1] Error at ';': Expect expression.",
            "print 1": "[line 1] Error at end: Expect ';' after value.",
            "(1 + 2;": "[line 1] Error at ';': Expect ')' after expression.",
            "var 1 = 2;": "[line 1] Error at '1': Expect variable name.",
            "var a = 1\nprint a;": "[line 2] Error at 'print': Expect ';' after variable declaration.",
            "f(1;": "[line 1] Error at ';': Expect ')' after arguments.",
            "a.;": "[line 1] Error at ';': Expect property name after '.'.",
            "class {}": "[line 1] Error at '{': Expect class name.",
            "class A m() {} }": "[line 1] Error at 'm': Expect '{' before class body.",
            "fun (a) {}": "[line 1] Error at '(': Expect function name.",
            "fun f a) {}": "[line 1] Error at 'a': Expect '(' after function name.",
            "fun f(a b) {}": "[line 1] Error at 'b': Expect ')' after parameters.",
            "fun f(1) {}": "[line 1] Error at '1': Expect parameter name.",
            "fun f() print 1;": "[line 1] Error at 'print': Expect '{' before function body.",
            "{ print 1;": "[line 1] Error at end: Expect '}' after block.",
            "if a) print 1;": "[line 1] Error at 'a': Expect '(' after 'if'.",
            "while (a print 1;": "[line 1] Error at 'print': Expect ')' after condition.",
            "for (var i = 0; i < 1 print i;": "[line 1] Error at 'print': Expect ';' after loop condition.",
            "fun f() { return 1 }": "[line 1] Error at '}': Expect ';' after return value.",
        }
        for source, expected in cases.items():
            __, errors = parse_source(source)
            self.assertEqual(expected, errors[0], source)

    def test_synchronization(self):
        statements, errors = parse_source("var = 1; print 2; var b 3; print 4;")
        self.assertEqual([
            "[line 1] Error at '=': Expect variable name.",
            "[line 1] Error at '3': Expect ';' after variable declaration.",
        ], errors)
        self.assertEqual(["(print 2.0)", "(print 4.0)"], [display(statement) for statement in statements])

        statements, errors = parse_source("print ) fun f() {} class A {}")
        self.assertEqual(["[line 1] Error at ')': Expect expression."], errors)
        self.assertEqual(["(fun f ())", "(class A)"], [display(statement) for statement in statements])

    def test_too_many_arguments(self):
        arguments = ", ".join(["1"] * 256)
        statements, errors = parse_source(f"f({arguments});")
        self.assertEqual(["[line 1] Error at '1': Can't have more than 255 arguments."], errors)
        self.assertEqual(1, len(statements))

        params = ", ".join(f"p{idx}" for idx in range(256))
        statements, errors = parse_source(f"fun f({params}) {{}}")
        self.assertEqual(["[line 1] Error at 'p255': Can't have more than 255 parameters."], errors)
        self.assertEqual(1, len(statements))

        arguments = ", ".join(["1"] * 255)
        __, errors = parse_source(f"f({arguments});")
        self.assertEqual([], errors)


if __name__ == '__main__':
    unittest.main()
