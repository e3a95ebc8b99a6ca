"""Recursive-descent parser for pandi: turns the scanner's Tokens into a list of statement nodes.

Formally, pandi can be defined as follows (lowest to highest precedence for expressions):

```
<program>     ::= <declaration>* EOF
<declaration> ::= "class" IDENTIFIER "{" <function>* "}"
                | "fun" <function>
                | "var" IDENTIFIER ( "=" <expression> )? ";"
                | <statement>
<function>    ::= IDENTIFIER "(" ( IDENTIFIER ( "," IDENTIFIER )* )? ")" <block>
<statement>   ::= <expression> ";" | "print" <expression> ";" | "return" <expression>? ";"
                | "if" "(" <expression> ")" <statement> ( "else" <statement> )?
                | "while" "(" <expression> ")" <statement>
                | "for" "(" ( <var_decl> | <expr_stmt> | ";" ) <expression>? ";" <expression>? ")" <statement>
                | <block>
<block>       ::= "{" <declaration>* "}"

<expression>  ::= ( <call> "." )? IDENTIFIER "=" <expression> | <logic_or>    ; right-associative
<logic_or>    ::= <logic_and> ( "or" <logic_and> )*
<logic_and>   ::= <equality> ( "and" <equality> )*
<equality>    ::= <comparison> ( ( "!=" | "==" ) <comparison> )*
<comparison>  ::= <term> ( ( ">" | ">=" | "<" | "<=" ) <term> )*
<term>        ::= <factor> ( ( "-" | "+" ) <factor> )*
<factor>      ::= <unary> ( ( "/" | "*" ) <unary> )*
<unary>       ::= ( "!" | "-" ) <unary> | <call>
<call>        ::= <primary> ( "(" <arguments>? ")" | "." IDENTIFIER )*
<primary>     ::= "true" | "false" | "nil" | "this" | NUMBER | STRING | IDENTIFIER | "(" <expression> ")"
```

"for" has no node of its own: it is desugared into a while loop wrapped in blocks.
"""

from pandi.grammar import nodes
from pandi.grammar.tokens import TokenType
from pandi.lang.error import ParseError


class Parser:
    """Parses a token list. Syntax faults are reported to error_handler, after which the parser synchronizes to the
    next statement boundary and carries on, so that each genuine defect yields one diagnostic.
    """
    MAX_ARGUMENTS = 255
    # tokens that begin a statement, used to find a synchronization point
    BOUNDARIES = (
        TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
        TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
    )

    def __init__(self, tokens, error_handler):
        self.tokens = tokens
        self.error_handler = error_handler
        self.current = 0

    def parse(self):
        """Returns the list of top-level statements. Statements that failed to parse are left out.

        Running out of host stack inside a statement is a syntax fault at the token where it happened.
        """
        statements = []
        while not self.is_at_end():
            try:
                statement = self.declaration()
            except RecursionError:
                self.error(self.peek(), "Nesting too deep.")
                self.synchronize()
                continue
            if statement is not None:
                statements.append(statement)
        return statements

    # ------------------------------------------------------------------------------------------------------------------
    # statements

    def declaration(self):
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.match(TokenType.FUN):
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return None

    def class_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            methods.append(self.function("method"))

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return nodes.Class(name, methods)

    def function(self, kind):
        """kind is "function" or "method", and only changes error messages."""
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")

        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= Parser.MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {Parser.MAX_ARGUMENTS} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break

        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return nodes.Function(name, params, self.block())

    def var_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return nodes.Var(name, initializer)

    def statement(self):
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.match(TokenType.LEFT_BRACE):
            return nodes.Block(self.block())
        return self.expression_statement()

    def for_statement(self):
        """Desugars for (init; cond; incr) body into { init; while (cond) { body; incr; } }."""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.statement()

        if increment is not None:
            body = nodes.Block([body, nodes.Expression(increment)])
        if condition is None:
            condition = nodes.Literal(True)
        body = nodes.While(condition, body)
        if initializer is not None:
            body = nodes.Block([initializer, body])

        return body

    def if_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.statement()
        else_branch = None
        if self.match(TokenType.ELSE):  # binds to the nearest if
            else_branch = self.statement()

        return nodes.If(condition, then_branch, else_branch)

    def print_statement(self):
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return nodes.Print(value)

    def return_statement(self):
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return nodes.Return(keyword, value)

    def while_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return nodes.While(condition, self.statement())

    def block(self):
        """Parses declarations up to the closing brace. Assumes the opening brace was consumed."""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            statement = self.declaration()
            if statement is not None:
                statements.append(statement)

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self):
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return nodes.Expression(expr)

    # ------------------------------------------------------------------------------------------------------------------
    # expressions

    def expression(self):
        return self.assignment()

    def assignment(self):
        expr = self.logic_or()

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()

            if isinstance(expr, nodes.Variable):
                return nodes.Assign(expr.name, value)
            if isinstance(expr, nodes.Get):
                return nodes.Set(expr.object, expr.name, value)

            # reported, but the parser is not confused, so no need to synchronize
            self.error(equals, "Invalid assignment target.")

        return expr

    def logic_or(self):
        expr = self.logic_and()
        while self.match(TokenType.OR):
            operator = self.previous()
            expr = nodes.Logical(expr, operator, self.logic_and())
        return expr

    def logic_and(self):
        expr = self.equality()
        while self.match(TokenType.AND):
            operator = self.previous()
            expr = nodes.Logical(expr, operator, self.equality())
        return expr

    def equality(self):
        return self.binary(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self):
        return self.binary(
            self.term, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL
        )

    def term(self):
        return self.binary(self.factor, TokenType.MINUS, TokenType.PLUS)

    def factor(self):
        return self.binary(self.unary, TokenType.SLASH, TokenType.STAR)

    def binary(self, operand, *operators):
        """Left-associative binary level: operand ( operator operand )*."""
        expr = operand()
        while self.match(*operators):
            operator = self.previous()
            expr = nodes.Binary(expr, operator, operand())
        return expr

    def unary(self):
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            return nodes.Unary(operator, self.unary())
        return self.call()

    def call(self):
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = nodes.Get(expr, name)
            else:
                break

        return expr

    def finish_call(self, callee):
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= Parser.MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {Parser.MAX_ARGUMENTS} arguments.")
                arguments.append(self.expression())
                if not self.match(TokenType.COMMA):
                    break

        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return nodes.Call(callee, paren, arguments)

    def primary(self):
        if self.match(TokenType.FALSE):
            return nodes.Literal(False)
        if self.match(TokenType.TRUE):
            return nodes.Literal(True)
        if self.match(TokenType.NIL):
            return nodes.Literal(None)

        if self.match(TokenType.NUMBER, TokenType.STRING):
            return nodes.Literal(self.previous().literal)

        if self.match(TokenType.THIS):
            return nodes.This(self.previous())
        if self.match(TokenType.IDENTIFIER):
            return nodes.Variable(self.previous())

        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return nodes.Grouping(expr)

        raise self.error(self.peek(), "Expect expression.")

    # ------------------------------------------------------------------------------------------------------------------
    # token stream helpers

    def match(self, *token_types):
        """Consumes the current token if it is any of token_types."""
        for token_type in token_types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def consume(self, token_type, message):
        if self.check(token_type):
            return self.advance()
        raise self.error(self.peek(), message)

    def check(self, token_type):
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def advance(self):
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self):
        return self.peek().type == TokenType.EOF

    def peek(self):
        return self.tokens[self.current]

    def previous(self):
        return self.tokens[self.current - 1]

    def error(self, token, message):
        """Reports message at token and returns (does not raise) a ParseError, so that the caller decides whether to
        unwind.
        """
        self.error_handler.token_error(token, message)
        return ParseError(message, token)

    def synchronize(self):
        """Discards tokens until just past a ';' or up to a token that begins a statement."""
        self.advance()

        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in Parser.BOUNDARIES:
                return
            self.advance()


def parse(tokens, error_handler):
    """Returns list of statement nodes parsed from tokens. Syntax faults are reported to error_handler."""
    return Parser(tokens, error_handler).parse()
