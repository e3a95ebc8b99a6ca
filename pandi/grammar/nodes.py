"""pandi abstract syntax tree: two closed families of nodes, expressions (produce values) and statements (produce
effects).

Nodes compare and hash by identity (eq=False): the resolver annotates each Variable/Assign/This node with its own hop
distance, and two structurally identical references in different scopes must not share an annotation.
"""

from dataclasses import dataclass, fields
from typing import List, Optional

from pandi.grammar.tokens import Token
from pandi.lang.error import GenericException


class Expr:
    """Superclass of every expression node."""


@dataclass(eq=False)
class Literal(Expr):
    value: object


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Logical(Expr):
    """Short-circuiting 'and'/'or'."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    name: Token


@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, used to locate runtime faults
    arguments: List[Expr]


@dataclass(eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    keyword: Token


class Stmt:
    """Superclass of every statement node."""


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    methods: List[Function]


def display(node):
    """Recursively displays a node as a parenthesized prefix expression. Two trees are structurally identical iff their
    displays are equal.

    Format:
    (+ 1 (group (* 2 3)))
    (var a = (call f 1))
    (block (print a) (return nil))
    """

    def parenthesize(name, *parts):
        return "(" + " ".join([name] + [part if isinstance(part, str) else display(part) for part in parts]) + ")"

    if node is None:
        return "nil"

    if isinstance(node, Literal):
        if node.value is None:
            return "nil"
        if isinstance(node.value, bool):
            return "true" if node.value else "false"
        if isinstance(node.value, str):
            return f'"{node.value}"'
        return repr(node.value)
    elif isinstance(node, Grouping):
        return parenthesize("group", node.expression)
    elif isinstance(node, (Unary, Binary, Logical)):
        operands = [node.right] if isinstance(node, Unary) else [node.left, node.right]
        return parenthesize(node.operator.lexeme, *operands)
    elif isinstance(node, Variable):
        return node.name.lexeme
    elif isinstance(node, Assign):
        return parenthesize("=", node.name.lexeme, node.value)
    elif isinstance(node, Call):
        return parenthesize("call", node.callee, *node.arguments)
    elif isinstance(node, Get):
        return parenthesize(".", node.object, node.name.lexeme)
    elif isinstance(node, Set):
        return parenthesize("=", parenthesize(".", node.object, node.name.lexeme), node.value)
    elif isinstance(node, This):
        return "this"

    elif isinstance(node, Expression):
        return parenthesize(";", node.expression)
    elif isinstance(node, Print):
        return parenthesize("print", node.expression)
    elif isinstance(node, Var):
        if node.initializer is None:
            return parenthesize("var", node.name.lexeme)
        return parenthesize("var", node.name.lexeme, "=", node.initializer)
    elif isinstance(node, Block):
        return parenthesize("block", *node.statements)
    elif isinstance(node, If):
        if node.else_branch is None:
            return parenthesize("if", node.condition, node.then_branch)
        return parenthesize("if-else", node.condition, node.then_branch, node.else_branch)
    elif isinstance(node, While):
        return parenthesize("while", node.condition, node.body)
    elif isinstance(node, Function):
        params = "(" + " ".join(param.lexeme for param in node.params) + ")"
        return parenthesize("fun", node.name.lexeme, params, *node.body)
    elif isinstance(node, Return):
        return parenthesize("return", node.value)
    elif isinstance(node, Class):
        return parenthesize("class", node.name.lexeme, *node.methods)

    raise GenericException(f"cannot display '{type(node).__name__}'", internal=True)


def token_of(node):
    """Returns a Token from inside node, nearest to its root first. Walks the tree with an explicit stack, so it can
    locate faults in trees too deep for the recursive consumers. Returns None for a tree without tokens, which only
    literals, groupings and the statements wrapping them can form.
    """
    pending = [node]
    while pending:
        node = pending.pop(0)
        children = []
        for field in fields(node):
            value = getattr(node, field.name)
            if isinstance(value, Token):
                return value
            if isinstance(value, (Expr, Stmt)):
                children.append(value)
            elif isinstance(value, list):
                children.extend(child for child in value if isinstance(child, (Expr, Stmt)))
        pending.extend(children)
    return None
