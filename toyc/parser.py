"""Recursive-descent parser producing an abstract syntax tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from toyc.lexer import Token, TokenType, tokenize

_log = logging.getLogger(__name__)


class NodeType(str, Enum):
    """Kinds of AST nodes."""

    PROGRAM = "Program"
    FUNCTION = "Function"
    STMT_LIST = "StmtList"
    VAR_DECL = "VarDecl"
    ASSIGN = "Assign"
    IF_STMT = "IfStmt"
    WHILE_STMT = "WhileStmt"
    FOR_STMT = "ForStmt"
    RETURN_STMT = "ReturnStmt"
    PRINT_STMT = "PrintStmt"
    BINARY_EXPR = "BinaryExpr"
    UNARY_EXPR = "UnaryExpr"
    LITERAL = "Literal"
    IDENTIFIER = "Identifier"
    ARRAY_ACCESS = "ArrayAccess"
    ARRAY_LENGTH = "ArrayLength"
    ARRAY_LITERAL = "ArrayLiteral"
    FUNC_CALL = "FuncCall"
    EXPR_STMT = "ExprStmt"

    def __str__(self) -> str:
        return self.value


@dataclass
class ASTNode:
    """A node of the syntax tree.

    ``children`` may contain ``None`` for the omitted clauses of a for loop.
    The originating token is kept for diagnostics but ignored in comparisons.
    """

    type: NodeType
    value: Any = None
    children: list[Optional[ASTNode]] = field(default_factory=list)
    token: Optional[Token] = field(default=None, compare=False, repr=False)


class ParseError(Exception):
    """Raised when the token stream does not form a valid program."""


_BINARY_OPERATORS = frozenset(
    {
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.MULTIPLY,
        TokenType.DIVIDE,
        TokenType.DOUBLE_EQUAL,
        TokenType.LESS_THAN,
    }
)

_PRECEDENCE = {"==": 1, "<": 1, "+": 2, "-": 2, "*": 3, "/": 3}


def _identifier(token: Token) -> ASTNode:
    return ASTNode(NodeType.IDENTIFIER, token.literal, token=token)


class Parser:
    """Builds an AST from a list of tokens."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = list(tokens)
        self._current = 0

    # -- token handling -------------------------------------------------

    def _current_line(self) -> int:
        if not self.tokens:
            return 0
        if self._current >= len(self.tokens):
            return self.tokens[-1].line
        return self.tokens[self._current].line

    def _peek(self) -> Token:
        if self._current >= len(self.tokens):
            return Token(TokenType.EOF, "", self._current_line())
        return self.tokens[self._current]

    def _peek_next(self) -> Token:
        if self._current + 1 >= len(self.tokens):
            return Token(TokenType.EOF, "", self._current_line())
        return self.tokens[self._current + 1]

    def _matches(self, ttype: TokenType, value: str) -> bool:
        token = self._peek()
        if self._current >= len(self.tokens):
            return False
        if ttype is not TokenType.EOF and token.type is not ttype:
            return False
        return not value or token.literal == value

    def _expect(self, ttype: TokenType, value: str = "") -> Token:
        """Consume the current token, raising ParseError if it does not match."""
        token = self._peek()
        if not self._matches(ttype, value):
            raise ParseError(
                f"expect {ttype.name} '{value}' at line {token.line}, "
                f"found {token.type.name} '{token.literal}'"
            )
        self._current += 1
        return token

    def _accept(self, ttype: TokenType, value: str = "") -> bool:
        """Consume the current token if it matches; otherwise leave it."""
        if self._matches(ttype, value):
            self._current += 1
            return True
        return False

    # -- program structure ----------------------------------------------

    def parse(self) -> ASTNode:
        """Parse the whole token stream into a Program node."""
        program = ASTNode(NodeType.PROGRAM)
        while self._current < len(self.tokens) and self._peek().type is not TokenType.EOF:
            function = self._parse_function()
            if function is None:
                raise ParseError(
                    f"unexpected token at line {self._current_line()}: {self._peek().literal}"
                )
            program.children.append(function)
        return program

    def _parse_function(self) -> Optional[ASTNode]:
        if self._peek().type is not TokenType.FUNC:
            return None
        self._expect(TokenType.FUNC, "func")
        name = self._expect(TokenType.IDENTIFIER)
        node = ASTNode(NodeType.FUNCTION, name.literal, token=name)
        self._expect(TokenType.LPAREN, "(")
        while self._peek().type not in (TokenType.RPAREN, TokenType.EOF):
            if self._peek().type in (TokenType.INT, TokenType.BOOL):
                self._expect(self._peek().type)
            param = self._expect(TokenType.IDENTIFIER)
            node.children.append(_identifier(param))
            if self._peek().literal == ",":
                self._accept(TokenType.COMMA, ",")
        self._expect(TokenType.RPAREN, ")")
        self._expect(TokenType.LBRACE, "{")
        node.children.append(self._parse_stmt_list())
        self._expect(TokenType.RBRACE, "}")
        return node

    def _parse_stmt_list(self) -> ASTNode:
        node = ASTNode(NodeType.STMT_LIST)
        while self._peek().type not in (TokenType.RBRACE, TokenType.EOF):
            stmt = self._parse_stmt(True)
            if stmt is None:
                break
            node.children.append(stmt)
        return node

    # -- statements -----------------------------------------------------

    def _parse_stmt(self, consume_semi: bool) -> Optional[ASTNode]:
        kind = self._peek().type
        if kind in (TokenType.INT, TokenType.BOOL):
            return self._parse_var_decl(consume_semi)
        if kind is TokenType.IF:
            return self._parse_if_stmt()
        if kind is TokenType.WHILE:
            return self._parse_while_stmt()
        if kind is TokenType.FOR:
            return self._parse_for_stmt()
        if kind is TokenType.RETURN:
            return self._parse_return_stmt()
        if kind is TokenType.PRINT:
            return self._parse_print_stmt()
        if kind is TokenType.IDENTIFIER:
            ident = self._expect(TokenType.IDENTIFIER)
            following = self._peek()
            if following.literal == "(":
                return self._parse_func_call_stmt(ident)
            if following.literal in ("[", "="):
                return self._parse_assign_stmt(ident, consume_semi)
            if following.type in (TokenType.INC, TokenType.DEC):
                after = self._peek_next()
                semi_required = consume_semi and after.type not in (
                    TokenType.RBRACE,
                    TokenType.EOF,
                )
                return self._parse_inc_dec_stmt(ident, semi_required)
            return self._parse_func_call_stmt(ident)
        return None

    def _parse_var_decl(self, consume_semi: bool) -> ASTNode:
        self._expect(self._peek().type)
        name = self._expect(TokenType.IDENTIFIER)
        node = ASTNode(NodeType.VAR_DECL, name.literal, token=name)
        if self._peek().literal == "[":
            self._accept(TokenType.LBRACKET, "[")
            self._accept(TokenType.RBRACKET, "]")
        if self._peek().literal == "=":
            self._accept(TokenType.EQUAL, "=")
            if self._peek().literal == "[":
                init = self._parse_array_literal()
            else:
                init = self._parse_expr()
            node.children.extend([_identifier(name), init])
        if consume_semi:
            self._expect(TokenType.SEMICOLON, ";")
        return node

    def _parse_assign_stmt(self, ident: Token, consume_semi: bool) -> ASTNode:
        target = _identifier(ident)
        if self._peek().literal == "[":
            self._accept(TokenType.LBRACKET, "[")
            index = self._parse_expr()
            self._expect(TokenType.RBRACKET, "]")
            target = ASTNode(NodeType.ARRAY_ACCESS, children=[_identifier(ident), index], token=ident)
        self._expect(TokenType.EQUAL, "=")
        expr = self._parse_expr()
        node = ASTNode(NodeType.ASSIGN, children=[target, expr], token=ident)
        _log.debug("before semicolon in assign, token: %s", self._peek())
        if consume_semi:
            self._expect(TokenType.SEMICOLON, ";")
        return node

    def _parse_inc_dec_stmt(self, ident: Token, consume_semi: bool) -> ASTNode:
        op = self._peek()
        self._expect(op.type, op.literal)
        op_value = "+" if op.type is TokenType.INC else "-"
        one = ASTNode(NodeType.LITERAL, 1, token=Token(TokenType.NUMBER, "1"))
        rhs = ASTNode(NodeType.BINARY_EXPR, op_value, [_identifier(ident), one], token=op)
        node = ASTNode(NodeType.ASSIGN, children=[_identifier(ident), rhs], token=ident)
        if consume_semi:
            self._expect(TokenType.SEMICOLON, ";")
        return node

    def _parse_block(self) -> ASTNode:
        self._expect(TokenType.LBRACE, "{")
        body = self._parse_stmt_list()
        self._expect(TokenType.RBRACE, "}")
        return body

    def _parse_condition(self) -> ASTNode:
        self._expect(TokenType.LPAREN, "(")
        cond = self._parse_expr()
        self._expect(TokenType.RPAREN, ")")
        return cond

    def _parse_if_stmt(self) -> ASTNode:
        self._expect(TokenType.IF, "if")
        cond = self._parse_condition()
        body = self._parse_block()
        node = ASTNode(NodeType.IF_STMT, children=[cond, body])
        if self._peek().type is TokenType.ELSE:
            self._expect(TokenType.ELSE, "else")
            if self._peek().type is TokenType.IF:
                node.children.append(self._parse_if_stmt())
            else:
                node.children.append(self._parse_block())
        return node

    def _parse_while_stmt(self) -> ASTNode:
        self._expect(TokenType.WHILE, "while")
        cond = self._parse_condition()
        body = self._parse_block()
        return ASTNode(NodeType.WHILE_STMT, children=[cond, body])

    def _parse_for_stmt(self) -> ASTNode:
        self._expect(TokenType.FOR, "for")
        self._expect(TokenType.LPAREN, "(")
        init: Optional[ASTNode] = None
        cond: Optional[ASTNode] = None
        incr: Optional[ASTNode] = None
        if self._peek().type is not TokenType.SEMICOLON:
            init = self._parse_stmt(True)
        else:
            self._expect(TokenType.SEMICOLON, ";")
        if self._peek().type is not TokenType.SEMICOLON:
            cond = self._parse_expr()
        self._expect(TokenType.SEMICOLON, ";")
        if self._peek().type is not TokenType.RPAREN:
            incr = self._parse_stmt(False)
        self._expect(TokenType.RPAREN, ")")
        body = self._parse_block()
        return ASTNode(NodeType.FOR_STMT, children=[init, cond, incr, body])

    def _parse_return_stmt(self) -> ASTNode:
        self._expect(TokenType.RETURN, "return")
        node = ASTNode(NodeType.RETURN_STMT)
        if self._peek().type is not TokenType.SEMICOLON:
            node.children.append(self._parse_expr())
        self._expect(TokenType.SEMICOLON, ";")
        return node

    def _parse_print_stmt(self) -> ASTNode:
        self._expect(TokenType.PRINT, "print")
        expr = self._parse_condition()
        self._expect(TokenType.SEMICOLON, ";")
        return ASTNode(NodeType.PRINT_STMT, children=[expr])

    def _parse_arguments(self, node: ASTNode) -> None:
        while self._peek().type is not TokenType.RPAREN:
            node.children.append(self._parse_expr())
            if self._peek().literal == ",":
                self._accept(TokenType.COMMA, ",")

    def _parse_func_call_stmt(self, ident: Token) -> ASTNode:
        node = ASTNode(NodeType.FUNC_CALL, ident.literal, token=ident)
        if self._peek().literal == "(":
            self._expect(TokenType.LPAREN, "(")
            self._parse_arguments(node)
            self._expect(TokenType.RPAREN, ")")
        self._expect(TokenType.SEMICOLON, ";")
        return node

    # -- expressions ----------------------------------------------------

    def _parse_expr(self) -> ASTNode:
        return self._parse_binary_expr(0)

    def _parse_binary_expr(self, precedence: int) -> ASTNode:
        node = self._parse_primary()
        while True:
            op = self._peek()
            op_precedence = _PRECEDENCE.get(op.literal, 0)
            if op.type not in _BINARY_OPERATORS or op_precedence <= precedence:
                return node
            self._accept(op.type, op.literal)
            rhs = self._parse_binary_expr(op_precedence)
            node = ASTNode(NodeType.BINARY_EXPR, op.literal, [node, rhs], token=op)

    def _parse_primary(self) -> ASTNode:
        token = self._peek()
        kind = token.type
        if kind is TokenType.NUMBER:
            self._accept(TokenType.NUMBER)
            return ASTNode(NodeType.LITERAL, int(token.literal), token=token)
        if kind is TokenType.STRING:
            self._accept(TokenType.STRING)
            return ASTNode(NodeType.LITERAL, token.literal, token=token)
        if kind in (TokenType.TRUE, TokenType.FALSE):
            self._accept(kind)
            return ASTNode(NodeType.LITERAL, kind is TokenType.TRUE, token=token)
        if kind is TokenType.IDENTIFIER:
            return self._parse_identifier_expr()
        if kind is TokenType.LPAREN:
            self._accept(TokenType.LPAREN, "(")
            expr = self._parse_expr()
            self._accept(TokenType.RPAREN, ")")
            return expr
        if kind is TokenType.BANG:
            self._accept(TokenType.BANG, "!")
            operand = self._parse_primary()
            return ASTNode(NodeType.UNARY_EXPR, "!", [operand], token=token)
        if kind is TokenType.LBRACKET:
            return self._parse_array_literal()
        raise ParseError(f"unexpected token at line {self._current_line()}: {token.literal}")

    def _parse_identifier_expr(self) -> ASTNode:
        ident = self._expect(TokenType.IDENTIFIER)
        following = self._peek()
        if following.literal == "(":
            node = ASTNode(NodeType.FUNC_CALL, ident.literal, token=ident)
            self._accept(TokenType.LPAREN, "(")
            self._parse_arguments(node)
            self._accept(TokenType.RPAREN, ")")
            return node
        if following.literal == "[":
            self._accept(TokenType.LBRACKET, "[")
            index = self._parse_expr()
            self._accept(TokenType.RBRACKET, "]")
            return ASTNode(NodeType.ARRAY_ACCESS, children=[_identifier(ident), index], token=ident)
        if following.literal == "." and self._peek_next().literal == "length":
            self._accept(TokenType.DOT, ".")
            self._accept(TokenType.LENGTH, "length")
            return ASTNode(NodeType.ARRAY_LENGTH, children=[_identifier(ident)], token=ident)
        return _identifier(ident)

    def _parse_array_literal(self) -> ASTNode:
        node = ASTNode(NodeType.ARRAY_LITERAL)
        self._expect(TokenType.LBRACKET, "[")
        while self._peek().type is not TokenType.RBRACKET:
            node.children.append(self._parse_expr())
            if self._peek().literal == ",":
                self._accept(TokenType.COMMA, ",")
        self._expect(TokenType.RBRACKET, "]")
        return node


def parse(source: str) -> ASTNode:
    """Tokenize and parse ``source``, returning the Program node."""
    return Parser(tokenize(source)).parse()