"""
Python Tree Builder - Turn Python source into the same tree shape as Java

Uses Python's stdlib ast module for parsing. ``if``, ``elif``, ``while`` and
``return`` become LITERAL_IF, LITERAL_WHILE and LITERAL_RETURN nodes with an
EXPR child; ``not`` becomes LNOT, ``and``/``or`` become LAND/LOR and the
comparison operators map to their Java counterparts.

Python keeps no brackets in its tree. The operand of ``not`` is wrapped in an
LPAREN/RPAREN pair when it is a comparison or a boolean operation, which is
where Java source always has them.
"""

import ast
import logging
from pathlib import Path
from typing import Dict, List, Type

from .ast_base import (
    ASTBackend,
    Language,
    SourceParseError,
    SyntaxNode,
    TokenType,
)

logger = logging.getLogger(__name__)

COMPARISON_KINDS: Dict[Type[ast.cmpop], TokenType] = {
    ast.Lt: TokenType.LT,
    ast.LtE: TokenType.LE,
    ast.Gt: TokenType.GT,
    ast.GtE: TokenType.GE,
    ast.Eq: TokenType.EQUAL,
    ast.NotEq: TokenType.NOT_EQUAL,
    ast.Is: TokenType.IS,
    ast.IsNot: TokenType.IS_NOT,
    ast.In: TokenType.IN,
    ast.NotIn: TokenType.NOT_IN,
}

BINARY_KINDS: Dict[Type[ast.operator], TokenType] = {
    ast.Add: TokenType.PLUS,
    ast.Sub: TokenType.MINUS,
    ast.Mult: TokenType.STAR,
    ast.Div: TokenType.DIV,
    ast.FloorDiv: TokenType.DIV,
    ast.Mod: TokenType.MOD,
    ast.LShift: TokenType.SL,
    ast.RShift: TokenType.SR,
    ast.BitAnd: TokenType.BAND,
    ast.BitOr: TokenType.BOR,
    ast.BitXor: TokenType.BXOR,
}

UNARY_KINDS: Dict[Type[ast.unaryop], TokenType] = {
    ast.Not: TokenType.LNOT,
    ast.Invert: TokenType.BNOT,
    ast.USub: TokenType.UNARY_MINUS,
    ast.UAdd: TokenType.UNARY_PLUS,
}


class PythonASTBackend(ASTBackend):
    """
    Python tree builder using the stdlib ast module.
    """

    @property
    def language(self) -> Language:
        return Language.PYTHON

    @property
    def file_extensions(self) -> List[str]:
        return [".py", ".pyi"]

    def parse_string(self, content: str, filename: str = "<string>") -> SyntaxNode:
        try:
            tree = ast.parse(content, filename=filename)
        except SyntaxError as e:
            raise SourceParseError(f"syntax error: {e.msg}", Path(filename), e.lineno) from e
        except RecursionError as e:
            raise SourceParseError("expression nested too deeply", Path(filename)) from e

        statements = [
            node for node in ast.walk(tree)
            if isinstance(node, (ast.If, ast.While, ast.Return))
        ]
        statements.sort(key=lambda n: (n.lineno, n.col_offset))
        logger.debug(f"{filename}: {len(statements)} statement(s) to check")

        converted = []
        for statement in statements:
            try:
                converted.append(self._convert_statement(statement))
            except RecursionError as e:
                raise SourceParseError("expression nested too deeply", Path(filename), statement.lineno) from e
        return SyntaxNode(TokenType.COMPILATION_UNIT, 1, 0, Path(filename).name, tuple(converted))

    def _convert_statement(self, node: ast.stmt) -> SyntaxNode:
        if isinstance(node, ast.Return):
            children = () if node.value is None else (self._expression(node.value),)
            return SyntaxNode(TokenType.LITERAL_RETURN, node.lineno, node.col_offset, "return", children)

        kind = TokenType.LITERAL_IF if isinstance(node, ast.If) else TokenType.LITERAL_WHILE
        return SyntaxNode(kind, node.lineno, node.col_offset, "", (self._expression(node.test),))

    def _expression(self, node: ast.expr) -> SyntaxNode:
        return SyntaxNode(TokenType.EXPR, node.lineno, node.col_offset, "", (self._convert(node),))

    def _convert(self, node: ast.AST) -> SyntaxNode:
        """Convert an expression node."""
        line = getattr(node, "lineno", 1)
        column = getattr(node, "col_offset", 0)

        if isinstance(node, ast.UnaryOp):
            kind = UNARY_KINDS.get(type(node.op), TokenType.OTHER)
            operand = self._convert(node.operand)
            if kind == TokenType.LNOT and isinstance(node.operand, (ast.Compare, ast.BoolOp)):
                children = (
                    SyntaxNode(TokenType.LPAREN, operand.line, operand.column, "("),
                    operand,
                    SyntaxNode(TokenType.RPAREN, operand.line, operand.column, ")"),
                )
            else:
                children = (operand,)
            return SyntaxNode(kind, line, column, "not" if kind == TokenType.LNOT else "", children)

        if isinstance(node, ast.BoolOp):
            kind = TokenType.LAND if isinstance(node.op, ast.And) else TokenType.LOR
            return SyntaxNode(kind, line, column, "", tuple(self._convert(v) for v in node.values))

        if isinstance(node, ast.Compare):
            kind = COMPARISON_KINDS.get(type(node.ops[0]), TokenType.OTHER)
            operands = [node.left] + list(node.comparators)
            return SyntaxNode(kind, line, column, "", tuple(self._convert(o) for o in operands))

        if isinstance(node, ast.BinOp):
            kind = BINARY_KINDS.get(type(node.op), TokenType.OTHER)
            return SyntaxNode(kind, line, column, "", (self._convert(node.left), self._convert(node.right)))

        if isinstance(node, ast.Name):
            return SyntaxNode(TokenType.IDENT, line, column, node.id)

        if isinstance(node, ast.Attribute):
            name = SyntaxNode(TokenType.IDENT, node.end_lineno or line, column, node.attr)
            return SyntaxNode(TokenType.DOT, line, column, ".", (self._convert(node.value), name))

        if isinstance(node, ast.Call):
            arguments = [self._convert(a) for a in node.args]
            arguments.extend(self._convert(k.value) for k in node.keywords)
            elist = SyntaxNode(TokenType.ELIST, line, column, "", tuple(arguments))
            return SyntaxNode(TokenType.METHOD_CALL, line, column, "", (self._convert(node.func), elist))

        if isinstance(node, ast.Subscript):
            return SyntaxNode(TokenType.INDEX_OP, line, column, "", (self._convert(node.value), self._convert(node.slice)))

        if isinstance(node, ast.Constant):
            return SyntaxNode(self._constant_kind(node.value), line, column, repr(node.value))

        if isinstance(node, ast.IfExp):
            return SyntaxNode(TokenType.QUESTION, line, column, "", (
                self._convert(node.test), self._convert(node.body), self._convert(node.orelse),
            ))

        if isinstance(node, ast.Lambda):
            return SyntaxNode(TokenType.LAMBDA, line, column, "lambda", (self._convert(node.body),))

        if isinstance(node, ast.NamedExpr):
            return SyntaxNode(TokenType.ASSIGN, line, column, ":=", (self._convert(node.target), self._convert(node.value)))

        children = tuple(
            self._convert(child) for child in ast.iter_child_nodes(node)
            if isinstance(child, ast.expr)
        )
        return SyntaxNode(TokenType.OTHER, line, column, type(node).__name__, children)

    @staticmethod
    def _constant_kind(value) -> TokenType:
        if value is True:
            return TokenType.LITERAL_TRUE
        if value is False:
            return TokenType.LITERAL_FALSE
        if value is None:
            return TokenType.LITERAL_NULL
        if isinstance(value, (str, bytes)):
            return TokenType.STRING_LITERAL
        if isinstance(value, float):
            return TokenType.NUM_FLOAT
        return TokenType.NUM_INT
