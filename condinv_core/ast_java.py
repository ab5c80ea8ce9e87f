"""
Java Tree Builder - Turn Java source into checkstyle-shaped syntax trees

Uses the javalang tokenizer for lexing. Statements of interest (if, while,
do-while, for, return) are located on the token stream and their conditions
are parsed by a precedence-climbing expression parser that keeps the tree
shape checkstyle produces:

- a parenthesised operand is stored as ``LPAREN, <expr>, RPAREN`` siblings
  inside its parent, so ``!(a && b)`` is ``LNOT(LPAREN, LAND(...), RPAREN)``
- every condition is wrapped in an ``EXPR`` node
- every node carries the line of the token it was built from (the operator
  token for binary operators, ``!`` for inversions)
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from javalang import tokenizer

from .ast_base import (
    ASTBackend,
    Language,
    SourceParseError,
    SyntaxNode,
    TokenType,
)

logger = logging.getLogger(__name__)

Group = List[SyntaxNode]

# operator -> (precedence, kind); higher binds tighter
BINARY_OPERATORS: Dict[str, Tuple[int, TokenType]] = {
    "||": (3, TokenType.LOR),
    "&&": (4, TokenType.LAND),
    "|": (5, TokenType.BOR),
    "^": (6, TokenType.BXOR),
    "&": (7, TokenType.BAND),
    "==": (8, TokenType.EQUAL),
    "!=": (8, TokenType.NOT_EQUAL),
    "<": (9, TokenType.LT),
    ">": (9, TokenType.GT),
    "<=": (9, TokenType.LE),
    ">=": (9, TokenType.GE),
    "<<": (10, TokenType.SL),
    ">>": (10, TokenType.SR),
    ">>>": (10, TokenType.BSR),
    "+": (11, TokenType.PLUS),
    "-": (11, TokenType.MINUS),
    "*": (12, TokenType.STAR),
    "/": (12, TokenType.DIV),
    "%": (12, TokenType.MOD),
}
LOWEST_BINARY_PRECEDENCE = 3
INSTANCEOF_PRECEDENCE = 9

ASSIGNMENT_OPERATORS: Dict[str, TokenType] = {
    "=": TokenType.ASSIGN,
    "+=": TokenType.PLUS_ASSIGN,
    "-=": TokenType.MINUS_ASSIGN,
    "*=": TokenType.STAR_ASSIGN,
    "/=": TokenType.DIV_ASSIGN,
    "%=": TokenType.MOD_ASSIGN,
    "&=": TokenType.BAND_ASSIGN,
    "|=": TokenType.BOR_ASSIGN,
    "^=": TokenType.BXOR_ASSIGN,
    "<<=": TokenType.SL_ASSIGN,
    ">>=": TokenType.SR_ASSIGN,
    ">>>=": TokenType.BSR_ASSIGN,
}

PREFIX_OPERATORS: Dict[str, TokenType] = {
    "!": TokenType.LNOT,
    "~": TokenType.BNOT,
    "-": TokenType.UNARY_MINUS,
    "+": TokenType.UNARY_PLUS,
    "++": TokenType.INC,
    "--": TokenType.DEC,
}

POSTFIX_OPERATORS: Dict[str, TokenType] = {
    "++": TokenType.POST_INC,
    "--": TokenType.POST_DEC,
}

# Type argument nesting carried by each closing token
TYPE_ARGUMENT_CLOSERS = {">": 1, ">>": 2, ">>>": 3}

BRACKETS = {"(": ")", "[": "]", "{": "}"}


class ConditionParseError(Exception):
    """An expression could not be parsed."""

    def __init__(self, message: str, token: Optional[tokenizer.JavaToken] = None):
        self.token = token
        if token is not None:
            line, column = token.position
            message = f"{message} at {line}:{column} near {token.value!r}"
        super().__init__(message)


def _leaf(kind: TokenType, token: tokenizer.JavaToken, text: Optional[str] = None) -> SyntaxNode:
    line, column = token.position
    return SyntaxNode(kind, line, column, token.value if text is None else text)


def _node(kind: TokenType, token: tokenizer.JavaToken, children: Sequence[SyntaxNode]) -> SyntaxNode:
    line, column = token.position
    return SyntaxNode(kind, line, column, token.value, tuple(children))


def _find_matching(tokens: Sequence[tokenizer.JavaToken], start: int) -> Optional[int]:
    """Index of the bracket closing the one at ``start``, or None."""
    opening = tokens[start].value
    closing = BRACKETS[opening]
    depth = 0
    for index in range(start, len(tokens)):
        value = tokens[index].value
        if value == opening:
            depth += 1
        elif value == closing:
            depth -= 1
            if depth == 0:
                return index
    return None


def _literal_kind(token: tokenizer.JavaToken) -> TokenType:
    value = token.value
    if value == "true":
        return TokenType.LITERAL_TRUE
    if value == "false":
        return TokenType.LITERAL_FALSE
    if value == "null":
        return TokenType.LITERAL_NULL
    if value.startswith('"'):
        return TokenType.STRING_LITERAL
    if value.startswith("'"):
        return TokenType.CHAR_LITERAL
    if isinstance(token, tokenizer.FloatingPoint):
        return TokenType.NUM_FLOAT
    return TokenType.NUM_INT


class ConditionParser:
    """
    Recursive-descent parser for a single Java expression.

    Every ``parse_*`` method returns a group: the list of sibling nodes the
    parsed operand contributes to its parent (one node, or three for a
    parenthesised operand).
    """

    def __init__(self, tokens: Sequence[tokenizer.JavaToken]):
        self.tokens = tokens
        self.pos = 0

    # -- token stream -------------------------------------------------------

    def peek(self, offset: int = 0) -> Optional[tokenizer.JavaToken]:
        index = self.pos + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def peek_value(self, offset: int = 0) -> Optional[str]:
        token = self.peek(offset)
        return token.value if token is not None else None

    def next(self) -> tokenizer.JavaToken:
        token = self.peek()
        if token is None:
            last = self.tokens[-1] if self.tokens else None
            raise ConditionParseError("Unexpected end of expression", last)
        self.pos += 1
        return token

    def expect(self, value: str) -> tokenizer.JavaToken:
        token = self.next()
        if token.value != value:
            raise ConditionParseError(f"Expected {value!r}", token)
        return token

    def skip_balanced(self) -> tokenizer.JavaToken:
        """Skip a bracketed block starting at the current token."""
        start = self.pos
        end = _find_matching(self.tokens, start)
        if end is None:
            raise ConditionParseError("Unbalanced brackets", self.tokens[start])
        self.pos = end + 1
        return self.tokens[start]

    def skip_type_arguments(self) -> None:
        """Skip ``<...>``, counting ``>>`` and ``>>>`` as several closers."""
        depth = 0
        while True:
            token = self.next()
            if token.value == "<":
                depth += 1
            elif token.value in TYPE_ARGUMENT_CLOSERS:
                depth -= TYPE_ARGUMENT_CLOSERS[token.value]
            if depth <= 0:
                return

    # -- entry point --------------------------------------------------------

    def parse(self) -> Group:
        if not self.tokens:
            raise ConditionParseError("Empty expression")
        group = self.parse_expression()
        if self.peek() is not None:
            raise ConditionParseError("Unexpected token", self.peek())
        return group

    # -- expressions --------------------------------------------------------

    def parse_expression(self) -> Group:
        left = self.parse_ternary()
        token = self.peek()
        if token is not None and token.value in ASSIGNMENT_OPERATORS:
            self.next()
            right = self.parse_expression()
            return [_node(ASSIGNMENT_OPERATORS[token.value], token, left + right)]
        return left

    def parse_ternary(self) -> Group:
        condition = self.parse_binary(LOWEST_BINARY_PRECEDENCE)
        if self.peek_value() != "?":
            return condition
        question = self.next()
        then_branch = self.parse_expression()
        colon = self.expect(":")
        else_branch = self.parse_ternary()
        return [_node(
            TokenType.QUESTION,
            question,
            condition + then_branch + [_leaf(TokenType.COLON, colon)] + else_branch,
        )]

    def parse_binary(self, min_precedence: int) -> Group:
        left = self.parse_unary()
        while True:
            token = self.peek()
            if token is None:
                return left

            if token.value == "instanceof" and isinstance(token, tokenizer.Keyword):
                if INSTANCEOF_PRECEDENCE < min_precedence:
                    return left
                self.next()
                left = [_node(TokenType.LITERAL_INSTANCEOF, token, left + [self.parse_pattern()])]
                continue

            if not isinstance(token, tokenizer.Operator) or token.value not in BINARY_OPERATORS:
                return left
            precedence, kind = BINARY_OPERATORS[token.value]
            if precedence < min_precedence:
                return left
            self.next()
            right = self.parse_binary(precedence + 1)
            left = [_node(kind, token, left + right)]

    def parse_unary(self) -> Group:
        token = self.peek()
        if token is None:
            return self.parse_primary()
        if isinstance(token, tokenizer.Operator) and token.value in PREFIX_OPERATORS:
            self.next()
            return [_node(PREFIX_OPERATORS[token.value], token, self.parse_unary())]
        if token.value == "(" and self.is_cast():
            return self.parse_cast()
        return self.parse_postfix()

    def parse_postfix(self) -> Group:
        group = self.parse_primary()
        while True:
            token = self.peek()
            if token is None:
                return group
            value = token.value

            if value == ".":
                self.next()
                if self.peek_value() == "<":
                    self.skip_type_arguments()
                name = self.parse_member_name()
                group = [_node(TokenType.DOT, token, group + [name])]
                if self.peek_value() == "(":
                    group = [self.parse_call(group)]
            elif value == "::":
                self.next()
                name = self.next()
                group = [_node(TokenType.METHOD_REF, token, group + [_leaf(TokenType.IDENT, name)])]
            elif value == "[" and self.peek_value(1) == "]":
                # array type, as in String[].class or int[]::new
                self.next()
                self.next()
            elif value == "[":
                self.next()
                index = self.parse_expression()
                closing = self.expect("]")
                group = [_node(TokenType.INDEX_OP, token, group + index + [_leaf(TokenType.RBRACK, closing)])]
            elif isinstance(token, tokenizer.Operator) and value in POSTFIX_OPERATORS:
                self.next()
                group = [_node(POSTFIX_OPERATORS[value], token, group)]
            else:
                return group

    def parse_member_name(self) -> SyntaxNode:
        token = self.next()
        if isinstance(token, tokenizer.Identifier):
            return _leaf(TokenType.IDENT, token)
        if token.value == "class":
            return _leaf(TokenType.LITERAL_CLASS, token)
        if token.value == "this":
            return _leaf(TokenType.LITERAL_THIS, token)
        if token.value == "super":
            return _leaf(TokenType.LITERAL_SUPER, token)
        raise ConditionParseError("Expected member name", token)

    def parse_primary(self) -> Group:
        token = self.next()
        value = token.value

        if value == "(":
            closing = _find_matching(self.tokens, self.pos - 1)
            if closing is not None and closing + 1 < len(self.tokens) \
                    and self.tokens[closing + 1].value == "->":
                self.pos = closing + 1
                arrow = self.next()
                params = [_leaf(TokenType.LPAREN, token), _leaf(TokenType.RPAREN, self.tokens[closing])]
                return [_node(TokenType.LAMBDA, arrow, params + self.parse_lambda_body())]
            inner = self.parse_expression()
            rparen = self.expect(")")
            return [_leaf(TokenType.LPAREN, token)] + inner + [_leaf(TokenType.RPAREN, rparen)]

        if value in ("true", "false", "null") or isinstance(token, tokenizer.Literal):
            return [_leaf(_literal_kind(token), token)]

        if isinstance(token, tokenizer.Identifier):
            if self.peek_value() == "->":
                arrow = self.next()
                return [_node(TokenType.LAMBDA, arrow, [_leaf(TokenType.IDENT, token)] + self.parse_lambda_body())]
            ident = _leaf(TokenType.IDENT, token)
            if self.peek_value() == "(":
                return [self.parse_call([ident])]
            return [ident]

        if isinstance(token, tokenizer.BasicType):
            return [_leaf(TokenType.TYPE, token)]

        if value in ("this", "super"):
            kind = TokenType.LITERAL_THIS if value == "this" else TokenType.LITERAL_SUPER
            node = _leaf(kind, token)
            if self.peek_value() == "(":
                return [self.parse_call([node])]
            return [node]

        if value == "new":
            return [self.parse_new(token)]

        raise ConditionParseError("Unexpected token", token)

    def parse_call(self, callee: Group) -> SyntaxNode:
        lparen = self.expect("(")
        arguments = self.parse_arguments(lparen)
        rparen = self.expect(")")
        return _node(TokenType.METHOD_CALL, lparen, callee + [arguments, _leaf(TokenType.RPAREN, rparen)])

    def parse_arguments(self, lparen: tokenizer.JavaToken) -> SyntaxNode:
        children: Group = []
        if self.peek_value() != ")":
            while True:
                children.extend(self.parse_expression())
                if self.peek_value() != ",":
                    break
                children.append(_leaf(TokenType.COMMA, self.next()))
        return _node(TokenType.ELIST, lparen, children)

    def parse_lambda_body(self) -> Group:
        if self.peek_value() == "{":
            return [_leaf(TokenType.SLIST, self.skip_balanced())]
        return self.parse_expression()

    def parse_new(self, new_token: tokenizer.JavaToken) -> SyntaxNode:
        if self.peek_value() == "<":
            self.skip_type_arguments()
        children: Group = [self.parse_type()]

        if self.peek_value() == "(":
            lparen = self.next()
            children.append(self.parse_arguments(lparen))
            children.append(_leaf(TokenType.RPAREN, self.expect(")")))
            if self.peek_value() == "{":
                children.append(_leaf(TokenType.OBJBLOCK, self.skip_balanced()))
        elif self.peek_value() == "[":
            while self.peek_value() == "[":
                self.next()
                if self.peek_value() != "]":
                    children.extend(self.parse_expression())
                self.expect("]")
            if self.peek_value() == "{":
                children.append(_leaf(TokenType.ARRAY_INIT, self.skip_balanced()))
        elif self.peek_value() == "{":
            children.append(_leaf(TokenType.ARRAY_INIT, self.skip_balanced()))
        else:
            raise ConditionParseError("Malformed instance creation", new_token)
        return _node(TokenType.LITERAL_NEW, new_token, children)

    # -- types --------------------------------------------------------------

    def parse_type(self) -> SyntaxNode:
        """Parse a type name into a TYPE leaf holding its source text."""
        first = self.next()
        if not isinstance(first, (tokenizer.Identifier, tokenizer.BasicType)):
            raise ConditionParseError("Expected type", first)
        start = self.pos - 1
        if isinstance(first, tokenizer.Identifier):
            if self.peek_value() == "<":
                self.skip_type_arguments()
            while self.peek_value() == "." and isinstance(self.peek(1), tokenizer.Identifier):
                self.next()
                self.next()
                if self.peek_value() == "<":
                    self.skip_type_arguments()
        while self.peek_value() == "[" and self.peek_value(1) == "]":
            self.next()
            self.next()
        text = "".join(t.value for t in self.tokens[start:self.pos])
        return _leaf(TokenType.TYPE, first, text)

    def parse_pattern(self) -> SyntaxNode:
        """Right-hand side of instanceof: a type, optionally with a binding."""
        while isinstance(self.peek(), tokenizer.Modifier):
            self.next()
        type_node = self.parse_type()
        if self.peek_value() == "(":
            self.skip_balanced()
        elif isinstance(self.peek(), tokenizer.Identifier):
            self.next()
        return type_node

    def is_cast(self) -> bool:
        """Check if the ``(`` at the current position opens a cast."""
        index = self.pos + 1
        tokens = self.tokens
        if index >= len(tokens):
            return False

        first = tokens[index]
        primitive = isinstance(first, tokenizer.BasicType)
        if not primitive and not isinstance(first, tokenizer.Identifier):
            return False

        ahead = ConditionParser(tokens)
        ahead.pos = index
        try:
            ahead.parse_type()
        except ConditionParseError:
            return False
        if ahead.peek_value() != ")":
            return False

        following = ahead.peek(1)
        if following is None:
            return False
        if primitive:
            return True
        return (
            isinstance(following, (tokenizer.Identifier, tokenizer.Literal))
            or following.value in ("(", "!", "~", "this", "super", "new", "true", "false", "null")
        )

    def parse_cast(self) -> Group:
        lparen = self.expect("(")
        type_node = self.parse_type()
        rparen = self.expect(")")
        operand = self.parse_unary()
        return [_node(TokenType.TYPECAST, lparen, [type_node, _leaf(TokenType.RPAREN, rparen)] + operand)]


class JavaStatementScanner:
    """
    Finds if, while, do-while, for and return statements on a token stream
    and builds their nodes.
    """

    def __init__(self, tokens: Sequence[tokenizer.JavaToken], filename: str = "<string>"):
        self.tokens = tokens
        self.filename = filename
        self.unparsed = 0

    def scan(self) -> List[SyntaxNode]:
        statements: List[SyntaxNode] = []
        pending_do: List[Tuple[int, tokenizer.JavaToken]] = []
        depth = 0

        for index, token in enumerate(self.tokens):
            value = token.value
            if isinstance(token, tokenizer.Separator):
                if value == "{":
                    depth += 1
                elif value == "}":
                    depth -= 1
                continue
            if not isinstance(token, tokenizer.Keyword):
                continue

            statement = None
            if value == "if":
                statement = self.conditional(TokenType.LITERAL_IF, index)
            elif value == "while":
                if pending_do and pending_do[-1][0] == depth:
                    statement = self.do_while(pending_do.pop()[1], index)
                else:
                    statement = self.conditional(TokenType.LITERAL_WHILE, index)
            elif value == "do":
                pending_do.append((depth, token))
            elif value == "for":
                statement = self.for_loop(index)
            elif value == "return":
                statement = self.return_statement(index)

            if statement is not None:
                statements.append(statement)
        return statements

    def parenthesized(self, index: int) -> Optional[Tuple[int, int]]:
        """Bounds of the ``( ... )`` following the keyword at ``index``."""
        start = index + 1
        if start >= len(self.tokens) or self.tokens[start].value != "(":
            return None
        end = _find_matching(self.tokens, start)
        if end is None:
            line, _ = self.tokens[start].position
            raise SourceParseError("unbalanced parenthesis", Path(self.filename), line)
        return start, end

    def expression(self, start: int, end: int) -> SyntaxNode:
        """EXPR node for ``tokens[start:end]``."""
        tokens = self.tokens[start:end]
        anchor = tokens[0]
        try:
            group = ConditionParser(tokens).parse()
        except (ConditionParseError, RecursionError) as e:
            self.unparsed += 1
            logger.debug(f"{self.filename}: condition not analyzed: {e}")
            text = " ".join(t.value for t in tokens)
            return _node(TokenType.EXPR, anchor, [_leaf(TokenType.UNPARSED, anchor, text)])
        return _node(TokenType.EXPR, anchor, group)

    def conditional(self, kind: TokenType, index: int) -> Optional[SyntaxNode]:
        bounds = self.parenthesized(index)
        if bounds is None or bounds[1] == bounds[0] + 1:
            return None
        start, end = bounds
        return _node(kind, self.tokens[index], [
            _leaf(TokenType.LPAREN, self.tokens[start]),
            self.expression(start + 1, end),
            _leaf(TokenType.RPAREN, self.tokens[end]),
        ])

    def do_while(self, do_token: tokenizer.JavaToken, index: int) -> Optional[SyntaxNode]:
        bounds = self.parenthesized(index)
        if bounds is None or bounds[1] == bounds[0] + 1:
            return None
        start, end = bounds
        children = [
            _leaf(TokenType.DO_WHILE, self.tokens[index]),
            _leaf(TokenType.LPAREN, self.tokens[start]),
            self.expression(start + 1, end),
            _leaf(TokenType.RPAREN, self.tokens[end]),
        ]
        if end + 1 < len(self.tokens) and self.tokens[end + 1].value == ";":
            children.append(_leaf(TokenType.SEMI, self.tokens[end + 1]))
        return _node(TokenType.LITERAL_DO, do_token, children)

    def for_loop(self, index: int) -> Optional[SyntaxNode]:
        bounds = self.parenthesized(index)
        if bounds is None:
            return None
        start, end = bounds
        semicolons = self.top_level_semicolons(start + 1, end)
        if len(semicolons) < 2:
            # enhanced for
            return None
        first, second = semicolons[0], semicolons[1]
        first_semi = self.tokens[first]
        if second > first + 1:
            condition = _node(TokenType.FOR_CONDITION, self.tokens[first + 1], [self.expression(first + 1, second)])
        else:
            condition = _node(TokenType.FOR_CONDITION, first_semi, [])
        return _node(TokenType.LITERAL_FOR, self.tokens[index], [
            _leaf(TokenType.LPAREN, self.tokens[start]),
            _leaf(TokenType.SEMI, first_semi),
            condition,
            _leaf(TokenType.SEMI, self.tokens[second]),
            _leaf(TokenType.RPAREN, self.tokens[end]),
        ])

    def top_level_semicolons(self, start: int, end: int) -> List[int]:
        found = []
        depth = 0
        for index in range(start, end):
            value = self.tokens[index].value
            if value in BRACKETS:
                depth += 1
            elif value in BRACKETS.values():
                depth -= 1
            elif value == ";" and depth == 0:
                found.append(index)
        return found

    def return_statement(self, index: int) -> SyntaxNode:
        return_token = self.tokens[index]
        depth = 0
        end = index + 1
        while end < len(self.tokens):
            value = self.tokens[end].value
            if value in BRACKETS:
                depth += 1
            elif value in BRACKETS.values():
                depth -= 1
                if depth < 0:
                    break
            elif value == ";" and depth == 0:
                break
            end += 1

        children: List[SyntaxNode] = []
        if end > index + 1:
            children.append(self.expression(index + 1, end))
        if end < len(self.tokens) and self.tokens[end].value == ";":
            children.append(_leaf(TokenType.SEMI, self.tokens[end]))
        return _node(TokenType.LITERAL_RETURN, return_token, children)


class JavaASTBackend(ASTBackend):
    """
    Java tree builder.

    The resulting COMPILATION_UNIT holds one child per if, while, do-while,
    for and return statement, in source order.
    """

    @property
    def language(self) -> Language:
        return Language.JAVA

    @property
    def file_extensions(self) -> List[str]:
        return [".java"]

    def parse_string(self, content: str, filename: str = "<string>") -> SyntaxNode:
        try:
            tokens = list(tokenizer.tokenize(content))
        except tokenizer.LexerError as e:
            raise SourceParseError(f"cannot tokenize: {e}", Path(filename)) from e

        scanner = JavaStatementScanner(tokens, filename)
        try:
            statements = scanner.scan()
        except RecursionError as e:
            raise SourceParseError("expression nested too deeply", Path(filename)) from e
        if scanner.unparsed:
            logger.info(f"{filename}: {scanner.unparsed} condition(s) could not be parsed")
        return SyntaxNode(TokenType.COMPILATION_UNIT, 1, 0, Path(filename).name, tuple(statements))


def parse_java_expression(source: str) -> SyntaxNode:
    """Parse a single Java expression into an EXPR node."""
    tokens = list(tokenizer.tokenize(source))
    group = ConditionParser(tokens).parse()
    return _node(TokenType.EXPR, tokens[0], group)
