"""
AST Base Types - Immutable syntax tree shared by all language backends

Node kinds are named after checkstyle token types so that trees built from
Java and from Python have the same shape and can be fed to the same checks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple


class Language(str, Enum):
    """Supported source languages."""
    JAVA = "java"
    PYTHON = "python"
    UNKNOWN = "unknown"


class TokenType(str, Enum):
    """Syntax node kinds."""
    # Structure
    COMPILATION_UNIT = "COMPILATION_UNIT"
    EXPR = "EXPR"
    ELIST = "ELIST"
    SLIST = "SLIST"
    OBJBLOCK = "OBJBLOCK"
    ARRAY_INIT = "ARRAY_INIT"
    TYPE = "TYPE"
    UNPARSED = "UNPARSED"

    # Statements
    LITERAL_IF = "LITERAL_IF"
    LITERAL_WHILE = "LITERAL_WHILE"
    LITERAL_DO = "LITERAL_DO"
    DO_WHILE = "DO_WHILE"
    LITERAL_FOR = "LITERAL_FOR"
    FOR_CONDITION = "FOR_CONDITION"
    LITERAL_RETURN = "LITERAL_RETURN"

    # Punctuation kept in the tree
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    RBRACK = "RBRACK"
    COMMA = "COMMA"
    SEMI = "SEMI"
    COLON = "COLON"

    # Logical
    LNOT = "LNOT"
    LAND = "LAND"
    LOR = "LOR"

    # Relational
    LT = "LT"
    LE = "LE"
    GT = "GT"
    GE = "GE"
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    LITERAL_INSTANCEOF = "LITERAL_INSTANCEOF"

    # Python comparisons with no Java counterpart
    IS = "IS"
    IS_NOT = "IS_NOT"
    IN = "IN"
    NOT_IN = "NOT_IN"

    # Arithmetic and bitwise
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    DIV = "DIV"
    MOD = "MOD"
    SL = "SL"
    SR = "SR"
    BSR = "BSR"
    BAND = "BAND"
    BOR = "BOR"
    BXOR = "BXOR"
    BNOT = "BNOT"
    UNARY_MINUS = "UNARY_MINUS"
    UNARY_PLUS = "UNARY_PLUS"
    INC = "INC"
    DEC = "DEC"
    POST_INC = "POST_INC"
    POST_DEC = "POST_DEC"

    # Assignment
    ASSIGN = "ASSIGN"
    PLUS_ASSIGN = "PLUS_ASSIGN"
    MINUS_ASSIGN = "MINUS_ASSIGN"
    STAR_ASSIGN = "STAR_ASSIGN"
    DIV_ASSIGN = "DIV_ASSIGN"
    MOD_ASSIGN = "MOD_ASSIGN"
    BAND_ASSIGN = "BAND_ASSIGN"
    BOR_ASSIGN = "BOR_ASSIGN"
    BXOR_ASSIGN = "BXOR_ASSIGN"
    SL_ASSIGN = "SL_ASSIGN"
    SR_ASSIGN = "SR_ASSIGN"
    BSR_ASSIGN = "BSR_ASSIGN"

    # Other expressions
    QUESTION = "QUESTION"
    DOT = "DOT"
    METHOD_CALL = "METHOD_CALL"
    METHOD_REF = "METHOD_REF"
    INDEX_OP = "INDEX_OP"
    TYPECAST = "TYPECAST"
    LAMBDA = "LAMBDA"
    LITERAL_NEW = "LITERAL_NEW"
    IDENT = "IDENT"

    # Literals
    NUM_INT = "NUM_INT"
    NUM_FLOAT = "NUM_FLOAT"
    STRING_LITERAL = "STRING_LITERAL"
    CHAR_LITERAL = "CHAR_LITERAL"
    LITERAL_TRUE = "LITERAL_TRUE"
    LITERAL_FALSE = "LITERAL_FALSE"
    LITERAL_NULL = "LITERAL_NULL"
    LITERAL_THIS = "LITERAL_THIS"
    LITERAL_SUPER = "LITERAL_SUPER"
    LITERAL_CLASS = "LITERAL_CLASS"

    # Anything a backend does not model more precisely
    OTHER = "OTHER"


class SourceParseError(Exception):
    """A source file could not be tokenized or parsed as a whole."""

    def __init__(self, message: str, path: Optional[Path] = None, line: Optional[int] = None):
        self.path = path
        self.line = line
        where = ""
        if path is not None:
            where = f"{path}:{line}: " if line else f"{path}: "
        super().__init__(f"{where}{message}")


@dataclass(frozen=True)
class SyntaxNode:
    """
    Immutable syntax tree node.

    Children are kept as an ordered tuple; there are no parent or sibling
    links, a node's next sibling is the following entry in its parent's
    ``children``.
    """
    kind: TokenType
    line: int
    column: int = 0
    text: str = ""
    children: Tuple["SyntaxNode", ...] = ()

    @property
    def first_child(self) -> Optional["SyntaxNode"]:
        return self.children[0] if self.children else None

    @property
    def child_count(self) -> int:
        return len(self.children)

    def find_first_token(self, kind: TokenType) -> Optional["SyntaxNode"]:
        """Get the first direct child of a specific kind."""
        for child in self.children:
            if child.kind == kind:
                return child
        return None

    def get_children_by_type(self, kind: TokenType) -> List["SyntaxNode"]:
        """Get all direct children of a specific kind."""
        return [c for c in self.children if c.kind == kind]

    def find_all(self, kind: TokenType) -> Iterator["SyntaxNode"]:
        """Find all nodes of a specific kind at any depth (pre-order)."""
        stack = [self]
        while stack:
            node = stack.pop()
            if node.kind == kind:
                yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result: Dict[str, Any] = {"kind": self.kind.value, "line": self.line}
        if self.text:
            result["text"] = self.text
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result

    def __repr__(self) -> str:
        return f"SyntaxNode({self.kind.value}, line={self.line}, children={len(self.children)})"


class ASTBackend(ABC):
    """
    Abstract base class for language-specific tree builders.

    A backend turns source text into a ``COMPILATION_UNIT`` node whose
    children are the statements the checks are interested in, in source
    order.
    """

    @property
    @abstractmethod
    def language(self) -> Language:
        """The language this backend handles."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> List[str]:
        """File extensions this backend can parse."""
        pass

    @abstractmethod
    def parse_string(self, content: str, filename: str = "<string>") -> SyntaxNode:
        """
        Parse source code and return the tree.

        Args:
            content: Source code content
            filename: Virtual filename for error reporting

        Returns:
            Root node of kind COMPILATION_UNIT

        Raises:
            SourceParseError: if the source cannot be tokenized or parsed
        """
        pass

    def parse_file(self, path: Path) -> SyntaxNode:
        """Parse a file."""
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceParseError(f"cannot read file: {e}", path) from e
        return self.parse_string(content, str(path))


class ASTRegistry:
    """
    Registry of tree builders for different languages.
    """

    def __init__(self):
        self._backends: Dict[Language, ASTBackend] = {}
        self._extension_map: Dict[str, Language] = {}

    def register(self, backend: ASTBackend) -> None:
        """Register a backend."""
        self._backends[backend.language] = backend
        for ext in backend.file_extensions:
            self._extension_map[ext.lower()] = backend.language

    def get_backend(self, language: Language) -> Optional[ASTBackend]:
        """Get backend for a language."""
        return self._backends.get(language)

    def get_backend_for_file(self, path: Path) -> Optional[ASTBackend]:
        """Get backend for a file based on extension."""
        language = self.detect_language(path)
        return self._backends.get(language)

    def detect_language(self, path: Path) -> Language:
        """Detect language from file extension."""
        return self._extension_map.get(path.suffix.lower(), Language.UNKNOWN)

    def list_languages(self) -> List[Language]:
        """List registered languages."""
        return list(self._backends.keys())


# Global registry instance
_registry: Optional[ASTRegistry] = None


def get_ast_registry() -> ASTRegistry:
    """Get the global registry, with the Java and Python builders registered."""
    global _registry
    if _registry is None:
        from .ast_java import JavaASTBackend
        from .ast_python import PythonASTBackend

        _registry = ASTRegistry()
        _registry.register(JavaASTBackend())
        _registry.register(PythonASTBackend())
    return _registry


def detect_language(path: Path) -> Language:
    """Detect language from file path."""
    return get_ast_registry().detect_language(path)


# Utility functions

def format_ast_tree(node: SyntaxNode, indent: int = 0, max_depth: int = 50) -> str:
    """Format a tree as an indented string, one node per line."""
    lines = []
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        prefix = " " * (indent + depth * 2)
        if depth >= max_depth:
            lines.append(f"{prefix}...")
            continue

        label = f"{prefix}{current.kind.value} [{current.line}:{current.column}]"
        if current.text:
            label += f" {current.text!r}"
        lines.append(label)
        stack.extend((child, depth + 1) for child in reversed(current.children))
    return "\n".join(lines)
