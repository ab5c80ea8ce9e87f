"""
Pytest Configuration and Fixtures
"""

import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from condinv_core.ast_base import SyntaxNode, TokenType  # noqa: E402


# ========== Tree building helpers ==========

def leaf(kind: TokenType, line: int = 1) -> SyntaxNode:
    return SyntaxNode(kind, line)


def node(kind: TokenType, *children: SyntaxNode, line: int = 1) -> SyntaxNode:
    return SyntaxNode(kind, line, 0, "", tuple(children))


def comparison(kind: TokenType = TokenType.GT, line: int = 1) -> SyntaxNode:
    """``a <op> 1``"""
    return node(kind, leaf(TokenType.IDENT, line), leaf(TokenType.NUM_INT, line), line=line)


def method_call(line: int = 1) -> SyntaxNode:
    """``obj.isValid()``"""
    dot = node(TokenType.DOT, leaf(TokenType.IDENT, line), leaf(TokenType.IDENT, line), line=line)
    return node(TokenType.METHOD_CALL, dot, leaf(TokenType.ELIST, line), leaf(TokenType.RPAREN, line), line=line)


def instanceof(line: int = 1) -> SyntaxNode:
    """``obj instanceof SomeClass``"""
    return node(TokenType.LITERAL_INSTANCEOF, leaf(TokenType.IDENT, line), leaf(TokenType.TYPE, line), line=line)


def bracketed(inner: SyntaxNode, line: int = 1) -> list:
    return [leaf(TokenType.LPAREN, line), inner, leaf(TokenType.RPAREN, line)]


def inversion(inner: SyntaxNode, line: int = 1) -> SyntaxNode:
    """``!(inner)``"""
    return node(TokenType.LNOT, *bracketed(inner, line), line=line)


def statement(kind: TokenType, condition: SyntaxNode, line: int = 1) -> SyntaxNode:
    """``if (condition)`` and friends."""
    expr = node(TokenType.EXPR, condition, line=condition.line)
    if kind == TokenType.LITERAL_RETURN:
        return node(kind, expr, leaf(TokenType.SEMI, line), line=line)
    if kind == TokenType.FOR_CONDITION:
        return node(kind, expr, line=line)
    return node(kind, leaf(TokenType.LPAREN, line), expr, leaf(TokenType.RPAREN, line), line=line)


def java_method(*body_lines: str) -> str:
    """Wrap statements in a class; the first body line is line 3."""
    body = "\n".join(f"        {line}" for line in body_lines)
    return f"public class Sample {{\n    boolean check(int a, int b, Object obj, java.util.List<String> list) {{\n{body}\n    }}\n}}\n"


# ========== Fixtures ==========

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_project(temp_dir: Path) -> Path:
    """Create a sample project with Java and Python sources."""
    (temp_dir / "src").mkdir()
    (temp_dir / "src" / "pkg").mkdir()
    (temp_dir / "build").mkdir()

    (temp_dir / "src" / "pkg" / "Limits.java").write_text("""package pkg;

public class Limits {

    public boolean outside(int a, int b) {
        if (!((a >= 8) && (b >= 5))) {
            return true;
        }
        return !(a != b);
    }

    public boolean valid(Object obj, Object obj1) {
        if (!(obj instanceof String || obj1.equals(obj))) {
            return false;
        }
        return !(obj instanceof Integer);
    }
}
""")

    (temp_dir / "src" / "helpers.py").write_text("""
def in_range(value, low, high):
    if not (low <= value and value <= high):
        return False
    return not value.is_integer()
""")

    (temp_dir / "src" / "Clean.java").write_text("""public class Clean {
    int sum(int[] values) {
        int total = 0;
        for (int i = 0; i < values.length; i++) {
            total += values[i];
        }
        return total;
    }
}
""")

    # Generated sources, excluded by default
    (temp_dir / "build" / "Generated.java").write_text("""public class Generated {
    boolean f(int a) { return !(a > 1); }
}
""")

    (temp_dir / "README.md").write_text("# Sample\n")

    return temp_dir
