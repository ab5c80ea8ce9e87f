"""
Operator Categories - what counts as a relational or conditional operator

See https://docs.oracle.com/javase/tutorial/java/nutsandbolts/opsummary.html
"""

from typing import FrozenSet

from .ast_base import TokenType


# Relational operators: < <= > >= == !=
RELATIONAL_OPERATORS: FrozenSet[TokenType] = frozenset({
    TokenType.LT,
    TokenType.LE,
    TokenType.GT,
    TokenType.GE,
    TokenType.EQUAL,
    TokenType.NOT_EQUAL,
})

# Relational operators plus the conditional && and ||
RELATIONAL_AND_CONDITIONAL_OPERATORS: FrozenSet[TokenType] = RELATIONAL_OPERATORS | frozenset({
    TokenType.LOR,
    TokenType.LAND,
})

# Statement kinds whose condition the inversion check inspects
RULE_TRIGGER_TOKENS = (
    TokenType.LITERAL_RETURN,
    TokenType.LITERAL_IF,
    TokenType.LITERAL_WHILE,
    TokenType.LITERAL_DO,
    TokenType.FOR_CONDITION,
)


def is_relational(kind: TokenType) -> bool:
    """Check if a node kind is a relational operator."""
    return kind in RELATIONAL_OPERATORS


def is_relational_or_conditional(kind: TokenType) -> bool:
    """Check if a node kind is a relational or conditional operator."""
    return kind in RELATIONAL_AND_CONDITIONAL_OPERATORS
