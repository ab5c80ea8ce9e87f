"""
Expression Navigator - read-only queries on statement and condition nodes
"""

from typing import Iterator, Optional

from .ast_base import SyntaxNode, TokenType


def get_expression(statement: SyntaxNode) -> Optional[SyntaxNode]:
    """Get the EXPR child of a statement node, if any."""
    return statement.find_first_token(TokenType.EXPR)


def get_inversion(expression: Optional[SyntaxNode]) -> Optional[SyntaxNode]:
    """
    Get the inversion node of a condition if one exists.

    Only direct children of the EXPR node are looked at: a negation nested
    deeper in the condition (``!a && b``) is not an inversion of the
    condition itself.

    Args:
        expression: Node of kind EXPR

    Returns:
        Node of kind LNOT, or None
    """
    if expression is None:
        return None
    return expression.find_first_token(TokenType.LNOT)


def get_inversion_operator(inversion: SyntaxNode) -> Optional[SyntaxNode]:
    """
    Get the operator inside an inversion.

    For ``!(a && b)`` the LNOT children are ``LPAREN, LAND, RPAREN``; the
    operator is the first child's next sibling.
    """
    if inversion.child_count < 2:
        return None
    return inversion.children[1]


def iter_operands(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Iterate over the immediate children of a node."""
    yield from node.children


def is_empty_return(return_node: SyntaxNode) -> bool:
    """Check if a return statement has no expression."""
    return return_node.find_first_token(TokenType.EXPR) is None


def is_empty_for_condition(for_condition_node: SyntaxNode) -> bool:
    """Check if a for-loop condition is empty, as in ``for (;;)``."""
    return for_condition_node.first_child is None
