"""
Inversion Classifier - decides whether an inverted condition is avoidable

An inversion is avoidable when its negated expression holds at least one
relational or conditional operator, so the negation can be pushed into the
operators (``!(a >= 8 && b >= 5)`` becomes ``a < 8 || b < 5``). Inversions of
calls and type tests (``!list.isEmpty()``, ``!(obj instanceof Foo)``) are never
avoidable.

With ``apply_only_to_relational_operands`` enabled, an inversion is also
skipped when the operands of its conditional operator are not all
comparisons: ``!(a instanceof Foo || b.isValid())`` is left alone.
"""

from typing import Optional

from .ast_base import SyntaxNode, TokenType
from .navigator import get_inversion_operator, iter_operands
from .operators import is_relational, is_relational_or_conditional


def is_relational_operand(operand: SyntaxNode) -> bool:
    """
    Check if an operand counts as relational.

    Leaves (brackets, literals) count as relational so that the bracket
    pairs around each comparison do not disqualify the expression.
    """
    return operand.first_child is None or is_relational(operand.kind)


def contains_relational_operands_only(inversion: SyntaxNode) -> bool:
    """
    Check if an inverted condition contains only relational operands.

    Only the operator directly inside the inversion and that operator's own
    children are inspected.

    Args:
        inversion: Node of kind LNOT
    """
    operator = get_inversion_operator(inversion)
    if operator is None or is_relational(operator.kind):
        return True

    for operand in iter_operands(operator):
        if operand.kind == TokenType.IDENT or not is_relational_operand(operand):
            return False
    return True


def contains_conditional_or_relational_operands(inversion: SyntaxNode) -> bool:
    """
    Check if an inverted condition has a relational or conditional operator
    among its immediate children.

    Args:
        inversion: Node of kind LNOT
    """
    return any(is_relational_or_conditional(child.kind) for child in iter_operands(inversion))


def is_skip_condition(inversion: SyntaxNode, apply_only_to_relational_operands: bool = False) -> bool:
    """Check if an inverted condition has to be skipped under the given policy."""
    return (
        (apply_only_to_relational_operands and not contains_relational_operands_only(inversion))
        or not contains_conditional_or_relational_operands(inversion)
    )


def is_avoidable_inversion(
    inversion: Optional[SyntaxNode],
    apply_only_to_relational_operands: bool = False,
) -> bool:
    """Check if an inversion is avoidable under the given policy."""
    return inversion is not None and not is_skip_condition(inversion, apply_only_to_relational_operands)
