"""
Avoid Condition Inversion Check

Catches condition inversions which could be rewritten in a more readable
manner without changing the logic, e.g.::

    if (!((a >= 8) && (b >= 5))) { ... }    ->    if ((a < 8) || (b < 5)) { ... }
    if (!(a != b)) { ... }                  ->    if (a == b) { ... }

Inversions that cannot be removed without changing the logic are not
reported::

    return !(list.isEmpty());
    return !(obj instanceof SomeClass);

Property ``apply_only_to_relational_operands``: when true, only inversions
whose operands are all relational are reported, so
``if (!(obj instanceof SomeClass || obj1.isValid()))`` is left alone.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from .ast_base import SyntaxNode, TokenType
from .inversion import is_avoidable_inversion
from .navigator import get_expression, get_inversion, is_empty_for_condition, is_empty_return
from .operators import RULE_TRIGGER_TOKENS

logger = logging.getLogger(__name__)

MSG_KEY = "avoid.condition.inversion"

Reporter = Callable[[int, str], None]


class UnexpectedTokenError(RuntimeError):
    """The check was asked to visit a node kind it does not handle."""


@dataclass(frozen=True)
class Finding:
    """A reported inversion: the line of the LNOT node and the message key."""
    line: int
    message_key: str = MSG_KEY


class AvoidConditionInversionCheck:
    """
    Reports avoidable inversions in if, while, do-while, for conditions and
    return expressions.

    The instance holds no per-tree state; a single check can visit nodes of
    any number of trees, from any number of threads, as long as its reporter
    is thread-safe (or None).
    """

    DEFAULT_TOKENS: Tuple[TokenType, ...] = RULE_TRIGGER_TOKENS
    ACCEPTABLE_TOKENS: Tuple[TokenType, ...] = RULE_TRIGGER_TOKENS

    def __init__(
        self,
        apply_only_to_relational_operands: bool = False,
        tokens: Optional[Iterable[TokenType]] = None,
        reporter: Optional[Reporter] = None,
    ):
        """
        Args:
            apply_only_to_relational_operands: Only report inversions with
                relational operands
            tokens: Statement kinds to visit (subset of ACCEPTABLE_TOKENS),
                defaults to DEFAULT_TOKENS
            reporter: Called as ``reporter(line, message_key)`` for each finding
        """
        self.apply_only_to_relational_operands = apply_only_to_relational_operands
        self.reporter = reporter
        self.tokens = self._validate_tokens(tokens)

    def _validate_tokens(self, tokens: Optional[Iterable[TokenType]]) -> Tuple[TokenType, ...]:
        if tokens is None:
            return self.DEFAULT_TOKENS
        selected = tuple(TokenType(t) for t in tokens)
        unacceptable = [t.value for t in selected if t not in self.ACCEPTABLE_TOKENS]
        if unacceptable:
            raise ValueError(
                f"Tokens not acceptable for {type(self).__name__}: {', '.join(unacceptable)}"
            )
        return selected

    def set_apply_only_to_relational_operands(self, value: bool) -> None:
        self.apply_only_to_relational_operands = value

    def visit_token(self, node: SyntaxNode) -> Optional[Finding]:
        """
        Visit a statement node and report its inversion if it is avoidable.

        Args:
            node: Node of kind LITERAL_RETURN, LITERAL_IF, LITERAL_WHILE,
                LITERAL_DO or FOR_CONDITION

        Returns:
            The finding, or None

        Raises:
            UnexpectedTokenError: for any other node kind
        """
        kind = node.kind

        if kind == TokenType.LITERAL_RETURN:
            if is_empty_return(node):
                return None
        elif kind in (TokenType.LITERAL_WHILE, TokenType.LITERAL_DO, TokenType.LITERAL_IF):
            pass
        elif kind == TokenType.FOR_CONDITION:
            if is_empty_for_condition(node):
                return None
        else:
            raise UnexpectedTokenError(f"Unexpected Token Type - {kind.value}")

        inversion = get_inversion(get_expression(node))
        if is_avoidable_inversion(inversion, self.apply_only_to_relational_operands):
            return self.log(inversion)
        return None

    def log(self, inversion: SyntaxNode) -> Finding:
        """Report a finding on the line where the inverted condition is."""
        finding = Finding(inversion.line, MSG_KEY)
        logger.debug(f"Avoidable inversion at line {finding.line}")
        if self.reporter is not None:
            self.reporter(finding.line, finding.message_key)
        return finding
