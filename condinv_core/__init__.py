"""
CONDINV Core - Avoidable condition inversion check for Java and Python sources
"""

from .version import __version__
from .ast_base import (
    ASTBackend,
    ASTRegistry,
    Language,
    SourceParseError,
    SyntaxNode,
    TokenType,
    format_ast_tree,
    get_ast_registry,
)
from .operators import (
    RELATIONAL_OPERATORS,
    RELATIONAL_AND_CONDITIONAL_OPERATORS,
    RULE_TRIGGER_TOKENS,
    is_relational,
    is_relational_or_conditional,
)
from .navigator import get_expression, get_inversion, get_inversion_operator
from .inversion import (
    contains_conditional_or_relational_operands,
    contains_relational_operands_only,
    is_avoidable_inversion,
    is_relational_operand,
    is_skip_condition,
)
from .check import MSG_KEY, AvoidConditionInversionCheck, Finding, UnexpectedTokenError
from .messages import resolve_message
from .config import CondinvConfig, load_config
from .analyzer import Analyzer, FileReport, Violation, check_tree, walk

__all__ = [
    "__version__",
    # Tree
    "ASTBackend",
    "ASTRegistry",
    "Language",
    "SourceParseError",
    "SyntaxNode",
    "TokenType",
    "format_ast_tree",
    "get_ast_registry",
    # Operators
    "RELATIONAL_OPERATORS",
    "RELATIONAL_AND_CONDITIONAL_OPERATORS",
    "RULE_TRIGGER_TOKENS",
    "is_relational",
    "is_relational_or_conditional",
    # Navigation and classification
    "get_expression",
    "get_inversion",
    "get_inversion_operator",
    "contains_conditional_or_relational_operands",
    "contains_relational_operands_only",
    "is_avoidable_inversion",
    "is_relational_operand",
    "is_skip_condition",
    # Check
    "MSG_KEY",
    "AvoidConditionInversionCheck",
    "Finding",
    "UnexpectedTokenError",
    "resolve_message",
    # Host
    "CondinvConfig",
    "load_config",
    "Analyzer",
    "FileReport",
    "Violation",
    "check_tree",
    "walk",
]
