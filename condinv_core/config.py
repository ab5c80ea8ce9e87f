"""
CONDINV Configuration
=====================

Loads and manages configuration from condinv.yaml with environment variable overrides.
"""

import os
import yaml
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from condinv_core.ast_base import TokenType
from condinv_core.messages import DEFAULT_LOCALE, is_known_locale
from condinv_core.operators import RULE_TRIGGER_TOKENS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "condinv.yaml"
SEVERITIES = ("error", "warning", "info")
FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass
class CheckConfig:
    """Inversion check configuration."""
    apply_only_to_relational_operands: bool = False
    tokens: List[str] = field(default_factory=lambda: [t.value for t in RULE_TRIGGER_TOKENS])
    severity: str = "error"


@dataclass
class ReportConfig:
    """Output configuration."""
    format: str = "text"
    locale: str = DEFAULT_LOCALE
    messages: Dict[str, str] = field(default_factory=dict)


@dataclass
class ScanConfig:
    """File discovery configuration."""
    include: List[str] = field(default_factory=lambda: ["*.java", "*.py"])
    exclude: List[str] = field(default_factory=lambda: [
        "build", "target", ".git", "node_modules", "__pycache__",
    ])
    jobs: int = 1


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"


@dataclass
class CondinvConfig:
    """Root configuration container."""
    check: CheckConfig = field(default_factory=CheckConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def token_types(self) -> List[TokenType]:
        return [TokenType(t) for t in self.check.tokens]


# =============================================================================
# Configuration Loader
# =============================================================================

def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find condinv.yaml by searching upward from start_path.

    Search order:
    1. start_path / condinv.yaml
    2. start_path / .condinv / condinv.yaml
    3. Parent directories (recursive)
    4. ~/.config/condinv/condinv.yaml

    Args:
        start_path: Starting directory (defaults to cwd)

    Returns:
        Path to config file or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()
    while True:
        for candidate in (current / CONFIG_FILENAME, current / ".condinv" / CONFIG_FILENAME):
            if candidate.exists():
                return candidate
        if current.parent == current:
            break
        current = current.parent

    user_config = Path.home() / ".config" / "condinv" / CONFIG_FILENAME
    if user_config.exists():
        return user_config

    return None


def load_config(config_path: Optional[Path] = None) -> CondinvConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Environment variables override config file values:
    - CONDINV_APPLY_ONLY_TO_RELATIONAL_OPERANDS -> check.apply_only_to_relational_operands
    - CONDINV_SEVERITY -> check.severity
    - CONDINV_FORMAT -> report.format
    - CONDINV_LOCALE -> report.locale
    - CONDINV_LOG_LEVEL -> logging.level

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        CondinvConfig instance
    """
    config = CondinvConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and config_path.exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, 'r', encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config = _parse_config_dict(data)
        except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
    else:
        logger.info("No config file found, using defaults")

    config = _apply_env_overrides(config)
    validate_config(config)
    return config


def _parse_config_dict(data: Dict[str, Any]) -> CondinvConfig:
    """Parse configuration dictionary into CondinvConfig."""
    config = CondinvConfig()

    if "check" in data:
        check = data["check"] or {}
        config.check = CheckConfig(
            apply_only_to_relational_operands=_as_bool(check.get(
                "apply_only_to_relational_operands", config.check.apply_only_to_relational_operands)),
            tokens=_as_list(check.get("tokens", config.check.tokens)),
            severity=str(check.get("severity", config.check.severity)),
        )

    if "report" in data:
        report = data["report"] or {}
        config.report = ReportConfig(
            format=str(report.get("format", config.report.format)),
            locale=str(report.get("locale", config.report.locale)),
            messages=dict(report.get("messages") or {}),
        )

    if "scan" in data:
        scan = data["scan"] or {}
        config.scan = ScanConfig(
            include=_as_list(scan.get("include", config.scan.include)),
            exclude=_as_list(scan.get("exclude", config.scan.exclude)),
            jobs=int(scan.get("jobs", config.scan.jobs)),
        )

    if "logging" in data:
        log = data["logging"] or {}
        config.logging = LoggingConfig(level=str(log.get("level", config.logging.level)))

    return config


def _is_true(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _as_bool(value: Any) -> bool:
    """YAML booleans as is; quoted strings such as 'false' read like env values."""
    if isinstance(value, str):
        return _is_true(value.strip())
    return bool(value)


def _as_list(value: Any) -> List[str]:
    """A single scalar is a one-element list."""
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [str(value)]
    return [str(v) for v in value]


def _apply_env_overrides(config: CondinvConfig) -> CondinvConfig:
    """Apply environment variable overrides to config."""

    if os.environ.get("CONDINV_APPLY_ONLY_TO_RELATIONAL_OPERANDS"):
        config.check.apply_only_to_relational_operands = _is_true(
            os.environ["CONDINV_APPLY_ONLY_TO_RELATIONAL_OPERANDS"])

    if os.environ.get("CONDINV_SEVERITY"):
        config.check.severity = os.environ["CONDINV_SEVERITY"]

    if os.environ.get("CONDINV_FORMAT"):
        config.report.format = os.environ["CONDINV_FORMAT"]

    if os.environ.get("CONDINV_LOCALE"):
        config.report.locale = os.environ["CONDINV_LOCALE"]

    if os.environ.get("CONDINV_LOG_LEVEL"):
        config.logging.level = os.environ["CONDINV_LOG_LEVEL"]

    return config


def validate_config(config: CondinvConfig) -> None:
    """Validate configuration and log warnings."""

    acceptable = {t.value for t in RULE_TRIGGER_TOKENS}
    unknown = [t for t in config.check.tokens if t not in acceptable]
    if unknown:
        logger.warning(f"Ignoring unknown check tokens: {', '.join(map(str, unknown))}")
        config.check.tokens = [t for t in config.check.tokens if t in acceptable]
    if not config.check.tokens:
        logger.warning("No valid check tokens, defaulting to all statement kinds")
        config.check.tokens = [t.value for t in RULE_TRIGGER_TOKENS]

    if config.check.severity not in SEVERITIES:
        logger.warning(f"Unknown severity '{config.check.severity}', defaulting to 'error'")
        config.check.severity = "error"

    if config.report.format not in FORMATS:
        logger.warning(f"Unknown report format '{config.report.format}', defaulting to 'text'")
        config.report.format = "text"

    if not is_known_locale(config.report.locale):
        logger.warning(f"Unknown locale '{config.report.locale}', defaulting to '{DEFAULT_LOCALE}'")
        config.report.locale = DEFAULT_LOCALE

    if config.scan.jobs < 1:
        logger.warning(f"Invalid job count {config.scan.jobs}, defaulting to 1")
        config.scan.jobs = 1

    config.logging.level = config.logging.level.upper()
    if config.logging.level not in LOG_LEVELS:
        logger.warning(f"Unknown log level '{config.logging.level}', defaulting to 'WARNING'")
        config.logging.level = "WARNING"


def config_to_dict(config: CondinvConfig) -> Dict[str, Any]:
    """Plain dictionary view of a configuration, as written to condinv.yaml."""
    return {
        "check": {
            "apply_only_to_relational_operands": config.check.apply_only_to_relational_operands,
            "tokens": list(config.check.tokens),
            "severity": config.check.severity,
        },
        "report": {
            "format": config.report.format,
            "locale": config.report.locale,
            "messages": dict(config.report.messages),
        },
        "scan": {
            "include": list(config.scan.include),
            "exclude": list(config.scan.exclude),
            "jobs": config.scan.jobs,
        },
        "logging": {
            "level": config.logging.level,
        },
    }


def save_config(config: CondinvConfig, path: Path) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: CondinvConfig instance
        path: Output path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding="utf-8") as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to: {path}")
