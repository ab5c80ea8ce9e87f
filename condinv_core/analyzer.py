"""
Analyzer - Walk trees, files and directories with the inversion check

The check itself only sees one statement node at a time; this module is the
host that discovers those nodes, resolves messages and collects per-file
reports.
"""

import fnmatch
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .ast_base import Language, SourceParseError, SyntaxNode, TokenType, get_ast_registry
from .check import AvoidConditionInversionCheck, Finding
from .config import CondinvConfig
from .messages import resolve_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    """A finding located in a file, with its resolved message."""
    file: str
    line: int
    message_key: str
    message: str
    severity: str = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "key": self.message_key,
            "message": self.message,
            "severity": self.severity,
        }

    def __str__(self) -> str:
        return f"{self.file}:{self.line}: [{self.severity}] {self.message} [{self.message_key}]"


@dataclass
class FileReport:
    """Result of checking one file."""
    path: str
    language: Language = Language.UNKNOWN
    violations: List[Violation] = field(default_factory=list)
    unparsed: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.violations

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "path": self.path,
            "language": self.language.value,
            "violations": [v.to_dict() for v in self.violations],
        }
        if self.unparsed:
            result["unparsed"] = self.unparsed
        if self.error:
            result["error"] = self.error
        return result


# =============================================================================
# Tree walking
# =============================================================================

def walk(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """Pre-order traversal of a tree."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def check_tree(root: SyntaxNode, check: AvoidConditionInversionCheck) -> List[Finding]:
    """
    Run the check on every node of a tree whose kind it subscribes to.

    Returns:
        Findings in pre-order, which is source order for backend-built trees
    """
    tokens = set(check.tokens)
    findings = []
    for node in walk(root):
        if node.kind in tokens:
            finding = check.visit_token(node)
            if finding is not None:
                findings.append(finding)
    return findings


# =============================================================================
# Analyzer
# =============================================================================

class Analyzer:
    """
    Checks source strings, files and directory trees.

    Args:
        config: Configuration (defaults used if None)
    """

    def __init__(self, config: Optional[CondinvConfig] = None):
        self.config = config or CondinvConfig()
        self.registry = get_ast_registry()
        self.check = AvoidConditionInversionCheck(
            apply_only_to_relational_operands=self.config.check.apply_only_to_relational_operands,
            tokens=self.config.token_types,
        )

    def analyze_tree(self, root: SyntaxNode, filename: str = "<string>") -> List[Violation]:
        """Check an already built tree."""
        report = self.config.report
        return [
            Violation(
                file=filename,
                line=f.line,
                message_key=f.message_key,
                message=resolve_message(f.message_key, report.locale, report.messages),
                severity=self.config.check.severity,
            )
            for f in check_tree(root, self.check)
        ]

    def analyze_string(
        self,
        content: str,
        filename: str = "<string>",
        language: Optional[Language] = None,
    ) -> FileReport:
        """
        Check source code.

        Args:
            content: Source code
            filename: Name used in the report and for language detection
            language: Force a language instead of detecting it from filename
        """
        if language is None:
            language = self.registry.detect_language(Path(filename))
        report = FileReport(path=filename, language=language)

        backend = self.registry.get_backend(language)
        if backend is None:
            report.error = f"unsupported language: {language.value}"
            return report

        try:
            root = backend.parse_string(content, filename)
        except SourceParseError as e:
            logger.warning(f"Skipping {filename}: {e}")
            report.error = str(e)
            return report

        report.unparsed = sum(1 for _ in root.find_all(TokenType.UNPARSED))
        report.violations = self.analyze_tree(root, filename)
        return report

    def analyze_file(self, path: Path) -> FileReport:
        """Check one file."""
        path = Path(path)
        language = self.registry.detect_language(path)
        backend = self.registry.get_backend(language)
        if backend is None:
            return FileReport(path=str(path), error=f"unsupported file type: {path.suffix or path.name}")

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping {path}: {e}")
            return FileReport(path=str(path), language=language, error=f"cannot read file: {e}")

        return self.analyze_string(content, str(path), language)

    def collect_files(self, paths: Iterable[Path]) -> List[Path]:
        """
        Expand files and directories into the list of files to check.

        Directories are searched recursively for the include patterns;
        any path with a component matching an exclude pattern is skipped.
        Explicitly named files are always kept.
        """
        scan = self.config.scan
        files = set()
        for path in paths:
            path = Path(path)
            if path.is_dir():
                for pattern in scan.include:
                    for file_path in path.rglob(pattern):
                        relative = file_path.relative_to(path)
                        if file_path.is_file() and not self._excluded(relative):
                            files.add(file_path)
            else:
                files.add(path)
        return sorted(files)

    def _excluded(self, relative: Path) -> bool:
        return any(
            fnmatch.fnmatch(part, pattern)
            for part in relative.parts
            for pattern in self.config.scan.exclude
        )

    def analyze_paths(self, paths: Iterable[Path], jobs: Optional[int] = None) -> List[FileReport]:
        """
        Check files and directories.

        Args:
            paths: Files and/or directories
            jobs: Number of worker threads (defaults to scan.jobs)

        Returns:
            One report per file, sorted by path
        """
        files = self.collect_files(paths)
        jobs = jobs or self.config.scan.jobs
        logger.info(f"Checking {len(files)} file(s) with {jobs} job(s)")

        if jobs > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=min(jobs, len(files))) as executor:
                reports = list(executor.map(self.analyze_file, files))
        else:
            reports = [self.analyze_file(f) for f in files]

        summary = summarize(reports)
        logger.info(
            f"Checked {summary['files']} file(s): {summary['violations']} violation(s), "
            f"{summary['errors']} error(s)"
        )
        return sorted(reports, key=lambda r: r.path)


# =============================================================================
# Output
# =============================================================================

def summarize(reports: List[FileReport]) -> Dict[str, int]:
    """Counts over a list of reports."""
    return {
        "files": len(reports),
        "violations": sum(len(r.violations) for r in reports),
        "errors": sum(1 for r in reports if r.error),
        "unparsed": sum(r.unparsed for r in reports),
    }


def format_text(reports: List[FileReport]) -> str:
    """One line per violation or error, then a summary line."""
    lines = []
    for report in reports:
        if report.error:
            lines.append(f"{report.path}: error: {report.error}")
        lines.extend(str(v) for v in report.violations)
    summary = summarize(reports)
    lines.append(
        f"{summary['violations']} violation(s) in {summary['files']} file(s)"
        + (f", {summary['errors']} file(s) with errors" if summary["errors"] else "")
    )
    return "\n".join(lines)


def format_json(reports: List[FileReport]) -> str:
    """JSON document with all reports and the summary."""
    return json.dumps(
        {"files": [r.to_dict() for r in reports], "summary": summarize(reports)},
        indent=2,
        ensure_ascii=False,
    )
