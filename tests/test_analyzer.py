"""
Tests for the Analyzer: file discovery, reports and output formats
"""

import json
from pathlib import Path

import pytest

from condinv_core.analyzer import Analyzer, FileReport, Violation, format_json, format_text, summarize
from condinv_core.ast_base import Language
from condinv_core.check import MSG_KEY
from condinv_core.config import CondinvConfig
from condinv_core.messages import available_locales, is_known_locale, resolve_message


def strict_config() -> CondinvConfig:
    config = CondinvConfig()
    config.check.apply_only_to_relational_operands = True
    return config


class TestCollectFiles:
    def test_excludes_build_directory(self, sample_project):
        files = Analyzer().collect_files([sample_project])
        names = [f.name for f in files]
        assert names == ["Clean.java", "helpers.py", "Limits.java"]
        assert "Generated.java" not in names
        assert "README.md" not in names

    def test_explicit_file_always_kept(self, sample_project):
        target = sample_project / "build" / "Generated.java"
        assert Analyzer().collect_files([target]) == [target]

    def test_custom_include(self, sample_project):
        config = CondinvConfig()
        config.scan.include = ["*.py"]
        files = Analyzer(config).collect_files([sample_project])
        assert [f.name for f in files] == ["helpers.py"]

    def test_no_duplicates(self, sample_project):
        src = sample_project / "src"
        files = Analyzer().collect_files([src, src / "helpers.py"])
        assert len(files) == len(set(files)) == 3


class TestAnalyzePaths:
    def test_lenient(self, sample_project):
        reports = Analyzer().analyze_paths([sample_project])
        assert summarize(reports) == {"files": 3, "violations": 4, "errors": 0, "unparsed": 0}

        by_name = {Path(r.path).name: r for r in reports}
        assert [v.line for v in by_name["Limits.java"].violations] == [6, 9, 13]
        assert [v.line for v in by_name["helpers.py"].violations] == [3]
        assert by_name["Clean.java"].ok
        assert by_name["helpers.py"].language == Language.PYTHON

    def test_strict(self, sample_project):
        reports = Analyzer(strict_config()).analyze_paths([sample_project])
        by_name = {Path(r.path).name: r for r in reports}
        assert [v.line for v in by_name["Limits.java"].violations] == [6, 9]
        assert summarize(reports)["violations"] == 3

    def test_parallel_matches_sequential(self, sample_project):
        analyzer = Analyzer()
        sequential = analyzer.analyze_paths([sample_project], jobs=1)
        parallel = analyzer.analyze_paths([sample_project], jobs=2)
        assert [r.to_dict() for r in parallel] == [r.to_dict() for r in sequential]

    def test_sorted_by_path(self, sample_project):
        reports = Analyzer().analyze_paths([sample_project], jobs=3)
        paths = [r.path for r in reports]
        assert paths == sorted(paths)


class TestAnalyzeFile:
    def test_python_syntax_error(self, temp_dir):
        path = temp_dir / "broken.py"
        path.write_text("def f(:\n    return not (a < b)\n")
        report = Analyzer().analyze_file(path)
        assert report.error is not None
        assert report.violations == []
        assert not report.ok

    def test_unsupported_file_type(self, temp_dir):
        path = temp_dir / "notes.txt"
        path.write_text("if (!(a < b))")
        report = Analyzer().analyze_file(path)
        assert report.error == "unsupported file type: .txt"

    def test_missing_file(self, temp_dir):
        report = Analyzer().analyze_file(temp_dir / "Missing.java")
        assert report.error.startswith("cannot read file")

    def test_error_does_not_stop_other_files(self, sample_project):
        (sample_project / "src" / "broken.py").write_text("while not (:\n")
        reports = Analyzer().analyze_paths([sample_project])
        summary = summarize(reports)
        assert summary["errors"] == 1
        assert summary["violations"] == 4

    def test_deep_expression_does_not_stop_other_files(self, sample_project):
        operands = " + ".join(["x"] * 1500)
        (sample_project / "src" / "deep.py").write_text(f"def f(x):\n    return not ({operands} > 0)\n")
        concatenation = " + ".join(['"x"'] * 1500)
        (sample_project / "src" / "Deep.java").write_text(
            f"class Deep {{\n    boolean f() {{\n        return !(({concatenation}).length() > 0);\n    }}\n}}\n"
        )
        reports = Analyzer().analyze_paths([sample_project])
        by_name = {Path(r.path).name: r for r in reports}
        assert "nested too deeply" in by_name["deep.py"].error
        assert [v.line for v in by_name["Deep.java"].violations] == [3]
        assert summarize(reports)["violations"] == 5

    def test_severity_copied_to_violations(self, temp_dir):
        path = temp_dir / "check.py"
        path.write_text("return_value = 1\nif not (a > b):\n    pass\n")
        config = CondinvConfig()
        config.check.severity = "warning"
        report = Analyzer(config).analyze_file(path)
        assert [v.severity for v in report.violations] == ["warning"]


class TestMessages:
    def test_default_message(self):
        assert resolve_message(MSG_KEY) == "Avoid condition inversion."

    def test_locale(self):
        config = CondinvConfig()
        config.report.locale = "fr"
        report = Analyzer(config).analyze_string("if not (a < b):\n    pass\n", "a.py")
        assert report.violations[0].message == resolve_message(MSG_KEY, "fr")
        assert report.violations[0].message != "Avoid condition inversion."

    def test_regional_locale_falls_back_to_language(self):
        assert resolve_message(MSG_KEY, "de_AT") == resolve_message(MSG_KEY, "de")
        assert resolve_message(MSG_KEY, "pt-BR") == resolve_message(MSG_KEY, "pt")

    def test_unknown_locale_falls_back_to_english(self):
        assert resolve_message(MSG_KEY, "xx") == "Avoid condition inversion."

    def test_unknown_key(self):
        assert resolve_message("no.such.key", "fr") == "no.such.key"

    def test_override(self):
        config = CondinvConfig()
        config.report.messages = {MSG_KEY: "Push the negation into the condition."}
        report = Analyzer(config).analyze_string("return not (a == b)\n", "a.py")
        assert report.violations[0].message == "Push the negation into the condition."
        assert report.violations[0].message_key == MSG_KEY

    def test_locales(self):
        assert "en" in available_locales()
        assert is_known_locale("fr_CA")
        assert not is_known_locale("xx")


class TestOutput:
    @pytest.fixture
    def reports(self):
        return [
            FileReport(
                path="src/A.java",
                language=Language.JAVA,
                violations=[Violation("src/A.java", 6, MSG_KEY, "Avoid condition inversion.")],
            ),
            FileReport(path="src/b.py", language=Language.PYTHON, error="syntax error"),
        ]

    def test_violation_str(self):
        violation = Violation("A.java", 3, MSG_KEY, "Avoid condition inversion.", "warning")
        assert str(violation) == "A.java:3: [warning] Avoid condition inversion. [avoid.condition.inversion]"

    def test_format_text(self, reports):
        lines = format_text(reports).splitlines()
        assert lines[0] == "src/A.java:6: [error] Avoid condition inversion. [avoid.condition.inversion]"
        assert lines[1] == "src/b.py: error: syntax error"
        assert lines[-1] == "1 violation(s) in 2 file(s), 1 file(s) with errors"

    def test_format_text_clean(self):
        assert format_text([FileReport(path="A.java")]) == "0 violation(s) in 1 file(s)"

    def test_format_json(self, reports):
        data = json.loads(format_json(reports))
        assert data["summary"] == {"files": 2, "violations": 1, "errors": 1, "unparsed": 0}
        first = data["files"][0]
        assert first["language"] == "java"
        assert first["violations"][0] == {
            "file": "src/A.java",
            "line": 6,
            "key": MSG_KEY,
            "message": "Avoid condition inversion.",
            "severity": "error",
        }
        assert data["files"][1]["error"] == "syntax error"
