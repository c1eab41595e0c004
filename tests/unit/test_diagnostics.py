"""
Unit tests for the diagnostic pipeline: raw compiler text to Diagnostic records.
"""
import pytest
from cccdiag.errors import ConfigurationError
from cccdiag.parsing.diagnostics import (
    Diagnostic,
    ExtractionIssue,
    count_by_severity,
    parse_diagnostics,
)
from cccdiag.parsing.ranges import Position, Range
from cccdiag.parsing.severity import Severity
from cccdiag.utils.config import Settings

DOC = "int main(void) {\n    int x;\n    return 0;\n}"


class TestParseDiagnostics:

    def test_single_warning(self):
        output = "foo.c:2:5: warning: unused variable 'x'"
        result = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert len(result.diagnostics) == 1
        d = result.diagnostics[0]
        assert d.severity == Severity.WARNING
        assert d.range == Range(Position(1, 0), Position(1, len("    int x;")))
        assert d.message == "foo.c:2:5: warning: unused variable 'x'"
        assert d.source == "gcc"
        assert d.column == 5
        assert d.file_name == "foo.c"

    def test_empty_output_is_clean(self):
        result = parse_diagnostics("", "foo.c", DOC, Settings())
        assert result.diagnostics == []
        assert result.issues == []

    def test_source_order_preserved(self):
        output = (
            "foo.c:3:5: error: expected ';'\n"
            "foo.c:1:1: warning: return type\n"
            "foo.c:2:9: note: declared here\n"
        )
        result = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert [d.line for d in result.diagnostics] == [3, 1, 2]

    def test_block_keeps_continuation_lines(self):
        output = (
            "foo.c:2:5: warning: unused variable 'x'\n"
            "    2 |     int x;\n"
            "      |         ^\n"
        )
        result = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert len(result.diagnostics) == 1
        assert "^" in result.diagnostics[0].message
        assert result.diagnostics[0].summary == "foo.c:2:5: warning: unused variable 'x'"

    def test_other_files_filtered(self):
        output = (
            "bar.h:1:1: error: unknown type name\n"
            "foo.c:2:5: warning: unused variable 'x'\n"
        )
        result = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert len(result.diagnostics) == 1
        assert result.filtered == 1
        assert result.issues == []

    def test_path_prefixed_name_does_not_match(self):
        result = parse_diagnostics("src/foo.c:2:5: error: x", "foo.c", DOC, Settings())
        assert result.diagnostics == []
        assert result.filtered == 1

    def test_banner_block_becomes_issue(self):
        output = (
            "foo.c: In function 'main':\n"
            "foo.c:2:5: warning: unused variable 'x'\n"
        )
        result = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert len(result.diagnostics) == 1
        assert len(result.issues) == 1
        assert "In function" in result.issues[0].describe()

    def test_line_outside_document_is_issue(self):
        result = parse_diagnostics("foo.c:99:1: error: bad", "foo.c", DOC, Settings())
        assert result.diagnostics == []
        assert len(result.issues) == 1
        assert "line 99" in result.issues[0].reason

    def test_bad_block_does_not_stop_the_pass(self):
        output = (
            "foo.c:99:1: error: bad\n"
            "foo.c:3:5: error: expected ';'\n"
        )
        result = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert [d.line for d in result.diagnostics] == [3]

    def test_custom_identifiers(self):
        settings = Settings.from_mapping({"parse.severityIdentifier.hint": "note"})
        result = parse_diagnostics("foo.c:2:9: note: declared here", "foo.c", DOC, settings)
        assert result.diagnostics[0].severity == Severity.HINT

    def test_invalid_pattern_raises(self):
        with pytest.raises(ConfigurationError):
            parse_diagnostics("foo.c:1:1: error: x", "foo.c", DOC, Settings(diag_info_pattern="("))

    def test_idempotent(self):
        output = "foo.c:2:5: warning: unused\nfoo.c:3:1: error: oops\n"
        first = parse_diagnostics(output, "foo.c", DOC, Settings())
        second = parse_diagnostics(output, "foo.c", DOC, Settings())
        assert first.diagnostics == second.diagnostics
        assert [d.to_dict() for d in first.diagnostics] == [d.to_dict() for d in second.diagnostics]

    def test_crlf_document(self):
        text = "int a;\r\nint bb;\r\n"
        result = parse_diagnostics("foo.c:2:1: error: x", "foo.c", text, Settings())
        assert result.diagnostics[0].range.end == Position(1, len("int bb;"))

    def test_pattern_without_column_keeps_records(self):
        settings = Settings(diag_info_pattern=r"^(.+)\((\d+)\)(:) (\w+)", diag_delimiter=r"^.+\(\d+\):")
        result = parse_diagnostics("foo.c(2): warning C4101", "foo.c", "a\nbb\n", settings)
        assert result.issues == []
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].severity == Severity.WARNING
        assert result.diagnostics[0].range == Range(Position(1, 0), Position(1, 2))


class TestDiagnostic:

    def _diag(self, message="foo.c:1:1: error: boom\n  detail"):
        return Diagnostic(
            range=Range(Position(0, 0), Position(0, 6)),
            severity=Severity.ERROR,
            message=message,
            source="gcc",
            column=3,
            file_name="foo.c",
        )

    def test_line_is_one_based(self):
        assert self._diag().line == 1

    def test_summary_first_line(self):
        assert self._diag().summary == "foo.c:1:1: error: boom"

    def test_summary_empty_message(self):
        assert self._diag(message="  \n").summary == ""

    def test_to_dict(self):
        data = self._diag().to_dict()
        assert data["severity"] == 1
        assert data["range"] == {
            "start": {"line": 0, "character": 0},
            "end": {"line": 0, "character": 6},
        }
        assert data["source"] == "gcc"
        assert data["data"] == {"column": 3, "fileName": "foo.c"}


class TestHelpers:

    def test_issue_describe_blank_block(self):
        assert ExtractionIssue("   ", "no match").describe() == "no match: <blank block>"

    def test_count_by_severity(self):
        result = parse_diagnostics(
            "foo.c:1:1: error: a\nfoo.c:2:1: warning: b\nfoo.c:3:1: error: c\n",
            "foo.c", DOC, Settings(),
        )
        counts = count_by_severity(result.diagnostics)
        assert counts[Severity.ERROR] == 2
        assert counts[Severity.WARNING] == 1
        assert counts[Severity.HINT] == 0
