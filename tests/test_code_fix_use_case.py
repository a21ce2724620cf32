# tests/test_code_fix_use_case.py
import json

import pytest

from application.use_cases.code_fix import FIX_FAILED_MESSAGE, CodeFixUseCase, filter_substantive_changes
from conftest import FakeModelClient
from core.domain.errors import ModelResponseError, TransportError, ValidationError
from core.domain.models import (
    AnalysisResult,
    DetectedError,
    FixedFileCandidate,
    Severity,
    SourceFile,
)


@pytest.fixture
def report():
    return AnalysisResult(
        overall_summary="One bug.",
        error_detection=(DetectedError(file="src/app.py", line=2, description="Division by zero",
                                       severity=Severity.HIGH),),
    )


def fix_response(*files):
    return json.dumps({"files": [{"name": name, "content": content} for name, content in files]})


class TestFilterSubstantiveChanges:
    def test_identical_unknown_and_whitespace_only_are_all_dropped(self):
        originals = [SourceFile("a.txt", "x")]
        candidates = [
            FixedFileCandidate("a.txt", "x"),
            FixedFileCandidate("b.txt", "y"),
            FixedFileCandidate("a.txt", " x "),
        ]
        changed, validation = filter_substantive_changes(originals, candidates)
        assert changed == []
        assert (validation.processed, validation.kept, validation.skipped) == (3, 0, 3)

    def test_real_change_is_kept_verbatim(self):
        changed, validation = filter_substantive_changes(
            [SourceFile("a.txt", "foo()")], [FixedFileCandidate("a.txt", "foo();")])
        assert changed == [SourceFile("a.txt", "foo();")]
        assert validation.kept == 1

    def test_kept_content_is_not_normalized(self):
        candidate = FixedFileCandidate("a.py", "def f():\r\n\r\n    return 2  \r\n")
        changed, _ = filter_substantive_changes([SourceFile("a.py", "def f():\n    return 1\n")], [candidate])
        assert changed[0].content == candidate.content

    def test_model_order_is_preserved(self):
        originals = [SourceFile("a", "1"), SourceFile("b", "2")]
        changed, _ = filter_substantive_changes(
            originals, [FixedFileCandidate("b", "20"), FixedFileCandidate("a", "10")])
        assert [file.name for file in changed] == ["b", "a"]

    def test_empty_original_file_can_be_filled(self):
        changed, _ = filter_substantive_changes([SourceFile("empty.py", "")],
                                                [FixedFileCandidate("empty.py", "pass")])
        assert changed == [SourceFile("empty.py", "pass")]


class TestGenerateFixes:
    def test_prompt_carries_report_and_files(self, project_files, report):
        client = FakeModelClient([fix_response()])
        CodeFixUseCase(client).generate_fixes(project_files, report)
        prompt, schema = client.calls[0]

        assert '"overallSummary": "One bug."' in prompt
        assert '"severity": "High"' in prompt
        assert "/* FILE: src/app.py */" in prompt
        assert "do **not** include it in your response" in prompt
        assert list(schema["required"]) == ["files"]

    def test_returns_only_changed_existing_files(self, project_files, report):
        client = FakeModelClient([fix_response(
            ("src/app.py", "def main():\n    return 0\n"),
            ("README.md", "# Demo"),
            ("src/new.py", "print('hi')"),
        )])
        changed = CodeFixUseCase(client).generate_fixes(project_files, report)
        assert changed == [SourceFile("src/app.py", "def main():\n    return 0\n")]

    def test_no_changes_is_an_empty_list_not_an_error(self, project_files, report):
        client = FakeModelClient([fix_response()])
        assert CodeFixUseCase(client).generate_fixes(project_files, report) == []

    def test_empty_files_rejected(self, report, fake_client):
        with pytest.raises(ValidationError):
            CodeFixUseCase(fake_client).generate_fixes([], report)
        assert fake_client.calls == []

    @pytest.mark.parametrize("response", [
        "",
        "{",
        json.dumps({"changes": []}),
        json.dumps({"files": [{"name": "a"}]}),
        json.dumps({"files": ["a"]}),
    ])
    def test_bad_response_is_model_response_error(self, project_files, report, response):
        with pytest.raises(ModelResponseError):
            CodeFixUseCase(FakeModelClient([response])).generate_fixes(project_files, report)

    def test_transport_error_propagates(self, project_files, report):
        client = FakeModelClient([TransportError("boom")])
        with pytest.raises(TransportError):
            CodeFixUseCase(client).generate_fixes(project_files, report)

    def test_adapter_response_error_is_generic(self, project_files, report):
        client = FakeModelClient([ModelResponseError("Local model did not produce a JSON object")])
        with pytest.raises(ModelResponseError) as exc_info:
            CodeFixUseCase(client).generate_fixes(project_files, report)
        assert str(exc_info.value) == FIX_FAILED_MESSAGE
