# application/use_cases/analysis.py
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core.domain.errors import MODEL_CLIENT_ERRORS, ModelResponseError, ValidationError
from core.domain.models import (
    AnalysisFacet,
    AnalysisResult,
    BestPractice,
    DetectedError,
    PerformanceSuggestion,
    Severity,
    SourceFile,
)
from core.ports.model_client_port import ModelClientPort
from core.services.prompt_formatter import format_files
from core.services.schema_builder import (
    OVERALL_SUMMARY_FIELD,
    build_analysis_schema,
    facet_label,
    ordered_facets,
)

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Failed to get analysis from the AI. The model may be unable to process the request."


def parse_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Strictly parse a model's JSON text into a dict, raising ModelResponseError otherwise"""
    if text is None or not text.strip():
        raise ModelResponseError("Model returned an empty response")
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise ModelResponseError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ModelResponseError("Model response is not a JSON object")
    return data


def _require_str(item: Dict[str, Any], key: str) -> str:
    value = item.get(key)
    if not isinstance(value, str):
        raise ModelResponseError(f"Field '{key}' must be a string")
    return value


def _require_list(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ModelResponseError(f"Field '{key}' must be a list of objects")
    return value


def _parse_line(value: Any) -> Optional[int]:
    if value is None:
        return None
    # bool is an int subclass, but never a line number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModelResponseError("Field 'line' must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ModelResponseError("Field 'line' must be an integer")
    return int(value)


def _parse_errors(data: Dict[str, Any]) -> tuple:
    errors = []
    for item in _require_list(data, AnalysisFacet.ERROR_DETECTION.value):
        try:
            severity = Severity.parse(_require_str(item, "severity"))
        except ValueError as e:
            raise ModelResponseError(str(e)) from e
        errors.append(DetectedError(
            file=_require_str(item, "file"),
            line=_parse_line(item.get("line")),
            description=_require_str(item, "description"),
            severity=severity,
        ))
    return tuple(errors)


def _parse_performance(data: Dict[str, Any]) -> tuple:
    return tuple(
        PerformanceSuggestion(
            file=_require_str(item, "file"),
            suggestion=_require_str(item, "suggestion"),
            rationale=_require_str(item, "rationale"),
        )
        for item in _require_list(data, AnalysisFacet.PERFORMANCE_SUGGESTIONS.value)
    )


def _parse_best_practices(data: Dict[str, Any]) -> tuple:
    return tuple(
        BestPractice(area=_require_str(item, "area"), recommendation=_require_str(item, "recommendation"))
        for item in _require_list(data, AnalysisFacet.BEST_PRACTICES.value)
    )


def parse_analysis_result(data: Dict[str, Any], facets: Iterable[AnalysisFacet]) -> AnalysisResult:
    """
    Build an AnalysisResult from the decoded response.

    Only the requested facets are read; each of them must be present because
    the schema marks them required. Anything else the model sent is ignored.
    """
    requested = ordered_facets(facets)
    missing = [facet.value for facet in requested if facet.value not in data]
    if missing:
        raise ModelResponseError(f"Model response is missing requested fields: {', '.join(missing)}")

    values: Dict[str, Any] = {"overall_summary": _require_str(data, OVERALL_SUMMARY_FIELD)}
    for facet in requested:
        if facet is AnalysisFacet.CODE_STRUCTURE_REVIEW:
            values["code_structure_review"] = _require_str(data, facet.value)
        elif facet is AnalysisFacet.ERROR_DETECTION:
            values["error_detection"] = _parse_errors(data)
        elif facet is AnalysisFacet.PERFORMANCE_SUGGESTIONS:
            values["performance_suggestions"] = _parse_performance(data)
        elif facet is AnalysisFacet.BEST_PRACTICES:
            values["best_practices"] = _parse_best_practices(data)
    return AnalysisResult(**values)


class AnalysisUseCase:
    def __init__(self, model_client: ModelClientPort):
        self.model_client = model_client

    def build_focus_instruction(self, facets: Iterable[AnalysisFacet]) -> str:
        labels = ", ".join(facet_label(facet) for facet in ordered_facets(facets))
        return (f"Your forensic review must focus exclusively on the following areas: **{labels}**. "
                f"Do not analyze any other aspects.")

    def build_prompt(self, files: Sequence[SourceFile], issue_description: str,
                     facets: Iterable[AnalysisFacet]) -> str:
        issue = (issue_description or "").strip()
        if issue:
            issue_context = (f'The user is specifically struggling with the following issue: "{issue}" '
                             f"Please pay special attention to this problem in your analysis.")
        else:
            issue_context = "The user has not provided a specific issue."

        return "\n".join([
            "Analyze the following project files for a comprehensive forensic review.",
            self.build_focus_instruction(facets),
            issue_context,
            "- Provide an overall summary based on your focused analysis.",
            "Your response must be in JSON format conforming to the provided schema.",
            "",
            "Project Code:",
            format_files(files),
        ])

    def analyze(self, files: Sequence[SourceFile], issue_description: str,
                facets: Iterable[AnalysisFacet]) -> AnalysisResult:
        """Run one structured analysis of the file set over the requested facets"""
        selected = ordered_facets(facets)
        if not files:
            raise ValidationError("No files to analyze. The archive is empty or contains no readable text files.")
        if not selected:
            raise ValidationError("Please select at least one analysis type.")

        prompt = self.build_prompt(files, issue_description, selected)
        schema = build_analysis_schema(selected)
        logger.info("Requesting analysis of %d files (%s)", len(files),
                    ", ".join(facet.value for facet in selected))

        try:
            text = self.model_client.generate_structured(prompt, schema)
        except MODEL_CLIENT_ERRORS as e:
            logger.error("Analysis request failed: %s", e)
            raise type(e)(ANALYSIS_FAILED_MESSAGE) from e

        try:
            return parse_analysis_result(parse_json_object(text), selected)
        except ModelResponseError as e:
            logger.error("Unusable analysis response: %s", e)
            raise ModelResponseError(ANALYSIS_FAILED_MESSAGE) from e
