# infrastructure/adapters/chat_output/report_formatter.py
from typing import List

from core.domain.models import AnalysisFacet, AnalysisResult
from core.services.schema_builder import facet_label

NO_FINDINGS = "  No findings."


def _heading(facet: AnalysisFacet) -> List[str]:
    label = facet_label(facet)
    return ["", label, "-" * len(label)]


def format_report(report: AnalysisResult) -> str:
    """Plain-text rendering of a report; facets that were not analyzed are left out"""
    lines = ["Overall Summary", "===============", report.overall_summary]

    if report.code_structure_review is not None:
        lines += _heading(AnalysisFacet.CODE_STRUCTURE_REVIEW)
        lines.append(report.code_structure_review or NO_FINDINGS.strip())

    if report.error_detection is not None:
        lines += _heading(AnalysisFacet.ERROR_DETECTION)
        for error in report.error_detection:
            location = f"{error.file}:{error.line}" if error.line is not None else error.file
            lines.append(f"  [{error.severity.value}] {location} - {error.description}")
        if not report.error_detection:
            lines.append(NO_FINDINGS)

    if report.performance_suggestions is not None:
        lines += _heading(AnalysisFacet.PERFORMANCE_SUGGESTIONS)
        for item in report.performance_suggestions:
            lines.append(f"  {item.file}: {item.suggestion}")
            lines.append(f"    Why: {item.rationale}")
        if not report.performance_suggestions:
            lines.append(NO_FINDINGS)

    if report.best_practices is not None:
        lines += _heading(AnalysisFacet.BEST_PRACTICES)
        for item in report.best_practices:
            lines.append(f"  {item.area}: {item.recommendation}")
        if not report.best_practices:
            lines.append(NO_FINDINGS)

    return "\n".join(lines)
