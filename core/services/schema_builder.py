# core/services/schema_builder.py
import re
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping

from core.domain.models import AnalysisFacet

OBJECT = "OBJECT"
ARRAY = "ARRAY"
STRING = "STRING"
INTEGER = "INTEGER"


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def to_plain(value: Any) -> Any:
    """Turn a frozen schema back into plain dicts and lists for SDKs and json.dumps"""
    if isinstance(value, Mapping):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [to_plain(item) for item in value]
    return value


OVERALL_SUMMARY_FIELD = "overallSummary"

_OVERALL_SUMMARY = _freeze({
    "type": STRING,
    "description": "A high-level, 2-3 sentence summary of the overall code quality, structure, "
                   "and potential based on the requested analysis types.",
})

_FACET_FIELDS = _freeze({
    AnalysisFacet.CODE_STRUCTURE_REVIEW.value: {
        "type": STRING,
        "description": "A detailed analysis of the project's structure, architecture, and modularity. "
                       "Comment on separation of concerns and maintainability.",
    },
    AnalysisFacet.ERROR_DETECTION.value: {
        "type": ARRAY,
        "description": "A list of identified bugs, logical errors, or potential runtime issues.",
        "items": {
            "type": OBJECT,
            "properties": {
                "file": {"type": STRING, "description": "The full path of the file with the error."},
                "line": {"type": INTEGER, "description": "The approximate line number of the error."},
                "description": {"type": STRING,
                                "description": "A clear description of the error and its potential impact."},
                "severity": {"type": STRING,
                             "description": "Severity of the error: Critical, High, Medium, or Low."},
            },
            "required": ["file", "description", "severity"],
        },
    },
    AnalysisFacet.PERFORMANCE_SUGGESTIONS.value: {
        "type": ARRAY,
        "description": "A list of suggestions to improve performance.",
        "items": {
            "type": OBJECT,
            "properties": {
                "file": {"type": STRING, "description": "The file where the suggestion applies."},
                "suggestion": {"type": STRING, "description": "The specific optimization suggestion."},
                "rationale": {"type": STRING, "description": "Why this change would improve performance."},
            },
            "required": ["file", "suggestion", "rationale"],
        },
    },
    AnalysisFacet.BEST_PRACTICES.value: {
        "type": ARRAY,
        "description": "Recommendations for adhering to modern development best practices.",
        "items": {
            "type": OBJECT,
            "properties": {
                "area": {"type": STRING,
                         "description": "The area of best practice (e.g., 'Security', 'Readability', "
                                        "'Accessibility')."},
                "recommendation": {"type": STRING, "description": "The specific recommendation."},
            },
            "required": ["area", "recommendation"],
        },
    },
})

FIX_SCHEMA = _freeze({
    "type": OBJECT,
    "properties": {
        "files": {
            "type": ARRAY,
            "description": "An array of files containing the complete, corrected code. "
                           "Only include files that were modified.",
            "items": {
                "type": OBJECT,
                "properties": {
                    "name": {"type": STRING, "description": "The full path of the file."},
                    "content": {"type": STRING, "description": "The complete and corrected content of the file."},
                },
                "required": ["name", "content"],
            },
        },
    },
    "required": ["files"],
})


def ordered_facets(facets: Iterable[AnalysisFacet]) -> List[AnalysisFacet]:
    """Deduplicate facets and put them in declaration order"""
    requested = {AnalysisFacet(facet) for facet in facets}
    return [facet for facet in AnalysisFacet if facet in requested]


def build_analysis_schema(facets: Iterable[AnalysisFacet]) -> Mapping[str, Any]:
    """
    Build the structured-output schema for one analysis call.

    overallSummary is always present and required. Every requested facet adds
    its property and a required entry; facets that were not requested do not
    appear anywhere in the schema.
    """
    selected = ordered_facets(facets)
    properties = {OVERALL_SUMMARY_FIELD: _OVERALL_SUMMARY}
    for facet in selected:
        properties[facet.value] = _FACET_FIELDS[facet.value]
    return MappingProxyType({
        "type": OBJECT,
        "properties": MappingProxyType(properties),
        "required": (OVERALL_SUMMARY_FIELD,) + tuple(facet.value for facet in selected),
    })


def facet_label(facet: AnalysisFacet) -> str:
    # errorDetection -> Error Detection
    spaced = re.sub(r"([A-Z])", r" \1", AnalysisFacet(facet).value)
    return spaced[:1].upper() + spaced[1:]
