# core/domain/models.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AnalysisFacet(str, Enum):
    ERROR_DETECTION = "errorDetection"
    PERFORMANCE_SUGGESTIONS = "performanceSuggestions"
    BEST_PRACTICES = "bestPractices"
    CODE_STRUCTURE_REVIEW = "codeStructureReview"


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Match a severity case-insensitively, raising ValueError when unknown"""
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown severity: {value!r}")


@dataclass(frozen=True)
class SourceFile:
    name: str
    content: str


@dataclass(frozen=True)
class FixedFileCandidate:
    name: str
    content: str


@dataclass(frozen=True)
class DetectedError:
    file: str
    description: str
    severity: Severity
    line: Optional[int] = None


@dataclass(frozen=True)
class PerformanceSuggestion:
    file: str
    suggestion: str
    rationale: str


@dataclass(frozen=True)
class BestPractice:
    area: str
    recommendation: str


@dataclass(frozen=True)
class AnalysisResult:
    """
    Structured findings of one analysis run.

    A facet field left as None was not requested, which is different from an
    analyzed facet that came back empty.
    """
    overall_summary: str
    code_structure_review: Optional[str] = None
    error_detection: Optional[Tuple[DetectedError, ...]] = None
    performance_suggestions: Optional[Tuple[PerformanceSuggestion, ...]] = None
    best_practices: Optional[Tuple[BestPractice, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire form with camel-case keys, omitting facets that were not analyzed"""
        data: Dict[str, Any] = {"overallSummary": self.overall_summary}
        if self.code_structure_review is not None:
            data["codeStructureReview"] = self.code_structure_review
        if self.error_detection is not None:
            data["errorDetection"] = [
                {
                    "file": error.file,
                    **({"line": error.line} if error.line is not None else {}),
                    "description": error.description,
                    "severity": error.severity.value,
                }
                for error in self.error_detection
            ]
        if self.performance_suggestions is not None:
            data["performanceSuggestions"] = [
                {"file": item.file, "suggestion": item.suggestion, "rationale": item.rationale}
                for item in self.performance_suggestions
            ]
        if self.best_practices is not None:
            data["bestPractices"] = [
                {"area": item.area, "recommendation": item.recommendation}
                for item in self.best_practices
            ]
        return data


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "user" or "model"
    content: str


@dataclass
class FixValidationReport:
    processed: int = 0
    kept: int = 0
    skipped: int = 0


@dataclass
class ReviewConfig:
    model_name: str = "gemini-2.5-flash"
    temperature: float = 0.2
    max_output_tokens: int = 65536
