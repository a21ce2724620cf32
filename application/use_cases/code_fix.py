# application/use_cases/code_fix.py
import json
import logging
from typing import List, Sequence, Tuple

from application.use_cases.analysis import parse_json_object
from core.domain.errors import MODEL_CLIENT_ERRORS, ModelResponseError, ValidationError
from core.domain.models import AnalysisResult, FixedFileCandidate, FixValidationReport, SourceFile
from core.ports.model_client_port import ModelClientPort
from core.services.normalizer import is_substantive_change
from core.services.prompt_formatter import format_files
from core.services.schema_builder import FIX_SCHEMA

logger = logging.getLogger(__name__)

FIX_FAILED_MESSAGE = "Failed to generate fixes from the AI. The model may be unable to process the request."

FIX_INSTRUCTIONS = """You are an expert software engineer tasked with fixing a codebase. You will be given the original project files and a forensic analysis report detailing errors, performance issues, and best practice violations. Your task is to rewrite the necessary files to apply all the suggested fixes.

**Instructions:**
1. Thoroughly review the analysis report and the provided code.
2. Apply the fixes from the report directly into the code. This includes correcting bugs, implementing performance suggestions, and adhering to best practices.
3. Return the **full, complete content** of every file that you modify.
4. If a file does not require any changes based on the report, do **not** include it in your response.
5. Your response must be a JSON object conforming to the provided schema, containing an array of the modified file objects.

**Important:** Ensure your changes are strictly for the better. Do not introduce new bugs, break existing functionality, or make purely cosmetic changes (like re-indenting). Your goal is to improve the code's quality and correctness based *only* on the analysis report."""


def parse_candidates(data) -> List[FixedFileCandidate]:
    files = data.get("files")
    if not isinstance(files, list):
        raise ModelResponseError("Field 'files' must be a list")

    candidates = []
    for item in files:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str) \
                or not isinstance(item.get("content"), str):
            raise ModelResponseError("Every entry in 'files' needs a string name and content")
        candidates.append(FixedFileCandidate(name=item["name"], content=item["content"]))
    return candidates


def filter_substantive_changes(originals: Sequence[SourceFile],
                               candidates: Sequence[FixedFileCandidate]
                               ) -> Tuple[List[SourceFile], FixValidationReport]:
    """
    Keep only candidates that rewrite an existing file in a way that survives
    normalization.

    Unknown file names are dropped, as are candidates equal to the original
    once whitespace and blank lines are ignored. Kept files carry the model's
    content verbatim, in the order the model returned them.
    """
    original_contents = {file.name: file.content for file in originals}
    report = FixValidationReport(processed=len(candidates))
    changed: List[SourceFile] = []

    for candidate in candidates:
        original_content = original_contents.get(candidate.name)

        if original_content is None:
            logger.warning("Model generated a new file '%s' which was not in the original project. Skipping.",
                           candidate.name)
            report.skipped += 1
            continue

        if is_substantive_change(original_content, candidate.content):
            logger.info("Substantive changes detected for %s. Including in result.", candidate.name)
            changed.append(SourceFile(name=candidate.name, content=candidate.content))
            report.kept += 1
        else:
            reason = ("content is identical" if original_content == candidate.content
                      else "only formatting changes were detected")
            logger.info("No substantive changes for %s (%s). Skipping.", candidate.name, reason)
            report.skipped += 1

    return changed, report


class CodeFixUseCase:
    def __init__(self, model_client: ModelClientPort):
        self.model_client = model_client

    def build_prompt(self, files: Sequence[SourceFile], report: AnalysisResult) -> str:
        report_json = json.dumps(report.to_dict(), indent=2)
        return (f"{FIX_INSTRUCTIONS}\n\n"
                f"**Analysis Report:**\n```json\n{report_json}\n```\n\n"
                f"**Original Project Code:**\n{format_files(files)}")

    def generate_fixes(self, files: Sequence[SourceFile], report: AnalysisResult) -> List[SourceFile]:
        """Ask the model to apply the report and return only the files it really changed"""
        if not files:
            raise ValidationError("No files to fix.")

        try:
            text = self.model_client.generate_structured(self.build_prompt(files, report), FIX_SCHEMA)
        except MODEL_CLIENT_ERRORS as e:
            logger.error("Fix generation request failed: %s", e)
            raise type(e)(FIX_FAILED_MESSAGE) from e

        try:
            candidates = parse_candidates(parse_json_object(text))
        except ModelResponseError as e:
            logger.error("Unusable fix response: %s", e)
            raise ModelResponseError(FIX_FAILED_MESSAGE) from e

        logger.info("Model returned %d potentially modified files for validation.", len(candidates))
        changed, validation = filter_substantive_changes(files, candidates)
        logger.info("Validation summary -> processed: %d, changed: %d, skipped: %d",
                    validation.processed, validation.kept, validation.skipped)
        return changed
