# infrastructure/adapters/archives/zip_adapter.py
import io
import json
import logging
import zipfile
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Tuple

from core.domain.errors import ValidationError
from core.domain.models import SourceFile
from core.ports.archive_port import ArchivePort

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (
    '.txt', '.js', '.jsx', '.ts', '.tsx', '.html', '.css', '.json', '.md', '.xml', '.yaml', '.yml',
    '.py', '.java', '.c', '.cpp', '.h', '.cs', '.go', '.rs', '.php', '.rb', '.sh'
)

SUMMARY_FILENAME = "summary.json"
NO_CHANGES_MESSAGE = ("AI analysis run successfully. No code modifications were required "
                      "as the existing code aligns with the suggestions.")


def is_text_file(filename: str) -> bool:
    return filename.lower().endswith(TEXT_EXTENSIONS)


def summary_archive_name(suggested_name: str) -> str:
    """fixed-proj.zip -> summary-proj.zip"""
    name = suggested_name.replace("fixed-", "summary-", 1)
    if name.lower().endswith(".zip"):
        name = name[:-4]
    return name + ".zip"


class ZipArchiveAdapter(ArchivePort):
    def extract(self, data: bytes) -> List[SourceFile]:
        """
        Read every text-like entry of a zip archive.

        Entries keep archive order. A repeated path replaces the earlier
        content but keeps the earlier position. Entries that are not valid
        UTF-8 are skipped with a warning.
        """
        files: Dict[str, str] = {}
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                for info in archive.infolist():
                    if info.is_dir() or not is_text_file(info.filename):
                        continue
                    try:
                        content = archive.read(info).decode("utf-8")
                    except (UnicodeDecodeError, zipfile.BadZipFile, RuntimeError, NotImplementedError) as e:
                        logger.warning("Could not read file %s: %s", info.filename, e)
                        continue
                    if info.filename in files:
                        logger.warning("Duplicate archive entry %s replaces the earlier one", info.filename)
                    files[info.filename] = content
        except zipfile.BadZipFile as e:
            raise ValidationError("The uploaded file is not a valid zip archive.") from e

        logger.info("Extracted %d text files from archive", len(files))
        return [SourceFile(name=name, content=content) for name, content in files.items()]

    def create(self, files: Sequence[SourceFile], suggested_name: str) -> Tuple[bytes, str]:
        """Pack files into a zip, or a summary.json note when nothing changed"""
        name = suggested_name
        with io.BytesIO() as buffer:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                if not files:
                    summary = {
                        "status": "Completed",
                        "message": NO_CHANGES_MESSAGE,
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    }
                    archive.writestr(SUMMARY_FILENAME, json.dumps(summary, indent=2))
                    name = summary_archive_name(suggested_name)
                else:
                    for file in files:
                        archive.writestr(file.name, file.content)
            return buffer.getvalue(), name
