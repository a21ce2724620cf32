# infrastructure/adapters/file_handlers/web_file_adapter.py
import logging
import os
from typing import Tuple

from werkzeug.utils import secure_filename

from core.domain.errors import ValidationError
from core.ports.upload_handler_port import UploadHandlerPort

logger = logging.getLogger(__name__)


class WebFileAdapter(UploadHandlerPort):
    """Validates uploaded project archives and names downloads"""

    def __init__(self, max_upload_mb: int = 50):
        self.max_upload_bytes = max_upload_mb * 1024 * 1024

    def is_archive(self, filename: str) -> bool:
        _, file_ext = os.path.splitext(filename.lower())
        return file_ext == '.zip'

    def read_upload(self, file) -> Tuple[bytes, str]:
        """
        Read an uploaded zip archive from the request

        Args:
            file: The werkzeug FileStorage from request.files

        Returns:
            Tuple of the archive bytes and its sanitized filename
        """
        if not file or file.filename == '':
            raise ValidationError("Please select a zip file first.")

        filename = secure_filename(file.filename) or 'project.zip'
        if not self.is_archive(filename):
            logger.info("Rejected non-zip upload: %s", file.filename)
            raise ValidationError("Only .zip project archives are supported.")

        data = file.read(self.max_upload_bytes + 1)
        if len(data) > self.max_upload_bytes:
            raise ValidationError("The uploaded archive is too large.")
        if not data:
            raise ValidationError("The uploaded archive is empty.")
        return data, filename

    def download_name(self, original_name: str) -> str:
        base = secure_filename(original_name or '') or 'project.zip'
        return f"fixed-{base}"
