# downloadsubmissions/services/packer.py
import os
import tempfile
import zipfile
from typing import Mapping, Optional, Protocol

from downloadsubmissions.utils.config import settings
from downloadsubmissions.utils.logger import logger

ARCHIVE_PREFIX = "quiz_essay_submissions_"


class ContentHandle(Protocol):
    filename: str
    content: bytes


class PackingError(Exception):
    """Raised when the archive could not be written."""


class ZipPacker:
    def __init__(self, temp_dir: Optional[str] = None, compression_level: Optional[int] = None):
        self.temp_dir = temp_dir or settings.temp_dir
        self.compression_level = (
            compression_level if compression_level is not None else settings.zip_compression_level
        )

    def pack(self, files: Mapping[str, ContentHandle]) -> str:
        """
        Writes every handle into a new ZIP file, using the mapping keys as
        archive paths, and returns the path of that file. The file has no
        .zip extension; the caller owns it and must delete it.
        """
        try:
            os.makedirs(self.temp_dir, exist_ok=True)
            fd, zip_path = tempfile.mkstemp(prefix=ARCHIVE_PREFIX, dir=self.temp_dir)
        except OSError as e:
            logger.error(f"Could not create a temporary archive in {self.temp_dir}: {e}")
            raise PackingError(str(e)) from e

        try:
            with os.fdopen(fd, "wb") as fh, zipfile.ZipFile(
                fh, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compression_level
            ) as archive:
                for archive_path, handle in files.items():
                    archive.writestr(archive_path, handle.content)
        except (OSError, zipfile.BadZipFile, ValueError, TypeError) as e:
            logger.error(f"Error creating ZIP archive at {zip_path}: {e}")
            try:
                os.remove(zip_path)
            except OSError as remove_e:
                logger.warning(f"Could not remove incomplete ZIP file {zip_path}: {remove_e}")
            raise PackingError(str(e)) from e

        logger.info(f"Packed {len(files)} files into {zip_path}")
        return zip_path
