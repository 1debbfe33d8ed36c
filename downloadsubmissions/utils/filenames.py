# downloadsubmissions/utils/filenames.py
import re

# Control characters plus the characters a file name must never carry.
_UNSAFE_PATH_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f&<>\"`|':\\]")
_UNSAFE_FILE_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f&<>\"`|':\\/]")
_DOT_RUNS = re.compile(r"\.\.+")
_SLASH_RUNS = re.compile(r"//+")
_DOT_SEGMENTS = re.compile(r"/(\./)+")


def clean_filename(name: str) -> str:
    """Strips everything unsafe for a single file name, including '/'."""
    cleaned = _UNSAFE_FILE_CHARS.sub("", name)
    if cleaned in (".", ".."):
        return ""
    return cleaned


def clean_path(path: str) -> str:
    """
    Strips unsafe characters from a relative archive path while keeping '/'
    as the folder separator. Runs of dots collapse to one so no segment can
    climb out of the archive root.
    """
    cleaned = _UNSAFE_PATH_CHARS.sub("", path)
    cleaned = _DOT_RUNS.sub(".", cleaned)
    cleaned = _SLASH_RUNS.sub("/", cleaned)
    cleaned = _DOT_SEGMENTS.sub("/", cleaned)
    return cleaned
