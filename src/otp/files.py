"""
Reading text and key files.

A file's content is everything before its first newline (or end of file).
Only symbols of the one-time pad alphabet are allowed in that content.
"""

from .cipher import ALPHABET
from .exceptions import FileValidationError

TERMINATOR = "\n"


def _read_content(path: str) -> str:
    try:
        with open(path, "rb") as f:
            line = f.readline()
    except OSError as e:
        raise FileValidationError(path, f"could not be opened: {e.strerror or e}")

    content = line.split(TERMINATOR.encode("ascii"), 1)[0]
    try:
        return content.decode("ascii")
    except UnicodeDecodeError:
        raise FileValidationError(path, "contains bad characters")


def scan_file(path: str) -> int:
    """
    Return the number of symbols before the file's terminator.

    Raises:
        FileValidationError: If the file cannot be read, is empty, or holds a
            character outside the alphabet
    """
    content = _read_content(path)
    if not content:
        raise FileValidationError(path, "cannot be empty")
    for character in content:
        if character not in ALPHABET:
            raise FileValidationError(path, "contains bad characters")
    return len(content)


def read_file(path: str, length: int) -> str:
    """Return the first length symbols of a scanned file."""
    return _read_content(path)[:length]
