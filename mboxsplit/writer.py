"""
EML Writer
Persists one message per file and reports the outcome instead of raising
"""

import os
from dataclasses import dataclass
from typing import Callable, Optional

from mboxsplit.config import DEFAULT_ENCODING, ENCODING_ERRORS


@dataclass
class WriteResult:
    success: bool
    filename: str
    path: Optional[str] = None
    error: Optional[str] = None


class EmlWriter:
    """Writes reconstructed message text to individual .eml files."""

    def __init__(self, encoding: str = DEFAULT_ENCODING, log: Callable[..., None] = print):
        """
        Initialize the writer.

        Args:
            encoding: Text encoding for the output files
            log: Callable used for progress messages (defaults to print)
        """
        self.encoding = encoding
        self.log = log

    def write(self, output_dir: str, filename: str, content: str) -> WriteResult:
        """
        Writes trimmed content to <output_dir>/<filename>, replacing any existing file.

        Args:
            output_dir: Existing directory to write into
            filename: Target filename (already sanitized)
            content: Message text; surrounding whitespace is trimmed

        Returns:
            WriteResult; success is False if the file could not be written
        """
        path = os.path.join(output_dir, filename)

        try:
            with open(path, "w", encoding=self.encoding, errors=ENCODING_ERRORS) as f:
                f.write(content.strip())
        except (OSError, UnicodeError, LookupError) as e:
            self.log(f"❌ Error saving {filename}: {e}")
            return WriteResult(success=False, filename=filename, path=path, error=str(e))

        self.log(f"Saved: {filename}")
        return WriteResult(success=True, filename=filename, path=path)
