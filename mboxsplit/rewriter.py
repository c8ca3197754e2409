"""
Archive Rewriter
Regenerates the mbox archive without the messages that were extracted
"""

import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import List

from mboxsplit.config import DEFAULT_ENCODING, ENCODING_ERRORS
from mboxsplit.errors import ArchiveRewriteError
from mboxsplit.segmenter import Segment


@dataclass
class RewriteResult:
    kept_count: int
    removed_count: int


class ArchiveRewriter:
    """
    Replaces an archive's content with its non-extracted segments.

    The new content is written to a temporary file next to the archive and
    moved over it with os.replace, so the archive is either fully rewritten
    or left exactly as it was.
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING):
        self.encoding = encoding

    @staticmethod
    def render(segments: List[Segment]) -> str:
        """
        Builds the regenerated archive text.

        Every segment that was not extracted is emitted with its original
        boundary line, in original order. Extracted segments emit nothing.
        """
        return "".join(segment.raw_text for segment in segments if not segment.extracted)

    def rewrite(self, mbox_path: str, segments: List[Segment]) -> RewriteResult:
        """
        Rewrites the archive in place.

        Args:
            mbox_path: Archive to replace
            segments: All segments read from the archive, with extracted flags set

        Returns:
            RewriteResult with the number of kept and removed segments

        Raises:
            ArchiveRewriteError: If the new content could not be put in place;
                the original archive is unchanged in that case
        """
        content = self.render(segments)
        kept = sum(1 for segment in segments if not segment.extracted)

        directory = os.path.dirname(os.path.abspath(mbox_path))
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{os.path.basename(mbox_path)}.",
                suffix=".tmp"
            )
        except OSError as e:
            raise ArchiveRewriteError(f"Failed to create temporary file in '{directory}': {e}") from e

        try:
            with os.fdopen(fd, "w", encoding=self.encoding, errors=ENCODING_ERRORS) as tmp:
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            shutil.copymode(mbox_path, tmp_path)
            os.replace(tmp_path, mbox_path)
        except (OSError, UnicodeError, LookupError) as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ArchiveRewriteError(f"Failed to rewrite '{mbox_path}': {e}") from e

        return RewriteResult(kept_count=kept, removed_count=len(segments) - kept)
