"""
Mbox Segmenter
Splits an mbox archive into ordered message segments in a single forward pass
"""

from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Iterable, List, Optional

from dateutil import parser as date_parser

from mboxsplit.config import (
    BOUNDARY_PREFIX,
    DATE_PREFIX,
    DEFAULT_ENCODING,
    ENCODING_ERRORS,
    ESCAPED_BOUNDARY_PREFIX,
    NO_DATE,
    NO_SUBJECT,
    SUBJECT_PREFIX,
)
from mboxsplit.naming import format_timestamp, sanitize_filename


_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


@dataclass
class Segment:
    """One message of the archive, as it appeared between two boundaries."""

    boundary_line: str
    body_lines: List[str] = field(default_factory=list)
    subject: str = NO_SUBJECT
    sent_date: str = NO_DATE
    extracted: bool = False

    def mark_extracted(self) -> None:
        # Write-once: there is no way back to False
        self.extracted = True

    @property
    def content(self) -> str:
        """Body lines joined back into message text (boundary excluded)."""
        return "".join(line + "\n" for line in self.body_lines)

    @property
    def raw_text(self) -> str:
        """The segment exactly as it belongs in an mbox archive."""
        return self.boundary_line + "\n" + self.content


@dataclass
class SegmentationResult:
    """Segments in input order, plus counts gathered during the scan."""

    segments: List[Segment]
    boundary_count: int
    discarded_lines: int = 0


class ScanState(Enum):
    """Position of the scan relative to the first boundary line."""

    BEFORE_FIRST_BOUNDARY = "before_first_boundary"
    IN_SEGMENT = "in_segment"


def is_boundary(line: str) -> bool:
    """
    Checks whether a line starts a new message.

    A line starting with "From " is a boundary unless it is the escaped
    ">From " form used inside message bodies. Unescaped "From " lines in a
    body are indistinguishable from a real boundary and split the message.
    """
    return line.startswith(BOUNDARY_PREFIX) and not line.startswith(ESCAPED_BOUNDARY_PREFIX)


def normalize_date(value: str) -> Optional[str]:
    """
    Parses a Date header value into the sortable YYYY-MM-DD_HHMMSS form.

    RFC 5322 dates are tried first, then a lenient parse for the looser
    formats some clients emit. The wall-clock time is kept in the header's
    own offset.

    Args:
        value: Header value with the "Date:" prefix removed

    Returns:
        Normalized timestamp, or None if the value is not a date
    """
    if not value:
        return None

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        parsed = None

    if parsed is None:
        # Fields missing from the value would be filled from the default, so
        # only accept values that parse the same against two different defaults
        try:
            parsed = date_parser.parse(value, default=_DEFAULT_A)
            if parsed != date_parser.parse(value, default=_DEFAULT_B):
                return None
        except (ValueError, OverflowError):
            return None

    return format_timestamp(parsed)


def _strip_terminator(line: str) -> str:
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n") or line.endswith("\r"):
        return line[:-1]
    return line


class MboxSegmenter:
    """
    Partitions archive lines into Segment records.

    The scan is a two-state machine: lines before the first boundary are
    discarded, after that every line is either a new boundary or belongs
    to the currently open segment.
    """

    def __init__(self, raw_date_fallback: bool = True):
        """
        Initialize the segmenter.

        Args:
            raw_date_fallback: When a Date header cannot be parsed, keep its
                sanitized raw text (True) or leave the NO_DATE sentinel (False)
        """
        self.raw_date_fallback = raw_date_fallback

    def segment_lines(self, lines: Iterable[str]) -> SegmentationResult:
        """
        Segments an iterable of text lines.

        Args:
            lines: Archive lines, with or without their line terminators

        Returns:
            SegmentationResult with segments in input order
        """
        segments: List[Segment] = []
        current: Optional[Segment] = None
        state = ScanState.BEFORE_FIRST_BOUNDARY
        boundary_count = 0
        discarded = 0
        # The first Date: line locks the field even when it leaves the sentinel
        date_seen = False

        for raw_line in lines:
            line = _strip_terminator(raw_line)

            if is_boundary(line):
                if current is not None:
                    segments.append(current)
                current = Segment(boundary_line=line)
                date_seen = False
                boundary_count += 1
                state = ScanState.IN_SEGMENT
            elif state is ScanState.IN_SEGMENT:
                current.body_lines.append(line)
                date_seen = self._capture_header(current, line, date_seen)
            else:
                discarded += 1

        if current is not None:
            segments.append(current)

        return SegmentationResult(
            segments=segments,
            boundary_count=boundary_count,
            discarded_lines=discarded
        )

    def segment_file(self, mbox_path: str, encoding: str = DEFAULT_ENCODING) -> SegmentationResult:
        """
        Reads and segments an mbox file.

        Raises:
            OSError: If the file cannot be read
            UnicodeError: If the content cannot be decoded with `encoding`
        """
        with open(mbox_path, "r", encoding=encoding, errors=ENCODING_ERRORS) as f:
            return self.segment_lines(f)

    def _capture_header(self, segment: Segment, line: str, date_seen: bool) -> bool:
        """
        Records Subject/Date from a header line. First match wins.

        Returns:
            Whether a Date: line has been consumed for this segment
        """
        if segment.subject == NO_SUBJECT and line[:len(SUBJECT_PREFIX)].lower() == SUBJECT_PREFIX:
            segment.subject = sanitize_filename(line[len(SUBJECT_PREFIX):].strip())
        elif not date_seen and line[:len(DATE_PREFIX)].lower() == DATE_PREFIX:
            value = line[len(DATE_PREFIX):].strip()
            normalized = normalize_date(value)
            if normalized is not None:
                segment.sent_date = normalized
            elif self.raw_date_fallback:
                segment.sent_date = sanitize_filename(value)
            return True
        return date_seen
