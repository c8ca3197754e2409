"""
EML Filename Builder
Turns a message's position and header metadata into a filesystem-safe name
"""

import re
from datetime import datetime
from typing import Optional

from mboxsplit.config import (
    DATE_FORMAT,
    EML_EXTENSION,
    INDEX_WIDTH,
    NAMING_STYLES,
    NO_DATE,
    NO_SUBJECT,
    NO_SUBJECT_TOKEN,
    SUBJECT_MAX_LENGTH,
)


# Characters rejected in a file or path name on Windows or POSIX
_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RUN = re.compile(r"\s+")
_UNDERSCORE_RUN = re.compile(r"_+")


def sanitize_filename(text: Optional[str]) -> str:
    """
    Makes free text safe to embed in a filename.

    Invalid characters become underscores, whitespace runs become a single
    underscore, underscore runs collapse to one, and leading/trailing
    underscores are stripped.

    Args:
        text: Raw text (e.g. a Subject header value)

    Returns:
        Sanitized string, possibly empty
    """
    if not text:
        return ""

    sanitized = _INVALID_CHARS.sub("_", text)
    sanitized = _WHITESPACE_RUN.sub("_", sanitized)
    sanitized = _UNDERSCORE_RUN.sub("_", sanitized)
    return sanitized.strip("_")


def format_timestamp(moment: datetime) -> str:
    """Formats a datetime as the sortable YYYY-MM-DD_HHMMSS filename stamp."""
    return moment.strftime(DATE_FORMAT)


def _date_part(sent_date: str, now: Optional[datetime]) -> str:
    if sent_date != NO_DATE:
        safe_date = sanitize_filename(sent_date)
        if safe_date:
            return safe_date
    return format_timestamp(now or datetime.now())


def _subject_part(subject: str) -> str:
    safe_subject = ""
    if subject != NO_SUBJECT:
        safe_subject = sanitize_filename(subject)
    if not safe_subject:
        safe_subject = NO_SUBJECT_TOKEN
    return safe_subject[:SUBJECT_MAX_LENGTH]


def build_eml_filename(
    index: int,
    subject: str = NO_SUBJECT,
    sent_date: str = NO_DATE,
    now: Optional[datetime] = None,
    style: str = "metadata"
) -> str:
    """
    Builds the output filename for one message.

    Args:
        index: 1-based position of the message in the archive
        subject: Captured subject, or the NO_SUBJECT sentinel
        sent_date: Captured date, or the NO_DATE sentinel
        now: Clock value used when no usable date was captured
             (defaults to the current time)
        style: "metadata" for <date>_<subject>_<index>.eml,
               "index" for email_<index>.eml

    Returns:
        Filename without directory component
    """
    if style not in NAMING_STYLES:
        raise ValueError(f"Unknown naming style: {style}")

    padded_index = f"{index:0{INDEX_WIDTH}d}"

    if style == "index":
        return f"email_{padded_index}{EML_EXTENSION}"

    return f"{_date_part(sent_date, now)}_{_subject_part(subject)}_{padded_index}{EML_EXTENSION}"
