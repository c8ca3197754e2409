"""
Converter configuration.
Constants shared by the segmenter, namer and writer, plus the per-run options.
"""

from dataclasses import dataclass


# --- Segmentation ---
BOUNDARY_PREFIX = "From "
ESCAPED_BOUNDARY_PREFIX = ">From "
SUBJECT_PREFIX = "subject:"
DATE_PREFIX = "date:"

# Sentinels for metadata that was never captured
NO_SUBJECT = "No Subject"
NO_DATE = "No Date"

# --- Naming ---
DATE_FORMAT = "%Y-%m-%d_%H%M%S"
SUBJECT_MAX_LENGTH = 50
INDEX_WIDTH = 4
NO_SUBJECT_TOKEN = "NoSubject"
EML_EXTENSION = ".eml"
NAMING_STYLES = ("metadata", "index")

# --- I/O ---
DEFAULT_ENCODING = "utf-8"
# Keeps undecodable bytes intact through read -> rewrite
ENCODING_ERRORS = "surrogateescape"


@dataclass
class ConverterConfig:
    """Options for a single conversion run."""

    remove_extracted: bool = False
    naming: str = "metadata"
    raw_date_fallback: bool = True
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self):
        if self.naming not in NAMING_STYLES:
            raise ValueError(
                f"Unknown naming style '{self.naming}' (expected one of {', '.join(NAMING_STYLES)})"
            )
