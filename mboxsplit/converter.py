"""
Mbox to EML Converter
Runs the read -> write -> rewrite phases over one archive
"""

import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Callable, List, Optional

from mboxsplit.config import ConverterConfig
from mboxsplit.errors import ArchiveReadError, ArchiveRewriteError, InputValidationError
from mboxsplit.naming import build_eml_filename
from mboxsplit.rewriter import ArchiveRewriter
from mboxsplit.segmenter import MboxSegmenter, SegmentationResult
from mboxsplit.writer import EmlWriter, WriteResult


@dataclass
class ConversionSummary:
    mbox_path: str
    output_dir: str
    boundary_count: int = 0
    segment_count: int = 0
    extracted_count: int = 0
    written_files: List[str] = field(default_factory=list)
    failed: List[WriteResult] = field(default_factory=list)
    kept_count: Optional[int] = None
    rewrite_error: Optional[str] = None

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class MboxToEmlConverter:
    """
    Splits an mbox archive into one .eml file per message.

    Phases run strictly one after another:
    1. read and segment the whole archive
    2. write every segment, recording which ones succeeded
    3. (remove_extracted only) rewrite the archive keeping the failures
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        log: Callable[..., None] = print,
        warn: Optional[Callable[..., None]] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the converter.

        Args:
            config: Run options (defaults to ConverterConfig())
            log: Callable for ordinary progress messages
            warn: Callable for warnings that must stand out
                  (defaults to print on stderr)
            clock: Source of the timestamp used for messages without a date
        """
        self.config = config or ConverterConfig()
        self.log = log
        self.warn = warn or partial(print, file=sys.stderr)
        self.clock = clock

        self.segmenter = MboxSegmenter(raw_date_fallback=self.config.raw_date_fallback)
        self.writer = EmlWriter(encoding=self.config.encoding, log=log)
        self.rewriter = ArchiveRewriter(encoding=self.config.encoding)

    def validate_inputs(self, mbox_path: str, output_dir: str) -> None:
        """
        Checks the archive exists and the output directory is usable.

        Creates the output directory if it does not exist yet.

        Raises:
            InputValidationError: On a missing archive or unusable directory
        """
        if not os.path.isfile(mbox_path):
            raise InputValidationError(f"MBOX file not found at '{mbox_path}'")

        if os.path.exists(output_dir):
            if not os.path.isdir(output_dir):
                raise InputValidationError(f"Output path '{output_dir}' exists and is not a directory")
            return

        try:
            os.makedirs(output_dir)
        except OSError as e:
            raise InputValidationError(f"Error creating output directory '{output_dir}': {e}") from e
        self.log(f"Output directory created: '{output_dir}'")

    def inspect(self, mbox_path: str) -> SegmentationResult:
        """
        Reads and segments an archive without writing anything.

        Raises:
            InputValidationError: If the archive does not exist
            ArchiveReadError: If the archive cannot be read
        """
        if not os.path.isfile(mbox_path):
            raise InputValidationError(f"MBOX file not found at '{mbox_path}'")
        return self._read(mbox_path)

    def convert(self, mbox_path: str, output_dir: str) -> ConversionSummary:
        """
        Converts an archive into individual .eml files.

        Per-message write failures do not stop the run; those messages are
        reported in the summary and, in remove_extracted mode, stay in the
        archive. A failed archive rewrite is reported as a warning and
        recorded in summary.rewrite_error.

        Args:
            mbox_path: Path to the mbox archive
            output_dir: Directory for the .eml files (created if absent)

        Returns:
            ConversionSummary

        Raises:
            InputValidationError: If the inputs are unusable
            ArchiveReadError: If the archive cannot be read
        """
        self.validate_inputs(mbox_path, output_dir)

        self.log(f"Processing MBOX file: '{mbox_path}'")
        self.log(f"Saving EML files to: '{output_dir}'")

        total_phases = 3 if self.config.remove_extracted else 2

        # 1. Segment
        self.log(f"Phase 1/{total_phases}: Reading MBOX file and segmenting emails...")
        result = self._read(mbox_path)
        self.log(f"Identified {result.boundary_count} email segments in the MBOX file.")

        summary = ConversionSummary(
            mbox_path=mbox_path,
            output_dir=output_dir,
            boundary_count=result.boundary_count,
            segment_count=len(result.segments)
        )

        # 2. Write
        self.log(f"Phase 2/{total_phases}: Saving emails as EML files...")
        for i, segment in enumerate(result.segments, 1):
            filename = build_eml_filename(
                i,
                subject=segment.subject,
                sent_date=segment.sent_date,
                now=self.clock(),
                style=self.config.naming
            )
            outcome = self.writer.write(output_dir, filename, segment.content)
            if outcome.success:
                segment.mark_extracted()
                summary.written_files.append(outcome.path)
            else:
                summary.failed.append(outcome)

        summary.extracted_count = len(summary.written_files)
        self.log(f"Successfully extracted {summary.extracted_count} emails to EML files.")
        if summary.failed:
            self.log(f"❌ {summary.failed_count} emails could not be saved.")

        # 3. Rewrite
        if self.config.remove_extracted:
            self._rewrite(mbox_path, result, summary)

        self.log(f"\n✅ Conversion complete. Saved {summary.extracted_count} EML files to '{output_dir}/'.")
        return summary

    def _read(self, mbox_path: str) -> SegmentationResult:
        try:
            return self.segmenter.segment_file(mbox_path, encoding=self.config.encoding)
        except (OSError, UnicodeError, LookupError) as e:
            raise ArchiveReadError(f"An error occurred during MBOX segmentation: {e}") from e

    def _rewrite(self, mbox_path: str, result: SegmentationResult, summary: ConversionSummary) -> None:
        self.log("Phase 3/3: Rewriting MBOX file to remove successfully extracted emails...")

        if summary.extracted_count == 0:
            summary.kept_count = len(result.segments)
            self.log("No emails were extracted; MBOX file left unchanged.")
            return

        try:
            rewrite = self.rewriter.rewrite(mbox_path, result.segments)
        except ArchiveRewriteError as e:
            summary.rewrite_error = str(e)
            self.warn(f"⚠️  WARNING: {e}")
            self.warn(
                "⚠️  The extracted emails are still present in the MBOX file. "
                "Do not delete the EML output until the archive has been checked."
            )
            return

        summary.kept_count = rewrite.kept_count
        self.log(f"MBOX file rewritten. {rewrite.kept_count} emails remain (those that failed to extract).")
