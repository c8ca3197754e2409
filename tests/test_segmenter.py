"""
Tests for MboxSegmenter
"""

import pytest
from mboxsplit.config import NO_DATE, NO_SUBJECT
from mboxsplit.segmenter import MboxSegmenter, Segment, is_boundary, normalize_date


@pytest.fixture
def segmenter():
    """Fixture to create segmenter instance."""
    return MboxSegmenter()


@pytest.fixture
def two_message_lines():
    """Two messages: one with Subject/Date headers, one without."""
    return [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Subject: Hello",
        "Date: Mon, 01 Jan 2024 00:00:00 +0000",
        "",
        "Hi there",
        "From c@d.com Tue Jan 2 00:00:00 2024",
        "",
        "No headers here",
    ]


def test_is_boundary():
    """Test boundary detection rule."""
    assert is_boundary("From someone@example.com Mon Jan 1 00:00:00 2024")
    assert is_boundary("From ")
    assert not is_boundary(">From someone@example.com Mon Jan 1 00:00:00 2024")
    assert not is_boundary("From: someone@example.com")
    assert not is_boundary("from someone@example.com")
    assert not is_boundary(" From someone@example.com")


def test_segment_two_messages(segmenter, two_message_lines):
    """Test segmentation of a simple two-message archive."""
    result = segmenter.segment_lines(two_message_lines)

    assert result.boundary_count == 2
    assert len(result.segments) == 2

    first, second = result.segments
    assert first.boundary_line == "From a@b.com Mon Jan 1 00:00:00 2024"
    assert first.body_lines == [
        "Subject: Hello",
        "Date: Mon, 01 Jan 2024 00:00:00 +0000",
        "",
        "Hi there",
    ]
    assert first.subject == "Hello"
    assert first.sent_date == "2024-01-01_000000"

    assert second.boundary_line == "From c@d.com Tue Jan 2 00:00:00 2024"
    assert second.body_lines == ["", "No headers here"]
    assert second.subject == NO_SUBJECT
    assert second.sent_date == NO_DATE


def test_segments_start_not_extracted(segmenter, two_message_lines):
    """Test that freshly segmented messages are not marked extracted."""
    result = segmenter.segment_lines(two_message_lines)

    assert all(not segment.extracted for segment in result.segments)


def test_escaped_from_is_body_content(segmenter):
    """Test that >From lines never start a new segment."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Subject: Quoting",
        "",
        ">From someone@example.com said hello",
        "end",
    ]

    result = segmenter.segment_lines(lines)

    assert result.boundary_count == 1
    assert ">From someone@example.com said hello" in result.segments[0].body_lines


def test_unescaped_from_in_body_splits_message(segmenter):
    """Test that an unescaped From line in a body starts a new segment."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Subject: Quoting",
        "",
        "From someone@example.com said hello",
        "end",
    ]

    result = segmenter.segment_lines(lines)

    assert result.boundary_count == 2
    assert result.segments[0].body_lines == ["Subject: Quoting", ""]
    assert result.segments[1].boundary_line == "From someone@example.com said hello"
    assert result.segments[1].body_lines == ["end"]


def test_leading_lines_are_discarded(segmenter):
    """Test that content before the first boundary is dropped."""
    lines = [
        "garbage before the first message",
        "Subject: not a real header",
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "body",
    ]

    result = segmenter.segment_lines(lines)

    assert result.discarded_lines == 2
    assert len(result.segments) == 1
    assert result.segments[0].subject == NO_SUBJECT
    assert result.segments[0].body_lines == ["body"]


def test_empty_input(segmenter):
    """Test that empty input produces no segments."""
    result = segmenter.segment_lines([])

    assert result.segments == []
    assert result.boundary_count == 0


def test_no_boundaries(segmenter):
    """Test that input without boundary lines produces no segments."""
    result = segmenter.segment_lines(["Subject: Hi", "", "just text"])

    assert result.segments == []
    assert result.boundary_count == 0
    assert result.discarded_lines == 3


def test_boundary_without_body(segmenter):
    """Test a boundary line at end of input."""
    result = segmenter.segment_lines(["From a@b.com Mon Jan 1 00:00:00 2024"])

    assert len(result.segments) == 1
    segment = result.segments[0]
    assert segment.body_lines == []
    assert segment.subject == NO_SUBJECT
    assert segment.sent_date == NO_DATE


def test_first_subject_wins(segmenter):
    """Test that only the first Subject header is used."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Subject: First",
        "Subject: Second",
    ]

    result = segmenter.segment_lines(lines)

    assert result.segments[0].subject == "First"


def test_subject_match_is_case_insensitive(segmenter):
    """Test header prefix matching ignores case."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "SUBJECT:   Shouting   subject  ",
        "date: Mon, 01 Jan 2024 10:20:30 +0000",
    ]

    result = segmenter.segment_lines(lines)

    assert result.segments[0].subject == "Shouting_subject"
    assert result.segments[0].sent_date == "2024-01-01_102030"


def test_subject_is_sanitized(segmenter):
    """Test that captured subjects are filename-safe."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        'Subject: Re: "Urgent" <deal>?!',
    ]

    subject = segmenter.segment_lines(lines).segments[0].subject

    assert subject == "Re_Urgent_deal_!"


def test_malformed_date_locks_field(segmenter):
    """Test that the first Date line is used even when it cannot be parsed."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Date: whenever",
        "Date: Mon, 01 Jan 2024 00:00:00 +0000",
    ]

    result = segmenter.segment_lines(lines)

    assert result.segments[0].sent_date == "whenever"


def test_malformed_date_sentinel_fallback():
    """Test that sentinel fallback keeps NO_DATE and ignores later Date lines."""
    segmenter = MboxSegmenter(raw_date_fallback=False)
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Date: whenever",
        "Date: Mon, 01 Jan 2024 00:00:00 +0000",
    ]

    result = segmenter.segment_lines(lines)

    assert result.segments[0].sent_date == NO_DATE


def test_metadata_resets_per_segment(segmenter):
    """Test that each segment captures its own headers."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Subject: One",
        "Date: whenever",
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Subject: Two",
        "Date: Tue, 02 Jan 2024 15:30:45 -0500",
    ]

    first, second = segmenter.segment_lines(lines).segments

    assert first.subject == "One"
    assert second.subject == "Two"
    assert second.sent_date == "2024-01-02_153045"


def test_line_terminators_are_removed(segmenter):
    """Test lines read from a file keep no terminators."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024\n",
        "Subject: Hello\r\n",
        "body\n",
    ]

    segment = segmenter.segment_lines(lines).segments[0]

    assert segment.boundary_line == "From a@b.com Mon Jan 1 00:00:00 2024"
    assert segment.body_lines == ["Subject: Hello", "body"]


def test_segment_file(segmenter, tmp_path):
    """Test segmenting an archive read from disk."""
    mbox_file = tmp_path / "inbox.mbox"
    mbox_file.write_text(
        "From a@b.com Mon Jan 1 00:00:00 2024\n"
        "Subject: Hello\n"
        "\n"
        "Hi there\n"
        "From c@d.com Tue Jan 2 00:00:00 2024\n"
        "\n"
        "Second\n"
    )

    result = segmenter.segment_file(str(mbox_file))

    assert result.boundary_count == 2
    assert result.segments[0].body_lines == ["Subject: Hello", "", "Hi there"]
    assert result.segments[1].body_lines == ["", "Second"]


def test_segment_file_not_found(segmenter):
    """Test handling of non-existent archive."""
    with pytest.raises(FileNotFoundError):
        segmenter.segment_file("/nonexistent/inbox.mbox")


def test_segment_text_properties():
    """Test reconstructed content and raw archive text."""
    segment = Segment(boundary_line="From a@b.com", body_lines=["Subject: x", "", "body"])

    assert segment.content == "Subject: x\n\nbody\n"
    assert segment.raw_text == "From a@b.com\nSubject: x\n\nbody\n"


def test_mark_extracted():
    """Test extracted flag goes from False to True."""
    segment = Segment(boundary_line="From a@b.com")

    assert segment.extracted is False
    segment.mark_extracted()
    assert segment.extracted is True
    segment.mark_extracted()
    assert segment.extracted is True


def test_normalize_date_formats():
    """Test date normalization for RFC 5322 and looser formats."""
    assert normalize_date("Mon, 01 Jan 2024 00:00:00 +0000") == "2024-01-01_000000"
    assert normalize_date("01 Feb 2023 23:59:58 +0200") == "2023-02-01_235958"
    assert normalize_date("2024-03-05 08:09:10") == "2024-03-05_080910"


def test_normalize_date_invalid():
    """Test that non-dates are rejected."""
    assert normalize_date("") is None
    assert normalize_date("whenever") is None


def test_out_of_range_date_uses_raw_text(segmenter):
    """Test a Date header with an overflowing year falls back to its raw text."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Date: Mon, 01 Jan 99999999999 00:00:00 +0000",
    ]

    result = segmenter.segment_lines(lines)

    assert result.segments[0].sent_date == "Mon,_01_Jan_99999999999_00_00_00_+0000"


def test_partial_date_uses_raw_text(segmenter):
    """Test a Date header missing year/month is not completed from today."""
    lines = [
        "From a@b.com Mon Jan 1 00:00:00 2024",
        "Date: 5",
    ]

    result = segmenter.segment_lines(lines)

    assert result.segments[0].sent_date == "5"


def test_normalize_date_incomplete_values():
    """Test values lacking a full calendar date are rejected."""
    assert normalize_date("5") is None
    assert normalize_date("March 5") is None
    assert normalize_date("2024-03-05") == "2024-03-05_000000"
