"""Tests for message wrapping."""

import pytest

from diaglog.wrapping import (
    ELLIPSIS,
    SEGMENT_SEPARATOR,
    WrappedMessage,
    add_period,
    fold_with_ellipses,
    wrap_messages,
)

LONG_TEXT = (
    "The package index could not be refreshed because the mirror did not "
    "answer within the configured timeout, retrying with the fallback mirror"
)


class TestFoldWithEllipses:
    def test_markers(self):
        lines = fold_with_ellipses("alpha beta gamma delta epsilon", 12)

        assert lines == ["alpha beta…", "…gamma…", "…delta…", "…epsilon"]

    def test_single_line_has_no_markers(self):
        assert fold_with_ellipses("short", 40) == ["short"]

    def test_lines_never_exceed_width(self):
        assert all(len(line) <= 30 for line in fold_with_ellipses(LONG_TEXT, 30))

    def test_long_words_are_broken(self):
        lines = fold_with_ellipses("x" * 25, 10)

        assert all(len(line) <= 10 for line in lines)
        assert "".join(line.strip(ELLIPSIS) for line in lines) == "x" * 25

    def test_embedded_newlines_start_new_lines(self):
        assert fold_with_ellipses("first\nsecond", 40) == ["first…", "…second"]

    @pytest.mark.parametrize("width", [0, 1, 2])
    def test_width_too_small(self, width):
        with pytest.raises(ValueError):
            fold_with_ellipses("text", width)


class TestWrapMessages:
    def test_fitting_message_is_unchanged(self):
        wrapped = wrap_messages(40, "disk low")

        assert wrapped == WrappedMessage(primary="disk low")
        assert wrapped.overflow == ()
        assert wrapped.detail == ()

    def test_message_of_exact_width_is_unchanged(self):
        assert wrap_messages(8, "disk low").primary == "disk low"

    def test_long_message_overflows(self):
        wrapped = wrap_messages(30, LONG_TEXT)

        assert len(wrapped.primary) <= 30
        assert wrapped.primary.endswith(ELLIPSIS)
        assert wrapped.overflow
        assert wrapped.overflow[-1].startswith(ELLIPSIS)

    def test_overflow_reconstructs_content(self):
        wrapped = wrap_messages(30, LONG_TEXT)
        rebuilt = " ".join(line.strip(ELLIPSIS) for line in wrapped.lines())

        assert rebuilt.split() == LONG_TEXT.split()

    def test_short_multi_line_message_moves_lines_to_overflow(self):
        wrapped = wrap_messages(40, "first\nsecond")

        assert wrapped.primary == f"first{ELLIPSIS}"
        assert wrapped.overflow == (f"{ELLIPSIS}second",)

    def test_short_detail_is_kept_as_is(self):
        wrapped = wrap_messages(40, "copy failed", "permission denied")

        assert wrapped.detail == ("permission denied",)

    def test_long_detail_is_folded(self):
        wrapped = wrap_messages(30, "copy failed", LONG_TEXT)

        assert wrapped.overflow == ()
        assert wrapped.detail[0].endswith(ELLIPSIS)
        assert all(len(line) <= 30 for line in wrapped.detail)

    def test_width_precondition(self):
        with pytest.raises(ValueError, match="greater than 2"):
            wrap_messages(2, "text")


class TestEncoding:
    def test_always_three_segments(self):
        wrapped = WrappedMessage(
            primary="first",
            overflow=("a\nb", "c"),
            detail=("line one\nline two",),
        )

        assert len(wrapped.encode().split(SEGMENT_SEPARATOR)) == 3

    def test_empty_parts_keep_three_segments(self):
        assert wrap_messages(40, "short").encode().split(SEGMENT_SEPARATOR) == ["short", "", ""]

    def test_separator_in_content_is_removed(self):
        wrapped = WrappedMessage(primary=f"odd{SEGMENT_SEPARATOR}text")

        assert wrapped.encode().count(SEGMENT_SEPARATOR) == 2
        assert WrappedMessage.decode(wrapped.encode()).primary == "oddtext"

    def test_decode(self):
        wrapped = wrap_messages(30, LONG_TEXT, "check the mirror list")

        assert WrappedMessage.decode(wrapped.encode()) == wrapped


@pytest.mark.parametrize(("text", "expected"), [
    ("bad config", "bad config."),
    ("bad config.", "bad config."),
    ("bad config  ", "bad config."),
    ("", ""),
])
def test_add_period(text, expected):
    assert add_period(text) == expected
