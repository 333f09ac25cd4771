"""Tests for query parsing, transcript filters and the tiered intelligent search."""

from __future__ import annotations

import pytest

from src.analysis_config import SortBy
from src.meetingbaas.models import TranscriptSegment
from src.retrieval.intelligent import (
    NO_MATCHES_MESSAGE,
    SearchContext,
    SearchTier,
    headline,
    order_results,
    run_tiers,
)
from src.retrieval.query_parser import (
    extract_speaker,
    extract_time_range,
    parse_query,
    strip_filter_phrases,
)
from src.retrieval.search import (
    filter_by_speaker,
    filter_by_time,
    filter_segments,
    match_speakers,
    search_transcript,
    with_context,
)


def _seg(start: float, speaker: str, text: str, end: float | None = None) -> TranscriptSegment:
    return TranscriptSegment(speaker=speaker, start_time=start, text=text, end_time=end)


@pytest.fixture
def transcript() -> list[TranscriptSegment]:
    return [
        _seg(0, "Alice", "Let's review the budget"),
        _seg(10, "Bob", "The budget is too high"),
        _seg(20, "Alice", "We should cut marketing spend"),
        _seg(30, "Carol", "Hiring plan looks fine"),
    ]


# ---------------------------------------------------------------------------
# Query parser tests
# ---------------------------------------------------------------------------


class TestExtractTimeRange:
    def test_between(self) -> None:
        assert extract_time_range("what happened between 2:30 and 4") == (150, 240)

    def test_between_with_to(self) -> None:
        assert extract_time_range("between 1 to 2") == (60, 120)

    def test_after(self) -> None:
        assert extract_time_range("budget after 5") == (300, None)

    def test_before(self) -> None:
        assert extract_time_range("before 10") == (None, 600)

    def test_around(self) -> None:
        assert extract_time_range("around 5") == (240, 360)

    def test_around_clamped_at_zero(self) -> None:
        assert extract_time_range("around 0:30") == (0, 90)

    def test_none(self) -> None:
        assert extract_time_range("budget discussion") == (None, None)


class TestExtractSpeaker:
    def test_what_did(self) -> None:
        assert extract_speaker("What did Alice say about the budget") == "Alice"

    def test_full_name(self) -> None:
        assert extract_speaker("what did Alice Smith say") == "Alice Smith"

    def test_comments_from(self) -> None:
        assert extract_speaker("comments from Bob") == "Bob"

    def test_possessive(self) -> None:
        assert extract_speaker("Alice's thoughts on pricing") == "Alice"

    def test_when_spoke(self) -> None:
        assert extract_speaker("when Carol mentioned hiring") == "Carol"

    def test_none(self) -> None:
        assert extract_speaker("budget overruns") is None


class TestStripFilterPhrases:
    def test_removes_time_and_speaker(self) -> None:
        assert strip_filter_phrases("What did Alice say about the budget after 5") == (
            "about the budget"
        )

    def test_removes_meeting_type_and_dates(self) -> None:
        assert strip_filter_phrases("pricing in sales meetings last week") == "pricing"

    def test_removes_bot_id(self) -> None:
        assert strip_filter_phrases("roadmap bot id: 0a1b2c3d-0000") == "roadmap"

    def test_falls_back_to_query(self) -> None:
        assert strip_filter_phrases("after 5") == "after 5"


class TestParseQuery:
    def test_combined(self) -> None:
        parsed = parse_query("What did Alice say about the budget after 5")
        assert parsed.speaker == "Alice"
        assert parsed.start_time == 300
        assert parsed.end_time is None
        assert parsed.search_terms == "about the budget"
        assert parsed.term_words == ["about", "the", "budget"]

    def test_filters_override_query(self) -> None:
        parsed = parse_query("budget after 5", {"startTime": 10, "speaker": "Bob"})
        assert parsed.start_time == 10
        assert parsed.speaker == "Bob"

    def test_snake_case_filters(self) -> None:
        parsed = parse_query("budget", {"start_time": 5, "end_time": 100})
        assert (parsed.start_time, parsed.end_time) == (5, 100)

    def test_empty_filter_values_ignored(self) -> None:
        parsed = parse_query("What did Alice say", {"speaker": "", "startTime": None})
        assert parsed.speaker == "Alice"
        assert parsed.start_time is None


# ---------------------------------------------------------------------------
# Basic search and filter tests
# ---------------------------------------------------------------------------


class TestSearchTranscript:
    def test_case_insensitive(self, transcript: list[TranscriptSegment]) -> None:
        assert [s.start_time for s in search_transcript(transcript, "BUDGET")] == [0, 10]

    def test_no_match(self, transcript: list[TranscriptSegment]) -> None:
        assert search_transcript(transcript, "xylophone") == []


class TestFilterByTime:
    def test_no_bounds_returns_copy(self, transcript: list[TranscriptSegment]) -> None:
        result = filter_by_time(transcript)
        assert result == transcript
        assert result is not transcript

    def test_start_bound(self, transcript: list[TranscriptSegment]) -> None:
        assert [s.start_time for s in filter_by_time(transcript, start_time=10)] == [10, 20, 30]

    def test_end_uses_estimated_duration(self) -> None:
        segments = [_seg(10, "A", "x"), _seg(20, "A", "y", end=21)]
        assert [s.start_time for s in filter_by_time(segments, end_time=14)] == []
        assert [s.start_time for s in filter_by_time(segments, end_time=22)] == [10, 20]


class TestMatchSpeakers:
    def test_exact_wins(self) -> None:
        assert match_speakers("bob", ["Bob", "Bobby"]) == ["Bob"]

    def test_partial_name(self) -> None:
        assert match_speakers("alex", ["Alex Smith", "Bob"]) == ["Alex Smith"]

    def test_first_name_in_request(self) -> None:
        assert match_speakers("Alex Smith", ["Alex", "Bob"]) == ["Alex"]

    def test_blank(self) -> None:
        assert match_speakers("  ", ["Alex"]) == []


class TestFilterBySpeaker:
    def test_matches_resolved_speaker(self, transcript: list[TranscriptSegment]) -> None:
        assert [s.start_time for s in filter_by_speaker(transcript, "alice")] == [0, 20]

    def test_unknown_speaker(self, transcript: list[TranscriptSegment]) -> None:
        assert filter_by_speaker(transcript, "Zed") == []

    def test_combined_filters(self, transcript: list[TranscriptSegment]) -> None:
        result = filter_segments(transcript, start_time=5, speaker="Alice")
        assert [s.start_time for s in result] == [20]


class TestWithContext:
    def test_neighbours(self, transcript: list[TranscriptSegment]) -> None:
        result = with_context([transcript[2]], transcript)
        assert [(s.start_time, is_match) for s, is_match in result] == [
            (10, False),
            (20, True),
            (30, False),
        ]

    def test_no_repeats(self, transcript: list[TranscriptSegment]) -> None:
        result = with_context([transcript[1], transcript[2]], transcript)
        assert [(s.start_time, is_match) for s, is_match in result] == [
            (0, False),
            (10, True),
            (20, True),
            (30, False),
        ]

    def test_edges(self, transcript: list[TranscriptSegment]) -> None:
        result = with_context([transcript[0]], transcript)
        assert [s.start_time for s, _ in result] == [0, 10]


# ---------------------------------------------------------------------------
# Tiered search tests
# ---------------------------------------------------------------------------


class TestRunTiers:
    def test_speaker_and_terms(self, transcript: list[TranscriptSegment]) -> None:
        outcome = run_tiers(transcript, parse_query("What did Alice say about the budget"))
        assert outcome.tier is SearchTier.SPEAKER_TERMS
        assert [s.start_time for s in outcome.segments] == [0]

    def test_speaker_tier_returns_speaker_filtered_set(
        self, transcript: list[TranscriptSegment]
    ) -> None:
        parsed = parse_query("What did Alice say about hiring")
        outcome = run_tiers(transcript, parsed)
        assert outcome.tier is SearchTier.SPEAKER
        assert outcome.segments == SearchContext(transcript, parsed).speaker_filtered
        assert [s.start_time for s in outcome.segments] == [0, 20]

    def test_speaker_tier_respects_time(self, transcript: list[TranscriptSegment]) -> None:
        outcome = run_tiers(transcript, parse_query("What did Alice say after 0:15"))
        assert outcome.tier is SearchTier.SPEAKER
        assert [s.start_time for s in outcome.segments] == [20]

    def test_multi_term_threshold(self, transcript: list[TranscriptSegment]) -> None:
        # Four terms, so a segment needs two of them
        outcome = run_tiers(transcript, parse_query("budget high spend cut"))
        assert outcome.tier is SearchTier.MULTI_TERM
        assert [s.start_time for s in outcome.segments] == [10, 20]

    def test_unknown_speaker_falls_through_to_terms(
        self, transcript: list[TranscriptSegment]
    ) -> None:
        outcome = run_tiers(transcript, parse_query("What did Zed say about budget"))
        assert outcome.tier is SearchTier.MULTI_TERM
        assert [s.start_time for s in outcome.segments] == [0, 10]

    def test_basic(self, transcript: list[TranscriptSegment]) -> None:
        outcome = run_tiers(transcript, parse_query("budget"))
        assert outcome.tier is SearchTier.BASIC
        assert [s.start_time for s in outcome.segments] == [0, 10]

    def test_fallback_lists_filtered_segments(
        self, transcript: list[TranscriptSegment]
    ) -> None:
        outcome = run_tiers(transcript, parse_query("xylophone"))
        assert outcome.tier is SearchTier.FALLBACK
        assert outcome.segments == transcript

    def test_fallback_empty(self, transcript: list[TranscriptSegment]) -> None:
        outcome = run_tiers(transcript, parse_query("xylophone", {"startTime": 1000}))
        assert outcome.tier is SearchTier.FALLBACK
        assert outcome.segments == []

    def test_unordered_segments_searched_by_start_time(self) -> None:
        segments = [
            _seg(300, "Alice", "fine thanks"),
            _seg(10, "Alice", "hello there"),
            _seg(150, "Bob", "morning all"),
        ]
        parsed = parse_query("What did Alice say")
        outcome = run_tiers(segments, parsed)
        assert outcome.tier is SearchTier.SPEAKER
        assert [s.start_time for s in outcome.segments] == [10, 300]
        assert headline(outcome, parsed, "M") == (
            'Found 2 segments from 00:10 to 05:00 in meeting "M".'
        )

    def test_basic_ignores_time_filter(self) -> None:
        segments = [_seg(30, "A", "budget talk"), _seg(400, "A", "unrelated")]
        outcome = run_tiers(segments, parse_query("budget after 5"))
        assert outcome.tier is SearchTier.BASIC
        assert [s.start_time for s in outcome.segments] == [30]

    def test_multi_term_ignores_time_filter(self, transcript: list[TranscriptSegment]) -> None:
        outcome = run_tiers(transcript, parse_query("budget high spend cut after 5"))
        assert outcome.tier is SearchTier.MULTI_TERM
        assert [s.start_time for s in outcome.segments] == [10, 20]

    def test_significant_terms_deduplicated(self, transcript: list[TranscriptSegment]) -> None:
        ctx = SearchContext(transcript, parse_query("Budget budget is up"))
        assert ctx.significant_terms == ["budget"]


class TestHeadline:
    def test_no_matches(self, transcript: list[TranscriptSegment]) -> None:
        parsed = parse_query("xylophone", {"startTime": 1000})
        outcome = run_tiers(transcript, parsed)
        assert headline(outcome, parsed, "Sync") == NO_MATCHES_MESSAGE

    def test_basic(self, transcript: list[TranscriptSegment]) -> None:
        parsed = parse_query("budget")
        outcome = run_tiers(transcript, parsed)
        assert headline(outcome, parsed, "Sync") == 'Found 2 results for "budget" in meeting "Sync".'

    def test_speaker_terms(self, transcript: list[TranscriptSegment]) -> None:
        parsed = parse_query("What did Alice say about the budget")
        outcome = run_tiers(transcript, parsed)
        assert headline(outcome, parsed, "Sync") == (
            'Found 1 segments where Alice mentioned "about the budget" in meeting "Sync".'
        )

    def test_multi_term(self, transcript: list[TranscriptSegment]) -> None:
        parsed = parse_query("budget high spend cut")
        outcome = run_tiers(transcript, parsed)
        assert headline(outcome, parsed, "Sync") == (
            'Found 2 segments related to "budget high spend cut" in meeting "Sync".'
        )

    def test_time_span(self, transcript: list[TranscriptSegment]) -> None:
        parsed = parse_query("xylophone")
        outcome = run_tiers(transcript, parsed)
        assert headline(outcome, parsed, "Sync") == (
            'Found 4 segments from 00:00 to 00:30 in meeting "Sync".'
        )


class TestOrderResults:
    def test_relevance_keeps_order(self, transcript: list[TranscriptSegment]) -> None:
        shuffled = [transcript[2], transcript[0]]
        assert order_results(shuffled, SortBy.RELEVANCE, 10) == shuffled

    def test_date(self, transcript: list[TranscriptSegment]) -> None:
        shuffled = [transcript[3], transcript[1], transcript[0]]
        result = order_results(shuffled, SortBy.DATE, 10)
        assert [s.start_time for s in result] == [0, 10, 30]

    def test_speaker(self, transcript: list[TranscriptSegment]) -> None:
        result = order_results(list(reversed(transcript)), SortBy.SPEAKER, 10)
        assert [s.speaker for s in result] == ["Alice", "Alice", "Bob", "Carol"]

    def test_limit_at_least_one(self, transcript: list[TranscriptSegment]) -> None:
        assert len(order_results(transcript, SortBy.RELEVANCE, 0)) == 1
        assert len(order_results(transcript, SortBy.RELEVANCE, 2)) == 2
