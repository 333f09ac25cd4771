"""Basic transcript search: substring match plus time and speaker filters."""

from __future__ import annotations

import logging

from src.meetingbaas.models import TranscriptSegment

logger = logging.getLogger(__name__)


def chronological(segments: list[TranscriptSegment]) -> list[TranscriptSegment]:
    """Segments sorted by start time; the API does not guarantee an order."""
    return sorted(segments, key=lambda s: s.start_time)


def search_transcript(segments: list[TranscriptSegment], query: str) -> list[TranscriptSegment]:
    """Return segments whose text contains *query*, case-insensitively."""
    needle = query.lower()
    return [seg for seg in segments if needle in seg.text.lower()]


def filter_by_time(
    segments: list[TranscriptSegment],
    start_time: float | None = None,
    end_time: float | None = None,
) -> list[TranscriptSegment]:
    """Keep segments lying entirely inside ``[start_time, end_time]``.

    A segment without an end time is assumed to last five seconds.
    """
    if start_time is None and end_time is None:
        return list(segments)

    result = []
    for seg in segments:
        if start_time is not None and seg.start_time < start_time:
            continue
        if end_time is not None and seg.effective_end_time > end_time:
            continue
        result.append(seg)
    return result


def known_speakers(segments: list[TranscriptSegment]) -> list[str]:
    """Distinct non-empty speaker names, stripped, in order of appearance."""
    seen: dict[str, None] = {}
    for seg in segments:
        name = seg.speaker.strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


def match_speakers(speaker: str, speakers: list[str]) -> list[str]:
    """Resolve a requested *speaker* against the meeting's *speakers*.

    An exact case-insensitive match wins. Otherwise a speaker matches when
    its name contains the request or the request contains its first name,
    so "Alex" finds "Alex Smith" and "Alex Smith" finds "Alex".

    Returns:
        Matching speaker names, possibly empty.
    """
    wanted = speaker.strip().lower()
    if not wanted:
        return []

    exact = [s for s in speakers if s.lower() == wanted]
    if exact:
        return exact[:1]

    fuzzy = []
    for name in speakers:
        lowered = name.lower()
        if wanted in lowered or lowered.split(" ")[0] in wanted:
            fuzzy.append(name)
    return fuzzy


def filter_by_speaker(segments: list[TranscriptSegment], speaker: str) -> list[TranscriptSegment]:
    """Keep segments spoken by whoever *speaker* resolves to."""
    matched = match_speakers(speaker, known_speakers(segments))
    if matched:
        logger.info("Speaker %r matched %s", speaker, ", ".join(matched))
        wanted = {name.lower() for name in matched}
        return [seg for seg in segments if seg.speaker.strip().lower() in wanted]

    # No known speaker resolved; fall back to a plain substring test.
    needle = speaker.strip().lower()
    return [seg for seg in segments if needle and needle in seg.speaker.lower()]


def filter_segments(
    segments: list[TranscriptSegment],
    start_time: float | None = None,
    end_time: float | None = None,
    speaker: str | None = None,
) -> list[TranscriptSegment]:
    """Apply the time filter, then the speaker filter when one is given."""
    result = filter_by_time(segments, start_time, end_time)
    if speaker:
        result = filter_by_speaker(result, speaker)
    return result


def with_context(
    matches: list[TranscriptSegment],
    segments: list[TranscriptSegment],
    radius: int = 1,
) -> list[tuple[TranscriptSegment, bool]]:
    """Interleave each match with up to *radius* neighbours on each side.

    Returns ``(segment, is_match)`` pairs without repeats, in the order the
    matches are given.
    """
    index = {id(seg): i for i, seg in enumerate(segments)}
    match_ids = {id(seg) for seg in matches}
    emitted: set[int] = set()
    result: list[tuple[TranscriptSegment, bool]] = []

    for match in matches:
        pos = index.get(id(match))
        if pos is None:
            window = [match]
        else:
            lo = max(0, pos - radius)
            window = segments[lo : pos + radius + 1]
        for seg in window:
            if id(seg) in emitted:
                continue
            emitted.add(id(seg))
            result.append((seg, id(seg) in match_ids))
    return result
