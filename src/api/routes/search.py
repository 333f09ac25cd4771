"""Search tools: adaptive intelligent search plus the basic search primitives."""

from __future__ import annotations

import logging
import re
from typing import Any

from mcp.server.fastmcp import Context
from mcp.types import TextContent

from src.analysis_config import SortBy
from src.api.deps import client_for, guarded, load_meeting, require_session, track_access
from src.api.server import mcp
from src.formatting.transcript import format_segment, format_time, timestamped_url
from src.meetingbaas.auth import Session
from src.meetingbaas.errors import MeetingBaasError
from src.meetingbaas.models import MeetingData, TranscriptSegment
from src.retrieval.intelligent import (
    NO_MATCHES_MESSAGE,
    SearchOutcome,
    SearchTier,
    headline,
    order_results,
    run_tiers,
)
from src.retrieval.query_parser import ParsedQuery, parse_query
from src.retrieval.search import (
    chronological,
    filter_segments,
    search_transcript,
    with_context,
)

logger = logging.getLogger(__name__)

TOPIC_CONTEXT_RADIUS = 2


def _text_blocks(*texts: str) -> list[TextContent]:
    return [TextContent(type="text", text=t) for t in texts]


def search_blocks(
    outcome: SearchOutcome,
    parsed: ParsedQuery,
    meeting: MeetingData,
    max_results: int = 20,
    include_context: bool = False,
    sort_by: SortBy = SortBy.RELEVANCE,
) -> list[str]:
    """Render a search outcome as headline, watch link and segment listing."""
    if not outcome.segments:
        return [NO_MATCHES_MESSAGE]

    base_url = meeting.base_video_url
    listed = order_results(outcome.segments, sort_by, max_results)
    first_start = min(seg.start_time for seg in listed)

    if include_context:
        entries = with_context(listed, chronological(meeting.transcripts))
    else:
        entries = [(seg, True) for seg in listed]

    lines = []
    for seg, is_match in entries:
        if is_match:
            lines.append(
                f"{format_segment(seg)}\nSegment link: {timestamped_url(base_url, seg.start_time)}"
            )
        else:
            lines.append(f"(context) {format_segment(seg)}")

    return [
        headline(outcome, parsed, meeting.bot.name),
        f"Watch from beginning: {timestamped_url(base_url, first_start)}",
        "Individual segments:\n\n" + "\n\n".join(lines),
    ]


# -- intelligentSearch ---------------------------------------------------------


async def _intelligent_search(
    session: Session,
    query: str,
    bot_id: str,
    max_results: int,
    include_context: bool,
    sort_by: SortBy,
    filters: dict[str, Any] | None,
) -> list[str]:
    parsed = parse_query(query, filters)
    meeting = await load_meeting(session, bot_id)
    track_access(session, bot_id, meeting)
    outcome = run_tiers(meeting.transcripts, parsed)
    return search_blocks(outcome, parsed, meeting, max_results, include_context, sort_by)


@mcp.tool(
    name="intelligentSearch",
    description=(
        "Performs an intelligent search across meeting data, adapting to the query and "
        "available context. The query can mention speakers ('what did Alice say about "
        "pricing') and times ('after 10', 'between 5 and 8:30', in minutes)."
    ),
)
async def intelligent_search(
    query: str,
    bot_id: str,
    ctx: Context,
    max_results: int = 20,
    include_context: bool = True,
    sort_by: SortBy = SortBy.RELEVANCE,
    filters: dict[str, Any] | None = None,
) -> list[TextContent]:
    """Search one meeting, falling back through progressively looser strategies.

    Args:
        query: Natural-language search query.
        bot_id: ID of the bot that recorded the meeting.
        max_results: Maximum number of segments listed (1-50).
        include_context: Also list the segment before and after each match.
        sort_by: ``relevance``, ``date`` or ``speaker``.
        filters: Optional ``speaker``, ``startTime`` and ``endTime`` (seconds);
            these override values found in the query.
    """
    session = require_session(ctx)
    logger.info("Performing intelligent search for %r in bot %s", query, bot_id)
    result = await guarded(
        "searching meeting",
        _intelligent_search(
            session,
            query,
            bot_id,
            min(max(1, max_results), 50),
            include_context,
            SortBy(sort_by),
            filters,
        ),
    )
    if isinstance(result, str):
        return _text_blocks(result)
    return _text_blocks(*result)


# -- Basic search ----------------------------------------------------------------


async def _search_transcript(session: Session, bot_id: str, query: str) -> str:
    meeting = await load_meeting(session, bot_id)
    track_access(session, bot_id, meeting)
    results = search_transcript(chronological(meeting.transcripts), query)
    if not results:
        return f'No results found for "{query}"'
    listing = "\n\n".join(format_segment(seg) for seg in results)
    return f'Found {len(results)} results for "{query}":\n\n{listing}'


@mcp.tool(name="searchTranscript", description="Search through a meeting transcript for specific terms")
async def search_transcript_tool(bot_id: str, query: str, ctx: Context) -> str:
    session = require_session(ctx)
    logger.info("Searching transcript of bot %s for %r", bot_id, query)
    return await guarded("searching transcripts", _search_transcript(session, bot_id, query))


async def _search_video_segment(
    session: Session,
    bot_id: str,
    start_time: float | None,
    end_time: float | None,
    speaker: str | None,
) -> list[str]:
    meeting = await load_meeting(session, bot_id)
    track_access(session, bot_id, meeting)
    logger.info("Meeting speakers: %s", ", ".join(meeting.speakers))
    segments = filter_segments(chronological(meeting.transcripts), start_time, end_time, speaker)
    parsed = ParsedQuery(query="", speaker=speaker, start_time=start_time, end_time=end_time)
    outcome = SearchOutcome(tier=SearchTier.FALLBACK, segments=segments)
    return search_blocks(outcome, parsed, meeting, max_results=len(segments) or 1)


@mcp.tool(
    name="searchVideoSegment",
    description="Search for specific segments in a meeting recording by time or speaker",
)
async def search_video_segment(
    bot_id: str,
    ctx: Context,
    start_time: float | None = None,
    end_time: float | None = None,
    speaker: str | None = None,
) -> list[TextContent]:
    """List segments inside a time window (seconds) and/or by one speaker."""
    session = require_session(ctx)
    result = await guarded(
        "searching video segments",
        _search_video_segment(session, bot_id, start_time, end_time, speaker),
    )
    if isinstance(result, str):
        return _text_blocks(result)
    return _text_blocks(*result)


# -- Topics ----------------------------------------------------------------------


def highlight(text: str, term: str) -> str:
    """Wrap every case-insensitive occurrence of *term* in bold markers."""
    return re.sub(re.escape(term), lambda m: f"**{m.group(0)}**", text, flags=re.IGNORECASE)


async def _find_meeting_topic(session: Session, bot_id: str, topic: str) -> str:
    meeting = await load_meeting(session, bot_id)
    track_access(session, bot_id, meeting)

    segments = chronological(meeting.transcripts)
    matches = search_transcript(segments, topic)
    if not matches:
        return f'Topic "{topic}" was not discussed in this meeting.'

    with_neighbours = with_context(matches, segments, radius=TOPIC_CONTEXT_RADIUS)
    ordered = sorted((seg for seg, _ in with_neighbours), key=lambda s: s.start_time)
    listing = "\n\n".join(
        f"[{format_time(seg.start_time)}] {seg.speaker}: {highlight(seg.text, topic)}"
        for seg in ordered
    )
    return (
        f'Found topic "{topic}" in the meeting with context:\n\n{listing}'
        f"\n\nVideo URL: {meeting.video_url}"
    )


@mcp.tool(name="findMeetingTopic", description="Search for specific topics discussed in a meeting")
async def find_meeting_topic(bot_id: str, topic: str, ctx: Context) -> str:
    session = require_session(ctx)
    logger.info("Finding topic %r in bot %s", topic, bot_id)
    return await guarded("finding meeting topic", _find_meeting_topic(session, bot_id, topic))


# -- Cross-meeting search ------------------------------------------------------------


def _format_cross_meeting_hit(meeting: MeetingData, seg: TranscriptSegment) -> str:
    return (
        f"Bot: {meeting.bot.name}\n{format_segment(seg)}\n"
        f"View full meeting: {meeting.bot.meeting_url}"
    )


async def _search_by_type(session: Session, meeting_type: str, query: str, limit: int) -> str:
    wanted = meeting_type.lower()
    hits: list[tuple[MeetingData, TranscriptSegment]] = []

    async with client_for(session) as client:
        bots = await client.list_bots()
        matching = [
            bot
            for bot in bots
            if isinstance(bot.get("extra"), dict)
            and str(bot["extra"].get("meetingType") or "").lower() == wanted
        ]
        if not matching:
            return f'No meetings found with type "{meeting_type}"'

        for bot in matching[:limit]:
            bot_id = str(bot.get("uuid") or bot.get("bot_id") or "")
            try:
                meeting = await client.fetch_meeting_data(bot_id)
            except MeetingBaasError as exc:
                logger.error("Error searching bot %s: %s", bot_id, exc)
                continue
            track_access(session, bot_id, meeting)
            hits.extend((meeting, seg) for seg in search_transcript(meeting.transcripts, query))

    hits.sort(key=lambda hit: hit[1].start_time)
    hits = hits[:limit]
    if not hits:
        return f'No results found for "{query}" in "{meeting_type}" meetings'

    listing = "\n\n".join(_format_cross_meeting_hit(m, seg) for m, seg in hits)
    return f'Found {len(hits)} results for "{query}" in "{meeting_type}" meetings:\n\n{listing}'


@mcp.tool(
    name="searchTranscriptByType",
    description="Search through meeting transcripts of a specific meeting type",
)
async def search_transcript_by_type(
    meeting_type: str, query: str, ctx: Context, limit: int = 10
) -> str:
    """Search every meeting whose bot was tagged with ``extra.meetingType``."""
    session = require_session(ctx)
    logger.info("Searching %s meetings for %r", meeting_type, query)
    return await guarded(
        "searching transcripts by type",
        _search_by_type(session, meeting_type, query, min(max(1, limit), 50)),
    )
