"""Link-sharing tools and automatic key-moment discovery."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import Context

from src.analysis_config import Granularity
from src.api.deps import guarded, load_meeting, require_session, track_access
from src.api.models import MeetingSegmentInput
from src.api.server import mcp
from src.extraction.key_moments import extract_key_moments
from src.formatting.links import LinkSegment, create_meeting_segments_list, create_shareable_link
from src.meetingbaas.auth import Session

logger = logging.getLogger(__name__)

CHECK_BOT_HINT = ". Please check that the bot ID is correct."
DEFAULT_TITLE = "Meeting Recording"


async def _shareable_link(
    session: Session,
    bot_id: str,
    timestamp: float | None,
    title: str | None,
    speaker_name: str | None,
    description: str | None,
) -> str:
    # Fetching the meeting verifies that the bot exists
    await load_meeting(session, bot_id)
    return create_shareable_link(
        bot_id,
        title=title,
        timestamp=timestamp,
        speaker_name=speaker_name,
        description=description,
    )


@mcp.tool(
    name="shareableMeetingLink",
    description="Generate a shareable link to a specific moment in a meeting recording",
)
async def shareable_meeting_link(
    bot_id: str,
    ctx: Context,
    timestamp: float | None = None,
    title: str | None = None,
    speaker_name: str | None = None,
    description: str | None = None,
) -> str:
    session = require_session(ctx)
    logger.info("Generating shareable meeting link for bot %s", bot_id)
    return await guarded(
        "generating shareable link",
        _shareable_link(session, bot_id, timestamp, title, speaker_name, description),
        hint=CHECK_BOT_HINT,
    )


async def _share_segments(session: Session, bot_id: str, segments: list[MeetingSegmentInput]) -> str:
    await load_meeting(session, bot_id)
    return create_meeting_segments_list(
        bot_id,
        [LinkSegment(s.timestamp, s.description, s.speaker) for s in segments],
    )


@mcp.tool(
    name="shareMeetingSegments",
    description="Generate a list of links to important moments in a meeting",
)
async def share_meeting_segments(
    bot_id: str, segments: list[MeetingSegmentInput], ctx: Context
) -> str:
    session = require_session(ctx)
    logger.info("Sharing %d meeting segments for bot %s", len(segments), bot_id)
    return await guarded(
        "generating meeting segments",
        _share_segments(session, bot_id, segments),
        hint=CHECK_BOT_HINT,
    )


async def _find_key_moments(
    session: Session,
    bot_id: str,
    meeting_title: str | None,
    topics: list[str] | None,
    max_moments: int,
    granularity: Granularity,
    auto_detect_topics: bool,
) -> str:
    meeting = await load_meeting(session, bot_id)
    track_access(session, bot_id, meeting)

    title = meeting_title or meeting.bot.name or DEFAULT_TITLE
    if not meeting.transcripts:
        return (
            f'No transcript found for meeting "{title}". You can still view the recording:'
            f"\n\n{create_shareable_link(bot_id, title=title)}"
        )

    report = extract_key_moments(
        meeting.transcripts,
        topics=topics,
        max_moments=max_moments,
        granularity=granularity,
        auto_detect_topics=auto_detect_topics,
    )
    if not report.moments:
        return (
            f'No key moments found in meeting "{title}". You can view the full recording:'
            f"\n\n{create_shareable_link(bot_id, title=title)}"
        )

    result = f"# Key Moments from {title}\n\n"
    if report.topics:
        bullets = "\n".join(f"- {topic}" for topic in report.topics)
        result += f"## Main Topics Discussed\n{bullets}\n\n"

    result += create_meeting_segments_list(
        bot_id,
        [LinkSegment(m.timestamp, m.description, m.speaker) for m in report.moments],
    )
    return result


@mcp.tool(
    name="findKeyMoments",
    description=(
        "Automatically find and share key moments and topics from a meeting recording "
        "with configurable granularity"
    ),
)
async def find_key_moments(
    bot_id: str,
    ctx: Context,
    meeting_title: str | None = None,
    topics: list[str] | None = None,
    max_moments: int = 5,
    granularity: Granularity = Granularity.MEDIUM,
    auto_detect_topics: bool = True,
    initial_chunk_size: int = 1200,
) -> str:
    """Find the most important moments of a meeting and link to each one.

    Args:
        bot_id: ID of the bot that recorded the meeting.
        meeting_title: Title shown in the report; defaults to the bot name.
        topics: Topics to list ahead of the detected ones.
        max_moments: Maximum number of moments.
        granularity: ``high``, ``medium`` or ``low`` topic detail.
        auto_detect_topics: Detect topics from the transcript.
        initial_chunk_size: Accepted for compatibility; chunking always
            uses five-minute windows.
    """
    session = require_session(ctx)
    logger.info(
        "Finding key moments in bot %s (granularity=%s, max=%d, initial_chunk_size=%d)",
        bot_id,
        granularity,
        max_moments,
        initial_chunk_size,
    )
    return await guarded(
        "finding key moments",
        _find_key_moments(
            session,
            bot_id,
            meeting_title,
            topics,
            max_moments,
            Granularity(granularity),
            auto_detect_topics,
        ),
        hint=CHECK_BOT_HINT,
    )
