"""File-backed history of recently accessed recording bots."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from src.config import get_settings
from src.meetingbaas.auth import Session
from src.meetingbaas.models import MeetingData

logger = logging.getLogger(__name__)

MAX_RECORDS = 50
MAX_SESSION_BOTS = 5

TOPIC_KEYWORDS = ["budget", "project", "deadline", "timeline", "goals", "product"]


class BotRecord(BaseModel):
    """One remembered bot and how often it was looked at."""

    id: str
    name: str | None = None
    meeting_url: str | None = None
    meeting_type: str | None = None
    created_at: str | None = None
    last_accessed_at: str = ""
    access_count: int = 0
    creator: str | None = None
    participants: list[str] | None = None
    topics: list[str] | None = None
    extra: dict[str, Any] | None = None


class _StoreFile(BaseModel):
    recent_bots: list[BotRecord] = Field(default_factory=list)
    last_updated: str = ""


def _now() -> str:
    return datetime.now(UTC).isoformat()


class RecentBotsStore:
    """JSON file holding at most fifty bot records, most recent first.

    Every mutation rewrites the whole file under a lock. A missing or
    unreadable file starts an empty history.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> _StoreFile:
        if not self.path.exists():
            logger.info("No bot history at %s, starting fresh", self.path)
            return _StoreFile(last_updated=_now())
        try:
            data = _StoreFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("Could not load bot history from %s: %s", self.path, exc)
            return _StoreFile(last_updated=_now())
        logger.info("Loaded %d bot records from %s", len(data.recent_bots), self.path)
        return data

    def _save(self) -> None:
        self._data.last_updated = _now()
        self.path.write_text(self._data.model_dump_json(indent=2), encoding="utf-8")

    def track_bot(self, bot_id: str, **metadata: Any) -> BotRecord:
        """Record an access to *bot_id*, moving it to the front of the history.

        Args:
            bot_id: The bot UUID.
            **metadata: BotRecord fields to set or overwrite; None values are
                ignored.

        Returns:
            The updated record.
        """
        updates = {k: v for k, v in metadata.items() if v is not None}
        with self._lock:
            bots = self._data.recent_bots
            existing = next((b for b in bots if b.id == bot_id), None)
            if existing is not None:
                bots.remove(existing)
                record = existing.model_copy(
                    update={
                        **updates,
                        "last_accessed_at": _now(),
                        "access_count": existing.access_count + 1,
                    }
                )
            else:
                record = BotRecord(id=bot_id, **updates, last_accessed_at=_now(), access_count=1)
            bots.insert(0, record)
            del bots[MAX_RECORDS:]
            self._save()
        return record

    def get_recent_bots(self, limit: int = 5) -> list[BotRecord]:
        return self._data.recent_bots[:limit]

    def get_most_accessed_bots(self, limit: int = 5) -> list[BotRecord]:
        ranked = sorted(self._data.recent_bots, key=lambda b: b.access_count, reverse=True)
        return ranked[:limit]

    def get_bots_by_meeting_type(self, meeting_type: str) -> list[BotRecord]:
        wanted = meeting_type.lower()
        return [
            b for b in self._data.recent_bots if b.meeting_type and b.meeting_type.lower() == wanted
        ]

    def get_bot(self, bot_id: str) -> BotRecord | None:
        return next((b for b in self._data.recent_bots if b.id == bot_id), None)


@lru_cache(maxsize=1)
def get_recent_bots_store() -> RecentBotsStore:
    """Return the process-wide store at ``settings.recent_bots_path``."""
    return RecentBotsStore(get_settings().recent_bots_path)


def extract_bot_metadata(meeting: MeetingData) -> dict[str, Any]:
    """BotRecord fields derivable from a meeting payload."""
    transcript_text = " ".join(seg.text for seg in meeting.transcripts).lower()
    topics = [kw for kw in TOPIC_KEYWORDS if kw in transcript_text]
    participants = meeting.bot.extra.get("participants")
    return {
        "name": meeting.bot.name or None,
        "meeting_url": meeting.bot.meeting_url or None,
        "meeting_type": meeting.bot.meeting_type,
        "created_at": meeting.bot.created_at,
        "creator": meeting.bot.creator_email,
        "participants": participants if isinstance(participants, list) else None,
        "topics": topics or None,
        "extra": meeting.bot.extra or None,
    }


def record_bot_access(
    session: Session,
    bot_id: str,
    meeting: MeetingData | None = None,
    store: RecentBotsStore | None = None,
) -> Session:
    """Remember that *bot_id* was used and return the updated session.

    The returned session lists *bot_id* first among at most five recent
    bots. Failures writing the history are logged and otherwise ignored.
    """
    recent = (bot_id, *(b for b in session.recent_bot_ids if b != bot_id))
    updated = replace(session, recent_bot_ids=recent[:MAX_SESSION_BOTS])

    try:
        metadata = extract_bot_metadata(meeting) if meeting is not None else {}
        (store or get_recent_bots_store()).track_bot(bot_id, **metadata)
    except Exception as exc:
        logger.warning("Failed to track recent bot %s: %s", bot_id, exc)
    return updated


def dump_records(records: list[BotRecord]) -> str:
    """Records as an indented JSON array."""
    return json.dumps([r.model_dump(exclude_none=True) for r in records], indent=2)
