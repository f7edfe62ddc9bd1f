"""
Messages.app backend: send, read, schedule and list unread messages.

Sending goes through AppleScript; reading uses the Messages SQLite store
(~/Library/Messages/chat.db), opened read-only.
"""

import logging
import os
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from apple_mcp import scripts
from apple_mcp.applescript import run_applescript
from apple_mcp.config import Settings
from apple_mcp.phone import phone_variants

logger = logging.getLogger("apple_mcp.messages")

APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)
MAX_MESSAGE_LIMIT = 100

FULL_DISK_ACCESS_HINT = (
    "Please grant Full Disk Access permission to your terminal application in "
    "System Settings > Privacy & Security > Full Disk Access, then restart it."
)


class MessagesAccessError(Exception):
    """Raised when the Messages database cannot be read."""
    pass


@dataclass
class Message:
    content: str
    date: datetime
    sender: str
    is_from_me: bool


@dataclass
class ScheduledMessage:
    id: str
    recipient: str
    content: str
    scheduled_time: datetime


def apple_time_to_datetime(value: Any) -> Optional[datetime]:
    """Convert a chat.db timestamp (seconds or nanoseconds since 2001) to local time."""
    try:
        stamp = int(value)
    except (TypeError, ValueError):
        return None
    # Newer databases store nanoseconds
    seconds = stamp / 1_000_000_000 if abs(stamp) > 10 ** 11 else stamp
    try:
        return (APPLE_EPOCH + timedelta(seconds=seconds)).astimezone()
    except OverflowError:
        return None


def extract_body_from_attributed(attributed_body: Optional[bytes]) -> Optional[str]:
    """
    Pull plain text out of an ``attributedBody`` typedstream blob.

    Newer macOS versions leave ``message.text`` empty and only store the
    archived NSAttributedString; the text sits between the NSString marker
    and the following attribute dictionary.
    """
    if not attributed_body:
        return None

    try:
        decoded = bytes(attributed_body).decode("utf-8", errors="replace")
    except (TypeError, ValueError):
        return None

    if "NSString" not in decoded:
        return None
    decoded = decoded.split("NSString", 1)[1]
    for marker in ("NSDictionary", "NSNumber"):
        if marker in decoded:
            decoded = decoded.split(marker, 1)[0]
    # Strip the length prefix and trailing class bookkeeping bytes
    decoded = decoded[6:-12] if len(decoded) > 18 else decoded
    text = "".join(c for c in decoded if c.isprintable() or c in "\n\t").strip()
    return text or None


def _is_future(when: datetime) -> bool:
    now = datetime.now(timezone.utc) if when.tzinfo else datetime.now()
    return when > now


class MessagesBackend:
    """Messages.app operations."""

    def __init__(self, settings: Optional[Settings] = None, scheduler: Optional[BackgroundScheduler] = None):
        self.settings = settings or Settings()
        # Started on the first scheduled message
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)

    # ------------------------------------------------------------------
    # Database helpers
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        db_path = self.settings.messages_db_path
        if not os.path.exists(db_path):
            raise MessagesAccessError(
                f"Cannot access Messages database: not found at {db_path}. {FULL_DISK_ACCESS_HINT}"
            )
        try:
            conn = sqlite3.connect(f"{Path(db_path).resolve().as_uri()}?mode=ro", uri=True, timeout=2.0)
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.OperationalError as e:
            raise MessagesAccessError(f"Cannot access Messages database: {e}. {FULL_DISK_ACCESS_HINT}")

    def query_messages_db(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Run a read-only query against chat.db and return rows as dicts."""
        conn = self._connect()
        try:
            cursor = conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.OperationalError as e:
            # "unable to open"/"authorization denied" only show up on first read
            if "unable to open" in str(e) or "authoriz" in str(e):
                raise MessagesAccessError(f"Cannot access Messages database: {e}. {FULL_DISK_ACCESS_HINT}")
            raise
        finally:
            conn.close()

    def _limit(self, limit: Optional[int]) -> int:
        if limit is None:
            limit = self.settings.default_message_limit
        return max(1, min(int(limit), MAX_MESSAGE_LIMIT))

    @staticmethod
    def _to_message(row: Dict[str, Any]) -> Optional[Message]:
        content = row.get("text") or extract_body_from_attributed(row.get("attributedBody"))
        if not content:
            return None
        date = apple_time_to_datetime(row.get("date"))
        if date is None:
            date = APPLE_EPOCH.astimezone()
        return Message(
            content=content,
            date=date,
            sender=row.get("sender") or "Unknown",
            is_from_me=bool(row.get("is_from_me")),
        )

    def _rows_to_messages(self, rows: List[Dict[str, Any]]) -> List[Message]:
        messages = []
        for row in rows:
            message = self._to_message(row)
            if message is not None:
                messages.append(message)
        return messages

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def send_message(self, recipient: str, message: str) -> str:
        """Send ``message``; returns the service used ("iMessage" or "SMS")."""
        service = run_applescript(
            scripts.messages_send(recipient.strip(), message),
            timeout=self.settings.script_timeout,
        )
        logger.info(f"Message sent to {recipient} via {service or 'iMessage'}")
        return service or "iMessage"

    def read_messages(self, phone_number: str, limit: Optional[int] = None) -> List[Message]:
        """Most recent messages exchanged with ``phone_number`` (or email), newest first."""
        handle = phone_number.strip()
        identifiers = [handle] if "@" in handle else phone_variants(handle)
        if not identifiers:
            return []

        placeholders = ", ".join("?" for _ in identifiers)
        query = f"""
        SELECT
            m.ROWID,
            m.date,
            m.text,
            m.attributedBody,
            m.is_from_me,
            h.id AS sender
        FROM message m
        JOIN handle h ON m.handle_id = h.ROWID
        WHERE h.id IN ({placeholders})
        ORDER BY m.date DESC
        LIMIT ?
        """
        rows = self.query_messages_db(query, tuple(identifiers) + (self._limit(limit),))
        return self._rows_to_messages(rows)

    def get_unread_messages(self, limit: Optional[int] = None) -> List[Message]:
        """Unread inbound messages, newest first."""
        query = """
        SELECT
            m.ROWID,
            m.date,
            m.text,
            m.attributedBody,
            m.is_from_me,
            h.id AS sender
        FROM message m
        LEFT JOIN handle h ON m.handle_id = h.ROWID
        WHERE m.is_read = 0
            AND m.is_from_me = 0
            AND m.item_type = 0
        ORDER BY m.date DESC
        LIMIT ?
        """
        rows = self.query_messages_db(query, (self._limit(limit),))
        return self._rows_to_messages(rows)

    def schedule_message(self, recipient: str, message: str, scheduled_time: datetime) -> ScheduledMessage:
        """
        Send ``message`` to ``recipient`` at ``scheduled_time``.

        Delivery is a one-off job on the in-memory background scheduler, so a
        scheduled message is lost if the server stops first. Naive times are
        local time.

        Raises:
            ValueError: ``scheduled_time`` is not in the future
        """
        if not _is_future(scheduled_time):
            raise ValueError("Cannot schedule message in the past")

        scheduled = ScheduledMessage(
            id=uuid.uuid4().hex,
            recipient=recipient,
            content=message,
            scheduled_time=scheduled_time,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        self.scheduler.add_job(
            self._deliver,
            "date",
            run_date=scheduled_time,
            args=[scheduled],
            id=scheduled.id,
            misfire_grace_time=None,
        )
        logger.info(f"Scheduled message {scheduled.id} to {recipient} at {scheduled_time.isoformat()}")
        return scheduled

    def pending_scheduled(self) -> List[str]:
        """Ids of scheduled messages not yet delivered."""
        return [job.id for job in self.scheduler.get_jobs()]

    def close(self) -> None:
        """Stop the scheduler; undelivered messages are dropped."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def _deliver(self, scheduled: ScheduledMessage) -> None:
        try:
            self.send_message(scheduled.recipient, scheduled.content)
        except Exception as e:
            logger.error(f"Failed to deliver scheduled message {scheduled.id} to {scheduled.recipient}: {e}")
