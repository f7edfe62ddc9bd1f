"""
Reminders.app backend.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from apple_mcp import scripts
from apple_mcp.applescript import coerce_bool, coerce_optional, parse_records, run_applescript
from apple_mcp.config import Settings

logger = logging.getLogger("apple_mcp.reminders")

# Keys always returned by get_reminders_from_list_by_id
ALWAYS_INCLUDED_PROPS = ("name", "id")

# Reminders.app property names accepted in place of our field names
PROP_ALIASES = {
    "body": "notes",
    "dueDate": "due_date",
    "creationDate": "creation_date",
    "completionDate": "completion_date",
    "listName": "list_name",
    "listId": "list_id",
}


@dataclass
class ReminderList:
    name: str
    id: str


@dataclass
class Reminder:
    name: str
    id: str = ""
    notes: Optional[str] = None
    due_date: Optional[str] = None
    completed: bool = False
    priority: int = 0
    creation_date: Optional[str] = None
    completion_date: Optional[str] = None
    list_name: Optional[str] = None
    list_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_reminder(record: Dict[str, str]) -> Reminder:
    return Reminder(
        name=record.get("name", ""),
        id=record.get("id", ""),
        notes=coerce_optional(record.get("notes")),
        due_date=coerce_optional(record.get("due_date")),
        completed=coerce_bool(record.get("completed")),
        priority=_to_int(record.get("priority")),
        creation_date=coerce_optional(record.get("creation_date")),
        completion_date=coerce_optional(record.get("completion_date")),
        list_name=coerce_optional(record.get("list_name")),
        list_id=coerce_optional(record.get("list_id")),
    )


class RemindersBackend:
    """Reminders.app operations through the automation bridge."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def _run(self, script: str) -> str:
        return run_applescript(script, timeout=self.settings.script_timeout)

    def _fetch(self, script: str) -> List[Reminder]:
        records = parse_records(self._run(script), scripts.REMINDER_FIELDS)
        return [_to_reminder(record) for record in records if record.get("name")]

    def get_all_lists(self) -> List[ReminderList]:
        records = parse_records(self._run(scripts.REMINDERS_LIST_LISTS.render()), ["name", "id"])
        return [ReminderList(name=r["name"], id=r["id"]) for r in records if r["name"]]

    def get_all_reminders(self) -> List[Reminder]:
        return self._fetch(scripts.REMINDERS_ALL.render(limit=self.settings.max_reminders))

    def search_reminders(self, search_text: str) -> List[Reminder]:
        """Reminders whose name or notes contain ``search_text`` (case-insensitive)."""
        needle = search_text.strip().lower()
        if not needle:
            return []
        return [
            reminder for reminder in self.get_all_reminders()
            if needle in reminder.name.lower() or needle in (reminder.notes or "").lower()
        ]

    def open_reminder(self, search_text: str) -> Dict[str, Any]:
        """
        Bring Reminders.app to the front and report the first matching reminder.

        Returns:
            {"success": bool, "message": str, "reminder": dict (on success)}
        """
        matches = self.search_reminders(search_text)
        if not matches:
            return {"success": False, "message": "No matching reminders found"}

        self._run(scripts.REMINDERS_OPEN_APP.render())
        reminder = matches[0]
        return {
            "success": True,
            "message": "Reminders app opened",
            "reminder": reminder.to_dict(),
        }

    def create_reminder(
        self,
        name: str,
        list_name: Optional[str] = None,
        notes: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> Reminder:
        """Create a reminder; an unknown or missing list falls back to the default list."""
        if due_date is not None and due_date.tzinfo is not None:
            due_date = due_date.astimezone().replace(tzinfo=None)

        reminders = self._fetch(scripts.reminders_create(name, list_name or "", notes or "", due_date))
        if reminders:
            created = reminders[0]
        else:
            logger.warning(f"Reminders returned no record for new reminder \"{name}\"")
            created = Reminder(name=name, notes=notes, list_name=list_name)
            if due_date is not None:
                created.due_date = due_date.isoformat()
        logger.info(f"Created reminder \"{created.name}\" in list {created.list_name or 'default'}")
        return created

    def get_reminders_from_list_by_id(self, list_id: str, props: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """
        Reminders of one list as dicts.

        Args:
            list_id: Reminders list identifier
            props: Keys to keep in each dict; unknown keys are ignored and
                   "name" and "id" are always kept. None keeps everything.
        """
        reminders = self._fetch(
            scripts.REMINDERS_BY_LIST_ID.render(list_id=list_id, limit=self.settings.max_reminders)
        )
        results = [reminder.to_dict() for reminder in reminders]
        if not props:
            return results

        wanted = {PROP_ALIASES.get(prop, prop) for prop in props} | set(ALWAYS_INCLUDED_PROPS)
        return [{key: value for key, value in item.items() if key in wanted} for item in results]
