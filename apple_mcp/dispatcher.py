"""
Tool dispatch: validate arguments, call the backend, format the reply.

``ToolDispatcher.dispatch`` never raises. Every outcome, including unknown
tools and bad arguments, comes back as a ``ToolResponse``.
"""

import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from apple_mcp.loader import InitResult
from apple_mcp.models import (
    ContactsRequest,
    CreateReminder,
    InvalidArguments,
    ListReminders,
    ListRemindersById,
    OpenReminder,
    ReadMessages,
    ScheduleMessage,
    SearchReminders,
    SendMessage,
    UnreadMessages,
    parse_arguments,
)

logger = logging.getLogger("apple_mcp.dispatcher")

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ERROR_PREFIXES = {
    "contacts": "Error accessing contacts",
    "messages": "Error with messages operation",
    "reminders": "Error in reminders tool",
}


class ToolResponse(BaseModel):
    text: str
    is_error: bool = False
    data: Optional[Dict[str, Any]] = None


def error_response(text: str) -> ToolResponse:
    return ToolResponse(text=text, is_error=True)


def classify_error(tool: str, error: Exception) -> ToolResponse:
    """Permission problems pass through untouched; anything else gets tool context."""
    message = str(error) or error.__class__.__name__
    if "access" in message:
        return error_response(message)
    return error_response(f"{ERROR_PREFIXES[tool]}: {message}")


class ToolDispatcher:
    """Routes tool calls to the contacts, messages and reminders backends."""

    def __init__(self, init: InitResult):
        self.init = init
        self.loader = init.loader
        self._handlers: Dict[str, Callable[[Any], ToolResponse]] = {
            "contacts": self._contacts,
            "messages": self._messages,
            "reminders": self._reminders,
        }

    def dispatch(self, name: str, arguments: Optional[dict]) -> ToolResponse:
        handler = self._handlers.get(name)
        if handler is None:
            return error_response(f"Unknown tool: {name}")
        if arguments is None:
            return error_response("Error: No arguments provided")

        try:
            request = parse_arguments(name, arguments)
        except InvalidArguments as e:
            logger.warning(f"Rejected {name} call: {e}")
            return error_response(f"Error: {e}")

        try:
            return handler(request)
        except Exception as e:
            logger.error(f"Error calling tool {name}: {e}")
            return classify_error(name, e)

    # ------------------------------------------------------------------
    # contacts
    # ------------------------------------------------------------------

    def _contacts(self, request: ContactsRequest) -> ToolResponse:
        contacts = self.loader.get("contacts")

        if request.name:
            result = contacts.lookup(request.name)
            if result.numbers:
                return ToolResponse(text=f"{request.name}: {', '.join(result.numbers)}")

            text = (
                f"No contact found for \"{request.name}\". "
                "Try a different name or use no name parameter to list all contacts."
            )
            if result.suggestions:
                text += f"\nDid you mean: {', '.join(result.suggestions)}?"
            return ToolResponse(text=text)

        directory = contacts.get_all_numbers()
        if not directory:
            return ToolResponse(
                text="No contacts found in the address book. "
                     "Please make sure you have granted access to Contacts."
            )

        lines = [f"{name}: {', '.join(phones)}" for name, phones in directory.items() if phones]
        if not lines:
            return ToolResponse(
                text="Found contacts but none have phone numbers. Try searching by name to see more details."
            )
        return ToolResponse(text=f"Found {len(directory)} contacts:\n\n" + "\n".join(lines))

    # ------------------------------------------------------------------
    # messages
    # ------------------------------------------------------------------

    def _messages(self, request) -> ToolResponse:
        messages = self.loader.get("messages")

        if isinstance(request, SendMessage):
            messages.send_message(request.phone_number, request.message)
            return ToolResponse(text=f"Message sent to {request.phone_number}")

        if isinstance(request, ReadMessages):
            found = messages.read_messages(request.phone_number, request.limit)
            if not found:
                return ToolResponse(text="No messages found")
            return ToolResponse(text="\n".join(
                f"[{msg.date.strftime(DATE_FORMAT)}] {'Me' if msg.is_from_me else msg.sender}: {msg.content}"
                for msg in found
            ))

        if isinstance(request, ScheduleMessage):
            scheduled = messages.schedule_message(request.phone_number, request.message, request.scheduled_time)
            return ToolResponse(
                text=f"Message scheduled to be sent to {request.phone_number} "
                     f"at {scheduled.scheduled_time.isoformat()}"
            )

        if isinstance(request, UnreadMessages):
            return self._unread(messages, request)

        raise ValueError(f"Unknown operation: {request.operation}")

    def _unread(self, messages, request: UnreadMessages) -> ToolResponse:
        unread = messages.get_unread_messages(request.limit)
        if not unread:
            return ToolResponse(text="No unread messages found")

        contacts = self.loader.get("contacts")
        names: Dict[str, str] = {}
        entries = []
        for msg in unread:
            entries.append(
                f"[{msg.date.strftime(DATE_FORMAT)}] From {self._display_name(contacts, msg, names)}:\n{msg.content}"
            )
        return ToolResponse(text=f"Found {len(unread)} unread message(s):\n" + "\n\n".join(entries))

    @staticmethod
    def _display_name(contacts, msg, cache: Dict[str, str]) -> str:
        if msg.is_from_me:
            return "Me"
        if msg.sender not in cache:
            cache[msg.sender] = contacts.find_contact_by_phone(msg.sender) or msg.sender
        return cache[msg.sender]

    # ------------------------------------------------------------------
    # reminders
    # ------------------------------------------------------------------

    def _reminders(self, request) -> ToolResponse:
        reminders = self.loader.get("reminders")

        if isinstance(request, ListReminders):
            lists = reminders.get_all_lists()
            items = reminders.get_all_reminders()
            return ToolResponse(
                text=f"Found {len(lists)} lists and {len(items)} reminders.",
                data={
                    "success": True,
                    "lists": [asdict(item) for item in lists],
                    "reminders": _to_dicts(items),
                },
            )

        if isinstance(request, SearchReminders):
            results = reminders.search_reminders(request.search_text)
            text = (
                f"Found {len(results)} reminders matching \"{request.search_text}\"."
                if results else f"No reminders found matching \"{request.search_text}\"."
            )
            return ToolResponse(text=text, data={"success": True, "reminders": _to_dicts(results)})

        if isinstance(request, OpenReminder):
            result = reminders.open_reminder(request.search_text)
            if result["success"]:
                text = f"Opened Reminders app. Found reminder: {result['reminder']['name']}"
            else:
                text = result["message"]
            return ToolResponse(text=text, data=result)

        if isinstance(request, CreateReminder):
            created = reminders.create_reminder(
                request.name,
                list_name=request.list_name,
                notes=request.notes,
                due_date=request.due_date,
            )
            text = f"Created reminder \"{created.name}\""
            if request.list_name:
                text += f" in list \"{request.list_name}\""
            return ToolResponse(text=text + ".", data={"success": True, "reminder": created.to_dict()})

        if isinstance(request, ListRemindersById):
            results = reminders.get_reminders_from_list_by_id(request.list_id, request.props)
            text = (
                f"Found {len(results)} reminders in list with ID \"{request.list_id}\"."
                if results else f"No reminders found in list with ID \"{request.list_id}\"."
            )
            return ToolResponse(text=text, data={"success": True, "reminders": results})

        return error_response("Unknown operation")


def _to_dicts(items: List[Any]) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in items]
