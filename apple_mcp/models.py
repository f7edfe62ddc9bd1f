"""
Argument models for the contacts, messages and reminders tools.

Each tool's arguments are validated here before any backend is touched.
Messages and reminders arguments are tagged unions keyed on ``operation``,
so a variant only carries the fields its operation needs.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


class ToolArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class ContactsRequest(ToolArguments):
    name: Optional[str] = None


# ---------------------------------------------------------------------------
# messages
# ---------------------------------------------------------------------------

class SendMessage(ToolArguments):
    operation: Literal["send"]
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    message: str = Field(min_length=1)


class ReadMessages(ToolArguments):
    operation: Literal["read"]
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    limit: Optional[int] = Field(default=None, gt=0)


class ScheduleMessage(ToolArguments):
    operation: Literal["schedule"]
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    message: str = Field(min_length=1)
    scheduled_time: datetime = Field(alias="scheduledTime")

    @field_validator("scheduled_time")
    @classmethod
    def must_be_future(cls, value: datetime) -> datetime:
        now = datetime.now(timezone.utc) if value.tzinfo else datetime.now()
        if value <= now:
            raise ValueError("Cannot schedule message in the past")
        return value


class UnreadMessages(ToolArguments):
    operation: Literal["unread"]
    limit: Optional[int] = Field(default=None, gt=0)


MessagesRequest = Annotated[
    Union[SendMessage, ReadMessages, ScheduleMessage, UnreadMessages],
    Field(discriminator="operation"),
]


# ---------------------------------------------------------------------------
# reminders
# ---------------------------------------------------------------------------

class ListReminders(ToolArguments):
    operation: Literal["list"]


class SearchReminders(ToolArguments):
    operation: Literal["search"]
    search_text: str = Field(alias="searchText", min_length=1)


class OpenReminder(ToolArguments):
    operation: Literal["open"]
    search_text: str = Field(alias="searchText", min_length=1)


class CreateReminder(ToolArguments):
    operation: Literal["create"]
    name: str = Field(min_length=1)
    list_name: Optional[str] = Field(default=None, alias="listName")
    notes: Optional[str] = None
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")


class ListRemindersById(ToolArguments):
    operation: Literal["listById"]
    list_id: str = Field(alias="listId", min_length=1)
    props: Optional[List[str]] = None


RemindersRequest = Annotated[
    Union[ListReminders, SearchReminders, OpenReminder, CreateReminder, ListRemindersById],
    Field(discriminator="operation"),
]


REQUEST_ADAPTERS = {
    "contacts": TypeAdapter(ContactsRequest),
    "messages": TypeAdapter(MessagesRequest),
    "reminders": TypeAdapter(RemindersRequest),
}


# Union member tags pydantic puts in error locations
REQUEST_VARIANT_TAGS = {
    "send", "read", "schedule", "unread",
    "list", "search", "open", "create", "listById",
}


class InvalidArguments(Exception):
    """Tool arguments failed validation."""

    def __init__(self, tool: str, detail: str):
        self.tool = tool
        self.detail = detail
        super().__init__(f"Invalid arguments for {tool} tool: {detail}")


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()) if p not in REQUEST_VARIANT_TAGS)
        message = item.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def parse_arguments(tool: str, arguments: dict):
    """
    Validate raw tool arguments.

    Raises:
        KeyError: ``tool`` has no argument model
        InvalidArguments: the arguments do not fit the tool's model
    """
    adapter = REQUEST_ADAPTERS[tool]
    try:
        return adapter.validate_python(arguments)
    except ValidationError as e:
        raise InvalidArguments(tool, _describe(e))
