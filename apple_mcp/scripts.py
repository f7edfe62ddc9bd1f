"""
AppleScript templates used by the Contacts, Messages and Reminders backends.

Templates use ``$name`` placeholders. ``ScriptTemplate.render`` escapes every
string value before substitution, so callers never splice raw user input
into a script. Rendered scripts are ``Script`` instances and may be nested
inside other templates without being escaped a second time.
"""

import string
import textwrap
from datetime import datetime
from typing import Any

from apple_mcp.applescript import LIST_SEPARATOR


class Script(str):
    """A rendered, trusted AppleScript fragment."""


def escape_applescript_string(value: str) -> str:
    """Escape a value for use inside an AppleScript string literal."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


def _format_value(value: Any) -> str:
    if isinstance(value, Script):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return escape_applescript_string(value)
    raise TypeError(f"Cannot interpolate {type(value).__name__} into AppleScript")


class ScriptTemplate:
    """Parameterized AppleScript source."""

    def __init__(self, source: str):
        self.source = textwrap.dedent(source).strip("\n")
        self._template = string.Template(self.source)

    def render(self, **params: Any) -> Script:
        values = {key: _format_value(value) for key, value in params.items()}
        return Script(self._template.substitute(values))


# ---------------------------------------------------------------------------
# Shared handlers
# ---------------------------------------------------------------------------

# Replaces tabs and line breaks so one record always fits on one line.
SANITISE_HANDLER = """
on sanitise(txt)
    set AppleScript's text item delimiters to tab
    set parts to text items of txt
    set AppleScript's text item delimiters to " "
    set txt to parts as text
    set AppleScript's text item delimiters to linefeed
    set parts to text items of txt
    set AppleScript's text item delimiters to " "
    set txt to parts as text
    set AppleScript's text item delimiters to return
    set parts to text items of txt
    set AppleScript's text item delimiters to " "
    set txt to parts as text
    set AppleScript's text item delimiters to ""
    return txt
end sanitise
"""

ISO_DATE_HANDLER = """
on pad(n)
    return text -2 thru -1 of ("0" & (n as text))
end pad

on isoDate(d)
    if d is missing value then return ""
    set y to (year of d) as integer
    set mo to (month of d) as integer
    return (y as text) & "-" & my pad(mo) & "-" & my pad(day of d) & "T" & my pad(hours of d) & ":" & my pad(minutes of d) & ":" & my pad(seconds of d)
end isoDate
"""

REMINDER_LINE_HANDLER = """
on reminderLine(rem, listName, listId)
    tell application "Reminders"
        set remId to my sanitise(id of rem as text)
        set remName to my sanitise(name of rem as text)
        set remBody to ""
        try
            set b to body of rem
            if b is not missing value then set remBody to my sanitise(b as text)
        end try
        set remDue to ""
        try
            set remDue to my isoDate(due date of rem)
        end try
        set remCompleted to "false"
        if completed of rem then set remCompleted to "true"
        set remPriority to ""
        try
            set remPriority to (priority of rem) as text
        end try
        set remCreated to ""
        try
            set remCreated to my isoDate(creation date of rem)
        end try
        set remCompletedOn to ""
        try
            set remCompletedOn to my isoDate(completion date of rem)
        end try
    end tell
    return remId & tab & remName & tab & remBody & tab & remDue & tab & remCompleted & tab & remPriority & tab & remCreated & tab & remCompletedOn & tab & listName & tab & listId
end reminderLine
"""

JOIN_LINES = """
    set AppleScript's text item delimiters to linefeed
    set outputText to outputLines as text
    set AppleScript's text item delimiters to ""
    return outputText
"""

# Field order emitted by reminderLine.
REMINDER_FIELDS = [
    "id",
    "name",
    "notes",
    "due_date",
    "completed",
    "priority",
    "creation_date",
    "completion_date",
    "list_name",
    "list_id",
]

REMINDER_HANDLERS = SANITISE_HANDLER + ISO_DATE_HANDLER + REMINDER_LINE_HANDLER


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------

CONTACTS_ACCESS_CHECK = ScriptTemplate("""
tell application "Contacts"
    return name
end tell
""")

# One line per person with phones: "<name>\t<phone>|||<phone>..."
CONTACTS_ENUMERATION = ScriptTemplate(SANITISE_HANDLER + """
tell application "Contacts"
    set outputLines to {}
    set contactCount to 0
    set allPeople to people
    repeat with i from 1 to (count of allPeople)
        if contactCount >= $max_contacts then exit repeat
        try
            set currentPerson to item i of allPeople
            set personName to my sanitise(name of currentPerson as text)
            set personPhones to {}
            try
                repeat with phoneItem in (phones of currentPerson)
                    try
                        set phoneValue to value of phoneItem as text
                        if phoneValue is not "" then set end of personPhones to my sanitise(phoneValue)
                    end try
                end repeat
            end try
            if (count of personPhones) > 0 then
                set AppleScript's text item delimiters to "$list_separator"
                set phoneText to personPhones as text
                set AppleScript's text item delimiters to ""
                set end of outputLines to personName & tab & phoneText
                set contactCount to contactCount + 1
            end if
        end try
    end repeat
""" + JOIN_LINES + """
end tell
""")

# Exact (case-insensitive) name match; phones of the first person that has any.
CONTACTS_PHONE_SEARCH = ScriptTemplate("""
tell application "Contacts"
    set outputLines to {}
    set matchedPeople to (every person whose name is "$search_name")
    repeat with i from 1 to (count of matchedPeople)
        if i > $max_contacts then exit repeat
        try
            repeat with phoneItem in (phones of item i of matchedPeople)
                try
                    set phoneValue to value of phoneItem as text
                    if phoneValue is not "" then set end of outputLines to phoneValue
                end try
            end repeat
        end try
        if (count of outputLines) > 0 then exit repeat
    end repeat
""" + JOIN_LINES + """
end tell
""")

# Name of the first person holding exactly this phone value, or "".
CONTACTS_REVERSE_LOOKUP = ScriptTemplate("""
tell application "Contacts"
    set matchedPeople to (every person whose value of phones contains "$search_phone")
    if (count of matchedPeople) is 0 then return ""
    return name of item 1 of matchedPeople
end tell
""")


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

# iMessage first, SMS for phone-like recipients when iMessage fails.
MESSAGES_SEND = ScriptTemplate("""
tell application "Messages"
    set targetService to 1st service whose service type = iMessage
    try
        set targetBuddy to participant "$recipient" of targetService
        send "$body" to targetBuddy
        return "iMessage"
    on error iMessageErr
        if "$recipient" contains "@" then error "iMessage failed and SMS is not available for email addresses - " & iMessageErr
        try
            set smsService to first account whose service type = SMS and enabled is true
            send "$body" to participant "$recipient" of smsService
            return "SMS"
        on error smsErr
            error "Both iMessage and SMS failed - iMessage: " & iMessageErr & " SMS: " & smsErr
        end try
    end try
end tell
""")


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

# One line per list: "<name>\t<id>"
REMINDERS_LIST_LISTS = ScriptTemplate(SANITISE_HANDLER + """
tell application "Reminders"
    set outputLines to {}
    repeat with lst in every list
        set end of outputLines to my sanitise(name of lst as text) & tab & (id of lst as text)
    end repeat
""" + JOIN_LINES + """
end tell
""")

REMINDERS_ALL = ScriptTemplate(REMINDER_HANDLERS + """
tell application "Reminders"
    set outputLines to {}
    repeat with lst in every list
        set listName to my sanitise(name of lst as text)
        set listId to id of lst as text
        repeat with rem in (reminders of lst)
            if (count of outputLines) >= $limit then exit repeat
            set end of outputLines to my reminderLine(rem, listName, listId)
        end repeat
        if (count of outputLines) >= $limit then exit repeat
    end repeat
""" + JOIN_LINES + """
end tell
""")

REMINDERS_BY_LIST_ID = ScriptTemplate(REMINDER_HANDLERS + """
tell application "Reminders"
    set targetList to list id "$list_id"
    set listName to my sanitise(name of targetList as text)
    set listId to id of targetList as text
    set outputLines to {}
    repeat with rem in (reminders of targetList)
        if (count of outputLines) >= $limit then exit repeat
        set end of outputLines to my reminderLine(rem, listName, listId)
    end repeat
""" + JOIN_LINES + """
end tell
""")

REMINDERS_OPEN_APP = ScriptTemplate("""
tell application "Reminders" to activate
""")

# Built in local time, day reset first so month changes never overflow.
REMINDERS_DUE_DATE = ScriptTemplate("""
    set dueDate to current date
    set day of dueDate to 1
    set year of dueDate to $year
    set month of dueDate to $month
    set day of dueDate to $day
    set time of dueDate to $seconds
    set due date of newRem to dueDate
""")

REMINDERS_CREATE = ScriptTemplate(REMINDER_HANDLERS + """
tell application "Reminders"
    set requestedList to "$list_name"
    set targetList to default list
    if requestedList is not "" then
        try
            set targetList to list requestedList
        end try
    end if
    set newRem to make new reminder at targetList with properties {name:"$name"}
    if "$notes" is not "" then set body of newRem to "$notes"
$due_clause
    return my reminderLine(newRem, my sanitise(name of targetList as text), id of targetList as text)
end tell
""")


def contacts_enumeration(max_contacts: int) -> Script:
    return CONTACTS_ENUMERATION.render(max_contacts=int(max_contacts), list_separator=LIST_SEPARATOR)


def contacts_phone_search(name: str, max_contacts: int) -> Script:
    return CONTACTS_PHONE_SEARCH.render(search_name=name, max_contacts=int(max_contacts))


def contacts_reverse_lookup(phone: str) -> Script:
    return CONTACTS_REVERSE_LOOKUP.render(search_phone=phone)


def messages_send(recipient: str, body: str) -> Script:
    return MESSAGES_SEND.render(recipient=recipient, body=body)


def reminders_create(name: str, list_name: str = "", notes: str = "", due: datetime = None) -> Script:
    """Render the create script; ``due`` is interpreted in local time."""
    due_clause = Script("")
    if due is not None:
        due_clause = REMINDERS_DUE_DATE.render(
            year=due.year,
            month=due.month,
            day=due.day,
            seconds=due.hour * 3600 + due.minute * 60 + due.second,
        )
    return REMINDERS_CREATE.render(
        name=name,
        list_name=list_name or "",
        notes=notes or "",
        due_clause=due_clause,
    )
