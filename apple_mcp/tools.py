"""Tool definitions advertised to MCP clients."""

from typing import List

import mcp.types as types

CONTACTS_TOOL = types.Tool(
    name="contacts",
    description="Search and retrieve contacts from Apple Contacts app",
    inputSchema={
        "type": "object",
        "properties": {
            "name": {
                "type": "string",
                "description": "Name to search for (optional - if not provided, returns all contacts). "
                               "Can be partial name to search."
            }
        }
    }
)

MESSAGES_TOOL = types.Tool(
    name="messages",
    description="Interact with Apple Messages app - send, read, schedule messages and check unread messages",
    inputSchema={
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "description": "Operation to perform: 'send', 'read', 'schedule', or 'unread'",
                "enum": ["send", "read", "schedule", "unread"]
            },
            "phoneNumber": {
                "type": "string",
                "description": "Phone number to send message to (required for send, read, and schedule operations)"
            },
            "message": {
                "type": "string",
                "description": "Message to send (required for send and schedule operations)"
            },
            "limit": {
                "type": "number",
                "description": "Number of messages to read (optional, for read and unread operations)"
            },
            "scheduledTime": {
                "type": "string",
                "description": "ISO string of when to send the message (required for schedule operation)"
            }
        },
        "required": ["operation"]
    }
)

REMINDERS_TOOL = types.Tool(
    name="reminders",
    description="Search, create, and open reminders in Apple Reminders app",
    inputSchema={
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "description": "Operation to perform: 'list', 'search', 'open', 'create', or 'listById'",
                "enum": ["list", "search", "open", "create", "listById"]
            },
            "searchText": {
                "type": "string",
                "description": "Text to search for in reminders (required for search and open operations)"
            },
            "name": {
                "type": "string",
                "description": "Name of the reminder to create (required for create operation)"
            },
            "listName": {
                "type": "string",
                "description": "Name of the list to create the reminder in (optional for create operation)"
            },
            "listId": {
                "type": "string",
                "description": "ID of the list to get reminders from (required for listById operation)"
            },
            "props": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Properties to include in the reminders (optional for listById operation)"
            },
            "notes": {
                "type": "string",
                "description": "Additional notes for the reminder (optional for create operation)"
            },
            "dueDate": {
                "type": "string",
                "description": "Due date for the reminder in ISO format (optional for create operation)"
            }
        },
        "required": ["operation"]
    }
)

TOOLS: List[types.Tool] = [CONTACTS_TOOL, MESSAGES_TOOL, REMINDERS_TOOL]
