"""
Runtime settings for the Apple MCP server.

Every field can be overridden with an ``APPLE_MCP_<FIELD>`` environment
variable; a ``.env`` file in the working directory is loaded first if present.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "APPLE_MCP_"


def _default_messages_db() -> str:
    return os.path.join(os.path.expanduser("~"), "Library/Messages/chat.db")


class Settings(BaseModel):
    # Server identity
    server_name: str = "apple-mcp"
    log_level: str = "INFO"

    # Contacts
    max_contacts: int = Field(default=1000, gt=0)  # cap on contacts read per script run

    # Automation bridge
    script_timeout: float = Field(default=10.0, gt=0)  # seconds per osascript call
    load_timeout: float = Field(default=5.0, gt=0)  # eager-load time limit at startup

    # Messages
    messages_db_path: str = Field(default_factory=_default_messages_db)
    default_message_limit: int = Field(default=10, gt=0)

    # Reminders
    max_reminders: int = Field(default=500, gt=0)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Build settings from the environment, after loading ``.env``."""
        load_dotenv(dotenv_path=str(env_file) if env_file else None, override=False)

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)
