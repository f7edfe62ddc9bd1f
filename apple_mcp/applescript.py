"""
Thin client for the macOS automation bridge (osascript).

Scripts run synchronously; a non-zero exit status, a timeout or a missing
``osascript`` binary all surface as ``AppleScriptError`` carrying the
diagnostic text. Results are plain strings, so the helpers below turn the
delimited output produced by ``apple_mcp.scripts`` into records.
"""

import logging
import subprocess
from typing import Dict, List, Optional

logger = logging.getLogger("apple_mcp.applescript")

FIELD_SEPARATOR = "\t"
LIST_SEPARATOR = "|||"


class AppleScriptError(Exception):
    """Raised when the automation bridge fails to run a script."""
    pass


def run_applescript(script: str, timeout: float = 10.0) -> str:
    """Run an AppleScript and return its stdout, stripped of line endings."""
    try:
        proc = subprocess.run(
            ['osascript', '-e', script],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise AppleScriptError(f"AppleScript timed out after {timeout:.1f}s")
    except FileNotFoundError:
        raise AppleScriptError("osascript not found - this server requires macOS")

    if proc.returncode != 0:
        message = (proc.stderr or "").strip() or f"osascript exited with status {proc.returncode}"
        logger.debug(f"AppleScript failed (rc={proc.returncode}): {message}")
        raise AppleScriptError(message)

    return (proc.stdout or "").strip("\r\n")


def split_list(value: Optional[str]) -> List[str]:
    """Split a LIST_SEPARATOR-joined field, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(LIST_SEPARATOR) if item.strip()]


def parse_records(raw: Optional[str], field_names: List[str]) -> List[Dict[str, str]]:
    """
    Parse tab-delimited script output into a list of dicts.

    Each line is one record. Lines with fewer fields than expected are padded
    with empty strings; extra fields are ignored. Blank lines are skipped.
    """
    if not raw:
        return []

    records = []
    expected = len(field_names)
    for line in raw.splitlines():
        if not line.strip():
            continue
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) < expected:
            parts += [""] * (expected - len(parts))
        records.append(dict(zip(field_names, (p.strip() for p in parts[:expected]))))
    return records


def parse_lines(raw: Optional[str]) -> List[str]:
    """Non-empty lines of script output."""
    if not raw:
        return []
    return [line.strip() for line in raw.splitlines() if line.strip()]


def coerce_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "yes", "1")


def coerce_optional(value: Optional[str]) -> Optional[str]:
    """Map AppleScript's empty and ``missing value`` results to None."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == "missing value":
        return None
    return value
