"""
Contacts.app backend: directory snapshots, name lookup and reverse phone lookup.
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

from thefuzz import fuzz, process

from apple_mcp import scripts
from apple_mcp.applescript import AppleScriptError, parse_lines, parse_records, run_applescript, split_list
from apple_mcp.config import Settings
from apple_mcp.phone import best_match, normalize_phone_number
from apple_mcp.resolver import normalize_name, resolve_numbers

logger = logging.getLogger("apple_mcp.contacts")

ACCESS_INSTRUCTIONS = (
    "Contacts access is required but not granted. Please:\n"
    "1. Open System Settings > Privacy & Security > Automation\n"
    "2. Find your terminal/app in the list and enable 'Contacts'\n"
    "3. Alternatively, open System Settings > Privacy & Security > Contacts\n"
    "4. Add your terminal/app to the allowed applications\n"
    "5. Restart your terminal and try again"
)

SUGGESTION_CUTOFF = 60


class ContactsAccessError(Exception):
    """Raised when the process may not talk to Contacts.app."""
    pass


class AccessStatus(NamedTuple):
    has_access: bool
    message: str


class ContactLookup(NamedTuple):
    numbers: List[str]
    suggestions: List[str]


class ContactsBackend:
    """Lookups against Contacts.app through the automation bridge."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def _run(self, script: str) -> str:
        return run_applescript(script, timeout=self.settings.script_timeout)

    def check_access(self) -> bool:
        try:
            self._run(scripts.CONTACTS_ACCESS_CHECK.render())
            return True
        except AppleScriptError as e:
            logger.error(f"Cannot access Contacts app: {e}")
            return False

    def request_access(self) -> AccessStatus:
        if self.check_access():
            return AccessStatus(True, "Contacts access is already granted.")
        return AccessStatus(False, ACCESS_INSTRUCTIONS)

    def _require_access(self) -> None:
        status = self.request_access()
        if not status.has_access:
            raise ContactsAccessError(status.message)

    def get_all_numbers(self) -> Dict[str, List[str]]:
        """
        Take a directory snapshot: contact name -> phone numbers.

        Only contacts with at least one phone number are included, at most
        ``max_contacts`` of them. Returns {} if Contacts cannot be read.
        """
        try:
            self._require_access()
        except ContactsAccessError as e:
            logger.error(f"Error getting all contacts: {e}")
            return {}
        return self._snapshot()

    def _snapshot(self) -> Dict[str, List[str]]:
        try:
            raw = self._run(scripts.contacts_enumeration(self.settings.max_contacts))
        except AppleScriptError as e:
            logger.error(f"Error getting all contacts: {e}")
            return {}

        directory: Dict[str, List[str]] = {}
        for record in parse_records(raw, ["name", "phones"]):
            name = record["name"]
            phones = split_list(record["phones"])
            if not name or not phones:
                continue
            if len(directory) >= self.settings.max_contacts:
                break
            directory.setdefault(name, []).extend(phones)
        return directory

    def find_number(self, name: str) -> List[str]:
        """
        Phone numbers for ``name``.

        An exact match found by Contacts itself wins; otherwise the fuzzy
        resolver runs over a fresh snapshot.

        Raises:
            ContactsAccessError: Contacts access has not been granted
        """
        return self._find(name)[0]

    def lookup(self, name: str, limit: int = 3) -> ContactLookup:
        """
        Phone numbers for ``name`` plus suggestions when nothing matched.

        Suggestions reuse the snapshot the resolver already took.

        Raises:
            ContactsAccessError: Contacts access has not been granted
        """
        numbers, directory = self._find(name)
        if numbers or directory is None:
            return ContactLookup(numbers, [])
        return ContactLookup([], self.suggest(name, limit, directory=directory))

    def _find(self, name: str) -> Tuple[List[str], Optional[Dict[str, List[str]]]]:
        self._require_access()

        if not name or not name.strip():
            return [], None

        search_name = name.strip()
        try:
            raw = self._run(scripts.contacts_phone_search(search_name, self.settings.max_contacts))
            numbers = parse_lines(raw)
        except AppleScriptError as e:
            logger.error(f"Exact contact search failed for \"{name}\": {e}")
            numbers = []

        if numbers:
            return numbers, None

        logger.info(f"No exact matches for \"{name}\", trying fuzzy search...")
        directory = self._snapshot()
        return resolve_numbers(search_name, directory), directory

    def find_contact_by_phone(self, phone_number: str) -> Optional[str]:
        """Contact name for a phone number, or None if unknown or unreadable."""
        if not phone_number or not phone_number.strip():
            return None

        try:
            self._require_access()
            search_number = normalize_phone_number(phone_number)
            result = self._run(scripts.contacts_reverse_lookup(phone_number.strip()))
            if result.strip():
                return result.strip()
        except (ContactsAccessError, AppleScriptError) as e:
            logger.error(f"Error finding contact by phone: {e}")
            return None

        return best_match(self.get_all_numbers(), search_number)

    def suggest(self, name: str, limit: int = 3, directory: Optional[Dict[str, List[str]]] = None) -> List[str]:
        """Closest contact names for a failed lookup, best first."""
        query = normalize_name(name)
        if not query:
            return []
        if directory is None:
            directory = self.get_all_numbers()
        names = list(directory)
        if not names:
            return []
        matches = process.extractBests(
            query,
            names,
            processor=normalize_name,
            scorer=fuzz.token_set_ratio,
            score_cutoff=SUGGESTION_CUTOFF,
            limit=limit,
        )
        return [match[0] for match in matches]
