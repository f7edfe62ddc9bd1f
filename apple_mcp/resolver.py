"""
Fuzzy contact-name resolution over a directory snapshot.

The resolver is an ordered chain of heuristics, not a scored ranking: the
first strategy that matches any contact wins, and among the contacts it
matches the first one in snapshot order is returned.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("apple_mcp.resolver")

# Emoji and pictographic symbols, including hearts, variation selectors and ZWJ
PICTOGRAPH_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map symbols
    "\U0001F1E0-\U0001F1FF"  # flags
    "\U0001F900-\U0001F9FF"  # supplemental symbols and pictographs
    "\U0001FA70-\U0001FAFF"  # symbols and pictographs extended-A
    "\U00002600-\U000026FF"  # miscellaneous symbols
    "\U00002700-\U000027BF"  # dingbats
    "\U0000FE0E-\U0000FE0F"  # variation selectors
    "\U0000200D"             # zero width joiner
    "]+"
)

REPEATED_CHARS = re.compile(r"(.)\1+")

Strategy = Callable[[str, str], bool]


def normalize_name(name: str) -> str:
    """Lower-case, strip pictographs, collapse whitespace."""
    if not name:
        return ""
    name = PICTOGRAPH_PATTERN.sub("", name.lower())
    return re.sub(r"\s+", " ", name).strip()


def fold_repeats(text: str) -> str:
    """Collapse runs of the same character: 'jonnn' -> 'jon'."""
    return REPEATED_CHARS.sub(r"\1", text)


def _matches_as_word(text: str, term: str) -> bool:
    return any(word == term or word.startswith(term) for word in text.split())


def exact_match(candidate: str, query: str) -> bool:
    return candidate == query


def prefix_match(candidate: str, query: str) -> bool:
    return candidate.startswith(query)


def word_boundary_match(candidate: str, query: str) -> bool:
    # "dad" must not match "trinidad"
    return _matches_as_word(candidate, query)


def reverse_word_boundary_match(candidate: str, query: str) -> bool:
    return _matches_as_word(query, candidate)


def first_name_match(candidate: str, query: str) -> bool:
    first = candidate.split()[0]
    return (
        first == query
        or first.startswith(query)
        or query.startswith(first)
        or fold_repeats(first) == query
        or fold_repeats(query) == first
    )


def last_name_match(candidate: str, query: str) -> bool:
    last = candidate.split()[-1]
    return last == query or last.startswith(query)


def token_scan_match(candidate: str, query: str) -> bool:
    return any(
        word == query or word.startswith(query) or fold_repeats(word) == query
        for word in candidate.split()
    )


STRATEGIES: List[Tuple[str, Strategy]] = [
    ("exact", exact_match),
    ("prefix", prefix_match),
    ("word", word_boundary_match),
    ("reverse-word", reverse_word_boundary_match),
    ("first-name", first_name_match),
    ("last-name", last_name_match),
    ("token-scan", token_scan_match),
]


def resolve_name(query: str, directory: Dict[str, List[str]]) -> Optional[str]:
    """
    Return the directory key that best matches ``query``, or None.

    Args:
        query: Free-text name, e.g. "jon", "Smith", "Jonnn"
        directory: Snapshot mapping contact name -> phone numbers

    Returns:
        The matching contact name as it appears in ``directory``
    """
    normalized_query = normalize_name(query)
    if not normalized_query:
        return None

    candidates = []
    for name in directory:
        normalized = normalize_name(name)
        if normalized:
            candidates.append((name, normalized))

    for label, strategy in STRATEGIES:
        matches = [name for name, normalized in candidates if strategy(normalized, normalized_query)]
        if matches:
            logger.info(
                f"Found {len(matches)} matches using {label} strategy for \"{query}\": {', '.join(matches)}"
            )
            return matches[0]
    return None


def resolve_numbers(query: str, directory: Dict[str, List[str]]) -> List[str]:
    """Phone numbers of the contact ``query`` resolves to, or []."""
    name = resolve_name(query, directory)
    if name is None:
        return []
    return list(directory.get(name) or [])
