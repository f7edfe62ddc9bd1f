"""
Phone number normalization and the ranked reverse-lookup rule set.
"""

import re
from typing import Dict, List, Optional

# Shortest digit run accepted for a containment match.
MIN_CONTAINMENT_DIGITS = 7

RANK_EXACT = 1
RANK_NATIONAL = 2
RANK_CONTAINS = 3


def normalize_phone_number(phone: str) -> str:
    """Keep digits and a leading '+', drop everything else."""
    if not phone:
        return ""
    phone = phone.strip()
    digits = re.sub(r"[^0-9]", "", phone)
    if phone.startswith("+") and digits:
        return "+" + digits
    return digits


def national_digits(phone: str) -> str:
    """Digits without '+' and without a leading NANP country code."""
    digits = normalize_phone_number(phone).lstrip("+")
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:]
    return digits


def phone_variants(phone: str) -> List[str]:
    """Forms a handle may be stored under, e.g. '5551234567', '+15551234567'."""
    normalized = normalize_phone_number(phone)
    digits = normalized.lstrip("+")
    if not digits:
        return []

    formats = [digits]
    if digits.startswith("1") and len(digits) > 10:
        formats.append(digits[1:])
    elif len(digits) == 10:
        formats.append("1" + digits)

    variants = []
    for fmt in formats + ["+" + f for f in formats]:
        if fmt not in variants:
            variants.append(fmt)
    return variants


def match_rank(candidate: str, target: str) -> Optional[int]:
    """
    Rank how well two phone numbers match; lower is better, None is no match.

    1. identical normalized numbers
    2. identical national numbers (country code and '+' ignored)
    3. one digit string contains the other, the shorter being at least
       MIN_CONTAINMENT_DIGITS long
    """
    a = normalize_phone_number(candidate)
    b = normalize_phone_number(target)
    if not a or not b:
        return None
    if a == b:
        return RANK_EXACT

    national_a = national_digits(a)
    national_b = national_digits(b)
    if national_a and national_a == national_b:
        return RANK_NATIONAL

    digits_a = a.lstrip("+")
    digits_b = b.lstrip("+")
    shorter, longer = sorted((digits_a, digits_b), key=len)
    if len(shorter) >= MIN_CONTAINMENT_DIGITS and shorter in longer:
        return RANK_CONTAINS
    return None


def best_match(directory: Dict[str, List[str]], phone: str) -> Optional[str]:
    """Name of the best-ranked contact for ``phone``; first encountered wins ties."""
    best_name = None
    best_rank = None
    for name, numbers in directory.items():
        for number in numbers:
            rank = match_rank(number, phone)
            if rank is None:
                continue
            if best_rank is None or rank < best_rank:
                best_name, best_rank = name, rank
                if rank == RANK_EXACT:
                    return best_name
    return best_name
