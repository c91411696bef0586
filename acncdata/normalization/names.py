"""Charity name normalization utilities."""

import re
from typing import Optional


# Legal form suffixes to standardize
LEGAL_SUFFIXES = {
    r"\bincorporated\b": "INC",
    r"\binc\b\.?": "INC",
    r"\blimited\b": "LTD",
    r"\bltd\b\.?": "LTD",
    r"\bproprietary\b": "PTY",
    r"\bpty\b\.?": "PTY",
    r"\bcompany\b": "CO",
    r"\bco\b\.?": "CO",
    r"\bassociation\b": "ASSN",
    r"\bassn\b\.?": "ASSN",
    r"\baust\b\.?": "AUSTRALIA",
    r"\baustralian\b": "AUSTRALIA",
}

# Words to remove (common filler words that don't help matching)
REMOVE_WORDS = {
    "the", "of", "and", "&", "for", "a", "an", "in",
}

# Common abbreviation expansions
ABBREVIATIONS = {
    "intl": "INTERNATIONAL",
    "int'l": "INTERNATIONAL",
    "natl": "NATIONAL",
    "svcs": "SERVICES",
    "svc": "SERVICE",
    "st": "SAINT",
    "ctr": "CENTRE",
    "center": "CENTRE",
    "comm": "COMMUNITY",
    "hosp": "HOSPITAL",
    "univ": "UNIVERSITY",
    "nsw": "NEW SOUTH WALES",
    "qld": "QUEENSLAND",
    "vic": "VICTORIA",
}


def normalize_charity_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize a charity name for matching purposes.

    Transformations:
    - Convert to uppercase
    - Standardize legal suffixes (Incorporated -> INC, Limited -> LTD)
    - Expand common abbreviations
    - Remove punctuation
    - Remove common filler words

    Args:
        name: Charity name as registered

    Returns:
        Normalized name, or None if input is None/empty
    """
    if not name:
        return None

    normalized = name.upper().strip()
    normalized = re.sub(r"\s+", " ", normalized)

    for pattern, replacement in LEGAL_SUFFIXES.items():
        normalized = re.sub(pattern, replacement, normalized, flags=re.IGNORECASE)

    words = normalized.split()
    words = [ABBREVIATIONS.get(w.lower().rstrip("."), w) for w in words]
    normalized = " ".join(words)

    # ST VINCENT'S == ST VINCENTS
    normalized = normalized.replace("'", "")
    normalized = re.sub(r"[.,;:!?\"()[\]{}/-]", " ", normalized)
    normalized = re.sub(r"\s*&\s*", " AND ", normalized)

    # Remove filler words (but not if it's the whole name)
    words = normalized.split()
    if len(words) > 1:
        kept = [w for w in words if w.lower() not in REMOVE_WORDS]
        words = kept or words
    normalized = " ".join(words)

    normalized = re.sub(r"\s+", " ", normalized).strip()

    return normalized if normalized else None
