"""
US state code helpers.

Subscribers pick a state focus either by two-letter code or by name;
``ALL_STATES`` means federal plus every state.
"""

from typing import Optional

ALL_STATES = "all"

STATE_NAMES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia", "FL": "Florida", "GA": "Georgia", "HI": "Hawaii",
    "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine",
    "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}

_NAME_TO_CODE = {name.lower(): code for code, name in STATE_NAMES.items()}

# Older rows stored the national focus as "US"
_ALL_ALIASES = {"all", "us", "usa", "national", "federal", "all states"}


def normalize_state_code(value: Optional[str]) -> Optional[str]:
    """
    Normalize a state focus.

    Returns:
        Upper-case two-letter code, ``ALL_STATES`` for national focus,
        or None when the value is empty or not a known state
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    lowered = cleaned.lower()

    if lowered in _ALL_ALIASES:
        return ALL_STATES
    if cleaned.upper() in STATE_NAMES:
        return cleaned.upper()
    return _NAME_TO_CODE.get(lowered)


def is_all_states(state_focus: Optional[str]) -> bool:
    """True when the focus covers every state (unset focus included)."""
    return not state_focus or state_focus.strip().lower() in _ALL_ALIASES
