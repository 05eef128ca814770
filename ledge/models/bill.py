"""
Bill domain models.

Represents legislation as fetched from Congress.gov (federal) and
LegiScan (state), before synthesis and persistence.

Responsibility: Normalized bill entities and external identifier helpers
"""

import re
from typing import Optional, List, Tuple
from pydantic import BaseModel, ConfigDict, Field

BILL_ID_PATTERN = re.compile(r"^([A-Z]+)(\d+)-(\d+)$", re.IGNORECASE)

STATE_BILL_PREFIX = "STATE-"

CONGRESS_GOV_TYPE_PATHS = {
    "HR": "house-bill",
    "S": "senate-bill",
    "HRES": "house-resolution",
    "SRES": "senate-resolution",
    "HJRES": "house-joint-resolution",
    "SJRES": "senate-joint-resolution",
    "HCONRES": "house-concurrent-resolution",
    "SCONRES": "senate-concurrent-resolution",
}


def make_bill_id(bill_type: str, number: str, congress: int) -> str:
    """Build a federal bill id, e.g. ("HR", "1234", 119) -> "HR1234-119"."""
    return f"{bill_type.upper()}{number}-{congress}"


def parse_bill_id(bill_id: str) -> Optional[Tuple[str, str, int]]:
    """
    Split a federal bill id into (type, number, congress).

    Returns:
        Tuple with lower-case type as used in API paths, or None for
        state ids and malformed values
    """
    match = BILL_ID_PATTERN.match(bill_id or "")
    if not match:
        return None
    bill_type, number, congress = match.groups()
    return bill_type.lower(), number, int(congress)


def congress_gov_url(congress: int, bill_type: str, number: str) -> str:
    """Public congress.gov page for a bill."""
    path = CONGRESS_GOV_TYPE_PATHS.get(bill_type.upper(), "house-bill")
    return f"https://www.congress.gov/bill/{congress}th-congress/{path}/{number}"


class LatestAction(BaseModel):
    """Most recent floor or committee action on a bill."""

    model_config = ConfigDict(populate_by_name=True)

    action_date: str = Field(default="", alias="actionDate")
    text: str = Field(default="")

    def to_record(self) -> dict:
        """JSON shape stored in ``legislation.latest_action``."""
        return {"actionDate": self.action_date, "text": self.text}


class Member(BaseModel):
    """Sponsor or cosponsor of a federal bill."""

    name: str
    bioguide_id: Optional[str] = None
    state: Optional[str] = None
    party: Optional[str] = None
    sponsorship_date: Optional[str] = None


class Bill(BaseModel):
    """
    Federal bill as returned by Congress.gov (list entry merged with detail).

    Natural key: ``bill_id`` (``{TYPE}{NUMBER}-{CONGRESS}``)
    """

    bill_id: str = Field(description="External identifier, e.g. 'HR1234-119'")
    title: str
    congress: int = Field(ge=1)
    type: str = Field(description="Bill type code, e.g. 'HR', 'S', 'HRES'")
    number: str
    origin_chamber: Optional[str] = None
    update_date: Optional[str] = None
    introduced_date: Optional[str] = None
    url: Optional[str] = Field(default=None, description="Congress.gov API url")
    congress_gov_url: Optional[str] = None
    latest_action: Optional[LatestAction] = None
    sponsors: List[Member] = Field(default_factory=list)
    cosponsors: List[Member] = Field(default_factory=list)

    @property
    def primary_sponsor(self) -> Optional[Member]:
        return self.sponsors[0] if self.sponsors else None


class StateBill(BaseModel):
    """State bill as returned by LegiScan."""

    legiscan_id: int = Field(description="LegiScan numeric bill id")
    bill_number: str = Field(description="State bill number, e.g. 'SB 123'")
    title: str
    description: str = ""
    state: str = Field(min_length=2, max_length=2)
    status_date: Optional[str] = None
    url: Optional[str] = None
    text_url: Optional[str] = None
    last_action: str = ""
    last_action_date: str = ""
    session_id: int = 0
    doc_id: Optional[int] = Field(default=None, description="Newest text document id")

    @property
    def bill_id(self) -> str:
        """Globally unique id used in the legislation table."""
        return f"{STATE_BILL_PREFIX}{self.state.upper()}-{self.legiscan_id}"

    @property
    def latest_action(self) -> LatestAction:
        return LatestAction(action_date=self.last_action_date, text=self.last_action)
