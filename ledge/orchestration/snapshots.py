"""
Plain snapshots of ORM rows used as driver work units.

Drivers commit (and occasionally roll back) row by row while iterating, so
they work from detached value copies rather than live ORM instances.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..db.models import LegislationModel, SubscriberModel
from ..llm.relevance import combine_goal
from ..utils.states import is_all_states


@dataclass(frozen=True)
class BillRef:
    id: int
    bill_id: str
    title: str
    summary: str
    state_code: Optional[str] = None
    status: Optional[str] = None
    url_slug: Optional[str] = None
    tldr: Optional[str] = None

    @classmethod
    def from_model(cls, model: LegislationModel) -> "BillRef":
        return cls(
            id=model.id,
            bill_id=model.bill_id,
            title=model.title,
            summary=model.tldr or model.title,
            state_code=model.state_code,
            status=model.status,
            url_slug=model.url_slug,
            tldr=model.tldr,
        )


@dataclass(frozen=True)
class SubscriberRef:
    id: int
    email: str
    goal: str
    state_focus: Optional[str] = None
    interests: Tuple[str, ...] = ()

    @classmethod
    def from_model(cls, model: SubscriberModel) -> "SubscriberRef":
        return cls(
            id=model.id,
            email=model.email,
            goal=model.org_goal or "",
            state_focus=model.state_focus,
            interests=tuple(model.search_interests or ()),
        )

    @property
    def combined_goal(self) -> str:
        return combine_goal(self.goal, self.interests)

    def wants(self, bill: BillRef) -> bool:
        """State bills outside the subscriber's state focus are not scored."""
        if not bill.state_code or is_all_states(self.state_focus):
            return True
        return self.state_focus.strip().upper() == bill.state_code.upper()


def bill_refs(models: Iterable[LegislationModel]) -> list[BillRef]:
    return [BillRef.from_model(model) for model in models]
