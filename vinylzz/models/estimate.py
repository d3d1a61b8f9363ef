import enum
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RecordMeta:
    """Search input taken from a subject record. Every field is optional."""

    artist: str | None = None
    title: str | None = None
    label: str | None = None
    catno: str | None = None
    barcode: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


@dataclass
class Candidate:
    """One search hit that may be the catalogued item."""

    id: int | None
    type: str | None
    title: str | None = None
    country: str | None = None
    year: str | None = None
    label: list[str] | str | None = None
    catno: str | None = None
    community_have: int | None = None
    community_want: int | None = None

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Candidate":
        community = data.get("community") or {}
        return Candidate(
            id=data.get("id"),
            type=data.get("type"),
            title=data.get("title"),
            country=data.get("country"),
            year=data.get("year"),
            label=data.get("label"),
            catno=data.get("catno"),
            community_have=community.get("have"),
            community_want=community.get("want"),
        )


@dataclass
class SearchResult:
    candidates: list[Candidate] = field(default_factory=list)
    total: int = 0


@dataclass
class MarketStats:
    lowest_price: float | None
    num_for_sale: int | None


class MatchRule(str, enum.Enum):
    """Which selection rule picked the candidate."""

    RELEASE = "release"
    FIRST = "first"


@dataclass
class CandidateMatch:
    candidate: Candidate
    rule: MatchRule


@dataclass
class EstimationResult:
    """Output of one pipeline run.

    ``estimated_price`` is only ever set when ``lowest_price`` is set.
    ``median_price`` is always None for now.
    """

    source: str
    lowest_price: float | None = None
    median_price: float | None = None
    estimated_price: float | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
