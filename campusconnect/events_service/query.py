"""
Event listing query construction.

Turns the listing query string (college, category, search, dateFilter) into
a MongoDB filter and sort. Each input becomes a typed clause; the builder
ANDs the clauses together into one filter document.
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pymongo import ASCENDING, DESCENDING


class DateFilter(str, Enum):
    PAST = "past"
    UPCOMING = "upcoming"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["DateFilter"]:
        """Unknown or empty values mean "no date filter"."""
        try:
            return cls(value)
        except ValueError:
            return None


def start_of_today(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the current day, as an aware datetime."""
    now = (now or datetime.now()).astimezone()
    # Rebuilt from the date so the offset is midnight's, not now's (DST days)
    return datetime.combine(now.date(), time()).astimezone()


@dataclass(frozen=True)
class ExactMatch:
    field_name: str
    value: Any

    def to_mongo(self) -> Dict[str, Any]:
        return {self.field_name: self.value}


@dataclass(frozen=True)
class DateRange:
    operator: str  # "$lt" or "$gte"
    pivot: datetime

    def to_mongo(self) -> Dict[str, Any]:
        return {"date": {self.operator: self.pivot}}


@dataclass(frozen=True)
class TextSearch:
    term: str

    def to_mongo(self) -> Dict[str, Any]:
        # Uses the text index on title, description, college and category
        return {"$text": {"$search": self.term}}


@dataclass(frozen=True)
class EventQuery:
    filter: Dict[str, Any]
    sort: List[Tuple[str, int]]


@dataclass
class EventQueryBuilder:
    """
    Accumulates filter clauses for an event listing.

    Usage:
        query = (EventQueryBuilder()
                 .match("college", "MIT")
                 .date_window(DateFilter.UPCOMING)
                 .search("hackathon")
                 .build())
        db.events.find(query.filter).sort(query.sort)
    """

    today: datetime = field(default_factory=start_of_today)
    clauses: List[Any] = field(default_factory=list)
    sort: List[Tuple[str, int]] = field(default_factory=lambda: [("date", ASCENDING)])

    def match(self, field_name: str, value: Optional[str]) -> "EventQueryBuilder":
        if value:
            self.clauses.append(ExactMatch(field_name, value))
        return self

    def date_window(self, date_filter: Optional[DateFilter]) -> "EventQueryBuilder":
        if date_filter is DateFilter.PAST:
            self.clauses.append(DateRange("$lt", self.today))
            self.sort = [("date", DESCENDING)]
        elif date_filter is DateFilter.UPCOMING:
            self.clauses.append(DateRange("$gte", self.today))
            self.sort = [("date", ASCENDING)]
        return self

    def search(self, term: Optional[str]) -> "EventQueryBuilder":
        term = (term or "").strip()
        if term:
            self.clauses.append(TextSearch(term))
        return self

    def build(self) -> EventQuery:
        # Clause keys never collide, so one merged document is the AND of all of them
        flt: Dict[str, Any] = {}
        for clause in self.clauses:
            flt.update(clause.to_mongo())
        return EventQuery(filter=flt, sort=list(self.sort))


def build_event_query(args: Mapping[str, str], today: Optional[datetime] = None) -> EventQuery:
    """
    Build the listing query from request arguments.

    Args:
        args: Query-string mapping (e.g. request.args).
        today: Pivot date override; defaults to local midnight.
    """
    builder = EventQueryBuilder(today=today) if today is not None else EventQueryBuilder()
    return (
        builder.match("college", args.get("college"))
        .match("category", args.get("category"))
        .date_window(DateFilter.parse(args.get("dateFilter")))
        .search(args.get("search"))
        .build()
    )
