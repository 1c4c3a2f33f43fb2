# services/registry.py
"""
In-process registry of volunteer opportunities mirrored from the store.

Every successful write reloads the whole registry from the store. The snapshot
is a tuple that is replaced in a single assignment, so readers always see a
complete list.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional

from store import StoreError

logger = logging.getLogger(__name__)

TABLE = "opportunities"

DEFAULT_TITLE = "[Title]"
DEFAULT_DESCRIPTION = "[Description]"
DEFAULT_ORGANIZER = "[Organizer]"
DEFAULT_IMAGE = "/static/img/opportunity.svg"
DEFAULT_ZIP_CODE = 12345

# Domain field -> column
PATCHABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "start": "event_begin",
    "end": "event_end",
    "zip_code": "zip_code",
    "organizers": "organizers",
    "image": "image",
}


def _format_time(moment):
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


@dataclass
class Opportunity:
    """A volunteer event and its time window"""
    id: Optional[int] = None
    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    zip_code: int = DEFAULT_ZIP_CODE
    organizers: list = field(default_factory=lambda: [DEFAULT_ORGANIZER])
    organizer_names: list = field(default_factory=list)
    created_by: Optional[int] = None
    image: str = DEFAULT_IMAGE
    joined: bool = False

    date_str: str = field(init=False)
    start_time_str: str = field(init=False)
    end_time_str: str = field(init=False)

    def __post_init__(self):
        now = datetime.now()
        if self.start is None:
            self.start = now
        if self.end is None:
            self.end = now
        if self.title is None:
            self.title = DEFAULT_TITLE
        if self.description is None:
            self.description = DEFAULT_DESCRIPTION
        if self.zip_code is None:
            self.zip_code = DEFAULT_ZIP_CODE
        if not self.organizers:
            self.organizers = [DEFAULT_ORGANIZER]
        if not self.organizer_names:
            self.organizer_names = [str(organizer) for organizer in self.organizers]
        if not self.image:
            self.image = DEFAULT_IMAGE

        self.date_str = f"{self.start.month}/{self.start.day}/{self.start.year}"
        self.start_time_str = _format_time(self.start)
        self.end_time_str = _format_time(self.end)

    @classmethod
    def from_row(cls, row, names=None):
        """Build an opportunity from a store row, resolving organizer ids via names"""
        names = names or {}
        organizers = list(row.get("organizers") or [])
        return cls(
            id=row.get("id"),
            title=row.get("title"),
            description=row.get("description"),
            start=row.get("event_begin"),
            end=row.get("event_end"),
            zip_code=row.get("zip_code"),
            organizers=organizers,
            organizer_names=[names.get(organizer, str(organizer)) for organizer in organizers],
            created_by=row.get("created_by"),
            image=row.get("image"),
        )

    def validate(self):
        """Reject time windows that end before they start"""
        if self.end < self.start:
            raise ValueError("End time must not be before start time")

    def is_active(self, now=None):
        now = now or datetime.now()
        return self.start <= now < self.end

    def is_expired(self, now=None):
        now = now or datetime.now()
        return now >= self.end

    def is_organized_by(self, user_id):
        return user_id is not None and (self.created_by == user_id or user_id in self.organizers)

    def to_dict(self):
        """Convert opportunity to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'date': self.date_str,
            'start_time': self.start_time_str,
            'end_time': self.end_time_str,
            'zip_code': self.zip_code,
            'organizers': self.organizer_names,
            'image': self.image,
            'joined': self.joined,
            'is_active': self.is_active(),
            'is_expired': self.is_expired(),
        }


class OpportunityRegistry:
    def __init__(self, store, users=None, limit=100):
        self._store = store
        self._users = users
        self._limit = limit
        self._opportunities: tuple = ()

    def refresh(self) -> bool:
        """
        Reload every opportunity from the store.

        On failure the previous snapshot stays in place.
        """
        try:
            rows = self._store.select(TABLE, limit=self._limit, order_by="id", descending=True)
            names = self._organizer_names(rows)
        except StoreError:
            logger.exception("Failed to refresh opportunities")
            return False

        self._opportunities = tuple(Opportunity.from_row(row, names) for row in rows)
        logger.debug("Loaded %d opportunities", len(self._opportunities))
        return True

    def _organizer_names(self, rows):
        user_ids = {
            organizer
            for row in rows
            for organizer in (row.get("organizers") or [])
            if isinstance(organizer, int)
        }
        if not user_ids or self._users is None:
            return {}
        return self._users.display_names(sorted(user_ids))

    def _source(self, opportunities):
        return self.get_all() if opportunities is None else list(opportunities)

    def get_all(self) -> list:
        return list(self._opportunities)

    def get(self, opportunity_id) -> Optional[Opportunity]:
        for opportunity in self._opportunities:
            if opportunity.id == opportunity_id:
                return opportunity
        return None

    def get_filtered(self, zip_code, opportunities=None) -> list:
        """Opportunities whose zip code equals the given one, compared as integers"""
        zip_code = int(zip_code)
        return [o for o in self._source(opportunities) if o.zip_code == zip_code]

    def get_sorted(self, ascending, opportunities=None) -> list:
        """Opportunities ordered by case-insensitive title"""
        return sorted(
            self._source(opportunities),
            key=lambda o: o.title.lower(),
            reverse=not ascending,
        )

    def get_joined(self, joined_ids: Iterable, opportunities=None) -> list:
        """Opportunities the viewer has joined, flagged as joined"""
        joined_ids = set(joined_ids or [])
        return [replace(o, joined=True) for o in self._source(opportunities) if o.id in joined_ids]

    def mark_joined(self, joined_ids: Iterable, opportunities=None) -> list:
        """Copies of the opportunities with the joined flag set for one viewer"""
        joined_ids = set(joined_ids or [])
        return [replace(o, joined=o.id in joined_ids) for o in self._source(opportunities)]

    def add(self, candidate: Opportunity) -> Optional[Opportunity]:
        """
        Persist a new opportunity and reload the registry.

        Returns:
            The candidate with its assigned id, or None if the store failed
        """
        values = {
            "title": candidate.title,
            "description": candidate.description,
            "event_begin": candidate.start,
            "event_end": candidate.end,
            "zip_code": candidate.zip_code,
            "created_by": candidate.created_by,
            "organizers": list(candidate.organizers),
            "image": candidate.image,
        }
        try:
            row = self._store.insert(TABLE, values)
        except StoreError:
            logger.exception("Failed to add opportunity '%s'", candidate.title)
            return None

        self.refresh()
        return replace(candidate, id=row["id"])

    def update(self, target: Opportunity, patch: dict) -> Optional[Opportunity]:
        """
        Apply a partial update and reload the registry.

        Returns:
            The updated opportunity, or None if the store failed
        """
        unknown = set(patch) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        values = {PATCHABLE_FIELDS[name]: value for name, value in patch.items()}
        values["updated_at"] = datetime.now()
        try:
            self._store.update(TABLE, target.id, values)
        except StoreError:
            logger.exception("Failed to update opportunity %s", target.id)
            return None

        self.refresh()
        return self.get(target.id) or replace(target, **patch)

    def remove(self, target: Opportunity) -> None:
        """Delete an opportunity and reload; failures are only logged"""
        try:
            self._store.delete(TABLE, target.id)
        except StoreError:
            logger.exception("Failed to remove opportunity %s", target.id)
            return

        self.refresh()
