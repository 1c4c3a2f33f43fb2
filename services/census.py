# services/census.py
"""
Client for the US Census Bureau CPS volunteer supplement API.

Aggregated responses are cached per field key for the life of the client.
"""
import logging
from dataclasses import dataclass, field

import requests

from utils.statistics import (
    CHILDREN_FIELD,
    HOURS_FIELD,
    ONLINE_FIELD,
    VOLUNTEER_FIELD,
    aggregate_responses,
    get_statistics_summary,
)

logger = logging.getLogger(__name__)

DEFAULT_CENSUS_URL = "https://api.census.gov/data/2023/cps/volunteer/sep"


@dataclass(frozen=True)
class FieldResult:
    """Outcome of fetching one census field"""
    available: bool
    counts: dict = field(default_factory=dict)

    @classmethod
    def of(cls, counts):
        return cls(available=True, counts=counts)

    @classmethod
    def unavailable(cls):
        return cls(available=False)


@dataclass(frozen=True)
class CensusFields:
    volunteer: str = VOLUNTEER_FIELD
    children: str = CHILDREN_FIELD
    online: str = ONLINE_FIELD
    hours: str = HOURS_FIELD


class CensusClient:
    def __init__(self, base_url=DEFAULT_CENSUS_URL, timeout=10, http_get=requests.get):
        self.base_url = base_url
        self.timeout = timeout
        self._http_get = http_get
        self._cache: dict[str, dict[str, int]] = {}

    def is_cached(self, key: str) -> bool:
        return key in self._cache

    def fetch_field(self, key: str) -> FieldResult:
        """
        Fetch and aggregate one field, serving repeat requests from the cache.

        Failures are logged and reported as unavailable; they are not cached,
        so a later request retries the API.
        """
        if key in self._cache:
            return FieldResult.of(dict(self._cache[key]))

        try:
            response = self._http_get(self.base_url, params={"get": key}, timeout=self.timeout)
            if not response.ok:
                logger.warning("Census API returned %s for field %s", response.status_code, key)
                return FieldResult.unavailable()
            rows = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Failed to fetch census field %s: %s", key, e)
            return FieldResult.unavailable()

        if not isinstance(rows, list):
            logger.warning("Unexpected census payload for field %s", key)
            return FieldResult.unavailable()

        try:
            # The API echoes the requested column name as a header row
            if rows and rows[0] and rows[0][0] == key:
                rows = rows[1:]
            counts = aggregate_responses(rows)
        except (TypeError, IndexError, KeyError) as e:
            logger.warning("Malformed census rows for field %s: %s", key, e)
            return FieldResult.unavailable()

        self._cache[key] = counts
        return FieldResult.of(dict(counts))

    def summary(self, fields=None):
        """
        Compute the volunteer metrics.

        Unavailable fields are counted as empty so the metrics fall back to 0
        instead of failing the caller.

        Returns:
            Dictionary with the five metrics and the list of unavailable keys
        """
        fields = fields or CensusFields()
        resolved = {}
        missing = []

        for name in ("volunteer", "children", "online", "hours"):
            key = getattr(fields, name)
            result = self.fetch_field(key)
            if result.available:
                resolved[name] = result.counts
            else:
                resolved[name] = {}
                missing.append(key)

        summary = get_statistics_summary(**resolved)
        summary["unavailable"] = missing
        return summary
