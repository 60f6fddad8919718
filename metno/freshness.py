"""
Freshness metadata attached to every cached forecast.

A CacheInfo records when the cached copy stops being valid (Expires) and
which upstream version it is (Last-Modified). Both are absolute, timezone
aware UTC datetimes.
"""
import datetime
from dataclasses import dataclass
from typing import Optional

from dateutil import parser as date_parser

KEY_PRECISION = 4


def cache_key(latitude: float, longitude: float, altitude: int) -> str:
    """Build the cache key for a forecast location.

    Coordinates are rounded to 4 decimals, so locations closer than that
    share a slot.
    """
    # Adding 0.0 turns -0.0 into 0.0 so tiny negatives don't render as '-0.0000'
    latitude = round(latitude, KEY_PRECISION) + 0.0
    longitude = round(longitude, KEY_PRECISION) + 0.0
    return f'locationforecast-{latitude:.{KEY_PRECISION}f}-{longitude:.{KEY_PRECISION}f}-{int(altitude)}'


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC)


@dataclass(frozen=True)
class CacheInfo:
    """Expiry and version of a cached document.

    last_modified is None for a document that never came from the network;
    such an entry can't be revalidated with If-Modified-Since.
    """

    expires: datetime.datetime
    last_modified: Optional[datetime.datetime] = None

    def __post_init__(self):
        object.__setattr__(self, 'expires', as_utc(self.expires))
        if self.last_modified is not None:
            object.__setattr__(self, 'last_modified', as_utc(self.last_modified))

    def is_expired(self, now: Optional[datetime.datetime] = None) -> bool:
        now = utcnow() if now is None else as_utc(now)
        return now > self.expires

    def is_newer_than(self, other: Optional['CacheInfo']) -> bool:
        """Compare Last-Modified; an unset value is older than any timestamp."""
        if other is None:
            return True
        if self.last_modified is None:
            return False
        if other.last_modified is None:
            return True
        return self.last_modified > other.last_modified

    def to_json(self) -> dict:
        return {
            'expires': self.expires.isoformat(),
            'lastModified': self.last_modified.isoformat() if self.last_modified else None,
        }

    @classmethod
    def from_json(cls, data: dict) -> 'CacheInfo':
        """Parse the on-disk form.

        Raises:
            KeyError, TypeError, ValueError: If the record is incomplete or
                a timestamp is malformed
        """
        expires = date_parser.isoparse(data['expires'])
        last_modified = data.get('lastModified')
        if last_modified is not None:
            last_modified = date_parser.isoparse(last_modified)
        return cls(expires=expires, last_modified=last_modified)
