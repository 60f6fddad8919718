"""
Locationforecast 2.0 documents.

The upstream returns a GeoJSON Feature whose properties hold a 'meta'
block (update time, units) and a 'timeseries' list, one item per forecast
time. Forecast keeps the decoded JSON as-is so it can be cached and
written back unchanged, and offers typed accessors on top.
"""
import datetime
from typing import Any, Optional

from dateutil import parser as date_parser

from metno.errors import DecodeError

PERIODS = (1, 6, 12)


class TimeStep:
    """One item of the forecast timeseries."""

    def __init__(self, data: dict):
        self._data = data

    @property
    def time(self) -> datetime.datetime:
        return date_parser.isoparse(self._data['time'])

    @property
    def details(self) -> dict:
        """Instantaneous values, e.g. air_temperature, wind_speed."""
        return self._data['data']['instant']['details']

    def next_hours(self, hours: int) -> Optional[dict]:
        """Return the next_<hours>_hours block (1, 6 or 12), if present."""
        if hours not in PERIODS:
            raise ValueError(f'hours must be one of {PERIODS}')
        return self._data['data'].get(f'next_{hours}_hours')

    def symbol_code(self, hours: int = 1) -> Optional[str]:
        block = self.next_hours(hours)
        if not block:
            return None
        return block.get('summary', {}).get('symbol_code')

    def precipitation_amount(self, hours: int = 1) -> Optional[float]:
        block = self.next_hours(hours)
        if not block:
            return None
        return block.get('details', {}).get('precipitation_amount')

    def __repr__(self):
        return f"TimeStep({self._data.get('time')!r})"


class Forecast:
    """A decoded Locationforecast response."""

    def __init__(self, data: dict):
        self._data = data

    @classmethod
    def from_json(cls, data: Any) -> 'Forecast':
        """Validate the decoded JSON and wrap it.

        Raises:
            DecodeError: If the document doesn't look like a Locationforecast
        """
        def fail(reason):
            raise DecodeError(f'not a locationforecast document: {reason}')

        if not isinstance(data, dict):
            fail(f'expected an object, got {type(data).__name__}')
        if 'type' not in data:
            fail("missing 'type'")

        geometry = data.get('geometry')
        if not isinstance(geometry, dict) or not isinstance(geometry.get('coordinates'), list):
            fail("missing 'geometry.coordinates'")

        properties = data.get('properties')
        if not isinstance(properties, dict):
            fail("missing 'properties'")

        meta = properties.get('meta')
        if not isinstance(meta, dict) or not isinstance(meta.get('updated_at'), str):
            fail("missing 'properties.meta.updated_at'")
        try:
            date_parser.isoparse(meta['updated_at'])
        except ValueError:
            fail(f"bad 'updated_at' value {meta['updated_at']!r}")

        timeseries = properties.get('timeseries')
        if not isinstance(timeseries, list):
            fail("missing 'properties.timeseries'")
        for i, step in enumerate(timeseries):
            try:
                date_parser.isoparse(step['time'])
                if not isinstance(step['data']['instant']['details'], dict):
                    raise TypeError('details is not an object')
            except (KeyError, TypeError, ValueError) as e:
                fail(f'bad timeseries item {i}: {e}')

        return cls(data)

    def to_json(self) -> dict:
        return self._data

    @property
    def coordinates(self) -> list:
        """[longitude, latitude, altitude], GeoJSON order."""
        return self._data['geometry']['coordinates']

    @property
    def updated_at(self) -> datetime.datetime:
        return date_parser.isoparse(self._data['properties']['meta']['updated_at'])

    @property
    def units(self) -> dict:
        return self._data['properties']['meta'].get('units', {})

    @property
    def timeseries(self) -> list[TimeStep]:
        return [TimeStep(step) for step in self._data['properties']['timeseries']]

    def __eq__(self, other):
        if not isinstance(other, Forecast):
            return NotImplemented
        return self._data == other._data

    def __repr__(self):
        return f'Forecast(coordinates={self.coordinates!r}, steps={len(self._data["properties"]["timeseries"])})'
