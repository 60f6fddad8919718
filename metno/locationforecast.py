from typing import Optional

from metno.cache import TieredCache
from metno.conditional_fetcher import ConditionalFetcher
from metno.errors import ConfigurationError
from metno.forecast import Forecast
from metno.freshness import KEY_PRECISION, cache_key
from metno.tiers import DiskTier, MemoryTier
from metno.utils import format_location, say


class LocationForecastRetriever:
    """Retrieves Locationforecast documents from api.met.no, with tiered caching."""

    URL = 'https://api.met.no/weatherapi/locationforecast/2.0/complete'

    def __init__(self, user_agent: str, cache: Optional[TieredCache] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 debug: bool = False):
        """Initialize retriever.

        Args:
            user_agent: Identifies this client to met.no, which rejects
                anonymous requests (e.g. 'myapp/1.0 you@example.com')
            cache: Tier chain to use; defaults to memory only
            base_url: Overrides the Locationforecast endpoint
            timeout: Request timeout in seconds
            debug: Log the conditional headers that are sent

        Raises:
            ConfigurationError: If user_agent is empty
        """
        if not user_agent or not user_agent.strip():
            raise ConfigurationError('user_agent must be defined')
        self.user_agent = user_agent
        self.cache = cache if cache is not None else TieredCache([MemoryTier()])
        self.url = base_url or self.URL
        self.fetcher = ConditionalFetcher(user_agent, decode=Forecast.from_json,
                                          timeout=timeout, debug=debug)

    @classmethod
    def with_disk_cache(cls, user_agent: str, cache_dir: Optional[str],
                        tolerate_tier_errors: bool = False, debug: bool = False,
                        **kwargs) -> 'LocationForecastRetriever':
        """Build a retriever with the standard memory-then-disk tier chain."""
        disk = DiskTier(cache_dir, encode=Forecast.to_json, decode=Forecast.from_json)
        cache = TieredCache([MemoryTier(), disk],
                            tolerate_tier_errors=tolerate_tier_errors, debug=debug)
        return cls(user_agent, cache=cache, debug=debug, **kwargs)

    @staticmethod
    def cache_key(latitude: float, longitude: float, altitude: int = 0) -> str:
        return cache_key(latitude, longitude, altitude)

    def fetch(self, latitude: float, longitude: float, altitude: int = 0) -> Forecast:
        """Get the forecast for a location.

        Args:
            latitude: Degrees north, -90 to 90
            longitude: Degrees east, -180 to 180
            altitude: Meters above sea level

        Returns:
            The cached or freshly fetched Forecast
        """
        if not -90 <= latitude <= 90:
            raise ValueError(f'latitude out of range: {latitude}')
        if not -180 <= longitude <= 180:
            raise ValueError(f'longitude out of range: {longitude}')
        altitude = int(altitude)

        key = self.cache_key(latitude, longitude, altitude)

        def fetch_from_api(prior_entry, prior_info):
            """Fetch fresh data, or revalidate the stale copy."""
            say(f'Fetching forecast for {format_location(latitude, longitude)}')

            params = {
                'lat': f'{latitude:.{KEY_PRECISION}f}',
                'lon': f'{longitude:.{KEY_PRECISION}f}',
                'altitude': altitude,
            }
            return self.fetcher.fetch(self.url, params=params,
                                      prior_entry=prior_entry, prior_info=prior_info)

        return self.cache.get(key, fetch_from_api)
