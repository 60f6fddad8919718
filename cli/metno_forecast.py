#!/usr/bin/env python3
import argparse
import appdirs
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from metno.cache import TieredCache  # noqa: E402
from metno.errors import MetNoError  # noqa: E402
from metno.locationforecast import LocationForecastRetriever  # noqa: E402
from metno.tiers import NoOpTier  # noqa: E402
from metno.utils import say  # noqa: E402
from metno.visualizer import ForecastVisualizer  # noqa: E402


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        '-u', '--user-agent',
        help='Identification sent to api.met.no (e.g., "myapp/1.0 you@example.com")',
        type=str,
        default=os.environ.get('METNO_USER_AGENT'),
    )
    parser.add_argument(
        '--lat',
        help='Latitude in degrees north',
        type=float,
        required=True,
    )
    parser.add_argument(
        '--lon',
        help='Longitude in degrees east',
        type=float,
        required=True,
    )
    parser.add_argument(
        '--altitude',
        help='Altitude in meters (default: 0)',
        type=int,
        default=0,
    )
    parser.add_argument(
        '-d', '--cache-dir',
        help='Directory for cached forecasts (default: user cache directory)',
        type=str,
    )
    parser.add_argument(
        '--no-cache',
        help='Always fetch from the api',
        action='store_true',
    )
    parser.add_argument(
        '-n', '--hours',
        help='Number of forecast rows to print (default: 24)',
        type=int,
        default=24,
    )
    parser.add_argument(
        '--debug',
        help='Log cache activity to stderr',
        action='store_true',
    )
    args = parser.parse_args()

    if not args.user_agent:
        parser.error('A user agent is required: -u/--user-agent or METNO_USER_AGENT')

    try:
        if args.no_cache:
            cache = TieredCache([NoOpTier()], debug=args.debug)
            retriever = LocationForecastRetriever(args.user_agent, cache=cache, debug=args.debug)
        else:
            cache_dir = args.cache_dir or appdirs.user_cache_dir("metno_forecast")
            retriever = LocationForecastRetriever.with_disk_cache(
                args.user_agent, cache_dir, debug=args.debug)

        forecast = retriever.fetch(args.lat, args.lon, args.altitude)
    except (MetNoError, ValueError, OSError) as e:
        say(f'Error: {type(e).__name__}: {e}')
        sys.exit(1)

    print(ForecastVisualizer.format_table(forecast, args.hours))


if __name__ == '__main__':
    main()
