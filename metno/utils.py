import datetime
import sys


def say(msg):
    """Log a message to stderr with a UTC timestamp."""
    d = datetime.datetime.now(datetime.UTC).replace(microsecond=0, tzinfo=None)
    sys.stderr.write(f'{d}Z: {str(msg)}\n')
    sys.stderr.flush()


def format_location(latitude: float, longitude: float) -> str:
    """Render coordinates at the precision the api and cache keys use."""
    return f'{latitude:.4f}, {longitude:.4f}'
