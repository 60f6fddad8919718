"""
Exceptions raised while retrieving forecasts.

Everything derives from MetNoError so callers can catch the whole family,
or pick out configuration, tier I/O, protocol and decode failures
individually.
"""


class MetNoError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(MetNoError, ValueError):
    """A required setting (such as the client identifier) is missing."""


class CacheTierError(MetNoError, OSError):
    """A cache tier failed to read or write its backing store."""


class ProtocolError(MetNoError):
    """The upstream service answered in a way we can't use."""


class MissingHeaderError(ProtocolError):
    """A mandatory response header was absent."""

    def __init__(self, header: str):
        super().__init__(f"response is missing the '{header}' header")
        self.header = header


class HeaderParseError(ProtocolError):
    """A mandatory response header could not be parsed as an HTTP date."""

    def __init__(self, header: str, value: str):
        super().__init__(f"failed parsing the '{header}' header: {value!r}")
        self.header = header
        self.value = value


class UpstreamStatusError(ProtocolError):
    """The upstream service returned a status other than 2xx or 304."""

    def __init__(self, status_code: int, url: str = ''):
        super().__init__(f'failed getting new data from {url or "the api"} with code: {status_code}')
        self.status_code = status_code
        self.url = url


class DecodeError(MetNoError, ValueError):
    """A response body or cached payload doesn't have the expected shape."""
