"""
HTTP GET with conditional revalidation.

Sends If-Modified-Since when we hold a copy of the document, and reads the
Expires and Last-Modified headers that tell us how long the answer may be
cached.
"""
import datetime
import email.utils
from typing import Any, Callable, Optional

import requests

from metno.errors import DecodeError, HeaderParseError, MissingHeaderError, ProtocolError, UpstreamStatusError
from metno.freshness import CacheInfo
from metno.utils import say


def format_http_date(value: datetime.datetime) -> str:
    """Format a datetime as an RFC 1123 date in GMT, e.g. 'Sun, 18 Oct 2026 10:00:00 GMT'."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.UTC)
    return email.utils.format_datetime(value.astimezone(datetime.UTC), usegmt=True)


def parse_http_date(header: str, value: str) -> datetime.datetime:
    """Parse an RFC 1123 header value into an aware UTC datetime."""
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError) as e:
        raise HeaderParseError(header, value) from e
    if parsed is None:
        raise HeaderParseError(header, value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed.astimezone(datetime.UTC)


def _identity(value):
    return value


class ConditionalFetcher:
    """Fetches JSON documents, revalidating cached copies when possible."""

    def __init__(self, user_agent: str, decode: Callable[[Any], Any] = _identity,
                 timeout: Optional[float] = None, debug: bool = False):
        """
        Args:
            user_agent: Sent as the User-Agent header on every request
            decode: Converts the decoded JSON body into the document type
            timeout: Passed to requests; None waits indefinitely
            debug: Log the conditional headers that are sent
        """
        self.user_agent = user_agent
        self.decode = decode
        self.timeout = timeout
        self.debug = debug

    def _read_cache_info(self, resp) -> CacheInfo:
        values = {}
        for header in ('Expires', 'Last-Modified'):
            value = resp.headers.get(header)
            if value is None:
                raise MissingHeaderError(header)
            values[header] = parse_http_date(header, value)
        return CacheInfo(expires=values['Expires'], last_modified=values['Last-Modified'])

    def fetch(self, url: str, params: Optional[dict] = None, prior_entry: Optional[Any] = None,
              prior_info: Optional[CacheInfo] = None) -> tuple[Any, CacheInfo]:
        """
        Fetch a document, or confirm that the prior copy is still current.

        Args:
            url: Resource URL
            params: Query parameters
            prior_entry: Previously cached document, if any
            prior_info: Freshness record of prior_entry, if any

        Returns:
            (entry, info): the new document, or prior_entry on a 304, together
            with the freshness record from the response headers

        Raises:
            MissingHeaderError, HeaderParseError: If Expires or Last-Modified
                is absent or malformed
            UpstreamStatusError: On any status other than 2xx or 304
            DecodeError: If the body isn't the expected document
            requests.RequestException: On transport failures
        """
        headers = {'User-Agent': self.user_agent}
        if prior_entry is not None and prior_info is not None and prior_info.last_modified is not None:
            headers['If-Modified-Since'] = format_http_date(prior_info.last_modified)
            if self.debug:
                say(f"Adding If-Modified-Since header: {headers['If-Modified-Since']}")

        resp = requests.get(url, params=params, headers=headers, timeout=self.timeout)

        if resp.status_code == 304:
            info = self._read_cache_info(resp)
            if prior_entry is None:
                raise ProtocolError('received 304 Not Modified without holding a cached document')
            say(f'Data from {url} not modified')
            return prior_entry, info

        if 200 <= resp.status_code < 300:
            info = self._read_cache_info(resp)
            try:
                body = resp.json()
            except ValueError as e:
                raise DecodeError(f'error converting the response body to json: {e}') from e
            return self.decode(body), info

        raise UpstreamStatusError(resp.status_code, url)
