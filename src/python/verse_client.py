"""
Verse client - fetches verse text for a detected reference through the
site's verse proxy (which forwards to the YouVersion API).

Request:  GET {proxy_url}?book=JHN&chapter=3&verses=16&version=NIV
Response: {"verses": [{"number": 16, "text": "..."}],
           "reference": "John 3:16", "version": "NIV"}

Runs strictly after scanning; the scanner never performs network I/O.
"""

import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from reference_parser import ScriptureReference
from verse_ranges import format_verse_range


DEFAULT_TIMEOUT = 10.0  # seconds
API_RATE_LIMIT_DELAY = 0.25  # minimum seconds between requests


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class ApiError(Exception):
    """Failure talking to the verse proxy."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


@dataclass
class VerseData:
    """One verse of returned text."""
    number: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'number': self.number, 'text': self.text}


@dataclass
class VerseContent:
    """Verse text for a reference, or an error message to display instead."""
    book: str
    chapter: int
    verses: List[VerseData] = field(default_factory=list)
    version: str = ''
    reference: str = ''
    content: Optional[str] = None  # Message shown instead of verses
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'book': self.book,
            'chapter': self.chapter,
            'verses': [v.to_dict() for v in self.verses],
            'version': self.version,
            'reference': self.reference,
            'isError': self.is_error,
        }
        if self.content is not None:
            result['content'] = self.content
        return result


# ============================================================================
# DEBUG LOGGING
# ============================================================================

def _debug_log(message: str, debug: bool = False, prefix: str = "[Client]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


# ============================================================================
# VERSE CLIENT
# ============================================================================

class VerseClient:
    """Client for the verse proxy with rate limiting."""

    def __init__(
        self,
        proxy_url: str,
        default_version: str = 'NIV',
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
        session: Optional[requests.Session] = None,
        rate_limit_delay: float = API_RATE_LIMIT_DELAY
    ):
        self.proxy_url = proxy_url
        self.default_version = default_version
        self.timeout = timeout
        self.debug = debug
        self.session = session or requests.Session()
        self.rate_limit_delay = rate_limit_delay
        self.last_request_time = 0.0

    def update_config(self, **options: Any):
        """Update proxy_url, default_version, timeout, debug or rate_limit_delay."""
        for name in ('proxy_url', 'default_version', 'timeout', 'debug', 'rate_limit_delay'):
            if name in options:
                setattr(self, name, options[name])

    def _rate_limit(self):
        """Ensure we don't exceed API rate limits."""
        elapsed = time.time() - self.last_request_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self.last_request_time = time.time()

    def _request(self, params: Dict[str, str]) -> Any:
        """GET the proxy and return decoded JSON, raising ApiError on failure."""
        self._rate_limit()

        try:
            response = self.session.get(
                self.proxy_url,
                params=params,
                headers={'Accept': 'application/json'},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise ApiError(f"Request timed out after {self.timeout}s", cause=e)
        except requests.ConnectionError as e:
            raise ApiError(f"Network error: Unable to connect to proxy server at {self.proxy_url}",
                           cause=e)
        except requests.RequestException as e:
            raise ApiError(f"Failed to fetch verse: {e}", cause=e)

        if response.status_code == 404:
            raise ApiError("Verse not found. The reference may be invalid or not available "
                           "in this version.", 404)
        if response.status_code == 429:
            raise ApiError("Rate limit exceeded. Please try again later.", 429)
        if not response.ok:
            details = (response.text or 'No error details')[:200]
            raise ApiError(f"API request failed: {response.status_code} {response.reason}. {details}",
                           response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Invalid API response: Expected JSON object", cause=e)

    def _parse_verses(self, data: Any) -> List[VerseData]:
        if not isinstance(data, dict):
            raise ApiError("Invalid API response: Expected JSON object")

        raw_verses = data.get('verses')
        if not isinstance(raw_verses, list):
            raise ApiError("Invalid API response: Missing or invalid verses array")

        verses: List[VerseData] = []
        for item in raw_verses:
            if not isinstance(item, dict):
                raise ApiError("Invalid API response: Verse must be an object")
            try:
                number = int(item.get('number'))
            except (TypeError, ValueError):
                raise ApiError("Invalid API response: Verse missing number or text")
            text = item.get('text')
            if text is None or str(text) == '':
                raise ApiError("Invalid API response: Verse missing number or text")
            verses.append(VerseData(number=number, text=str(text)))

        if not verses:
            raise ApiError("Invalid API response: No verses found in response")
        return verses

    @staticmethod
    def _format_reference(reference: ScriptureReference, version: str) -> str:
        """Fallback display reference, e.g. "JHN 3:16-18 NIV"."""
        result = f"{reference.book} {reference.chapter}"
        if reference.verses:
            low, high = min(reference.verses), max(reference.verses)
            result += f":{low}" if low == high else f":{low}-{high}"
        return f"{result} {version}"

    def fetch_verse(self, reference: ScriptureReference) -> VerseContent:
        """
        Fetch verse text for a reference.

        Args:
            reference: Parsed reference; its edition wins over default_version

        Returns:
            VerseContent with one VerseData per returned verse

        Raises:
            ApiError: on HTTP, network, timeout or payload errors
        """
        version = reference.version or self.default_version
        params = {
            'book': reference.book,
            'chapter': str(reference.chapter),
            'version': version,
        }
        verses_param = format_verse_range(reference.verses)
        if verses_param:
            params['verses'] = verses_param

        _debug_log(f"Fetching verse: {params}", self.debug)
        data = self._request(params)
        verses = self._parse_verses(data)

        return VerseContent(
            book=reference.book,
            chapter=reference.chapter,
            verses=verses,
            version=data.get('version') or version,
            reference=data.get('reference') or self._format_reference(reference, version),
        )
