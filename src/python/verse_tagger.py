"""
VerseTagger - ties the pieces together for an embedding site.

    tagger = VerseTagger(create_config(default_version='ESV'))
    references = tagger.scan(root)
    content = tagger.resolve(references[0].reference)

Scanning is purely local. Verse text is fetched lazily by resolve(), which
caches successful lookups in memory and never raises: failures come back as
VerseContent with is_error set.
"""

import sys
from typing import Any, Dict, List, Optional

from canon_registry import CanonRegistry
from document_model import DocumentTreeAdapter, TreeAdapter
from reference_parser import ReferenceTokenizer, ScriptureReference
from reference_scanner import ReferenceScanner, ScannedReference
from scanner_config import TaggerConfig, merge_config, validate_config
from verse_client import ApiError, VerseClient, VerseContent
from verse_ranges import format_verse_range


LICENSING_MESSAGE = "This Bible version isn't available to view here due to licensing restrictions."


def _debug_log(message: str, debug: bool = False, prefix: str = "[Tagger]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


class VerseTagger:
    """Scanner, client and verse cache behind one object."""

    def __init__(
        self,
        config: Optional[TaggerConfig] = None,
        adapter: Optional[TreeAdapter] = None,
        client: Optional[VerseClient] = None,
        registry: Optional[CanonRegistry] = None
    ):
        self.config = config or TaggerConfig()
        validate_config(self.config)

        self.registry = registry or CanonRegistry(debug=self.config.debug)
        self.tokenizer = ReferenceTokenizer(self.registry, debug=self.config.debug)
        self.adapter = adapter or DocumentTreeAdapter()
        self.scanner = ReferenceScanner(self.adapter, config=self.config,
                                        tokenizer=self.tokenizer, registry=self.registry)
        self.client = client or VerseClient(
            proxy_url=self.config.proxy_url,
            default_version=self.config.default_version,
            timeout=self.config.timeout,
            debug=self.config.debug,
        )

        self._cache: Dict[str, VerseContent] = {}
        self._scanned: List[ScannedReference] = []
        self._destroyed = False

        _debug_log(f"Initialized with config: {self.config.to_dict()}", self.config.debug)

    def _check_alive(self):
        if self._destroyed:
            raise RuntimeError("VerseTagger has been destroyed")

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(self, root: Any) -> List[ScannedReference]:
        """Annotate references under root; returns only the new ones."""
        self._check_alive()
        results = self.scanner.scan(root)
        self._scanned.extend(results)
        _debug_log(f"Scan added {len(results)} reference(s), {len(self._scanned)} total",
                   self.config.debug)
        return results

    def rescan(self, root: Any) -> List[ScannedReference]:
        """Forget earlier scans and scan root again."""
        self._check_alive()
        self.scanner.clear_visited()
        self._scanned = []
        return self.scan(root)

    def get_scanned_references(self) -> List[ScannedReference]:
        return list(self._scanned)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> TaggerConfig:
        return self.config

    def update_config(self, **overrides: Any) -> TaggerConfig:
        """
        Apply option overrides.

        Raises:
            ConfigError: if an option is unknown or out of range; the current
                config is left unchanged
        """
        self._check_alive()
        config = merge_config(self.config, **overrides)
        validate_config(config)

        self.config = config
        self.tokenizer.debug = config.debug
        self.scanner.update_config(config)
        # Content skipped under the old rules must be reconsidered
        self.scanner.clear_visited()
        self.client.update_config(
            proxy_url=config.proxy_url,
            default_version=config.default_version,
            timeout=config.timeout,
            debug=config.debug,
        )
        _debug_log(f"Config updated: {sorted(overrides)}", config.debug)
        return config

    # ------------------------------------------------------------------
    # Verse text
    # ------------------------------------------------------------------

    def _cache_key(self, reference: ScriptureReference, version: str) -> str:
        verses = format_verse_range(reference.verses)
        return f"{reference.book}_{reference.chapter}_{verses}_{version}".lower()

    def _error_content(self, reference: ScriptureReference, version: str, message: str) -> VerseContent:
        return VerseContent(
            book=reference.book,
            chapter=reference.chapter,
            version=version,
            reference=reference.to_standard_format(self.registry),
            content=message,
            is_error=True,
        )

    def resolve(self, reference: ScriptureReference) -> VerseContent:
        """Verse text for a reference, from the cache or the proxy."""
        self._check_alive()
        version = (reference.version or self.config.default_version).upper()

        if not self.registry.is_licensed(version):
            _debug_log(f"Edition {version} is not licensed; skipping fetch", self.config.debug)
            return self._error_content(reference, version, LICENSING_MESSAGE)

        key = self._cache_key(reference, version)
        cached = self._cache.get(key)
        if cached is not None:
            _debug_log(f"Cache hit: {key}", self.config.debug)
            return cached

        try:
            content = self.client.fetch_verse(reference)
        except ApiError as e:
            _debug_log(f"WARNING: Failed to fetch {key}: {e}", True)
            return self._error_content(reference, version, str(e))

        self._cache[key] = content
        return content

    def get_cache_stats(self) -> Dict[str, Any]:
        return {'size': len(self._cache), 'keys': sorted(self._cache)}

    def clear_cache(self):
        self._cache = {}

    def destroy(self):
        """Release all state; the tagger can't be used afterwards."""
        self.scanner.clear_visited()
        self._scanned = []
        self._cache = {}
        self._destroyed = True
        _debug_log("Destroyed", self.config.debug)
