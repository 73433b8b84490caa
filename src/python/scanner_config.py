"""
Tagger configuration: defaults, validation and exclusion rules.

TaggerConfig mirrors the options an embedding site can pass to the tagger.
Exclusion selectors are pre-parsed into fast tag / class / id sets plus one
complex selector string that is handed to the host tree for matching.
"""

import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, FrozenSet, Optional
from urllib.parse import urlparse

from reference_parser import ScriptureReference
from verse_ranges import format_verse_range


BEHAVIOR_MODES = ('link-only', 'modal-only', 'both')
TRIGGER_MODES = ('hover', 'click', 'both')
COLOR_SCHEMES = ('light', 'dark', 'auto')

DEFAULT_PROXY_URL = "https://versetagger.alextran.org"
DEFAULT_EXCLUDE_SELECTORS = (
    "code, pre, script, style, head, meta, title, link, noscript, svg, canvas, "
    "iframe, video, select, option, button, a, .no-verse-tagging"
)
DEFAULT_LINK_FORMAT = "https://www.bible.com/bible/{version}/{book}.{chapter}.{verses}"

MAX_HOVER_DELAY_MS = 5000


class ConfigError(ValueError):
    """Raised for invalid tagger configuration."""


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class TaggerConfig:
    """Configuration for the verse tagger."""
    proxy_url: str = DEFAULT_PROXY_URL
    behavior: str = 'both'
    trigger: str = 'hover'
    hover_delay: int = 500  # ms
    exclude_selectors: str = DEFAULT_EXCLUDE_SELECTORS
    exclude_predicate: Optional[Callable[[Any], bool]] = None  # Extra caller-supplied exclusion
    default_version: str = 'NIV'
    color_scheme: str = 'auto'
    reference_class: str = 'verse-reference'
    open_links_in_new_tab: bool = True
    link_format: str = DEFAULT_LINK_FORMAT
    keyboard_nav: bool = True
    announce_to_screen_readers: bool = True
    timeout: float = 10.0  # seconds
    debug: bool = False

    @property
    def renders_links(self) -> bool:
        return self.behavior in ('link-only', 'both')

    @property
    def shows_modal(self) -> bool:
        return self.behavior in ('modal-only', 'both')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'proxyUrl': self.proxy_url,
            'behavior': self.behavior,
            'trigger': self.trigger,
            'hoverDelay': self.hover_delay,
            'excludeSelectors': self.exclude_selectors,
            'defaultVersion': self.default_version,
            'colorScheme': self.color_scheme,
            'referenceClass': self.reference_class,
            'openLinksInNewTab': self.open_links_in_new_tab,
            'linkFormat': self.link_format,
            'accessibility': {
                'keyboardNav': self.keyboard_nav,
                'announceToScreenReaders': self.announce_to_screen_readers,
            },
            'timeout': self.timeout,
            'debug': self.debug,
        }


def validate_config(config: TaggerConfig) -> None:
    """Raise ConfigError if any option is out of range."""
    if not config.proxy_url:
        raise ConfigError("proxy_url is required. Provide the URL of the verse proxy server.")

    parsed = urlparse(config.proxy_url)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ConfigError(f'Invalid proxy_url "{config.proxy_url}". Must be a valid URL.')

    if config.behavior not in BEHAVIOR_MODES:
        raise ConfigError(
            f'Invalid behavior "{config.behavior}". Must be "link-only", "modal-only", or "both".'
        )

    if config.trigger not in TRIGGER_MODES:
        raise ConfigError(
            f'Invalid trigger "{config.trigger}". Must be "hover", "click", or "both".'
        )

    if config.color_scheme not in COLOR_SCHEMES:
        raise ConfigError(
            f'Invalid color_scheme "{config.color_scheme}". Must be "light", "dark", or "auto".'
        )

    if config.hover_delay < 0 or config.hover_delay > MAX_HOVER_DELAY_MS:
        raise ConfigError(
            f'Invalid hover_delay "{config.hover_delay}". Must be between 0 and {MAX_HOVER_DELAY_MS}ms.'
        )

    if config.timeout <= 0:
        raise ConfigError(f'Invalid timeout "{config.timeout}". Must be positive.')

    if config.exclude_predicate is not None and not callable(config.exclude_predicate):
        raise ConfigError("exclude_predicate must be callable.")


def merge_config(base: TaggerConfig, **overrides: Any) -> TaggerConfig:
    """Return a copy of base with overrides applied."""
    known = {f.name for f in fields(TaggerConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration option(s): {', '.join(unknown)}")
    return replace(base, **overrides)


def create_config(**options: Any) -> TaggerConfig:
    """Build a validated config from keyword options over the defaults."""
    config = merge_config(TaggerConfig(), **options)
    validate_config(config)
    return config


# ============================================================================
# EXCLUSION RULES
# ============================================================================

_TAG_SELECTOR = re.compile(r'^[a-z][a-z0-9]*$', re.IGNORECASE)
_CLASS_SELECTOR = re.compile(r'^\.[a-z_-][a-z0-9_-]*$', re.IGNORECASE)
_ID_SELECTOR = re.compile(r'^#[a-z_-][a-z0-9_-]*$', re.IGNORECASE)


@dataclass(frozen=True)
class ExclusionRules:
    """Parsed exclude selectors."""
    tags: FrozenSet[str] = field(default_factory=frozenset)  # lower case
    classes: FrozenSet[str] = field(default_factory=frozenset)
    ids: FrozenSet[str] = field(default_factory=frozenset)
    complex_selector: Optional[str] = None


def parse_exclude_selectors(selectors: str) -> ExclusionRules:
    """
    Split a comma-separated selector list into simple and complex parts.

        "code, .no-tag, #footer, div > p" =>
            tags={'code'}, classes={'no-tag'}, ids={'footer'}, complex='div > p'
    """
    tags, classes, ids, complex_parts = set(), set(), set(), []

    for token in (selectors or '').split(','):
        token = token.strip()
        if not token:
            continue
        if _TAG_SELECTOR.match(token):
            tags.add(token.lower())
        elif _CLASS_SELECTOR.match(token):
            classes.add(token[1:])
        elif _ID_SELECTOR.match(token):
            ids.add(token[1:])
        else:
            complex_parts.append(token)

    return ExclusionRules(
        tags=frozenset(tags),
        classes=frozenset(classes),
        ids=frozenset(ids),
        complex_selector=', '.join(complex_parts) if complex_parts else None,
    )


# ============================================================================
# LINKS
# ============================================================================

def build_reference_url(reference: ScriptureReference, config: TaggerConfig) -> str:
    """Fill the configured link format for a reference."""
    version = reference.version or config.default_version
    return (config.link_format
            .replace('{book}', reference.book)
            .replace('{chapter}', str(reference.chapter))
            .replace('{verses}', format_verse_range(reference.verses))
            .replace('{version}', version))
