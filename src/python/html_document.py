"""
HTML host tree: the TreeAdapter contract over a BeautifulSoup document.

Lets the reference scanner annotate arbitrary HTML:

    html_out, references = annotate_html('<p>Read John 3:16 today</p>')

Text leaves are NavigableStrings (comments, CDATA and doctypes are not
text). Complex exclude selectors are matched with soupsieve through
Tag.css; selector syntax errors propagate to the scanner, which treats the
selector as non-matching.
"""

import re
from typing import Any, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from document_model import TreeAdapter
from reference_parser import ScriptureReference
from reference_scanner import ReferenceScanner, ScannedReference
from scanner_config import TaggerConfig


_DISPLAY_NONE_RE = re.compile(r'(?:^|;)\s*display\s*:\s*none\s*(?:!important\s*)?(?:;|$)', re.IGNORECASE)
_VISIBILITY_HIDDEN_RE = re.compile(r'(?:^|;)\s*visibility\s*:\s*hidden\s*(?:!important\s*)?(?:;|$)',
                                   re.IGNORECASE)


class HtmlTreeAdapter(TreeAdapter):
    """TreeAdapter over a BeautifulSoup tree."""

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    def children(self, node: Any) -> Sequence[Any]:
        if isinstance(node, Tag):
            return list(node.children)
        return []

    def parent(self, node: Any) -> Optional[Any]:
        return node.parent

    def is_element(self, node: Any) -> bool:
        return isinstance(node, Tag)

    def is_text(self, node: Any) -> bool:
        return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)

    def tag_name(self, node: Any) -> str:
        return (node.name or '').lower()

    def element_id(self, node: Any) -> Optional[str]:
        return node.get('id')

    def class_names(self, node: Any) -> Sequence[str]:
        classes = node.get('class') or []
        if isinstance(classes, str):
            return classes.split()
        return classes

    def get_attribute(self, node: Any, name: str) -> Optional[str]:
        value = node.get(name)
        if isinstance(value, list):
            return ' '.join(value)
        return value

    def matches(self, node: Any, selector: str) -> bool:
        if isinstance(node, BeautifulSoup):
            return False
        return node.css.match(selector)

    def is_visible(self, node: Any) -> bool:
        if node.has_attr('hidden'):
            return False
        style = self.get_attribute(node, 'style') or ''
        if _DISPLAY_NONE_RE.search(style) or _VISIBILITY_HIDDEN_RE.search(style):
            return False
        return True

    def is_attached(self, node: Any) -> bool:
        return node.parent is not None

    def get_text(self, node: Any) -> str:
        return str(node)

    def create_text(self, text: str) -> NavigableString:
        return NavigableString(text)

    def create_annotation(self, reference: ScriptureReference, config: TaggerConfig) -> Tag:
        tag = self.soup.new_tag('a' if config.renders_links else 'span')
        tag['class'] = [config.reference_class]
        for name, value in self.annotation_attributes(reference, config).items():
            tag[name] = value
        tag.string = reference.text
        return tag

    def replace_with(self, node: Any, new_nodes: Sequence[Any]) -> None:
        node.replace_with(*new_nodes)


def annotate_html(
    html: str,
    config: Optional[TaggerConfig] = None,
    parser: str = 'html.parser'
) -> Tuple[str, List[ScannedReference]]:
    """
    Annotate every scripture reference in an HTML string.

    Returns the annotated HTML and the list of ScannedReference results.
    """
    soup = BeautifulSoup(html, parser)
    scanner = ReferenceScanner(HtmlTreeAdapter(soup), config=config)
    references = scanner.scan(soup)
    return str(soup), references
