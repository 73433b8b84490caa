"""
Document Model - host tree contract and an in-memory document tree.

The reference scanner never touches a concrete tree directly. It walks and
mutates whatever tree it is given through a TreeAdapter, which exposes a
small traversal + mutation contract:

- children of a node, in document order
- element/text classification
- tag name, id, classes, attributes, selector matching and visibility
- text of a leaf and in-place replacement of a leaf by a node sequence

This module defines that contract and ships the in-memory tree used by
tests and by callers that build documents programmatically:

- Stable UUIDs on all nodes
- Parent links so leaves can be replaced in place
- JSON-serializable via to_dict()

html_document.py provides the same contract over a BeautifulSoup tree.
"""

import json
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from reference_parser import ScriptureReference
from scanner_config import TaggerConfig, build_reference_url


# ============================================================================
# TYPE ALIASES
# ============================================================================

NodeId = str  # UUID v4 format
Version = int  # Monotonically increasing


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def generate_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current timestamp in ISO 8601 format."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f') + 'Z'


# ============================================================================
# NODE TYPES
# ============================================================================

@dataclass(eq=False)
class BaseNode:
    """Base class for all document nodes. Nodes compare by identity."""
    id: NodeId
    type: str
    version: Version
    updated_at: str
    parent: Optional['ElementNode'] = field(default=None, repr=False)

    def base_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'version': self.version,
            'updatedAt': self.updated_at,
        }


@dataclass(eq=False)
class TextNode(BaseNode):
    """Plain text node - leaf node containing actual text content."""
    content: str = ''

    def __init__(self, content: str, id: Optional[NodeId] = None, version: Version = 1):
        self.id = id or generate_node_id()
        self.type = 'text'
        self.version = version
        self.updated_at = now_iso()
        self.parent = None
        self.content = content

    def text_content(self) -> str:
        return self.content

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.base_dict(),
            'content': self.content,
        }


@dataclass(eq=False)
class ElementNode(BaseNode):
    """
    Element node - container with a tag name, attributes and children.

    Formatting properties:
    - classes: class names, in order
    - attributes: every other attribute, including 'id', 'hidden',
      'contenteditable' and 'aria-hidden'
    - style: inline style properties, e.g. {'display': 'none'}
    """
    tag: str = 'div'
    children: List[BaseNode] = field(default_factory=list)
    classes: List[str] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)
    style: Dict[str, str] = field(default_factory=dict)

    def __init__(
        self,
        tag: str,
        children: Optional[List[BaseNode]] = None,
        classes: Optional[List[str]] = None,
        attributes: Optional[Dict[str, str]] = None,
        style: Optional[Dict[str, str]] = None,
        id: Optional[NodeId] = None,
        version: Version = 1
    ):
        self.id = id or generate_node_id()
        self.type = 'element'
        self.version = version
        self.updated_at = now_iso()
        self.parent = None
        self.tag = tag.lower()
        self.classes = list(classes or [])
        self.attributes = dict(attributes or {})
        self.style = {k.lower(): v.strip().lower() for k, v in (style or {}).items()}
        self.children = []
        for child in children or []:
            self.append(child)

    @property
    def element_id(self) -> Optional[str]:
        return self.attributes.get('id')

    def append(self, child: BaseNode) -> BaseNode:
        """Append a child, detaching it from any previous parent."""
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def index_of(self, child: BaseNode) -> int:
        """Position of child by identity, or -1."""
        for i, existing in enumerate(self.children):
            if existing is child:
                return i
        return -1

    def remove(self, child: BaseNode) -> None:
        index = self.index_of(child)
        if index >= 0:
            del self.children[index]
            child.parent = None

    def text_content(self) -> str:
        return ''.join(child.text_content() for child in self.children)

    def iter_nodes(self) -> Iterator[BaseNode]:
        """Depth-first, document-order iteration starting at this node."""
        yield self
        for child in list(self.children):
            if isinstance(child, ElementNode):
                yield from child.iter_nodes()
            else:
                yield child

    def to_dict(self) -> Dict[str, Any]:
        result = {
            **self.base_dict(),
            'tag': self.tag,
            'children': [c.to_dict() for c in self.children],
        }
        if self.classes:
            result['classes'] = list(self.classes)
        if self.attributes:
            result['attributes'] = dict(self.attributes)
        if self.style:
            result['style'] = dict(self.style)
        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(eq=False)
class ReferenceNode(ElementNode):
    """Annotation node - wraps the matched text of one scripture reference."""
    reference: Optional[ScriptureReference] = None

    def __init__(
        self,
        reference: ScriptureReference,
        tag: str = 'span',
        classes: Optional[List[str]] = None,
        attributes: Optional[Dict[str, str]] = None,
        id: Optional[NodeId] = None,
        version: Version = 1
    ):
        super().__init__(tag, children=[TextNode(reference.text)], classes=classes,
                         attributes=attributes, id=id, version=version)
        self.type = 'reference'
        self.reference = reference

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            'reference': self.reference.to_dict(),
        }


DocumentNode = Union[ElementNode, TextNode, ReferenceNode]


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_text_node(content: str) -> TextNode:
    """Create a new text node."""
    return TextNode(content=content)


def create_element(
    tag: str,
    *children: Union[BaseNode, str],
    classes: Optional[List[str]] = None,
    attributes: Optional[Dict[str, str]] = None,
    style: Optional[Dict[str, str]] = None
) -> ElementNode:
    """Create an element; plain string children become text nodes."""
    nodes = [TextNode(c) if isinstance(c, str) else c for c in children]
    return ElementNode(tag, children=nodes, classes=classes, attributes=attributes, style=style)


def create_document_root(children: Optional[List[BaseNode]] = None) -> ElementNode:
    """Create a new document root (a body element)."""
    return ElementNode('body', children=children)


# ============================================================================
# SELECTORS
# ============================================================================

# One compound selector: optional tag or *, then .class / #id / [attr] / [attr=value] parts
_COMPOUND_RE = re.compile(r'^(?P<tag>\*|[a-zA-Z][a-zA-Z0-9-]*)?(?P<rest>.*)$')
_COMPOUND_PART_RE = re.compile(
    r'\.(?P<cls>[\w-]+)'
    r'|#(?P<id>[\w-]+)'
    r'|\[\s*(?P<attr>[\w-]+)\s*(?:=\s*(?:"(?P<dq>[^"]*)"|\'(?P<sq>[^\']*)\'|(?P<bare>[^\]\s"\']+))\s*)?\]'
)
_COMBINATOR_SPLIT_RE = re.compile(r'(\s*>\s*|\s+)')

# (tag or None, classes, ids, [(attr, value or None)])
Compound = Tuple[Optional[str], List[str], List[str], List[Tuple[str, Optional[str]]]]


def _parse_compound(text: str) -> Compound:
    match = _COMPOUND_RE.match(text)
    tag = match.group('tag')
    rest = match.group('rest')
    if not tag and not rest:
        raise ValueError(f"Empty selector component in '{text}'")

    classes: List[str] = []
    ids: List[str] = []
    attrs: List[Tuple[str, Optional[str]]] = []
    position = 0
    for part in _COMPOUND_PART_RE.finditer(rest):
        if part.start() != position:
            break
        position = part.end()
        if part.group('cls'):
            classes.append(part.group('cls'))
        elif part.group('id'):
            ids.append(part.group('id'))
        else:
            value = part.group('dq')
            if value is None:
                value = part.group('sq')
            if value is None:
                value = part.group('bare')
            attrs.append((part.group('attr').lower(), value))
    if position != len(rest):
        raise ValueError(f"Unsupported selector syntax: '{text}'")

    return (tag.lower() if tag and tag != '*' else None), classes, ids, attrs


def parse_selector(selector: str) -> List[List[Tuple[str, Compound]]]:
    """
    Parse a selector list into chains of (combinator, compound).

    Supports tag, *, .class, #id, [attr], [attr=value], the descendant
    (whitespace) and child (>) combinators, and comma-separated lists.
    Anything else raises ValueError.
    """
    chains: List[List[Tuple[str, Compound]]] = []
    for part in selector.split(','):
        part = part.strip()
        if not part:
            raise ValueError(f"Empty selector in list '{selector}'")
        tokens = _COMBINATOR_SPLIT_RE.split(part)
        chain: List[Tuple[str, Compound]] = []
        combinator = ''
        for i, token in enumerate(tokens):
            if i % 2 == 1:
                combinator = '>' if '>' in token else ' '
                continue
            chain.append((combinator, _parse_compound(token)))
        chains.append(chain)
    return chains


def _matches_compound(node: ElementNode, compound: Compound) -> bool:
    tag, classes, ids, attrs = compound
    if tag and node.tag != tag:
        return False
    if any(c not in node.classes for c in classes):
        return False
    if any(node.element_id != i for i in ids):
        return False
    for name, value in attrs:
        if name == 'class':
            actual = ' '.join(node.classes) if node.classes else None
        else:
            actual = node.attributes.get(name)
        if actual is None or (value is not None and actual != value):
            return False
    return True


def _matches_chain(node: ElementNode, chain: List[Tuple[str, Compound]], index: int) -> bool:
    combinator, compound = chain[index]
    if not _matches_compound(node, compound):
        return False
    if index == 0:
        return True

    parent = node.parent
    if combinator == '>':
        return parent is not None and _matches_chain(parent, chain, index - 1)

    while parent is not None:
        if _matches_chain(parent, chain, index - 1):
            return True
        parent = parent.parent
    return False


def element_matches(node: ElementNode, selector: str) -> bool:
    """Test an element against a selector list. Invalid selectors raise ValueError."""
    return any(_matches_chain(node, chain, len(chain) - 1) for chain in parse_selector(selector))


# ============================================================================
# HOST TREE CONTRACT
# ============================================================================

class TreeAdapter(ABC):
    """
    Traversal + mutation contract the scanner works through.

    Any mutation must preserve the order and linkage of untouched siblings.
    """

    @abstractmethod
    def children(self, node: Any) -> Sequence[Any]:
        """Child nodes in document order (empty for leaves)."""

    @abstractmethod
    def parent(self, node: Any) -> Optional[Any]:
        """Parent node, or None at the top of the tree."""

    @abstractmethod
    def is_element(self, node: Any) -> bool:
        ...

    @abstractmethod
    def is_text(self, node: Any) -> bool:
        ...

    @abstractmethod
    def tag_name(self, node: Any) -> str:
        """Lower-case tag name of an element."""

    @abstractmethod
    def element_id(self, node: Any) -> Optional[str]:
        ...

    @abstractmethod
    def class_names(self, node: Any) -> Sequence[str]:
        ...

    @abstractmethod
    def get_attribute(self, node: Any, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def matches(self, node: Any, selector: str) -> bool:
        """Selector test; may raise for a selector the host cannot parse."""

    @abstractmethod
    def is_visible(self, node: Any) -> bool:
        """False when the element is not presented (hidden, display:none, ...)."""

    @abstractmethod
    def is_attached(self, node: Any) -> bool:
        """True while the node still sits in a tree and can be replaced."""

    @abstractmethod
    def get_text(self, node: Any) -> str:
        ...

    @abstractmethod
    def create_text(self, text: str) -> Any:
        ...

    @abstractmethod
    def create_annotation(self, reference: ScriptureReference, config: TaggerConfig) -> Any:
        ...

    @abstractmethod
    def replace_with(self, node: Any, new_nodes: Sequence[Any]) -> None:
        """Replace node in its parent by new_nodes, in order."""

    def is_annotation(self, node: Any, config: TaggerConfig) -> bool:
        """True for annotation elements produced by the tagger."""
        return self.is_element(node) and config.reference_class in self.class_names(node)

    def is_scannable(self, node: Any) -> bool:
        """Editable regions and content hidden from assistive technology are left alone."""
        if (self.get_attribute(node, 'contenteditable') or '').lower() == 'true':
            return False
        if (self.get_attribute(node, 'aria-hidden') or '').lower() == 'true':
            return False
        return True

    def annotation_attributes(self, reference: ScriptureReference, config: TaggerConfig) -> Dict[str, str]:
        """Attributes carried by an annotation element."""
        attributes = {
            'data-book': reference.book,
            'data-chapter': str(reference.chapter),
            'data-verses': reference.verse_expression,
        }
        if reference.version:
            attributes['data-version'] = reference.version

        if config.renders_links:
            attributes['href'] = build_reference_url(reference, config)
            if config.open_links_in_new_tab:
                attributes['target'] = '_blank'
                attributes['rel'] = 'noopener noreferrer'

        if config.shows_modal:
            attributes['role'] = 'button'
            attributes['tabindex'] = '0'
            attributes['aria-label'] = f"Show verse: {reference.text}"
            if config.keyboard_nav:
                attributes['aria-haspopup'] = 'dialog'
            attributes['data-has-modal'] = 'true'

        return attributes


class DocumentTreeAdapter(TreeAdapter):
    """TreeAdapter over the in-memory document model."""

    def children(self, node: Any) -> Sequence[Any]:
        if isinstance(node, ElementNode):
            return list(node.children)
        return []

    def parent(self, node: Any) -> Optional[Any]:
        return getattr(node, 'parent', None)

    def is_element(self, node: Any) -> bool:
        return isinstance(node, ElementNode)

    def is_text(self, node: Any) -> bool:
        return isinstance(node, TextNode)

    def tag_name(self, node: Any) -> str:
        return node.tag

    def element_id(self, node: Any) -> Optional[str]:
        return node.element_id

    def class_names(self, node: Any) -> Sequence[str]:
        return node.classes

    def get_attribute(self, node: Any, name: str) -> Optional[str]:
        if name == 'class':
            return ' '.join(node.classes) if node.classes else None
        return node.attributes.get(name)

    def matches(self, node: Any, selector: str) -> bool:
        return element_matches(node, selector)

    def is_visible(self, node: Any) -> bool:
        if 'hidden' in node.attributes:
            return False
        if node.style.get('display') == 'none':
            return False
        if node.style.get('visibility') == 'hidden':
            return False
        return True

    def is_attached(self, node: Any) -> bool:
        return node.parent is not None and node.parent.index_of(node) >= 0

    def get_text(self, node: Any) -> str:
        return node.content

    def create_text(self, text: str) -> TextNode:
        return TextNode(text)

    def create_annotation(self, reference: ScriptureReference, config: TaggerConfig) -> ReferenceNode:
        return ReferenceNode(
            reference,
            tag='a' if config.renders_links else 'span',
            classes=[config.reference_class],
            attributes=self.annotation_attributes(reference, config),
        )

    def is_annotation(self, node: Any, config: TaggerConfig) -> bool:
        return isinstance(node, ReferenceNode) or super().is_annotation(node, config)

    def replace_with(self, node: Any, new_nodes: Sequence[Any]) -> None:
        parent = node.parent
        index = parent.index_of(node) if parent is not None else -1
        if index < 0:
            raise ValueError("Cannot replace a node that is not attached to a parent")

        for new_node in new_nodes:
            if new_node.parent is not None:
                new_node.parent.remove(new_node)
            new_node.parent = parent
        parent.children[index:index + 1] = list(new_nodes)
        node.parent = None
