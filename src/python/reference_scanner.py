"""
Reference Scanner - finds scripture references in a host tree and wraps them
in annotation nodes, in place.

Each scan() call runs in two phases:

  1. Collect: walk the subtree depth-first, classifying every node as
     REJECT (skip the whole subtree), SKIP (descend, but the node itself is
     not a leaf to scan) or ACCEPT (a text leaf to scan). All accepted leaves
     are gathered before anything is mutated.
  2. Annotate: tokenize each collected leaf and split it around its matches,
     replacing the leaf by [before-text, annotation, after-text] pieces.

IMPORTANT CONSTRAINTS:
- Matches inside one leaf are applied in REVERSE start order so splitting
  never shifts the offsets of matches still waiting to be applied; results
  are handed back left to right.
- Every node the scanner creates, and every leaf it has already read, is
  recorded in a visited table owned by this scanner. Repeated scans of the
  same tree are therefore idempotent until clear_visited() is called.
- The root's ancestors are classified before anything else: a root sitting
  inside an excluded, hidden or annotated subtree yields nothing.
- Nothing here raises on bad input: bad selectors, failing predicates and
  leaves that disappear mid-scan only shrink the result.
"""

import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from canon_registry import CanonRegistry
from document_model import TreeAdapter
from reference_parser import ReferenceTokenizer, ScriptureReference
from scanner_config import ExclusionRules, TaggerConfig, parse_exclude_selectors


# Node classification results
FILTER_ACCEPT = 'accept'
FILTER_SKIP = 'skip'
FILTER_REJECT = 'reject'


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass
class ScannedReference:
    """A reference annotated in the tree, paired with its annotation node."""
    reference: ScriptureReference
    node: Any  # Annotation node handle in the host tree

    @property
    def matched_text(self) -> str:
        return self.reference.text

    @property
    def book_code(self) -> str:
        return self.reference.book

    @property
    def chapter(self) -> int:
        return self.reference.chapter

    @property
    def verse_expression(self) -> str:
        return self.reference.verse_expression

    @property
    def edition(self) -> Optional[str]:
        return self.reference.version

    @property
    def start_offset(self) -> int:
        return self.reference.start_index

    @property
    def end_offset(self) -> int:
        return self.reference.end_index

    def to_dict(self) -> Dict[str, Any]:
        return self.reference.to_dict()


@dataclass
class ScanMetadata:
    """Counters and timing for the most recent scan."""
    nodes_visited: int = 0
    leaves_collected: int = 0
    leaves_annotated: int = 0
    leaves_abandoned: int = 0
    reference_count: int = 0
    total_time: float = 0.0  # ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodesVisited': self.nodes_visited,
            'leavesCollected': self.leaves_collected,
            'leavesAnnotated': self.leaves_annotated,
            'leavesAbandoned': self.leaves_abandoned,
            'referenceCount': self.reference_count,
            'totalTime': self.total_time,
        }


# ============================================================================
# DEBUG LOGGING
# ============================================================================

def _debug_log(message: str, debug: bool = False, prefix: str = "[Scanner]"):
    """Print debug message if debug mode is enabled."""
    if debug:
        print(f"{prefix} {message}", file=sys.stderr, flush=True)


def _preview(text: str, limit: int = 50) -> str:
    snippet = text[:limit].replace('\n', ' ')
    return snippet + ('...' if len(text) > limit else '')


# ============================================================================
# SCANNER
# ============================================================================

class ReferenceScanner:
    """
    Scans host trees for scripture references and annotates them.

    The visited table maps id(node) to the node itself. Holding the node keeps
    its id from being reused while the entry exists; entries live until
    clear_visited() is called.
    """

    def __init__(
        self,
        adapter: TreeAdapter,
        config: Optional[TaggerConfig] = None,
        tokenizer: Optional[ReferenceTokenizer] = None,
        registry: Optional[CanonRegistry] = None
    ):
        self.adapter = adapter
        self.config = config or TaggerConfig()
        self.tokenizer = tokenizer or ReferenceTokenizer(registry or CanonRegistry(),
                                                         debug=self.config.debug)
        self.rules: ExclusionRules = parse_exclude_selectors(self.config.exclude_selectors)
        self.scan_metadata = ScanMetadata()
        self._visited: Dict[int, Any] = {}
        self._invalid_selectors: set = set()
        self._predicate_failed = False

    @property
    def debug(self) -> bool:
        return self.config.debug

    def update_config(self, config: TaggerConfig):
        """Swap in a new config and re-parse its exclusion rules."""
        self.config = config
        self.tokenizer.debug = config.debug
        self.rules = parse_exclude_selectors(config.exclude_selectors)
        self._invalid_selectors = set()

    # ------------------------------------------------------------------
    # Visited table
    # ------------------------------------------------------------------

    def mark_visited(self, node: Any):
        self._visited[id(node)] = node

    def is_visited(self, node: Any) -> bool:
        return self._visited.get(id(node)) is node

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    def clear_visited(self):
        """Forget every visited node so the next scan reconsiders everything."""
        _debug_log(f"Clearing {len(self._visited)} visited node(s)", self.debug)
        self._visited = {}

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _matches_complex_selector(self, node: Any) -> bool:
        selector = self.rules.complex_selector
        if not selector or selector in self._invalid_selectors:
            return False
        try:
            return bool(self.adapter.matches(node, selector))
        except Exception as e:
            # An unusable selector never excludes anything
            self._invalid_selectors.add(selector)
            _debug_log(f"WARNING: Invalid exclude_selectors '{selector}': {e}", True)
            return False

    def _matches_predicate(self, node: Any) -> bool:
        predicate = self.config.exclude_predicate
        if predicate is None:
            return False
        try:
            return bool(predicate(node))
        except Exception as e:
            if not self._predicate_failed:
                _debug_log(f"WARNING: exclude_predicate raised {type(e).__name__}: {e}; "
                           f"treating as non-matching", True)
            self._predicate_failed = True
            return False

    def _classify_element(self, node: Any) -> str:
        adapter = self.adapter
        rules = self.rules
        tag = adapter.tag_name(node)

        if adapter.is_annotation(node, self.config) or self.is_visited(node):
            _debug_log(f"REJECT - existing verse reference <{tag}>", self.debug)
            return FILTER_REJECT

        if tag.lower() in rules.tags:
            _debug_log(f"REJECT - tag excluded: <{tag}>", self.debug)
            return FILTER_REJECT

        element_id = adapter.element_id(node)
        if element_id and element_id in rules.ids:
            _debug_log(f"REJECT - id excluded: #{element_id}", self.debug)
            return FILTER_REJECT

        for class_name in adapter.class_names(node):
            if class_name in rules.classes:
                _debug_log(f"REJECT - class excluded: .{class_name}", self.debug)
                return FILTER_REJECT

        if self._matches_complex_selector(node):
            _debug_log(f"REJECT - matches complex exclude selector: <{tag}>", self.debug)
            return FILTER_REJECT

        if self._matches_predicate(node):
            _debug_log(f"REJECT - matches exclude predicate: <{tag}>", self.debug)
            return FILTER_REJECT

        if not adapter.is_visible(node):
            _debug_log(f"REJECT - not visible: <{tag}>", self.debug)
            return FILTER_REJECT

        if not adapter.is_scannable(node):
            _debug_log(f"REJECT - editable or aria-hidden: <{tag}>", self.debug)
            return FILTER_REJECT

        return FILTER_SKIP

    def _classify_text(self, node: Any) -> str:
        if self.is_visited(node):
            return FILTER_REJECT

        text = self.adapter.get_text(node)
        if not text or not text.strip():
            return FILTER_REJECT

        if not self.adapter.is_attached(node):
            _debug_log("REJECT - text node has no parent", self.debug)
            return FILTER_REJECT

        _debug_log(f"ACCEPT \"{_preview(text)}\"", self.debug)
        return FILTER_ACCEPT

    def _rejected_by_ancestor(self, node: Any) -> bool:
        """True when an ancestor of node would have rejected the subtree holding it."""
        ancestor = self.adapter.parent(node)
        while ancestor is not None:
            if self.adapter.is_element(ancestor) and self._classify_element(ancestor) == FILTER_REJECT:
                return True
            ancestor = self.adapter.parent(ancestor)
        return False

    def classify(self, node: Any) -> str:
        """Classify one node as FILTER_ACCEPT, FILTER_SKIP or FILTER_REJECT."""
        if self.adapter.is_element(node):
            return self._classify_element(node)
        if self.adapter.is_text(node):
            return self._classify_text(node)
        # Comments, processing instructions and the like
        return FILTER_REJECT

    # ------------------------------------------------------------------
    # Phase 1: collect
    # ------------------------------------------------------------------

    def _collect_leaves(self, root: Any) -> List[Any]:
        """Depth-first, document-order list of text leaves to scan."""
        leaves: List[Any] = []
        stack = [root]

        while stack:
            node = stack.pop()
            self.scan_metadata.nodes_visited += 1
            verdict = self.classify(node)

            if verdict == FILTER_ACCEPT:
                leaves.append(node)
            elif verdict == FILTER_SKIP:
                stack.extend(reversed(list(self.adapter.children(node))))

        return leaves

    # ------------------------------------------------------------------
    # Phase 2: annotate
    # ------------------------------------------------------------------

    def _annotate_leaf(self, leaf: Any) -> List[ScannedReference]:
        """
        Split one text leaf around every reference it contains.

        Working right to left, the current leaf is replaced by
        [before?, annotation, after?]; the before piece becomes the leaf for
        the next (earlier) match, so its offsets are unchanged.
        """
        adapter = self.adapter
        text = adapter.get_text(leaf)
        references = self.tokenizer.parse_all(text)

        if not references:
            self.mark_visited(leaf)
            return []

        scanned: List[ScannedReference] = []
        working = leaf
        limit = len(text)

        for reference in sorted(references, key=lambda r: r.start_index, reverse=True):
            if not adapter.is_attached(working):
                _debug_log(f"WARNING: text node detached before annotating "
                           f"'{reference.text}'; abandoning it", True)
                self.scan_metadata.leaves_abandoned += 1
                break

            before = text[:reference.start_index]
            after = text[reference.end_index:limit]

            annotation = adapter.create_annotation(reference, self.config)
            before_node = adapter.create_text(before) if before else None
            after_node = adapter.create_text(after) if after else None
            new_nodes = [n for n in (before_node, annotation, after_node) if n is not None]

            try:
                adapter.replace_with(working, new_nodes)
            except ValueError as e:
                _debug_log(f"WARNING: could not replace text node for "
                           f"'{reference.text}': {e}; abandoning it", True)
                self.scan_metadata.leaves_abandoned += 1
                break

            for node in new_nodes:
                self.mark_visited(node)

            _debug_log(f"Annotated '{reference.text}' [{reference.start_index}:{reference.end_index}]",
                       self.debug)
            scanned.append(ScannedReference(reference=reference, node=annotation))

            if before_node is None:
                break
            working = before_node
            limit = reference.start_index

        if scanned:
            self.scan_metadata.leaves_annotated += 1

        # Back to left-to-right order
        scanned.reverse()
        return scanned

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self, root: Any) -> List[ScannedReference]:
        """
        Annotate every reference under root and return them in document order.

        Scanning the same root again without clear_visited() returns an empty
        list and changes nothing.
        """
        start_time = time.time()
        self.scan_metadata = ScanMetadata()
        self._predicate_failed = False
        results: List[ScannedReference] = []

        if root is None:
            _debug_log("WARNING: No root node given for scanning", self.debug)
            return results

        if self._rejected_by_ancestor(root):
            _debug_log("Root is inside an excluded region or an existing reference; "
                       "nothing to scan", self.debug)
            return results

        leaves = self._collect_leaves(root)
        self.scan_metadata.leaves_collected = len(leaves)
        _debug_log(f"Collected {len(leaves)} text node(s) to process", self.debug)

        for leaf in leaves:
            results.extend(self._annotate_leaf(leaf))

        self.scan_metadata.reference_count = len(results)
        self.scan_metadata.total_time = (time.time() - start_time) * 1000
        _debug_log(f"Found {len(results)} reference(s) in "
                   f"{self.scan_metadata.total_time:.1f}ms", self.debug)
        return results
