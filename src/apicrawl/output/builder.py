"""
Output shapes for a finished crawl.

Every builder is a pure function of a frozen CrawlResult and returns plain
dicts whose keys are inserted in a declared order; serialization never
sorts keys, so identifying fields always precede ``children``.
"""
import json
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config.settings import OutputFormat
from ..models.crawl_result_model import CrawlResult
from ..models.endpoint_model import EndpointRecord, IdentityKey
from ..utils.url_utils import UrlUtils

# Declared order of a tree node's fields; ``children`` is always last.
TREE_NODE_FIELD_ORDER = (
    'address',
    'name',
    'relation',
    'depth',
    'method',
    'content_type',
    'title',
    'metadata',
    'children',
)
_ALWAYS_PRESENT = {'address', 'name', 'relation', 'depth', 'children'}


def _envelope_tail(result: CrawlResult) -> Dict[str, Any]:
    return {
        'statistics': result.statistics.to_dict(),
        'started_at': result.started_at.isoformat(),
        'completed_at': result.completed_at.isoformat(),
        'config': result.config_snapshot,
    }


def build_flat(result: CrawlResult) -> Dict[str, Any]:
    """The record list as discovered, each with its parent address."""
    output: Dict[str, Any] = {
        'seed_url': result.seed_url,
        'state': result.state.value,
        'endpoints': [record.to_dict() for record in result.records],
    }
    output.update(_envelope_tail(result))
    return output


def build_grouped(result: CrawlResult) -> Dict[str, Any]:
    """Parent address -> ordered direct children, plus a summary."""
    hierarchy: Dict[str, List[Dict[str, Any]]] = {}
    for parent, children in result.children_by_parent().items():
        hierarchy[parent] = []
        for record in children:
            child = record.to_dict()
            child.pop('parent_address', None)
            hierarchy[parent].append(child)

    output: Dict[str, Any] = {
        'seed_url': result.seed_url,
        'state': result.state.value,
        'endpoint_hierarchy': hierarchy,
        'summary': {
            'total_endpoints': len(result.records),
            'unique_parents': len(hierarchy),
            'distinct_hosts': len(result.discovered_hosts()),
        },
    }
    output.update(_envelope_tail(result))
    return output


def _tree_node(
    address: str,
    relation: Optional[str],
    depth: int,
    source: Optional[EndpointRecord]
) -> Dict[str, Any]:
    values = {
        'address': address,
        'name': UrlUtils.last_segment(address),
        'relation': relation,
        'depth': depth,
        'method': source.method if source else None,
        'content_type': source.content_type if source else None,
        'title': source.title if source else None,
        'metadata': dict(source.metadata) if source and source.metadata else None,
        'children': [],
    }
    node: Dict[str, Any] = {}
    for name in TREE_NODE_FIELD_ORDER:
        if name in _ALWAYS_PRESENT or values[name] is not None:
            node[name] = values[name]
    return node


class _TreeBuilder:
    """
    Re-derives the hierarchy from flat records.

    Each record is placed once, under the node of its parent address. An
    address reached from several parents is expanded under its first
    occurrence; later occurrences are leaves, which also breaks cycles.
    The seed's first self record supplies the root's fields; any other
    self-referential record is a leaf child of its own node.
    """

    def __init__(self, result: CrawlResult):
        self.seed = result.seed_url
        self.root_record: Optional[EndpointRecord] = next(
            (r for r in result.records if r.is_self_reference and r.address == self.seed),
            None
        )
        self.records = [r for r in result.records if r is not self.root_record]
        self.children: Dict[str, List[EndpointRecord]] = {}
        for record in self.records:
            self.children.setdefault(record.parent_address or self.seed, []).append(record)
        self.expanded: Set[str] = set()
        self.placed: Set[IdentityKey] = set()

    def build(self) -> Tuple[Dict[str, Any], int]:
        """Returns the root node and the number of orphans attached to it."""
        root = _tree_node(
            self.seed,
            self.root_record.relation if self.root_record else None,
            0,
            self.root_record
        )
        self._expand(root)

        orphans = 0
        pending = self._unplaced(self.records)
        while pending:
            # Attach chain heads first so an orphan's own children nest under it
            addresses = {r.address for r in pending}
            heads = [r for r in pending if r.parent_address not in addresses] or pending[:1]
            for record in heads:
                if record.identity_key in self.placed:
                    continue
                orphans += 1
                node = self._place(record)
                root['children'].append(node)
                self._expand(node)
            pending = self._unplaced(pending)
        return root, orphans

    def _unplaced(self, records: List[EndpointRecord]) -> List[EndpointRecord]:
        return [r for r in records if r.identity_key not in self.placed]

    def _place(self, record: EndpointRecord) -> Dict[str, Any]:
        self.placed.add(record.identity_key)
        return _tree_node(record.address, record.relation, record.depth, record)

    def _expand(self, start: Dict[str, Any]) -> None:
        """Depth-first, pre-order expansion without recursion."""
        stack = [start]
        while stack:
            node = stack.pop()
            address = node['address']
            if address in self.expanded:
                continue
            self.expanded.add(address)
            for record in self.children.get(address, []):
                if record.identity_key not in self.placed:
                    node['children'].append(self._place(record))
            stack.extend(reversed(node['children']))

def build_tree(result: CrawlResult) -> Dict[str, Any]:
    """Single root keyed by the seed address, children nested below it."""
    root, orphans = _TreeBuilder(result).build()
    output: Dict[str, Any] = {
        'seed_url': result.seed_url,
        'state': result.state.value,
        'tree': {result.seed_url: root},
        'summary': {
            'total_endpoints': len(result.records),
            'max_depth': max((r.depth for r in result.records), default=0),
            'distinct_hosts': len(result.discovered_hosts()),
            'orphans': orphans,
        },
    }
    output.update(_envelope_tail(result))
    return output


_BUILDERS = {
    OutputFormat.FLAT: build_flat,
    OutputFormat.COMPACT: build_flat,
    OutputFormat.GROUPED: build_grouped,
    OutputFormat.TREE: build_tree,
}


def render(result: CrawlResult, output_format: OutputFormat = OutputFormat.FLAT) -> Dict[str, Any]:
    return _BUILDERS[OutputFormat(output_format)](result)


def serialize(result: CrawlResult, output_format: OutputFormat = OutputFormat.FLAT) -> str:
    """Serialize the chosen shape; compact drops all whitespace."""
    output_format = OutputFormat(output_format)
    document = render(result, output_format)
    if output_format == OutputFormat.COMPACT:
        return json.dumps(document, ensure_ascii=False, separators=(',', ':'), sort_keys=False)
    return json.dumps(document, ensure_ascii=False, indent=2, sort_keys=False)
