from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from ...errors import ExtractionAnomaly
from ...models.endpoint_model import EndpointRecord, FrontierItem, KNOWN_LINK_FIELDS
from ...models.json_value import JsonKind, kind_of
from ...utils.url_utils import UrlUtils


@dataclass
class ExtractionContext:
    """Mutable state shared by the strategies run over one document."""

    source: FrontierItem
    records: List[EndpointRecord] = field(default_factory=list)
    anomalies: List[ExtractionAnomaly] = field(default_factory=list)
    _consumed: Set[int] = field(default_factory=set)

    def consume(self, node: Any) -> None:
        """Mark a container as handled so later strategies do not walk it."""
        self._consumed.add(id(node))

    def is_consumed(self, node: Any) -> bool:
        return id(node) in self._consumed


class LinkStrategy(ABC):
    """
    Base class for link extraction strategies.
    Provides the record-building rules shared by all strategies.
    """

    name = 'base'

    def __init__(self):
        self.utils = UrlUtils()

    @abstractmethod
    def extract(self, document: Any, context: ExtractionContext) -> None:
        """Append the records this strategy finds in document to context."""

    def _extract_link_data(
        self,
        context: ExtractionContext,
        relation: Optional[str],
        link_data: Any,
        path: str
    ) -> None:
        """
        Handle the value of a named link: a bare address, a link object,
        or an array of either.
        """
        kind = kind_of(link_data)
        if kind == JsonKind.STRING:
            self._add_record(context, link_data, relation, None, path)
        elif kind == JsonKind.OBJECT:
            if 'href' not in link_data:
                context.anomalies.append(
                    ExtractionAnomaly("Link object without href", path=path)
                )
                return
            self._add_record(context, link_data['href'], relation, link_data, path)
        elif kind == JsonKind.ARRAY:
            for index, item in enumerate(link_data):
                self._extract_link_data(context, relation, item, f"{path}[{index}]")
        elif kind != JsonKind.NULL:
            # null is how paginated APIs spell "no prev/next link"
            context.anomalies.append(
                ExtractionAnomaly(
                    f"Unexpected {kind.value} as link value",
                    href=link_data,
                    path=path
                )
            )

    def _add_record(
        self,
        context: ExtractionContext,
        href: Any,
        relation: Optional[str],
        link_object: Optional[Mapping[str, Any]],
        path: str,
        address_key: str = 'href'
    ) -> Optional[EndpointRecord]:
        """
        Build a record from an href and its (optional) link object.

        Known link fields populate the record; every other sibling key goes
        to metadata verbatim.
        """
        if kind_of(href) != JsonKind.STRING:
            context.anomalies.append(
                ExtractionAnomaly("href is not a string", href=href, path=path)
            )
            return None

        try:
            address = self.utils.normalize_url(href, context.source.address)
        except ValueError as e:
            context.anomalies.append(ExtractionAnomaly(str(e), href=href, path=path))
            return None

        fields: Dict[str, Optional[str]] = {}
        metadata: Dict[str, Any] = {}
        if link_object is not None:
            fields = {
                'rel': _scalar_text(link_object.get('rel')),
                'method': _scalar_text(link_object.get('method')),
                'type': _scalar_text(link_object.get('type')),
                'title': _scalar_text(link_object.get('title')),
            }
            metadata = {
                key: value
                for key, value in link_object.items()
                if key not in KNOWN_LINK_FIELDS and key != address_key
            }

        record = EndpointRecord(
            address=address,
            relation=relation if relation is not None else fields.get('rel'),
            depth=context.source.depth + 1,
            parent_address=context.source.address,
            method=fields.get('method'),
            content_type=fields.get('type'),
            title=fields.get('title'),
            metadata=metadata
        )
        context.records.append(record)
        return record


def _scalar_text(value: Any) -> Optional[str]:
    """Text form of a declared field; containers and null yield None."""
    kind = kind_of(value)
    if kind == JsonKind.STRING:
        return value
    if kind == JsonKind.BOOL:
        return 'true' if value else 'false'
    if kind == JsonKind.NUMBER:
        return str(value)
    return None
