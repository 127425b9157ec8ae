from typing import Any, Optional

from .base_strategy import ExtractionContext, LinkStrategy
from ...models.json_value import JsonKind, is_container, kind_of


class RecursiveDescentStrategy(LinkStrategy):
    """
    Walks every object and array not consumed by an earlier strategy.

    Each object node is matched as follows, then its children are
    visited:
    - href-bearing object: ``href`` (any string) or URL-looking ``url``,
      with an optional ``rel``; without ``rel`` the enclosing key names
      the relation; a ``url`` object is also scanned for link properties
    - string properties whose key names a link (``next_url``,
      ``avatar_uri``, ``self_link``) and whose value looks like a URL
    """

    name = 'descent'

    def extract(self, document: Any, context: ExtractionContext) -> None:
        self._walk(document, context, None, '$')

    def _walk(
        self,
        node: Any,
        context: ExtractionContext,
        enclosing_key: Optional[str],
        path: str
    ) -> None:
        if context.is_consumed(node):
            return

        kind = kind_of(node)
        if kind == JsonKind.OBJECT:
            address_key = self._match_href_object(node, context, enclosing_key, path)
            if address_key != 'href':
                self._match_link_properties(node, context, path, skip=address_key)
            for key, value in node.items():
                if is_container(value):
                    self._walk(value, context, key, f"{path}.{key}")
        elif kind == JsonKind.ARRAY:
            for index, item in enumerate(node):
                self._walk(item, context, enclosing_key, f"{path}[{index}]")

    def _match_href_object(
        self,
        node: dict,
        context: ExtractionContext,
        enclosing_key: Optional[str],
        path: str
    ) -> Optional[str]:
        """Returns the key that supplied the address, or None."""
        if 'href' in node:
            address_key = 'href'
        elif kind_of(node.get('url')) == JsonKind.STRING and self.utils.looks_like_url(node['url']):
            address_key = 'url'
        else:
            return None

        rel = node.get('rel')
        relation = rel if kind_of(rel) == JsonKind.STRING else enclosing_key
        self._add_record(
            context,
            node[address_key],
            relation,
            node,
            f"{path}.{address_key}",
            address_key=address_key
        )
        return address_key

    def _match_link_properties(
        self,
        node: dict,
        context: ExtractionContext,
        path: str,
        skip: Optional[str] = None
    ) -> None:
        for key, value in node.items():
            if key == skip or kind_of(value) != JsonKind.STRING:
                continue
            if self.utils.is_link_key(key) and self.utils.looks_like_url(value):
                self._add_record(context, value, key, None, f"{path}.{key}")
