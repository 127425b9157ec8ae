from typing import Any

from .base_strategy import ExtractionContext, LinkStrategy
from ...errors import ExtractionAnomaly
from ...models.json_value import JsonKind, kind_of


class JsonApiLinksStrategy(LinkStrategy):
    """
    Strategy for JSON:API style documents (top-level ``links``).

    Features:
    - ``links`` object: values are bare addresses or ``{href, ...}``
    - ``links`` array: ``{href, rel, ...}`` objects, relation from ``rel``
    - ``self`` links are skipped, as for HAL
    """

    name = 'jsonapi'
    container_key = 'links'

    def extract(self, document: Any, context: ExtractionContext) -> None:
        if kind_of(document) != JsonKind.OBJECT:
            return
        links = document.get(self.container_key)
        if links is None:
            return

        kind = kind_of(links)
        if kind == JsonKind.OBJECT:
            context.consume(links)
            for relation, link_data in links.items():
                if relation == 'self':
                    continue
                self._extract_link_data(
                    context,
                    relation,
                    link_data,
                    f"$.links.{relation}"
                )
        elif kind == JsonKind.ARRAY:
            context.consume(links)
            for index, item in enumerate(links):
                self._extract_array_item(context, item, f"$.links[{index}]")

    def _extract_array_item(
        self,
        context: ExtractionContext,
        item: Any,
        path: str
    ) -> None:
        if kind_of(item) != JsonKind.OBJECT or 'href' not in item:
            context.anomalies.append(
                ExtractionAnomaly("Link array entry without href", path=path)
            )
            return
        rel = item.get('rel')
        relation = rel if kind_of(rel) == JsonKind.STRING else None
        if relation == 'self':
            return
        self._add_record(context, item['href'], relation, item, path)
