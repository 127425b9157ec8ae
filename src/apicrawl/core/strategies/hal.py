from typing import Any

from .base_strategy import ExtractionContext, LinkStrategy
from ...models.json_value import JsonKind, kind_of


class HalLinksStrategy(LinkStrategy):
    """
    Strategy for HAL documents (top-level ``_links`` object).

    Features:
    - One record per href, relation taken from the link name
    - Arrays of link objects under one name
    - ``self`` links are skipped; the page itself is already known
    """

    name = 'hal'
    container_key = '_links'

    def extract(self, document: Any, context: ExtractionContext) -> None:
        if kind_of(document) != JsonKind.OBJECT:
            return
        links = document.get(self.container_key)
        if links is None or kind_of(links) != JsonKind.OBJECT:
            return

        context.consume(links)
        for relation, link_data in links.items():
            if relation == 'self':
                continue
            self._extract_link_data(
                context,
                relation,
                link_data,
                f"$.{self.container_key}.{relation}"
            )
