from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .base_strategy import ExtractionContext, LinkStrategy
from .descent import RecursiveDescentStrategy
from .hal import HalLinksStrategy
from .jsonapi import JsonApiLinksStrategy
from ...errors import ExtractionAnomaly
from ...models.endpoint_model import EndpointRecord, FrontierItem


@dataclass
class ExtractionOutcome:
    """Candidate records and skipped link objects for one document."""

    records: List[EndpointRecord] = field(default_factory=list)
    anomalies: List[ExtractionAnomaly] = field(default_factory=list)


class ExtractionEngine:
    """
    Runs the link strategies over a decoded JSON document.

    Synchronous and side-effect free. Candidates are returned in strategy
    order and may contain duplicates; deduplication happens downstream.
    """

    def __init__(self, strategies: Optional[Sequence[LinkStrategy]] = None):
        # Order matters: link-block strategies consume their containers
        # before the descent walks the document.
        self.strategies: List[LinkStrategy] = list(strategies) if strategies else [
            HalLinksStrategy(),
            JsonApiLinksStrategy(),
            RecursiveDescentStrategy(),
        ]

    def extract_with_anomalies(self, document: Any, source: FrontierItem) -> ExtractionOutcome:
        context = ExtractionContext(source=source)
        for strategy in self.strategies:
            strategy.extract(document, context)
        return ExtractionOutcome(records=context.records, anomalies=context.anomalies)

    def extract(self, document: Any, source: FrontierItem) -> List[EndpointRecord]:
        """Return the candidate records found in document."""
        return self.extract_with_anomalies(document, source).records
