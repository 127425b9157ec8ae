from .base_strategy import ExtractionContext, LinkStrategy
from .descent import RecursiveDescentStrategy
from .engine import ExtractionEngine, ExtractionOutcome
from .hal import HalLinksStrategy
from .jsonapi import JsonApiLinksStrategy

__all__ = [
    "ExtractionContext",
    "ExtractionEngine",
    "ExtractionOutcome",
    "HalLinksStrategy",
    "JsonApiLinksStrategy",
    "LinkStrategy",
    "RecursiveDescentStrategy",
]
