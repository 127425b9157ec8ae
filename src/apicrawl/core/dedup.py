# src/apicrawl/core/dedup.py
import threading
from typing import Callable, Generic, Hashable, Iterable, List, Set, TypeVar

from ..models.endpoint_model import EndpointRecord, IdentityKey

T = TypeVar('T')


class Deduplicator(Generic[T]):
    """
    First-seen filter over a stream of candidates.

    ``accept`` checks and records the candidate's key under one lock, so
    two workers can never both win the same key.
    """

    def __init__(self, key: Callable[[T], Hashable]):
        self._key = key
        self._seen: Set[Hashable] = set()
        self._lock = threading.Lock()

    def accept(self, candidate: T) -> bool:
        """True exactly the first time the candidate's key is seen."""
        key = self._key(candidate)
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def filter(self, candidates: Iterable[T]) -> List[T]:
        return [c for c in candidates if self.accept(c)]

    def seen(self, candidate: T) -> bool:
        with self._lock:
            return self._key(candidate) in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


def _identity(record: EndpointRecord) -> IdentityKey:
    return record.identity_key


def _address(item) -> str:
    return item.address


def identity_deduplicator() -> Deduplicator:
    """Gate for the output list: one record per (address, parent, relation)."""
    return Deduplicator(_identity)


def address_deduplicator() -> Deduplicator:
    """Gate for the frontier: each address is enqueued at most once per run."""
    return Deduplicator(_address)
