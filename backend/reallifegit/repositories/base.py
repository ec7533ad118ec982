"""
In-memory repository base.

Each repository owns one collection: a dict from entity id to a frozen entity
value. Queries follow the document-store shape used throughout the data layer:
an equality ``query`` dict keyed by field name, an optional ``where``
predicate for anything richer, and ``sort`` as a list of ``(field, direction)``
pairs with ``1`` for ascending and ``-1`` for descending.

Repositories do not lock; ``DataStore`` serializes every access.
"""

from __future__ import annotations

from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from reallifegit.entities.base import BaseEntity

T = TypeVar("T", bound=BaseEntity)

SortSpec = Sequence[Tuple[str, int]]
Predicate = Callable[[Any], bool]


def sort_entities(items: Iterable[T], sort: Optional[SortSpec]) -> List[T]:
    """
    Stable multi-key sort. Missing (None) values go last in either direction.
    """
    result = list(items)
    if not sort:
        return result

    # Apply keys from least to most significant; each pass is stable.
    for field, direction in reversed(list(sort)):
        present = [item for item in result if getattr(item, field, None) is not None]
        missing = [item for item in result if getattr(item, field, None) is None]
        present.sort(key=lambda item: getattr(item, field), reverse=direction < 0)
        result = present + missing
    return result


class BaseRepository(Generic[T]):
    """Dict-backed collection of one entity type."""

    def __init__(self, collection_name: str, model_class: Type[T]):
        self.collection_name = collection_name
        self.model_class = model_class
        self._documents: Dict[str, T] = {}

    def _matches(
        self,
        entity: T,
        query: Optional[Dict[str, Any]],
        where: Optional[Predicate],
    ) -> bool:
        if query:
            for field, expected in query.items():
                if getattr(entity, field, None) != expected:
                    return False
        if where is not None and not where(entity):
            return False
        return True

    def find_by_id(self, entity_id: str) -> Optional[T]:
        return self._documents.get(entity_id)

    def find_one(
        self,
        query: Optional[Dict[str, Any]] = None,
        where: Optional[Predicate] = None,
    ) -> Optional[T]:
        for entity in self._documents.values():
            if self._matches(entity, query, where):
                return entity
        return None

    def find_many(
        self,
        query: Optional[Dict[str, Any]] = None,
        where: Optional[Predicate] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        items = [
            entity for entity in self._documents.values() if self._matches(entity, query, where)
        ]
        items = sort_entities(items, sort)
        if limit is not None:
            items = items[:limit]
        return items

    def find_all(self) -> List[T]:
        return list(self._documents.values())

    def paginate(
        self,
        query: Optional[Dict[str, Any]] = None,
        where: Optional[Predicate] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[T], int]:
        """
        Filter and sort the whole collection, then slice.

        Returns:
            Tuple of (page items, total matching count)
        """
        items = self.find_many(query, where=where, sort=sort)
        total = len(items)
        return items[skip : skip + limit], total

    def count(
        self,
        query: Optional[Dict[str, Any]] = None,
        where: Optional[Predicate] = None,
    ) -> int:
        if not query and where is None:
            return len(self._documents)
        return sum(1 for entity in self._documents.values() if self._matches(entity, query, where))

    def exists(self, entity_id: str) -> bool:
        return entity_id in self._documents

    def insert_one(self, entity: T) -> T:
        self._documents[entity.id] = entity
        return entity

    def insert_many(self, entities: Iterable[T]) -> int:
        inserted = 0
        for entity in entities:
            self.insert_one(entity)
            inserted += 1
        return inserted

    def replace_one(self, entity: T) -> T:
        """Replace the stored value that has the same id."""
        self._documents[entity.id] = entity
        return entity

    def delete_one(self, entity_id: str) -> bool:
        return self._documents.pop(entity_id, None) is not None

    def clear(self) -> int:
        removed = len(self._documents)
        self._documents.clear()
        return removed
