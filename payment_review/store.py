"""Whole-file JSON collection store.

Each collection is a single JSON array of camelCase records. Loads and
saves always read or write the whole array.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Generic, Protocol, TypeVar

from pydantic import ValidationError

from payment_review import config
from payment_review.errors import StoreError
from payment_review.schemas.common import EntityModel

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=EntityModel)


class AppliedResult(Protocol[EntityT]):
    @property
    def entity_id(self) -> str: ...

    def apply_to(self, entity: EntityT) -> EntityT: ...


class JSONCollectionStore(Generic[EntityT]):
    """Loads and saves one collection of ``model`` records."""

    def __init__(self, path: str | Path, model: type[EntityT]) -> None:
        self.path = Path(path)
        self.model = model

    @classmethod
    def in_data_dir(cls, filename: str, model: type[EntityT]) -> JSONCollectionStore[EntityT]:
        """Store for ``filename`` under ``PAYMENT_REVIEW_DATA_DIR``."""
        return cls(Path(config.DATA_DIR) / filename, model)

    def load(self) -> list[EntityT]:
        """Read and validate every record in the collection file.

        Raises:
            StoreError: File unreadable, not a JSON array, or a record
                failed validation
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read collection {self.path}: {exc}") from exc

        if not isinstance(raw, list):
            raise StoreError(f"Collection {self.path} is not a JSON array")

        records = []
        errors = []
        for index, item in enumerate(raw):
            try:
                records.append(self.model.model_validate(item))
            except ValidationError as exc:
                for err in exc.errors():
                    errors.append(
                        {
                            "field": ".".join(str(part) for part in (index, *err["loc"])),
                            "error": err["msg"],
                            "type": err["type"],
                        }
                    )
        if errors:
            raise StoreError(f"Collection {self.path} has {len(errors)} invalid field(s)", errors)

        logger.info(f"Loaded {len(records)} records from {self.path}")
        return records

    def save(self, records: Sequence[EntityT]) -> None:
        """Write the whole collection back with 2-space indentation."""
        payload = [record.to_wire() for record in records]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Cannot write collection {self.path}: {exc}") from exc
        logger.info(f"Saved {len(records)} records to {self.path}")


def merge_results(
    collection: Sequence[EntityT],
    results: Iterable[AppliedResult[EntityT]],
) -> tuple[list[EntityT], list[EntityT]]:
    """Apply review results to the entities with matching ids.

    Returns:
        The full collection in original order, and the updated entities in
        collection order
    """
    by_id = {result.entity_id: result for result in results}
    merged = []
    updated = []
    for entity in collection:
        result = by_id.get(entity.id)
        if result is None:
            merged.append(entity)
            continue
        entity = result.apply_to(entity)
        merged.append(entity)
        updated.append(entity)
    return merged, updated
