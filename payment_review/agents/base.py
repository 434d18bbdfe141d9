"""Review orchestration shared by the per-entity review agents.

An agent builds the prompt and context for one entity, calls its backend
and layers the processed-at timestamp and the final risk score on top.
Batch review isolates every entity: a record that fails validation or
review yields a ``failed`` outcome and the batch continues.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from payment_review import config
from payment_review.rules.models import RuleWarning
from payment_review.schemas.common import RecordFailure

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)
ResultT = TypeVar("ResultT", bound=BaseModel)


class OutcomeStatus(str, Enum):
    REVIEWED = "reviewed"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ReviewError:
    """Why one entity could not be reviewed.

    ``fields`` lists field-level problems when the record failed model
    validation, one ``{"field", "error", "type"}`` dict per problem.
    """

    entity_id: str | None
    error_type: str
    message: str
    fields: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_exception(cls, entity_id: str | None, exc: Exception) -> ReviewError:
        fields = []
        if isinstance(exc, ValidationError):
            fields = [
                {
                    "field": ".".join(str(part) for part in err["loc"]),
                    "error": err["msg"],
                    "type": err["type"],
                }
                for err in exc.errors()
            ]
        return cls(
            entity_id=entity_id,
            error_type=type(exc).__name__,
            message=str(exc),
            fields=fields,
        )

    def as_record(self) -> RecordFailure:
        """Wire form for reports."""
        return RecordFailure(
            entity_id=self.entity_id,
            error_type=self.error_type,
            message=self.message,
            fields=list(self.fields),
        )


@dataclass
class ReviewOutcome(Generic[ResultT]):
    """Outcome for one requested entity, in request order."""

    entity_id: str | None
    status: OutcomeStatus
    result: ResultT | None = None
    error: ReviewError | None = None
    warnings: list[RuleWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.REVIEWED


def entity_id_of(entity: Any) -> str | None:
    """Id of a model or raw record, or None when it has none."""
    if isinstance(entity, Mapping):
        value = entity.get("id")
    else:
        value = getattr(entity, "id", None)
    return None if value is None else str(value)


def reviewed_results(outcomes: Iterable[ReviewOutcome[ResultT]]) -> list[ResultT]:
    """Results of the successfully reviewed outcomes."""
    return [o.result for o in outcomes if o.ok and o.result is not None]


class ReviewAgent(ABC, Generic[EntityT, ResultT]):
    """Reviews single entities, batches and id selections for one vertical."""

    entity_model: type[EntityT]
    name = "review"

    def __init__(self, batch_delay_ms: int | None = None) -> None:
        """Initialize the agent.

        Args:
            batch_delay_ms: Pause between batch items. Defaults to
                ``PAYMENT_REVIEW_BATCH_DELAY_MS``.
        """
        self.batch_delay_ms = config.BATCH_DELAY_MS if batch_delay_ms is None else batch_delay_ms

    def coerce(self, entity: EntityT | Mapping[str, Any]) -> EntityT:
        """Validate a raw record into the entity model; models pass through."""
        if isinstance(entity, self.entity_model):
            return entity
        return self.entity_model.model_validate(entity)

    @abstractmethod
    def assess(self, entity: EntityT) -> tuple[ResultT, list[RuleWarning]]:
        """Review one validated entity.

        Returns:
            The review result and any rule parse warnings
        """

    def review_one(self, entity: EntityT | Mapping[str, Any]) -> ResultT:
        """Review one entity. Errors propagate to the caller."""
        result, _ = self.assess(self.coerce(entity))
        return result

    def review_batch(self, entities: Sequence[EntityT | Mapping[str, Any]]) -> list[ReviewOutcome[ResultT]]:
        """Review entities sequentially with per-entity error isolation.

        Args:
            entities: Entity models or raw camelCase records

        Returns:
            One outcome per input, in input order
        """
        logger.info(f"[{self.name}] Reviewing batch of {len(entities)}")
        outcomes = []
        for index, entity in enumerate(entities):
            if index and self.batch_delay_ms > 0:
                time.sleep(self.batch_delay_ms / 1000)
            outcomes.append(self._review_isolated(entity))

        failed = sum(1 for o in outcomes if o.status == OutcomeStatus.FAILED)
        logger.info(f"[{self.name}] Batch complete: {len(outcomes) - failed} reviewed, {failed} failed")
        return outcomes

    def review_selected(
        self,
        collection: Sequence[EntityT | Mapping[str, Any]],
        ids: Iterable[str],
    ) -> list[ReviewOutcome[ResultT]]:
        """Review the entities in ``collection`` whose ids are in ``ids``.

        Ids with no matching entity get a ``not_found`` outcome. Outcomes
        follow the order of ``ids``.
        """
        by_id: dict[str, EntityT | Mapping[str, Any]] = {}
        for entity in collection:
            entity_id = entity_id_of(entity)
            if entity_id is not None:
                by_id.setdefault(entity_id, entity)

        requested = list(ids)
        found = [by_id[i] for i in requested if i in by_id]
        reviewed = iter(self.review_batch(found))

        outcomes = []
        for entity_id in requested:
            if entity_id in by_id:
                outcomes.append(next(reviewed))
            else:
                logger.warning(f"[{self.name}] Requested id not found: {entity_id}")
                outcomes.append(ReviewOutcome(entity_id=entity_id, status=OutcomeStatus.NOT_FOUND))

        missing = len(requested) - len(found)
        if missing:
            logger.info(f"[{self.name}] {missing} requested id(s) not found")
        return outcomes

    def _review_isolated(self, entity: EntityT | Mapping[str, Any]) -> ReviewOutcome[ResultT]:
        entity_id = entity_id_of(entity)
        try:
            result, warnings = self.assess(self.coerce(entity))
        except Exception as exc:
            logger.warning(f"[{self.name}] Review failed for {entity_id}: {type(exc).__name__}: {exc}")
            return ReviewOutcome(
                entity_id=entity_id,
                status=OutcomeStatus.FAILED,
                error=ReviewError.from_exception(entity_id, exc),
            )
        return ReviewOutcome(
            entity_id=entity_id,
            status=OutcomeStatus.REVIEWED,
            result=result,
            warnings=warnings,
        )
