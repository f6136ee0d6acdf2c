"""
Event processor implementation.

Drives every storage arrival in a batch through classification, optional
validation, relocation and dispatch. Records are handled one after another;
a failure in one record is logged and recorded, and never stops the batch.
There are no retries and no internal timeouts: a very large object on a
validating route delays every record behind it until the enclosing request
deadline.
"""

import logging
import time
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from filedrop.core.logging import object_uri_context
from filedrop.services.event_processor import naming
from filedrop.services.event_processor.dispatcher import ConsumerDispatcher
from filedrop.services.event_processor.exceptions import (
    ConfigurationMismatchError,
    ContentValidationError,
    ObjectNotFoundError,
)
from filedrop.services.event_processor.models import (
    ArrivalEvent,
    Dispatched,
    Failed,
    MovedToError,
    ProcessingOutcome,
    ProcessorConfig,
    Relocated,
    RouteConfig,
    Skipped,
)
from filedrop.services.event_processor.relocator import Relocator
from filedrop.services.event_processor.routing import ArrivalClassifier
from filedrop.services.event_processor.schemas import SchemaCheck, get_schema_check
from filedrop.services.event_processor.validator import ContentValidator
from filedrop.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class EventProcessor:
    """Orchestrates the processing of storage arrival batches."""

    def __init__(
        self,
        config: ProcessorConfig,
        store: ObjectStore,
        dispatcher: ConsumerDispatcher,
        schema_checks: Optional[Dict[str, SchemaCheck]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            config: Routing table and expected bucket
            store: Object store holding the bucket
            dispatcher: Consumer dispatcher
            schema_checks: Structural checks keyed by route path; override the
                route's configured ``schema``
            clock: Time source for processed and error keys
        """
        self.config = config
        self.store = store
        self.dispatcher = dispatcher
        self.classifier = ArrivalClassifier(config.routes)
        self.validator = ContentValidator(store)
        self.relocator = Relocator(store, clock=clock)
        self._schema_checks = dict(schema_checks or {})

    def schema_check_for(self, route: RouteConfig) -> SchemaCheck:
        """Structural check applied to a route's arrivals."""
        return self._schema_checks.get(route.path) or get_schema_check(route.schema_name)

    async def handle(self, arrivals: Iterable[ArrivalEvent]) -> List[ProcessingOutcome]:
        """
        Process a batch of arrivals in the order received.

        Returns:
            One outcome per arrival
        """
        start_time = time.time()
        outcomes: List[ProcessingOutcome] = []
        for arrival in arrivals:
            outcomes.append(await self.process_arrival(arrival))

        counts = Counter(outcome.kind for outcome in outcomes)
        logger.info(
            "Batch processed",
            extra={
                "records": len(outcomes),
                "outcomes": dict(counts),
                "processing_time_ms": int((time.time() - start_time) * 1000),
            },
        )
        return outcomes

    async def process_arrival(self, arrival: ArrivalEvent) -> ProcessingOutcome:
        """Process one arrival, converting any failure into a ``Failed`` outcome."""
        start_time = time.time()
        key = arrival.object_key
        token = object_uri_context.set(
            self.store.object_uri(arrival.origin_location, key)
        )
        try:
            try:
                outcome = await self._process(arrival)
            except ConfigurationMismatchError as e:
                logger.error(
                    f"Configuration mismatch: {e}",
                    extra={
                        "object_key": key,
                        "event_id": arrival.event_id,
                        "expected_bucket": e.expected,
                        "reported_bucket": e.actual,
                    },
                )
                outcome = Failed(key=key, reason=str(e), error_type=type(e).__name__)
            except ObjectNotFoundError:
                logger.info(
                    "Object no longer exists, notification already handled",
                    extra={"object_key": key, "event_id": arrival.event_id},
                )
                outcome = Skipped(key=key, reason="object no longer exists")
            except Exception as e:
                logger.error(
                    f"Error processing record: {e}",
                    extra={
                        "object_key": key,
                        "event_id": arrival.event_id,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                outcome = Failed(key=key, reason=str(e), error_type=type(e).__name__)

            logger.info(
                "Record processed",
                extra={
                    "object_key": key,
                    "event_id": arrival.event_id,
                    "processing_time_ms": int((time.time() - start_time) * 1000),
                    **outcome.model_dump(),
                    "outcome": outcome.kind,
                },
            )
            return outcome
        finally:
            object_uri_context.reset(token)

    def _check_origin(self, arrival: ArrivalEvent) -> None:
        expected = self.config.bucket_name
        if arrival.origin_location != expected:
            raise ConfigurationMismatchError(expected=expected, actual=arrival.origin_location)

    async def _process(self, arrival: ArrivalEvent) -> ProcessingOutcome:
        self._check_origin(arrival)

        bucket = arrival.origin_location
        key = arrival.object_key

        route = self.classifier.classify(key)
        if route is None:
            logger.info("Object not in any configured route", extra={"object_key": key})
            return Skipped(key=key, reason="no matching route")

        if self.classifier.is_already_processed(key):
            logger.info(
                "Object already processed, skipping to avoid a reprocessing loop",
                extra={"object_key": key, "route_path": route.path},
            )
            return Skipped(key=key, reason="already processed")

        if not naming.filename_of(key):
            return Skipped(key=key, reason="folder placeholder")

        if route.validate_arrivals:
            try:
                await self.validator.validate(bucket, key, self.schema_check_for(route))
            except ContentValidationError as e:
                error_key = await self.relocator.move_to_error(bucket, key, route, e.reason)
                return MovedToError(old_key=key, error_key=error_key, reason=e.reason)

        new_key = await self.relocator.normalize(bucket, key, route)
        relocated = Relocated(old_key=key, new_key=new_key)
        logger.info(
            "Arrival stamped as processed",
            extra={"route_path": route.path, **relocated.model_dump()},
        )

        await self.dispatcher.dispatch(bucket, new_key, route.consumer_id)
        return Dispatched(final_key=new_key, consumer_id=route.consumer_id)
