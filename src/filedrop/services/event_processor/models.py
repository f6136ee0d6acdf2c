"""
Models for the event processor.

Routing table entries, storage notifications as delivered by Eventarc, the
normalised ``ArrivalEvent`` the processor works on, and the per-record
processing outcomes.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from filedrop.services.event_processor.schemas import SCHEMA_CHECKS

logger = logging.getLogger(__name__)


class RouteConfig(BaseModel):
    """
    One routing table entry: a bucket subfolder and its downstream consumer.

    ``object_lifetime_days`` is enforced by the bucket's lifecycle rules and
    is carried here for reference only.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str = Field(..., min_length=1, description="Subfolder where arrivals land, e.g. 'person-full'")
    object_lifetime_days: int = Field(..., alias="objectLifetimeDays", gt=0)
    validate_arrivals: bool = Field(
        False,
        alias="validateArrivals",
        description="Download and check every arrival before forwarding it",
    )
    consumer_id: str = Field(..., alias="consumerId", description="HTTP(S) endpoint of the consumer")
    schema_name: str = Field("any", alias="schema", description="Registered structural check")

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        if value.startswith("/") or value.endswith("/"):
            raise ValueError("route path must not start or end with '/'")
        return value

    @field_validator("consumer_id")
    @classmethod
    def _check_consumer_id(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("consumerId must be an http(s) URL")
        return value

    @field_validator("schema_name")
    @classmethod
    def _check_schema_name(cls, value: str) -> str:
        if value not in SCHEMA_CHECKS:
            raise ValueError(
                f"unknown schema '{value}', expected one of {sorted(SCHEMA_CHECKS)}"
            )
        return value


class ProcessorConfig(BaseModel):
    """
    Resolved routing table plus the single bucket the processor serves.

    Accepts the ``BUCKET_CONFIG`` layout: ``{"name": ..., "subdirectories": [...]}``.
    Route order is significant: the first matching route wins.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bucket_name: str = Field("", alias="name")
    routes: Tuple[RouteConfig, ...] = Field(default=(), alias="subdirectories")

    @model_validator(mode="after")
    def _check_routes(self) -> "ProcessorConfig":
        seen = set()
        for route in self.routes:
            if route.path in seen:
                raise ValueError(f"duplicate route path '{route.path}'")
            seen.add(route.path)

        for index, route in enumerate(self.routes):
            for earlier in self.routes[:index]:
                if route.path.startswith(f"{earlier.path}/"):
                    logger.warning(
                        "Route is shadowed by an earlier route and will never match",
                        extra={"route_path": route.path, "shadowed_by": earlier.path},
                    )
        return self


class StorageObjectData(BaseModel):
    """
    Cloud Storage object metadata from an OBJECT_FINALIZE event.

    Only ``bucket`` and ``name`` are required; the remaining fields are kept
    for logging.
    """

    model_config = ConfigDict(populate_by_name=True)

    bucket: str = Field(..., description="Cloud Storage bucket name")
    name: str = Field(..., description="Object path")
    contentType: Optional[str] = Field(None, description="MIME type of the object")
    size: Optional[str] = Field(None, description="Object size in bytes (as string)")
    timeCreated: Optional[datetime] = Field(None, description="Timestamp when the object was created")
    updated: Optional[datetime] = None
    generation: Optional[str] = None


class CloudEvent(BaseModel):
    """
    CloudEvents 1.0 envelope for Cloud Storage events, as delivered by Eventarc.

    See: https://cloud.google.com/eventarc/docs/cloudevents
    """

    specversion: str
    type: str = Field(..., description="e.g. 'google.cloud.storage.object.v1.finalized'")
    source: str = Field(..., description="Event source (Cloud Storage bucket URI)")
    subject: Optional[str] = None
    id: str = Field(..., description="Unique event identifier")
    time: Optional[datetime] = None
    datacontenttype: Optional[str] = None
    data: StorageObjectData


class ArrivalEvent(BaseModel):
    """A single object-creation notification, consumed once."""

    origin_location: str = Field(..., description="Bucket the notification reports")
    object_key: str
    notification_timestamp: datetime
    event_id: Optional[str] = None

    @classmethod
    def from_cloud_event(cls, event: CloudEvent) -> "ArrivalEvent":
        """Build an arrival from an Eventarc CloudEvent."""
        return cls(
            origin_location=event.data.bucket,
            object_key=event.data.name,
            notification_timestamp=event.time or event.data.timeCreated or datetime.now(timezone.utc),
            event_id=event.id,
        )


class Skipped(BaseModel):
    """The arrival was ignored on purpose; not an error."""

    kind: Literal["skipped"] = "skipped"
    key: str
    reason: str


class Relocated(BaseModel):
    """The arrival was renamed to its processed key."""

    kind: Literal["relocated"] = "relocated"
    old_key: str
    new_key: str


class MovedToError(BaseModel):
    """The arrival failed validation and was moved under the error path."""

    kind: Literal["moved_to_error"] = "moved_to_error"
    old_key: str
    error_key: str
    reason: str


class Dispatched(BaseModel):
    """The consumer accepted the invocation for the final key."""

    kind: Literal["dispatched"] = "dispatched"
    final_key: str
    consumer_id: str


class Failed(BaseModel):
    """Processing stopped on an error caught at the per-record boundary."""

    kind: Literal["failed"] = "failed"
    key: str
    reason: str
    error_type: str


ProcessingOutcome = Annotated[
    Union[Skipped, Relocated, MovedToError, Dispatched, Failed],
    Field(discriminator="kind"),
]
