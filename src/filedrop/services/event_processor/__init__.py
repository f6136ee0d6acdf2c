"""
Event Processor Service

Receives Cloud Storage object-creation notifications for the file drop
bucket, renames each arrival to its processed key (moving invalid ones under
the route's error path) and hands the final object to the route's consumer.
"""

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
from filedrop.services.event_processor.routing import ArrivalClassifier, load_processor_config

__all__ = [
    "ArrivalEvent",
    "ArrivalClassifier",
    "Dispatched",
    "Failed",
    "MovedToError",
    "ProcessingOutcome",
    "ProcessorConfig",
    "Relocated",
    "RouteConfig",
    "Skipped",
    "load_processor_config",
]
