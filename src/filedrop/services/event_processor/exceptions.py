"""Custom exceptions for the event processor."""


class EventProcessorError(Exception):
    """Base exception for the event processor."""
    pass


class ConfigurationError(EventProcessorError):
    """Exception raised when the routing table cannot be loaded."""
    pass


class ConfigurationMismatchError(EventProcessorError):
    """Exception raised when a notification comes from an unexpected bucket."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Bucket name mismatch: notification reports bucket '{actual}' but "
            f"the processor is configured for '{expected}'. This is a deployment "
            f"issue; check the BUCKET_CONFIG environment variable."
        )


class ContentValidationError(EventProcessorError):
    """Exception raised when an arrival fails content validation."""

    @property
    def reason(self) -> str:
        return str(self)


class ContentSyntaxError(ContentValidationError):
    """Exception raised when an object body is not valid JSON."""
    pass


class ContentSchemaError(ContentValidationError):
    """Exception raised when parsed content does not satisfy the route schema."""
    pass


class StorageError(EventProcessorError):
    """Exception raised when storage operations fail."""
    pass


class ObjectNotFoundError(StorageError):
    """Exception raised when the requested object does not exist."""
    pass


class RelocationError(EventProcessorError):
    """Exception raised when the copy step of a relocation fails."""

    def __init__(self, message: str, old_key: str, new_key: str):
        self.old_key = old_key
        self.new_key = new_key
        super().__init__(message)


class PartialRelocationError(RelocationError):
    """Exception raised when the copy succeeded but the original was not deleted.

    Both the original and the new object exist until the original is removed
    by hand or expires.
    """
    pass


class DispatchSubmissionError(EventProcessorError):
    """Exception raised when the consumer does not accept the invocation."""

    def __init__(self, message: str, consumer_id: str):
        self.consumer_id = consumer_id
        super().__init__(message)
