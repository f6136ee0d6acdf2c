"""HTTP dispatch of processed arrivals to their consumers."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import httpx
from google.auth import exceptions as auth_exceptions
from google.auth.transport import requests as auth_requests
from google.oauth2 import id_token

from filedrop.services.event_processor.exceptions import DispatchSubmissionError
from filedrop.services.event_processor.naming import format_timestamp

logger = logging.getLogger(__name__)


class ConsumerDispatcher:
    """
    One-way invocation of a route's consumer.

    The consumer is expected to acknowledge receipt right away (``202
    Accepted``) and do its work in the background; ``dispatch`` returns as
    soon as the request is accepted and never sees the consumer's own
    outcome. Nothing is retried: a rejected or failed submission raises
    ``DispatchSubmissionError``.

    A consumer that does its work before replying holds the batch for that
    long. If the reply outlasts ``timeout``, the record is reported as a
    failed dispatch even though the consumer may have received the payload
    and processed it. This is an accepted limitation.
    """

    def __init__(
        self,
        scheme: str = "gs",
        processor_version: str = "1.0.0",
        timeout: float = 10.0,
        auth_enabled: bool = False,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            scheme: URI scheme of the object store, e.g. ``gs``
            processor_version: Reported to consumers in ``processingMetadata``
            timeout: Seconds to wait for the consumer to accept the request
            auth_enabled: Attach a Google-signed ID token for the consumer URL
            client: Shared HTTP client; a short-lived one is created per call if None
            clock: Source of the ``processedAt`` timestamp
        """
        self.scheme = scheme
        self.processor_version = processor_version
        self.timeout = timeout
        self.auth_enabled = auth_enabled
        self._client = client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_payload(self, bucket: str, key: str) -> Dict[str, Any]:
        """Invocation payload sent to the consumer."""
        return {
            "path": f"{self.scheme}://{bucket}/{key}",
            "bucket": bucket,
            "key": key,
            "processingMetadata": {
                "processedAt": format_timestamp(self._clock()),
                "processorVersion": self.processor_version,
            },
        }

    async def _auth_headers(self, consumer_id: str) -> Dict[str, str]:
        if not self.auth_enabled:
            return {}

        url = httpx.URL(consumer_id)
        audience = f"{url.scheme}://{url.host}"
        try:
            token = await asyncio.to_thread(
                id_token.fetch_id_token, auth_requests.Request(), audience
            )
        except auth_exceptions.GoogleAuthError as e:
            raise DispatchSubmissionError(
                f"Could not obtain ID token for consumer {consumer_id}: {e}", consumer_id
            ) from e
        return {"Authorization": f"Bearer {token}"}

    async def _post(self, consumer_id: str, payload: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(consumer_id, json=payload, headers=headers)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(consumer_id, json=payload, headers=headers)

    async def dispatch(self, bucket: str, key: str, consumer_id: str) -> None:
        """
        Submit the final object address to a consumer.

        Args:
            bucket: Bucket name
            key: Final (processed) object key
            consumer_id: Consumer endpoint URL

        Raises:
            DispatchSubmissionError: If the request fails or is not accepted
        """
        payload = self.build_payload(bucket, key)
        headers = await self._auth_headers(consumer_id)

        logger.info(
            "Invoking consumer",
            extra={"consumer_id": consumer_id, "object_path": payload["path"]},
        )

        try:
            response = await self._post(consumer_id, payload, headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Consumer rejected the invocation",
                extra={
                    "consumer_id": consumer_id,
                    "object_path": payload["path"],
                    "status_code": e.response.status_code,
                },
            )
            raise DispatchSubmissionError(
                f"Consumer {consumer_id} rejected the invocation with HTTP {e.response.status_code}",
                consumer_id,
            ) from e
        except httpx.HTTPError as e:
            error_type = "timeout" if isinstance(e, httpx.TimeoutException) else "http_error"
            logger.error(
                "Failed to submit consumer invocation",
                extra={
                    "consumer_id": consumer_id,
                    "object_path": payload["path"],
                    "error": str(e),
                    "error_type": error_type,
                },
            )
            raise DispatchSubmissionError(
                f"Failed to invoke consumer {consumer_id}: {e}", consumer_id
            ) from e

        logger.info(
            "Consumer accepted the invocation",
            extra={"consumer_id": consumer_id, "status_code": response.status_code},
        )
