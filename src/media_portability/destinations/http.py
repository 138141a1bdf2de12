"""HTTP destination with retry logic using httpx for async HTTP calls."""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from media_portability.config import ImporterSettings
from media_portability.destinations.base import MediaCreation
from media_portability.errors import (
    AuthorizationError,
    ItemValidationError,
    MalformedBatchError,
    QuotaExceededError,
    RateLimitError,
    ServerError,
)
from media_portability.models import Album, AuthContext, MediaItem

logger = logging.getLogger(__name__)

RATE_LIMIT_CODES = {"RATE_LIMITED", "TOO_MANY_REQUESTS"}
QUOTA_CODES = {"QUOTA_EXCEEDED", "INSUFFICIENT_STORAGE"}
MALFORMED_BATCH_CODES = {"MALFORMED_BATCH", "INVALID_BATCH"}


class HttpMediaInterface:
    """Destination speaking a JSON REST protocol.

    Albums are created with ``POST {url}/albums`` and media items with
    ``POST {url}/media``; the destination fetches item bytes from the
    item's ``source_url`` and replies with the id it assigned and the number
    of bytes it stored.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize the HTTP destination.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: ImporterSettings) -> "HttpMediaInterface":
        """Create a destination using the configured request timeout."""
        return cls(timeout=settings.request_timeout)

    async def __aenter__(self) -> "HttpMediaInterface":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
        self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the httpx AsyncClient instance.

        Raises:
            RuntimeError: If client is used outside of async context manager
        """
        if self._client is None:
            raise RuntimeError("Client must be used within async context manager")
        return self._client

    @staticmethod
    def _headers(auth: AuthContext, idempotent_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {auth.access_token}",
            "Idempotency-Key": idempotent_key,
        }

    @retry(
        retry=retry_if_exception_type((RateLimitError, ServerError)),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def create_album(self, auth: AuthContext, album: Album) -> str:
        """Create an album at the destination.

        Returns:
            Destination album ID

        Raises:
            RateLimitError: If rate limit is still exceeded after retries
            ServerError: If server errors persist after retries
            AuthorizationError: If the credentials are rejected
            QuotaExceededError: If the destination is out of storage
            ItemValidationError: If the album is rejected
        """
        url = f"{auth.url.rstrip('/')}/albums"
        payload = {"title": album.title, "description": album.description}
        context = f"creating album '{album.display_name}'"

        try:
            response = await self.client.post(
                url, json=payload, headers=self._headers(auth, album.idempotent_key)
            )
        except httpx.RequestError as e:
            logger.warning(f"Network error while {context}, will retry: {e}")
            raise ServerError(f"Network error: {e}") from e

        result = self._parse_json_response(response, context)
        if response.status_code >= 400:
            self._handle_error_response(response.status_code, result, context)

        album_id = self._require_id(result, context)
        logger.info(f"Created album '{album.display_name}' with ID: {album_id}")
        return album_id

    @retry(
        retry=retry_if_exception_type((RateLimitError, ServerError)),
        wait=wait_exponential(multiplier=1, min=1, max=60),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    async def create_media_item(
        self,
        auth: AuthContext,
        item: MediaItem,
        destination_album_id: str | None,
    ) -> MediaCreation:
        """Create a photo or video at the destination.

        Returns:
            The destination item ID and the bytes the destination stored

        Raises:
            Same as :meth:`create_album`
        """
        url = f"{auth.url.rstrip('/')}/media"
        payload = {
            "albumId": destination_album_id,
            "kind": item.category.value,
            "title": item.title,
            "description": item.description,
            "mimeType": item.mime_type,
            "sourceUrl": item.source_url,
            "sizeBytes": item.size_bytes,
        }
        context = f"importing {item.category.value} '{item.display_name}'"

        try:
            response = await self.client.post(
                url, json=payload, headers=self._headers(auth, item.idempotent_key)
            )
        except httpx.RequestError as e:
            logger.warning(f"Network error while {context}, will retry: {e}")
            raise ServerError(f"Network error: {e}") from e

        result = self._parse_json_response(response, context)
        if response.status_code >= 400:
            self._handle_error_response(response.status_code, result, context)

        item_id = self._require_id(result, context)
        transferred = result.get("bytes")
        logger.debug(
            f"Imported {item.display_name} to album {destination_album_id}, "
            f"item ID: {item_id}"
        )
        return MediaCreation(
            destination_id=item_id,
            bytes_transferred=int(transferred) if transferred is not None else None,
        )

    def _parse_json_response(
        self, response: httpx.Response, context: str
    ) -> dict[str, Any]:
        """Parse JSON response, handling non-JSON responses gracefully.

        Raises:
            ServerError: If response is 5xx with a non-JSON or non-object body
            ItemValidationError: If a non-5xx response body is not a JSON object
        """
        try:
            result = response.json()
        except ValueError:
            # Non-JSON response (e.g., HTML error page during outages)
            result = None
        if isinstance(result, dict):
            return result

        if response.status_code >= 500:
            logger.warning(f"Server returned non-JSON response while {context}, will retry")
            raise ServerError(
                f"Server error {response.status_code}: {response.text[:200]}"
            )
        raise ItemValidationError(
            f"Invalid API response while {context}: {response.text[:200]}"
        )

    @staticmethod
    def _require_id(result: dict[str, Any], context: str) -> str:
        """Extract the destination id from a successful response.

        Raises:
            ItemValidationError: If the response carries no id
        """
        destination_id = result.get("id")
        if destination_id is None or destination_id == "":
            raise ItemValidationError(
                f"Destination returned no id while {context}: {str(result)[:200]}"
            )
        return str(destination_id)

    def _handle_error_response(
        self, status_code: int, result: dict[str, Any], context: str
    ) -> None:
        """Map an error response onto the import error taxonomy.

        Raises:
            RateLimitError: If rate limit is exceeded
            ServerError: If server error occurs
            AuthorizationError: If the token is invalid or lacks permission
            QuotaExceededError: If the destination has no space left
            MalformedBatchError: If the destination rejects the whole batch
            ItemValidationError: For other client errors
        """
        error = result.get("error", {})
        if not isinstance(error, dict):
            error = {"message": str(error)}
        error_code = str(error.get("code", "")).upper()
        error_message = error.get("message", str(result))

        if status_code == 429 or error_code in RATE_LIMIT_CODES:
            logger.warning(f"Rate limit exceeded while {context}, will retry")
            raise RateLimitError(f"Destination rate limit exceeded: {error_message}")

        if status_code == 507 or error_code in QUOTA_CODES:
            logger.error(f"Quota exceeded while {context}")
            raise QuotaExceededError(f"Destination quota exceeded: {error_message}")

        if error_code in MALFORMED_BATCH_CODES:
            logger.error(f"Batch rejected while {context}")
            raise MalformedBatchError(f"Destination rejected the batch: {error_message}")

        if status_code >= 500:
            logger.warning(f"Server error while {context}, will retry")
            raise ServerError(f"Destination server error: {error_message}")

        if status_code in (401, 403):
            logger.error(f"Authorization rejected while {context}")
            raise AuthorizationError(f"Destination rejected credentials: {error_message}")

        # Other errors - don't retry
        error_msg = f"Destination error while {context}: {error_message}"
        logger.error(error_msg)
        raise ItemValidationError(error_msg)
