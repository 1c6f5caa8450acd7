import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from trashdrop.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    RecordNotFoundError,
    TransientFailure,
    ValidationError,
)
from trashdrop.providers.location_gateway.base import LocationGateway
from trashdrop.schemas.location import LocationCreate, LocationRecord, LocationUpdate

logger = logging.getLogger(__name__)


class HttpLocationGateway(LocationGateway):
    """
    Talks to the TrashDrop API over HTTP with the user's Supabase access token.

    Every request carries the caller-supplied timeout. Transport errors,
    timeouts and 5xx responses become TransientFailure.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 10.0,
        api_prefix: str = "/api/v1",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_prefix = api_prefix.rstrip("/")
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}/locations{path}"

    @staticmethod
    def _error_message(response: httpx.Response) -> Tuple[str, Dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase, {}
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("message", response.reason_phrase), error.get("details") or {}
        return str(body), {}

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, self._url(path), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {str(e)}")
            raise TransientFailure("Request timed out", details={"path": path})
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {str(e)}")
            raise TransientFailure("Server unreachable", details={"path": path})

        if response.is_success:
            return response

        message, details = self._error_message(response)
        status_code = response.status_code
        if status_code >= 500:
            raise TransientFailure(message, details=details)
        if status_code == 404:
            raise RecordNotFoundError(message, details=details)
        if status_code == 401:
            raise AuthenticationError(message, details=details)
        if status_code == 403:
            raise AuthorizationError(message, details=details)
        if status_code == 409:
            raise ConflictError(message, details=details)
        raise ValidationError(message, details=details)

    def list_locations(self, user_id: str) -> List[LocationRecord]:
        body = self._request("GET", "").json()
        return [LocationRecord(**item) for item in body.get("data", [])]

    def get_location(self, location_id: str, user_id: str) -> Optional[LocationRecord]:
        try:
            body = self._request("GET", f"/{location_id}").json()
        except RecordNotFoundError:
            return None
        return LocationRecord(**body)

    def create_location(self, user_id: str, data: LocationCreate) -> LocationRecord:
        body = self._request(
            "POST", "", json=data.model_dump(mode="json", exclude_none=True)
        ).json()
        return LocationRecord(**body)

    def update_location(
        self, location_id: str, user_id: str, changes: LocationUpdate
    ) -> LocationRecord:
        body = self._request(
            "PUT",
            f"/{location_id}",
            json=changes.model_dump(mode="json", exclude_unset=True),
        ).json()
        return LocationRecord(**body)

    def delete_location(self, location_id: str, user_id: str) -> None:
        self._request("DELETE", f"/{location_id}")

    def set_default(self, location_id: str, user_id: str) -> LocationRecord:
        body = self._request("POST", f"/{location_id}/default").json()
        return LocationRecord(**body)
