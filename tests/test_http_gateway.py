import json

import httpx
import pytest

from trashdrop.core.exceptions import (
    AuthenticationError,
    ConflictError,
    RecordNotFoundError,
    TransientFailure,
    ValidationError,
)
from trashdrop.providers.location_gateway.http_gateway import HttpLocationGateway
from trashdrop.schemas.location import Coordinates, LocationCreate, LocationUpdate

RECORD = {
    "id": "loc-1",
    "user_id": "user-1",
    "name": "Home",
    "address": "1 Ring Road, Accra",
    "coordinates": {"latitude": 5.6, "longitude": -0.18},
    "location_type": "home",
    "is_default": True,
    "created_at": "2024-05-01T09:00:00Z",
    "updated_at": "2024-05-01T09:00:00Z",
}


def error_body(code, message):
    return {"success": False, "error": {"code": code, "message": message, "details": {}}}


def make_gateway(handler):
    return HttpLocationGateway(
        base_url="https://api.trashdrop.test",
        access_token="token-123",
        transport=httpx.MockTransport(handler),
    )


class TestHttpLocationGateway:
    """HTTP 게이트웨이 요청/오류 매핑 테스트"""

    def test_list_sends_bearer_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["path"] = request.url.path
            return httpx.Response(200, json={"data": [RECORD], "offline": False})

        records = make_gateway(handler).list_locations("user-1")

        assert seen == {"auth": "Bearer token-123", "path": "/api/v1/locations"}
        assert [r.id for r in records] == ["loc-1"]
        assert records[0].coordinates.latitude == 5.6

    def test_create_posts_json(self):
        def handler(request):
            assert request.method == "POST"
            body = json.loads(request.content)
            assert body["id"] == "loc-1"
            assert body["coordinates"] == {"latitude": 5.6, "longitude": -0.18}
            return httpx.Response(201, json=RECORD)

        record = make_gateway(handler).create_location(
            "user-1",
            LocationCreate(
                id="loc-1",
                name="Home",
                address="1 Ring Road, Accra",
                coordinates=Coordinates(latitude=5.6, longitude=-0.18),
            ),
        )
        assert record.is_default is True

    def test_update_sends_only_set_fields(self):
        def handler(request):
            assert request.method == "PUT"
            assert request.url.path == "/api/v1/locations/loc-1"
            assert json.loads(request.content) == {"name": "Home 2"}
            return httpx.Response(200, json={**RECORD, "name": "Home 2"})

        record = make_gateway(handler).update_location(
            "loc-1", "user-1", LocationUpdate(name="Home 2")
        )
        assert record.name == "Home 2"

    def test_get_missing_returns_none(self):
        gateway = make_gateway(
            lambda request: httpx.Response(404, json=error_body("NOT_FOUND_001", "Location not found"))
        )
        assert gateway.get_location("loc-9", "user-1") is None

    def test_delete_missing_raises_not_found(self):
        gateway = make_gateway(
            lambda request: httpx.Response(404, json=error_body("NOT_FOUND_001", "Location not found"))
        )
        with pytest.raises(RecordNotFoundError) as exc_info:
            gateway.delete_location("loc-9", "user-1")
        assert exc_info.value.message == "Location not found"

    @pytest.mark.parametrize(
        "status_code,expected",
        [
            (500, TransientFailure),
            (503, TransientFailure),
            (401, AuthenticationError),
            (409, ConflictError),
            (422, ValidationError),
        ],
    )
    def test_status_mapping(self, status_code, expected):
        gateway = make_gateway(
            lambda request: httpx.Response(status_code, json=error_body("X", "failed"))
        )
        with pytest.raises(expected):
            gateway.set_default("loc-1", "user-1")

    def test_network_errors_are_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientFailure):
            make_gateway(handler).list_locations("user-1")

    def test_timeout_is_transient(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransientFailure) as exc_info:
            make_gateway(handler).list_locations("user-1")
        assert exc_info.value.message == "Request timed out"
