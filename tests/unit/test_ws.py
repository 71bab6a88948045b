"""Tests for the generation status WebSocket stream."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from api.auth.jwt import create_access_token
from api.routes.ws import NOT_FOUND, UNAUTHORIZED
from newsletter.models import GenerationStatus
from tests.conftest import article_request, make_articles


@pytest.fixture
def ws_client(app):
    return TestClient(app)


@pytest.fixture
def token(user_id):
    return create_access_token({"sub": str(user_id)})


@pytest.fixture
def processing(services, ready_profile, user_id):
    return services.orchestrator.start_generation(
        user_id, article_request(ready_profile.id)
    ).generation


def _url(generation_id, token=None, **params):
    query = {"interval_ms": 10, **params}
    if token:
        query["token"] = token
    qs = "&".join(f"{key}={value}" for key, value in query.items())
    return f"/api/ws/generations/{generation_id}?{qs}"


class TestGenerationStream:
    def test_requires_token(self, ws_client, processing):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect(_url(processing.id)):
                pass

        assert exc_info.value.code == UNAUTHORIZED

    def test_foreign_generation(self, ws_client, processing):
        stranger = create_access_token({"sub": str(uuid4())})

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect(_url(processing.id, stranger)):
                pass

        assert exc_info.value.code == NOT_FOUND

    def test_streams_terminal_record(self, ws_client, services, processing, token):
        services.orchestrator.complete_generation(processing.id, make_articles())

        with ws_client.websocket_connect(_url(processing.id, token)) as websocket:
            message = websocket.receive_json()

        assert message["type"] == "generation"
        assert message["generation"]["status"] == GenerationStatus.COMPLETED.value
        assert message["generation"]["word_count_total"] == 2250

    def test_timeout_message(self, ws_client, processing, token):
        with ws_client.websocket_connect(_url(processing.id, token, max_attempts=2)) as websocket:
            first = websocket.receive_json()
            second = websocket.receive_json()
            timeout = websocket.receive_json()

        assert first["generation"]["status"] == GenerationStatus.PROCESSING.value
        assert second["type"] == "generation"
        assert timeout["type"] == "timeout"
        assert timeout["attempts"] == 2
        assert timeout["last_status"] == GenerationStatus.PROCESSING.value

    def test_bearer_header(self, ws_client, services, processing, token):
        services.orchestrator.fail_generation(processing.id, "boom")

        with ws_client.websocket_connect(
            _url(processing.id), headers={"Authorization": f"Bearer {token}"}
        ) as websocket:
            message = websocket.receive_json()

        assert message["generation"]["status"] == GenerationStatus.FAILED.value
        assert message["generation"]["error_message"] == "boom"
