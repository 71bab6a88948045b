"""Tests for API error handling and exception classes."""

import asyncio
import json
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.error_handlers import (
    api_exception_handler,
    create_error_response,
    http_exception_handler,
    register_error_handlers,
    unhandled_exception_handler,
)
from api.exceptions import AuthenticationError, NewsletterAPIException, NotFoundError
from api.responses import ErrorResponse
from newsletter.db.models import Generation
from newsletter.generation.errors import GenerationNotFoundError, VoiceProfileNotFoundError
from newsletter.store import RecordNotFoundError
from tests.conftest import SyncTestClient


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _request(path="/api/test"):
    request = MagicMock()
    request.url.path = path
    return request


class TestExceptionClasses:
    """Tests for custom exception classes."""

    def test_base_exception_defaults(self):
        """NewsletterAPIException has correct default values."""
        exc = NewsletterAPIException()
        assert exc.message == "An unexpected error occurred"
        assert exc.error_code == "INTERNAL_ERROR"
        assert exc.details == {}
        assert exc.status_code == 500

    def test_to_dict_with_details(self):
        exc = NotFoundError(message="Generation not found", details={"generation_id": "123"})
        assert exc.to_dict() == {
            "code": "NOT_FOUND",
            "message": "Generation not found",
            "details": {"generation_id": "123"},
        }

    def test_to_dict_without_details(self):
        assert "details" not in NotFoundError().to_dict()

    def test_authentication_error(self):
        exc = AuthenticationError()
        assert exc.status_code == 401
        assert exc.error_code == "AUTHENTICATION_FAILED"
        assert exc.message == "Authentication required"


class TestErrorHandlerFunctions:
    def test_create_error_response_basic(self):
        assert create_error_response("NOT_FOUND", "Missing") == {
            "error": {"code": "NOT_FOUND", "message": "Missing"}
        }

    def test_create_error_response_with_details(self):
        body = create_error_response("VALIDATION_ERROR", "Bad", details={"errors": []})
        # Empty details are omitted
        assert "details" not in body["error"]

        body = create_error_response("VALIDATION_ERROR", "Bad", details={"field": "limit"})
        assert body["error"]["details"] == {"field": "limit"}

    def test_api_exception_handler(self):
        """api_exception_handler returns the exception's status and body."""
        exc = NotFoundError(message="Voice profile not found", details={"profile_id": "p1"})

        response = _run(api_exception_handler(_request(), exc))

        assert response.status_code == 404
        assert json.loads(response.body) == {
            "error": {
                "code": "NOT_FOUND",
                "message": "Voice profile not found",
                "details": {"profile_id": "p1"},
            }
        }

    def test_http_exception_handler_unknown_status(self):
        exc = StarletteHTTPException(status_code=418, detail="I'm a teapot")

        response = _run(http_exception_handler(_request(), exc))

        assert response.status_code == 418
        body = json.loads(response.body)
        assert body["error"]["code"] == "ERROR"
        assert body["error"]["message"] == "I'm a teapot"

    def test_unhandled_exception_handler_hides_details(self):
        response = _run(unhandled_exception_handler(_request(), RuntimeError("db password leaked")))

        assert response.status_code == 500
        assert json.loads(response.body) == {
            "error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
        }


class LimitBody(BaseModel):
    limit: int = Field(ge=1)


class TestErrorHandlerIntegration:
    """Integration tests using a FastAPI app with the handlers registered."""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        register_error_handlers(app)

        @app.get("/generation")
        async def missing_generation():
            raise GenerationNotFoundError(uuid4())

        @app.get("/profile")
        async def missing_profile():
            raise VoiceProfileNotFoundError(uuid4())

        @app.get("/record")
        async def missing_record():
            raise RecordNotFoundError(Generation, uuid4())

        @app.post("/validated")
        async def validated(body: LimitBody):
            return body

        @app.get("/http-exception")
        async def raise_http():
            raise HTTPException(status_code=403, detail="Access denied")

        return app

    @pytest.fixture
    def client(self, app):
        return SyncTestClient(app)

    @pytest.mark.parametrize("path", ["/generation", "/profile", "/record"])
    def test_core_not_found_errors_are_uniform(self, client, path):
        """Absence and foreign ownership look the same to the caller."""
        response = client.get(path)

        assert response.status_code == 404
        assert response.json() == {"error": {"code": "NOT_FOUND", "message": "Resource not found"}}

    def test_request_validation_error(self, client):
        response = client.post("/validated", json={"limit": 0})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"][0]["field"] == "body.limit"
        ErrorResponse.model_validate(response.json())

    def test_http_exception(self, client):
        response = client.get("/http-exception")

        assert response.status_code == 403
        assert response.json() == {"error": {"code": "FORBIDDEN", "message": "Access denied"}}

    def test_unhandled_exception(self):
        app = FastAPI()
        register_error_handlers(app)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("Unexpected database failure")

        async def call():
            transport = ASGITransport(app=app, raise_app_exceptions=False)
            async with AsyncClient(transport=transport, base_url="http://testserver") as client:
                return await client.get("/boom")

        response = _run(call())

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
