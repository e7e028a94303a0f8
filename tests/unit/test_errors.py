"""
Tests for the error handling utilities.
"""

from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from tutorbook.utils.errors import (
    DocumentStoreError,
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
    SearchIndexError,
    TutorbookError,
    UnauthorizedError,
    ValidationError,
    setup_error_handlers,
)


def test_error_response_model():
    error = ErrorResponse(
        code=ErrorCode.SERVER_ERROR.value,
        message="Test error",
        details=[ErrorDetail(location="query", param="aspect", value="x", message="Invalid")],
        request_id="test-request-id",
    )

    assert error.code == "1000"
    assert error.details[0].param == "aspect"
    assert error.request_id == "test-request-id"


def test_error_subclasses():
    cases = [
        (ValidationError(), ErrorCode.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST),
        (UnauthorizedError(), ErrorCode.UNAUTHORIZED, status.HTTP_401_UNAUTHORIZED),
        (SearchIndexError(), ErrorCode.SEARCH_INDEX_ERROR, status.HTTP_502_BAD_GATEWAY),
        (DocumentStoreError(), ErrorCode.DOCUMENT_STORE_ERROR, status.HTTP_502_BAD_GATEWAY),
    ]
    for error, code, status_code in cases:
        assert isinstance(error, TutorbookError)
        assert error.code == code
        assert error.status_code == status_code
        assert error.details == []


def make_app() -> FastAPI:
    app = FastAPI()
    setup_error_handlers(app)

    @app.get("/validation")
    async def validation():
        raise ValidationError(
            "Bad filter",
            details=[ErrorDetail(location="query", param="visible", message="Must be a boolean")],
        )

    @app.get("/crash")
    async def crash():
        raise RuntimeError("unexpected")

    @app.get("/typed")
    async def typed(limit: int):
        return {"limit": limit}

    return app


def test_service_error_handler():
    client = TestClient(make_app())
    response = client.get("/validation")

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == ErrorCode.VALIDATION_ERROR.value
    assert data["message"] == "Bad filter"
    assert data["details"][0]["param"] == "visible"


def test_request_validation_error_handler():
    client = TestClient(make_app())
    response = client.get("/typed", params={"limit": "many"})

    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.VALIDATION_ERROR.value


def test_unhandled_exception_handler():
    client = TestClient(make_app(), raise_server_exceptions=False)
    response = client.get("/crash")

    assert response.status_code == 500
    assert response.json()["code"] == ErrorCode.SERVER_ERROR.value
