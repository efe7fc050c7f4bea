"""Shared test fixtures."""

import base64
from typing import Any

import httpx
import pytest
from cosmos_rest.client import CosmosClient
from cosmos_rest.headers import HeaderBuilder
from cosmos_rest.pagination import PaginationEngine

ENDPOINT = "https://acct.documents.azure.com:443/"
MASTER_KEY = base64.b64encode(b"0123456789abcdef" * 4).decode("ascii")
FIXED_DATE = "Thu, 27 Apr 2017 00:51:12 GMT"


class FakeService:
    """Records requests and answers them from a queue of canned responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []

    def reply(
        self,
        status_code: int = 200,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> "FakeService":
        if json is None:
            response = httpx.Response(status_code, headers=headers)
        else:
            response = httpx.Response(status_code, json=json, headers=headers)
        self._responses.append(response)
        return self

    def respond(self, response: httpx.Response) -> "FakeService":
        self._responses.append(response)
        return self

    def fail(self, error: Exception) -> "FakeService":
        self._responses.append(error)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def http(service: FakeService) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(service.handler))


@pytest.fixture
def header_builder() -> HeaderBuilder:
    return HeaderBuilder(ENDPOINT, MASTER_KEY, clock=lambda: FIXED_DATE)


@pytest.fixture
def engine(http: httpx.AsyncClient, header_builder: HeaderBuilder) -> PaginationEngine:
    return PaginationEngine(http, ENDPOINT, header_builder)


@pytest.fixture
def client(http: httpx.AsyncClient) -> CosmosClient:
    return CosmosClient(http, ENDPOINT, MASTER_KEY)
