"""Continuation-driven paging over list and query endpoints.

List and query endpoints return one page per call and set x-ms-continuation
on the response while more pages remain. PaginationEngine follows that cursor
for every resource kind; only the envelope field and the item decoder differ
per kind.

When the caller gives no page size the engine drains every page into one list
before returning. With an explicit max_item_count it returns after a single
page together with the cursor, and further paging is left to the caller.
"""

import logging
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from typing import Any

import httpx

from cosmos_rest.headers import (
    HeaderBuilder,
    ResponseHeaders,
    set_continuation,
    set_max_item_count,
    set_query,
)
from cosmos_rest.resources import ResourceKind, decode_envelope, resolve_kind
from cosmos_rest.transport import send

logger = logging.getLogger(__name__)


@dataclass
class Query:
    """Parameterized SQL query."""

    query: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_body(self) -> dict[str, Any]:
        """Request body in the service's query format."""
        return {
            "query": self.query,
            "parameters": [
                {"name": name if name.startswith("@") else f"@{name}", "value": value}
                for name, value in self.parameters.items()
            ],
        }


@dataclass(frozen=True)
class RequestTemplate:
    """Everything about a list/query request except the signed and paging headers."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    @classmethod
    def listing(cls, path: str, headers: dict[str, str] | None = None) -> "RequestTemplate":
        return cls("GET", path, dict(headers or {}))

    @classmethod
    def query(
        cls, path: str, query: Query | str, headers: dict[str, str] | None = None
    ) -> "RequestTemplate":
        if isinstance(query, str):
            query = Query(query)
        return cls("POST", path, set_query(dict(headers or {})), query.to_body())


@dataclass
class Page:
    """Items fetched by one fetch_page call."""

    items: list[Any]
    continuation: str | None
    headers: ResponseHeaders

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


class PaginationEngine:
    """Fetches and accumulates paged results for any resource kind."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        endpoint: str,
        header_builder: HeaderBuilder,
    ) -> None:
        """Initialize pagination engine.

        Args:
            http: Client used for every round trip
            endpoint: Account endpoint URL
            header_builder: Signs each page request
        """
        self.http = http
        self.base_url = endpoint.rstrip("/")
        self.header_builder = header_builder

    def _page_headers(
        self,
        template: RequestTemplate,
        max_item_count: int | None,
        continuation: str | None,
    ) -> dict[str, str]:
        headers = dict(template.headers)
        if max_item_count is not None:
            set_max_item_count(headers, max_item_count)
        if continuation is not None:
            set_continuation(headers, continuation)
        # Signed last so a fresh x-ms-date goes out with every page
        headers.update(self.header_builder.build(template.method, template.path))
        return headers

    async def fetch_page(
        self,
        kind: ResourceKind | str,
        template: RequestTemplate,
        max_item_count: int | None = None,
        continuation: str | None = None,
    ) -> Page:
        """Fetch items for a list or query request.

        Without max_item_count every page is fetched in turn and the items
        are accumulated in service order. With max_item_count exactly one
        page is fetched and its continuation cursor is returned.

        Args:
            kind: Resource kind being listed
            template: Request to page through
            max_item_count: Page size bound; None drains all pages
            continuation: Cursor from a previous page to resume from

        Returns:
            Page with the accumulated items and the next cursor, if any

        Raises:
            ProtocolError: If the kind is unknown or a response lacks its envelope
            ApiError: If any page request is rejected by the service
            TransportError: If any page request fails in transit
        """
        resource_kind = resolve_kind(kind)
        url = f"{self.base_url}{template.path}"
        items: list[Any] = []
        cursor = continuation
        pages = 0

        while True:
            headers = self._page_headers(template, max_item_count, cursor)
            response = await send(self.http, template.method, url, headers, template.body)
            page_items = decode_envelope(resource_kind, response.body)
            items.extend(page_items)
            pages += 1

            cursor = response.headers.continuation_token or None
            logger.debug(
                f"Page {pages} of {resource_kind.name}: {len(page_items)} items, "
                f"continuation={cursor!r}"
            )
            if cursor is None or max_item_count is not None:
                break

        logger.info(f"Fetched {len(items)} {resource_kind.name} items in {pages} page(s)")
        return Page(items=items, continuation=cursor, headers=response.headers)

    async def stream(
        self,
        kind: ResourceKind | str,
        template: RequestTemplate,
        max_item_count: int | None = None,
    ) -> AsyncIterator[Any]:
        """Yield items for a list or query request in service order.

        Items are fetched with fetch_page before the first one is yielded,
        so an unbounded stream has already drained every page by then.
        """
        page = await self.fetch_page(kind, template, max_item_count)
        for item in page.items:
            yield item

    async def collect(
        self,
        kind: ResourceKind | str,
        template: RequestTemplate,
        max_item_count: int | None = None,
    ) -> list[Any]:
        """Fetch a list or query request and return its items as a list.

        Args:
            kind: Resource kind being listed
            template: Request to page through
            max_item_count: Page size; None drains every page

        Returns:
            Items in service order
        """
        return [item async for item in self.stream(kind, template, max_item_count)]
