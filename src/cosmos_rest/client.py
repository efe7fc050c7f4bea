"""Cosmos DB REST API client.

Thin per-resource operations over the signing, header and paging layers:
each builds a resource path, builds headers, sends the request and returns
the decoded response.
"""

import logging
from typing import TYPE_CHECKING, Any, Self

import httpx

from cosmos_rest.headers import (
    DEFAULT_API_VERSION,
    DEFAULT_TOKEN_VERSION,
    HeaderBuilder,
    RequestOptions,
)
from cosmos_rest.pagination import Page, PaginationEngine, Query, RequestTemplate
from cosmos_rest.resources import (
    CollectionDict,
    DatabaseDict,
    OfferDict,
    PermissionDict,
    ResourceKind,
    StoredProcedureDict,
    TriggerDict,
    UserDefinedFunctionDict,
    UserDict,
)
from cosmos_rest.transport import Response, send

if TYPE_CHECKING:
    from cosmos_rest.config import AccountConfig

logger = logging.getLogger(__name__)


def database_path(db: str) -> str:
    return f"/dbs/{db}"


def collection_path(db: str, coll: str) -> str:
    return f"/dbs/{db}/colls/{coll}"


def user_path(db: str, user: str) -> str:
    return f"/dbs/{db}/users/{user}"


class CosmosClient:
    """Async client for the Cosmos DB REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        endpoint: str,
        token: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        token_version: str = DEFAULT_TOKEN_VERSION,
    ) -> None:
        """Initialize Cosmos client.

        Args:
            http: httpx AsyncClient used for all requests
            endpoint: Account endpoint (e.g., https://acct.documents.azure.com:443/)
            token: Master key or resource token
            api_version: Value for x-ms-version
            token_version: Token format version embedded in signatures
        """
        self.http = http
        self.endpoint = endpoint.rstrip("/")
        self.headers = HeaderBuilder(
            endpoint, token, api_version=api_version, token_version=token_version
        )
        self.pages = PaginationEngine(http, endpoint, self.headers)

    @classmethod
    def from_config(cls, config: "AccountConfig", timeout: float = 30.0) -> Self:
        """Create a client with its own httpx AsyncClient.

        The caller closes it with ``aclose()`` or ``async with``.
        """
        return cls(
            httpx.AsyncClient(timeout=timeout),
            config.endpoint,
            config.master_key,
            api_version=config.api_version,
            token_version=config.token_version,
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # Core plumbing

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> Response:
        headers: dict[str, str] = {}
        if options is not None:
            options.apply(headers)
        headers.update(self.headers.build(method, path))
        return await send(self.http, method, f"{self.endpoint}{path}", headers, body)

    async def _list(
        self,
        kind: ResourceKind,
        path: str,
        *,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        headers: dict[str, str] = {}
        if options is not None:
            options.apply(headers)
        return await self.pages.fetch_page(
            kind,
            RequestTemplate.listing(path, headers),
            max_item_count=max_item_count,
            continuation=continuation,
        )

    async def _query(
        self,
        kind: ResourceKind,
        path: str,
        query: Query | str,
        *,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        headers: dict[str, str] = {}
        if options is not None:
            options.apply(headers)
        return await self.pages.fetch_page(
            kind,
            RequestTemplate.query(path, query, headers),
            max_item_count=max_item_count,
            continuation=continuation,
        )

    # Databases

    async def list_databases(
        self,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.DATABASES,
            "/dbs",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def get_database(self, db: str) -> DatabaseDict:
        return (await self._request("GET", database_path(db))).body

    async def create_database(
        self, db: str, options: RequestOptions | None = None
    ) -> DatabaseDict:
        logger.info(f"Creating database {db}")
        return (await self._request("POST", "/dbs", body={"id": db}, options=options)).body

    async def delete_database(self, db: str) -> None:
        logger.info(f"Deleting database {db}")
        await self._request("DELETE", database_path(db))

    # Collections

    async def list_collections(
        self,
        db: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.COLLECTIONS,
            f"{database_path(db)}/colls",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def get_collection(self, db: str, coll: str) -> CollectionDict:
        return (await self._request("GET", collection_path(db, coll))).body

    async def create_collection(
        self,
        db: str,
        coll: str,
        partition_key_paths: list[str],
        options: RequestOptions | None = None,
    ) -> CollectionDict:
        """Create a collection partitioned on the given JSON paths.

        Args:
            db: Database id
            coll: Collection id
            partition_key_paths: Partition key paths, e.g. ["/tenantId"]
            options: Throughput and other request options

        Returns:
            Created collection record
        """
        body = {
            "id": coll,
            "partitionKey": {"paths": partition_key_paths, "kind": "Hash"},
        }
        logger.info(f"Creating collection {coll} in database {db}")
        response = await self._request(
            "POST", f"{database_path(db)}/colls", body=body, options=options
        )
        return response.body

    async def delete_collection(self, db: str, coll: str) -> None:
        logger.info(f"Deleting collection {coll} in database {db}")
        await self._request("DELETE", collection_path(db, coll))

    async def list_partition_key_ranges(
        self,
        db: str,
        coll: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.PARTITION_KEY_RANGES,
            f"{collection_path(db, coll)}/pkranges",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    # Documents

    async def list_documents(
        self,
        db: str,
        coll: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.DOCUMENTS,
            f"{collection_path(db, coll)}/docs",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def query_documents(
        self,
        db: str,
        coll: str,
        query: Query | str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        """Run a SQL query against a collection.

        Args:
            db: Database id
            coll: Collection id
            query: SQL text or parameterized Query
            max_item_count: Page size; None fetches every page
            continuation: Cursor to resume a bounded query
            options: Partition key, cross-partition and other options

        Returns:
            Page of matching documents
        """
        return await self._query(
            ResourceKind.DOCUMENTS,
            f"{collection_path(db, coll)}/docs",
            query,
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def get_document(
        self, db: str, coll: str, doc_id: str, options: RequestOptions | None = None
    ) -> Response:
        return await self._request(
            "GET", f"{collection_path(db, coll)}/docs/{doc_id}", options=options
        )

    async def create_document(
        self,
        db: str,
        coll: str,
        document: dict[str, Any],
        options: RequestOptions | None = None,
    ) -> Response:
        return await self._request(
            "POST", f"{collection_path(db, coll)}/docs", body=document, options=options
        )

    async def replace_document(
        self,
        db: str,
        coll: str,
        document: dict[str, Any],
        options: RequestOptions | None = None,
    ) -> Response:
        return await self._request(
            "PUT",
            f"{collection_path(db, coll)}/docs/{document['id']}",
            body=document,
            options=options,
        )

    async def delete_document(
        self, db: str, coll: str, doc_id: str, options: RequestOptions | None = None
    ) -> Response:
        return await self._request(
            "DELETE", f"{collection_path(db, coll)}/docs/{doc_id}", options=options
        )

    # Server-side scripts

    async def list_stored_procedures(
        self,
        db: str,
        coll: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.STORED_PROCEDURES,
            f"{collection_path(db, coll)}/sprocs",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def create_stored_procedure(
        self, db: str, coll: str, sproc_id: str, body: str
    ) -> StoredProcedureDict:
        response = await self._request(
            "POST",
            f"{collection_path(db, coll)}/sprocs",
            body={"id": sproc_id, "body": body},
        )
        return response.body

    async def replace_stored_procedure(
        self, db: str, coll: str, sproc_id: str, body: str
    ) -> StoredProcedureDict:
        response = await self._request(
            "PUT",
            f"{collection_path(db, coll)}/sprocs/{sproc_id}",
            body={"id": sproc_id, "body": body},
        )
        return response.body

    async def delete_stored_procedure(self, db: str, coll: str, sproc_id: str) -> None:
        await self._request("DELETE", f"{collection_path(db, coll)}/sprocs/{sproc_id}")

    async def execute_stored_procedure(
        self,
        db: str,
        coll: str,
        sproc_id: str,
        params: list[Any] | None = None,
        options: RequestOptions | None = None,
    ) -> Response:
        return await self._request(
            "POST",
            f"{collection_path(db, coll)}/sprocs/{sproc_id}",
            body=params or [],
            options=options,
        )

    async def list_triggers(
        self,
        db: str,
        coll: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.TRIGGERS,
            f"{collection_path(db, coll)}/triggers",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def create_trigger(
        self,
        db: str,
        coll: str,
        trigger_id: str,
        body: str,
        trigger_type: str,
        trigger_operation: str,
    ) -> TriggerDict:
        payload = {
            "id": trigger_id,
            "body": body,
            "triggerType": trigger_type,
            "triggerOperation": trigger_operation,
        }
        response = await self._request(
            "POST", f"{collection_path(db, coll)}/triggers", body=payload
        )
        return response.body

    async def replace_trigger(
        self,
        db: str,
        coll: str,
        trigger_id: str,
        body: str,
        trigger_type: str,
        trigger_operation: str,
    ) -> TriggerDict:
        payload = {
            "id": trigger_id,
            "body": body,
            "triggerType": trigger_type,
            "triggerOperation": trigger_operation,
        }
        response = await self._request(
            "PUT", f"{collection_path(db, coll)}/triggers/{trigger_id}", body=payload
        )
        return response.body

    async def delete_trigger(self, db: str, coll: str, trigger_id: str) -> None:
        await self._request("DELETE", f"{collection_path(db, coll)}/triggers/{trigger_id}")

    async def list_user_defined_functions(
        self,
        db: str,
        coll: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.USER_DEFINED_FUNCTIONS,
            f"{collection_path(db, coll)}/udfs",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def create_user_defined_function(
        self, db: str, coll: str, udf_id: str, body: str
    ) -> UserDefinedFunctionDict:
        response = await self._request(
            "POST", f"{collection_path(db, coll)}/udfs", body={"id": udf_id, "body": body}
        )
        return response.body

    async def replace_user_defined_function(
        self, db: str, coll: str, udf_id: str, body: str
    ) -> UserDefinedFunctionDict:
        response = await self._request(
            "PUT",
            f"{collection_path(db, coll)}/udfs/{udf_id}",
            body={"id": udf_id, "body": body},
        )
        return response.body

    async def delete_user_defined_function(self, db: str, coll: str, udf_id: str) -> None:
        await self._request("DELETE", f"{collection_path(db, coll)}/udfs/{udf_id}")

    # Users and permissions

    async def list_users(
        self,
        db: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.USERS,
            f"{database_path(db)}/users",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def create_user(self, db: str, user: str) -> UserDict:
        return (await self._request("POST", f"{database_path(db)}/users", body={"id": user})).body

    async def delete_user(self, db: str, user: str) -> None:
        await self._request("DELETE", user_path(db, user))

    async def list_permissions(
        self,
        db: str,
        user: str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.PERMISSIONS,
            f"{user_path(db, user)}/permissions",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def create_permission(
        self,
        db: str,
        user: str,
        permission_id: str,
        mode: str,
        resource: str,
        expiry_seconds: int | None = None,
    ) -> PermissionDict:
        """Grant a user access to a resource.

        Args:
            db: Database id
            user: User id
            permission_id: Permission id
            mode: "Read" or "All"
            resource: _self link of the resource, e.g. "dbs/D/colls/C"
            expiry_seconds: Validity of resource tokens issued for this permission

        Returns:
            Created permission, including its resource token

        Raises:
            ValidationError: If expiry_seconds is outside the allowed range
        """
        options = RequestOptions(resource_token_expiry=expiry_seconds)
        payload = {"id": permission_id, "permissionMode": mode, "resource": resource}
        response = await self._request(
            "POST", f"{user_path(db, user)}/permissions", body=payload, options=options
        )
        return response.body

    # Offers

    async def list_offers(
        self,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._list(
            ResourceKind.OFFERS,
            "/offers",
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def query_offers(
        self,
        query: Query | str,
        max_item_count: int | None = None,
        continuation: str | None = None,
        options: RequestOptions | None = None,
    ) -> Page:
        return await self._query(
            ResourceKind.OFFERS,
            "/offers",
            query,
            max_item_count=max_item_count,
            continuation=continuation,
            options=options,
        )

    async def get_offer(self, offer_id: str) -> OfferDict:
        return (await self._request("GET", f"/offers/{offer_id}")).body

    async def replace_offer(self, offer: OfferDict) -> OfferDict:
        response = await self._request("PUT", f"/offers/{offer['_rid']}", body=offer)
        return response.body
