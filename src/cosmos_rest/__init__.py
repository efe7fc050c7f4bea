"""Async client for the Cosmos DB REST API.

Provides request signing for master keys and resource tokens, header
assembly, and continuation-driven paging across every listable resource kind.
"""

from cosmos_rest.auth import (
    SignatureContext,
    TokenType,
    build_context,
    format_http_date,
    resolve_path,
    sign,
    sign_context,
)
from cosmos_rest.client import CosmosClient
from cosmos_rest.config import AccountConfig, Config, HttpConfig
from cosmos_rest.errors import (
    ApiError,
    AuthError,
    CosmosError,
    ErrorKind,
    ProtocolError,
    TransportError,
    ValidationError,
)
from cosmos_rest.headers import (
    ConsistencyLevel,
    HeaderBuilder,
    IndexingDirective,
    RequestOptions,
    ResponseHeaders,
)
from cosmos_rest.pagination import Page, PaginationEngine, Query, RequestTemplate
from cosmos_rest.resources import ENVELOPES, ResourceKind

__all__ = [
    "ENVELOPES",
    "AccountConfig",
    "ApiError",
    "AuthError",
    "Config",
    "ConsistencyLevel",
    "CosmosClient",
    "CosmosError",
    "ErrorKind",
    "HeaderBuilder",
    "HttpConfig",
    "IndexingDirective",
    "Page",
    "PaginationEngine",
    "ProtocolError",
    "Query",
    "RequestOptions",
    "RequestTemplate",
    "ResourceKind",
    "ResponseHeaders",
    "SignatureContext",
    "TokenType",
    "TransportError",
    "ValidationError",
    "build_context",
    "format_http_date",
    "resolve_path",
    "sign",
    "sign_context",
]
