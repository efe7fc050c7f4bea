"""HTTP header assembly for Cosmos DB requests.

HeaderBuilder produces the mandatory header set for a request, including the
signed Authorization value. The ``set_*`` functions apply optional request
modifiers to an existing header dict; each validates its input before writing
anything.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any
from urllib.parse import urlsplit

from cosmos_rest.auth import format_http_date, sign
from cosmos_rest.errors import ValidationError

DEFAULT_API_VERSION = "2018-12-31"
DEFAULT_TOKEN_VERSION = "1.0"

MIN_MANUAL_THROUGHPUT = 400
MIN_AUTOPILOT_THROUGHPUT = 4000
MIN_TOKEN_EXPIRY_SECONDS = 10
MAX_TOKEN_EXPIRY_SECONDS = 18000

QUERY_CONTENT_TYPE = "application/query+json"


class ConsistencyLevel(StrEnum):
    """Read consistency levels accepted by x-ms-consistency-level."""

    STRONG = "Strong"
    BOUNDED_STALENESS = "BoundedStaleness"
    SESSION = "Session"
    CONSISTENT_PREFIX = "ConsistentPrefix"
    EVENTUAL = "Eventual"


class IndexingDirective(StrEnum):
    """Per-request override of the collection indexing policy."""

    DEFAULT = "Default"
    INCLUDE = "Include"
    EXCLUDE = "Exclude"


def host_from_endpoint(endpoint: str) -> str:
    """Extract the Host header value from an account endpoint.

    Args:
        endpoint: Account URL, e.g. "https://acct.documents.azure.com:443/"

    Returns:
        Host with port if present, e.g. "acct.documents.azure.com:443"

    Raises:
        ValidationError: If the endpoint has no host
    """
    if "://" not in endpoint:
        endpoint = f"https://{endpoint}"
    netloc = urlsplit(endpoint).netloc
    if not netloc:
        raise ValidationError(f"Endpoint has no host: {endpoint!r}")
    return netloc


class HeaderBuilder:
    """Builds signed header sets for one account and credential."""

    def __init__(
        self,
        endpoint: str,
        token: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        token_version: str = DEFAULT_TOKEN_VERSION,
        clock: Callable[[], str] = format_http_date,
    ) -> None:
        """Initialize header builder.

        Args:
            endpoint: Account endpoint URL
            token: Master key or resource token
            api_version: Value for x-ms-version
            token_version: Token format version embedded in the signature
            clock: Returns the current RFC 1123 date string
        """
        self.host = host_from_endpoint(endpoint)
        self.api_version = api_version
        self.token_version = token_version
        self._token = token
        self._clock = clock

    def build(self, verb: str, path: str, *, timestamp: str | None = None) -> dict[str, str]:
        """Build the mandatory headers for a request.

        Args:
            verb: HTTP method
            path: Resource path used for signing
            timestamp: Explicit x-ms-date value; defaults to the clock

        Returns:
            New header dict

        Raises:
            AuthError: If the token is empty or malformed
        """
        date = timestamp if timestamp is not None else self._clock()
        authorization = sign(verb, path, self._token, self.token_version, date)
        return {
            "x-ms-version": self.api_version,
            "Host": self.host,
            "Accept": "*/*",
            "Connection": "keep-alive",
            "x-ms-date": date,
            "Authorization": authorization,
        }


def set_partition_key(headers: dict[str, str], value: Any) -> dict[str, str]:
    headers["x-ms-documentdb-partitionkey"] = json.dumps([value])
    return headers


def set_partition_key_range_id(headers: dict[str, str], range_id: str) -> dict[str, str]:
    headers["x-ms-documentdb-partitionkeyrangeid"] = range_id
    return headers


def set_consistency_level(
    headers: dict[str, str], level: ConsistencyLevel | str
) -> dict[str, str]:
    try:
        level = ConsistencyLevel(level)
    except ValueError as e:
        raise ValidationError(f"Unknown consistency level: {level!r}") from e
    headers["x-ms-consistency-level"] = level.value
    return headers


def set_session_token(headers: dict[str, str], token: str) -> dict[str, str]:
    headers["x-ms-session-token"] = token
    return headers


def set_change_feed(headers: dict[str, str]) -> dict[str, str]:
    headers["A-IM"] = "Incremental feed"
    return headers


def set_if_match(headers: dict[str, str], etag: str) -> dict[str, str]:
    headers["If-Match"] = etag
    return headers


def set_if_none_match(headers: dict[str, str], etag: str) -> dict[str, str]:
    headers["If-None-Match"] = etag
    return headers


def set_enable_cross_partition(headers: dict[str, str], enabled: bool = True) -> dict[str, str]:
    headers["x-ms-documentdb-query-enablecrosspartition"] = "True" if enabled else "False"
    return headers


def set_upsert(headers: dict[str, str], upsert: bool = True) -> dict[str, str]:
    headers["x-ms-documentdb-is-upsert"] = "True" if upsert else "False"
    return headers


def set_indexing_directive(
    headers: dict[str, str], directive: IndexingDirective | str
) -> dict[str, str]:
    try:
        directive = IndexingDirective(directive)
    except ValueError as e:
        raise ValidationError(f"Unknown indexing directive: {directive!r}") from e
    headers["x-ms-documentdb-indexingdirective"] = directive.value
    return headers


def set_max_item_count(headers: dict[str, str], count: int) -> dict[str, str]:
    """Bound the page size; -1 lets the service choose."""
    if count == 0 or count < -1:
        raise ValidationError(f"max_item_count must be positive or -1, got {count}")
    headers["x-ms-max-item-count"] = str(count)
    return headers


def set_continuation(headers: dict[str, str], continuation: str) -> dict[str, str]:
    headers["x-ms-continuation"] = continuation
    return headers


def set_query(headers: dict[str, str]) -> dict[str, str]:
    """Mark a POST as a SQL query rather than a create."""
    headers["x-ms-documentdb-isquery"] = "true"
    headers["Content-Type"] = QUERY_CONTENT_TYPE
    return headers


def set_offer_throughput(headers: dict[str, str], throughput: int) -> dict[str, str]:
    """Request manually provisioned throughput in RU/s.

    Raises:
        ValidationError: If throughput is below the service minimum
    """
    if throughput < MIN_MANUAL_THROUGHPUT:
        raise ValidationError(
            f"Manual throughput must be at least {MIN_MANUAL_THROUGHPUT} RU/s, got {throughput}"
        )
    headers["x-ms-offer-throughput"] = str(throughput)
    return headers


def set_autopilot_throughput(headers: dict[str, str], max_throughput: int) -> dict[str, str]:
    """Request autoscale throughput with the given ceiling in RU/s.

    Raises:
        ValidationError: If the ceiling is below the autoscale minimum
    """
    if max_throughput < MIN_AUTOPILOT_THROUGHPUT:
        raise ValidationError(
            f"Autoscale max throughput must be at least {MIN_AUTOPILOT_THROUGHPUT} RU/s, "
            f"got {max_throughput}"
        )
    headers["x-ms-cosmos-offer-autopilot-settings"] = json.dumps(
        {"maxThroughput": max_throughput}
    )
    return headers


def set_resource_token_expiry(headers: dict[str, str], seconds: int) -> dict[str, str]:
    """Set the validity period of resource tokens issued for a permission.

    Raises:
        ValidationError: If seconds is outside the allowed range
    """
    if not MIN_TOKEN_EXPIRY_SECONDS <= seconds <= MAX_TOKEN_EXPIRY_SECONDS:
        raise ValidationError(
            f"Resource token expiry must be between {MIN_TOKEN_EXPIRY_SECONDS} and "
            f"{MAX_TOKEN_EXPIRY_SECONDS} seconds, got {seconds}"
        )
    headers["x-ms-documentdb-expiry-seconds"] = str(seconds)
    return headers


@dataclass
class RequestOptions:
    """Optional per-request modifiers; only fields that are set are sent."""

    partition_key: Any = None
    partition_key_range_id: str | None = None
    consistency_level: ConsistencyLevel | str | None = None
    session_token: str | None = None
    change_feed: bool = False
    if_match: str | None = None
    if_none_match: str | None = None
    enable_cross_partition: bool | None = None
    upsert: bool | None = None
    indexing_directive: IndexingDirective | str | None = None
    offer_throughput: int | None = None
    autopilot_max_throughput: int | None = None
    resource_token_expiry: int | None = None

    def apply(self, headers: dict[str, str]) -> dict[str, str]:
        """Apply every set option to headers.

        Options are applied to a copy, so headers is left untouched when
        any option fails validation.

        Returns:
            The updated headers dict (the same object that was passed in)

        Raises:
            ValidationError: If an option value is invalid
        """
        staged = dict(headers)
        if self.partition_key is not None:
            set_partition_key(staged, self.partition_key)
        if self.partition_key_range_id is not None:
            set_partition_key_range_id(staged, self.partition_key_range_id)
        if self.consistency_level is not None:
            set_consistency_level(staged, self.consistency_level)
        if self.session_token is not None:
            set_session_token(staged, self.session_token)
        if self.change_feed:
            set_change_feed(staged)
        if self.if_match is not None:
            set_if_match(staged, self.if_match)
        if self.if_none_match is not None:
            set_if_none_match(staged, self.if_none_match)
        if self.enable_cross_partition is not None:
            set_enable_cross_partition(staged, self.enable_cross_partition)
        if self.upsert is not None:
            set_upsert(staged, self.upsert)
        if self.indexing_directive is not None:
            set_indexing_directive(staged, self.indexing_directive)
        if self.offer_throughput is not None:
            set_offer_throughput(staged, self.offer_throughput)
        if self.autopilot_max_throughput is not None:
            set_autopilot_throughput(staged, self.autopilot_max_throughput)
        if self.resource_token_expiry is not None:
            set_resource_token_expiry(staged, self.resource_token_expiry)
        headers.update(staged)
        return headers


@dataclass(frozen=True)
class ResponseHeaders:
    """Telemetry and paging headers returned by the service."""

    continuation_token: str | None = None
    session_token: str | None = None
    request_charge: str | None = None
    resource_usage: str | None = None
    etag: str | None = None
    date: str | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "ResponseHeaders":
        """Extract the known headers from a response header mapping.

        Args:
            headers: Case-insensitive mapping such as httpx.Headers

        Returns:
            ResponseHeaders with None for every absent header
        """
        return cls(
            continuation_token=headers.get("x-ms-continuation"),
            session_token=headers.get("x-ms-session-token"),
            request_charge=headers.get("x-ms-request-charge"),
            resource_usage=headers.get("x-ms-resource-usage"),
            etag=headers.get("etag"),
            date=headers.get("date"),
        )
