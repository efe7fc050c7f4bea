"""Resource kinds and their list/query envelopes.

Every list or query response wraps its items in a single array field whose
name depends on the kind of resource listed. ENVELOPES maps each kind to that
field and to a decoder for the items.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NotRequired, TypedDict, cast

from cosmos_rest.errors import ErrorKind, ProtocolError


class ResourceKind(StrEnum):
    """Listable resource kinds, valued by their REST path segment."""

    DATABASES = "dbs"
    COLLECTIONS = "colls"
    DOCUMENTS = "docs"
    STORED_PROCEDURES = "sprocs"
    USER_DEFINED_FUNCTIONS = "udfs"
    TRIGGERS = "triggers"
    USERS = "users"
    PERMISSIONS = "permissions"
    PARTITION_KEY_RANGES = "pkranges"
    OFFERS = "offers"


# Record TypedDicts. Only the system properties shared by all records and the
# fields callers commonly read are declared; everything else passes through.


class ResourceDict(TypedDict):
    """System properties present on every Cosmos resource."""

    id: str
    _rid: NotRequired[str]
    _self: NotRequired[str]
    _etag: NotRequired[str]
    _ts: NotRequired[int]


class DatabaseDict(ResourceDict):
    """Database record."""

    _colls: NotRequired[str]
    _users: NotRequired[str]


class CollectionDict(ResourceDict):
    """Document collection (container) record."""

    partitionKey: NotRequired[dict[str, Any]]
    indexingPolicy: NotRequired[dict[str, Any]]


class StoredProcedureDict(ResourceDict):
    """Stored procedure record."""

    body: str


class UserDefinedFunctionDict(ResourceDict):
    """User-defined function record."""

    body: str


class TriggerDict(ResourceDict):
    """Trigger record."""

    body: str
    triggerType: str
    triggerOperation: str


class UserDict(ResourceDict):
    """User record."""

    _permissions: NotRequired[str]


class PermissionDict(ResourceDict):
    """Permission record; _token is the issued resource token."""

    permissionMode: str
    resource: str
    _token: NotRequired[str]


class PartitionKeyRangeDict(ResourceDict):
    """Partition key range record."""

    minInclusive: str
    maxExclusive: str


class OfferDict(ResourceDict):
    """Offer (provisioned throughput) record."""

    offerVersion: NotRequired[str]
    offerType: NotRequired[str]
    resource: NotRequired[str]
    offerResourceId: NotRequired[str]
    content: NotRequired[dict[str, Any]]


Decoder = Callable[[object], Any]


def decode_document(item: object) -> dict[str, Any]:
    """Documents are arbitrary JSON objects."""
    if not isinstance(item, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(item).__name__}")
    return item


def _record_decoder(shape: type[ResourceDict]) -> Decoder:
    name = shape.__name__.removesuffix("Dict")

    def decode(item: object) -> Any:
        record = decode_document(item)
        if not isinstance(record.get("id"), str):
            raise ProtocolError(f"{name} record is missing its id")
        return cast(shape, record)

    return decode


@dataclass(frozen=True)
class Envelope:
    """Where a kind's items live in a response and how to decode them."""

    field: str
    decode: Decoder


ENVELOPES: dict[ResourceKind, Envelope] = {
    ResourceKind.DATABASES: Envelope("Databases", _record_decoder(DatabaseDict)),
    ResourceKind.COLLECTIONS: Envelope(
        "DocumentCollections", _record_decoder(CollectionDict)
    ),
    ResourceKind.DOCUMENTS: Envelope("Documents", decode_document),
    ResourceKind.STORED_PROCEDURES: Envelope(
        "StoredProcedures", _record_decoder(StoredProcedureDict)
    ),
    ResourceKind.USER_DEFINED_FUNCTIONS: Envelope(
        "UserDefinedFunctions", _record_decoder(UserDefinedFunctionDict)
    ),
    ResourceKind.TRIGGERS: Envelope("Triggers", _record_decoder(TriggerDict)),
    ResourceKind.USERS: Envelope("Users", _record_decoder(UserDict)),
    ResourceKind.PERMISSIONS: Envelope("Permissions", _record_decoder(PermissionDict)),
    ResourceKind.PARTITION_KEY_RANGES: Envelope(
        "PartitionKeyRanges", _record_decoder(PartitionKeyRangeDict)
    ),
    ResourceKind.OFFERS: Envelope("Offers", _record_decoder(OfferDict)),
}


def resolve_kind(kind: ResourceKind | str) -> ResourceKind:
    """Normalize a kind given as an enum member or its path segment.

    Raises:
        ProtocolError: If the kind is not a listable resource kind
    """
    try:
        return ResourceKind(kind)
    except ValueError as e:
        raise ProtocolError(
            f"Unknown resource kind: {kind!r}", kind=ErrorKind.UNKNOWN_RESOURCE_KIND
        ) from e


def decode_envelope(kind: ResourceKind, payload: object) -> list[Any]:
    """Extract and decode the items of a list/query response.

    Args:
        kind: Resource kind that was listed
        payload: Decoded JSON body, or None for an empty (204) response

    Returns:
        Items in service order

    Raises:
        ProtocolError: If the envelope lacks the kind's array field
    """
    if payload is None:
        return []

    envelope = ENVELOPES[kind]
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected a JSON object envelope for {kind.name}")

    items = payload.get(envelope.field)
    if not isinstance(items, list):
        raise ProtocolError(
            f"Response is missing the {envelope.field!r} array for {kind.name}"
        )
    return [envelope.decode(item) for item in items]
