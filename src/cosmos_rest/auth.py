"""Request signing for the Cosmos DB REST API.

Every request carries an Authorization header derived from the verb, the
resource addressed by the request path, and the x-ms-date timestamp. Master
keys are HMAC-SHA256 signed per request; resource tokens are already signed
by the service and are only percent-encoded.
"""

import base64
import binascii
import hashlib
import hmac
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime
from enum import StrEnum
from urllib.parse import quote

from cosmos_rest.errors import AuthError, ValidationError

RESOURCE_TOKEN_MARKER = "type=resource"
OFFERS = "offers"


class TokenType(StrEnum):
    """Kind of credential used to authorize a request."""

    MASTER = "master"
    RESOURCE = "resource"


def resolve_path(path: str) -> tuple[str, str]:
    """Derive the resource type and resource id addressed by a REST path.

    Segments alternate between type names and ids, so the parity of the
    last segment index tells listing paths (``/dbs/D1/colls``) from
    instance paths (``/dbs/D1/colls/C1``).

    Args:
        path: Resource path, e.g. "/dbs/D1/colls/C1/docs"

    Returns:
        Tuple of (resource_type, resource_id). The type is lower-cased.

    Raises:
        ValidationError: If the path is empty
    """
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    if path == "/":
        raise ValidationError("Resource path must not be empty")

    segments = path.split("/")
    n = len(segments) - 1
    listing = n % 2 == 1

    resource_type = (segments[n] if listing else segments[n - 1]).lower()

    if resource_type == OFFERS:
        # Offers live in a flat namespace and their ids are case-insensitive
        resource_id = "" if listing else segments[n].lower()
    elif listing:
        resource_id = path[1 : path.rfind("/")] if n > 1 else ""
    else:
        resource_id = path[1:]

    return resource_type, resource_id


def detect_token_type(token: str) -> TokenType:
    """Classify a credential as a master key or a resource token.

    Raises:
        AuthError: If the token is empty
    """
    if not token or not token.strip():
        raise AuthError("Authorization token must not be empty")
    if RESOURCE_TOKEN_MARKER in token:
        return TokenType.RESOURCE
    return TokenType.MASTER


def format_http_date(moment: datetime | None = None) -> str:
    """Format a moment as an RFC 1123 GMT date for the x-ms-date header.

    Args:
        moment: Timezone-aware datetime; defaults to now

    Returns:
        Date string such as "Tue, 01 Nov 1994 08:12:31 GMT"
    """
    if moment is None:
        moment = datetime.now(UTC)
    return format_datetime(moment.astimezone(UTC), usegmt=True)


@dataclass(frozen=True)
class SignatureContext:
    """Everything needed to produce one Authorization header value."""

    verb: str
    resource_type: str
    resource_id: str
    token: str
    token_type: TokenType
    token_version: str
    timestamp: str

    def canonical_string(self) -> str:
        """Text covered by the HMAC signature.

        The fifth line is a protocol field this client always leaves empty.
        """
        return (
            f"{self.verb.lower()}\n"
            f"{self.resource_type.lower()}\n"
            f"{self.resource_id}\n"
            f"{self.timestamp.lower()}\n"
            "\n"
        )


def build_context(
    verb: str,
    path: str,
    token: str,
    token_version: str,
    timestamp: str,
) -> SignatureContext:
    """Resolve the path and classify the token into a SignatureContext.

    Raises:
        AuthError: If the token is empty
        ValidationError: If the path is empty
    """
    token_type = detect_token_type(token)
    resource_type, resource_id = resolve_path(path)
    return SignatureContext(
        verb=verb,
        resource_type=resource_type,
        resource_id=resource_id,
        token=token,
        token_type=token_type,
        token_version=token_version,
        timestamp=timestamp,
    )


def _decode_master_key(token: str) -> bytes:
    try:
        return base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AuthError(f"Master key is not valid base64: {e}") from e


def sign_context(context: SignatureContext) -> str:
    """Produce the percent-encoded Authorization header value.

    Args:
        context: Signature inputs

    Returns:
        Encoded "type=master&ver=...&sig=..." for master keys, or the
        encoded token itself for resource tokens

    Raises:
        AuthError: If the master key cannot be decoded or the token type
            is not recognized
    """
    if context.token_type == TokenType.MASTER:
        key = _decode_master_key(context.token)
        digest = hmac.new(
            key,
            context.canonical_string().encode("utf-8"),
            hashlib.sha256,
        ).digest()
        signature = base64.b64encode(digest).decode("ascii")
        value = f"type=master&ver={context.token_version}&sig={signature}"
        return quote(value, safe="")
    if context.token_type == TokenType.RESOURCE:
        return quote(context.token, safe="")
    raise AuthError(f"Unsupported token type: {context.token_type!r}")


def sign(
    verb: str,
    path: str,
    token: str,
    token_version: str,
    timestamp: str,
) -> str:
    """Sign a request.

    Deterministic for fixed inputs; the caller supplies the timestamp so
    that the same value can be sent in the x-ms-date header.

    Args:
        verb: HTTP method, any case
        path: Resource path of the request
        token: Master key (base64) or resource token
        token_version: Token format version, usually "1.0"
        timestamp: RFC 1123 GMT date string

    Returns:
        Authorization header value

    Raises:
        AuthError: If the token is empty or malformed
        ValidationError: If the path is empty
    """
    return sign_context(build_context(verb, path, token, token_version, timestamp))
