"""Signed identity cookie: record codec, digest, validation and issuance.

Record layout (byte-compatible with cookies minted by Apache2::AuthenNTLM::Cookie)::

    digest      40 bytes   lowercase hex, space padded on the right
    issued_at   12 bytes   decimal seconds since the epoch, space padded
    identity    rest       UTF-8 principal name, verbatim

Everything here is pure and never raises on hostile input: a malformed
record decodes to empty/zero fields and simply fails validation.
"""

import hashlib
import hmac
from typing import NamedTuple
from urllib.parse import quote_from_bytes, unquote_to_bytes

DIGEST_WIDTH = 40
TIME_WIDTH = 12

HMAC_SHA1 = "hmac-sha1"
LEGACY_SHA1 = "sha1"
DIGEST_ALGORITHMS = frozenset({HMAC_SHA1, LEGACY_SHA1})
DEFAULT_DIGEST = HMAC_SHA1

_PAD = b" \0"


class DecodedToken(NamedTuple):
    digest: str
    issued_at: int
    identity: str


class TokenCheck(NamedTuple):
    """Result of :func:`validate`. ``identity`` is only set when ``valid``."""

    valid: bool
    identity: str | None = None


MAX_ISSUED_AT = 10 ** TIME_WIDTH - 1


def _identity_bytes(identity: str) -> bytes:
    # surrogatepass makes every str encodable, lone surrogates included
    return identity.encode("utf-8", "surrogatepass")


def _identity_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8", "surrogatepass")
    except UnicodeDecodeError:
        return raw.decode("utf-8", "surrogateescape")


def _time_field(issued_at: int) -> bytes:
    issued_at = int(issued_at)
    if not 0 <= issued_at <= MAX_ISSUED_AT:
        raise ValueError(
            f"issued_at must fit in {TIME_WIDTH} decimal digits, got {issued_at}"
        )
    return str(issued_at).encode("ascii").ljust(TIME_WIDTH)


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def encode(digest: str, issued_at: int, identity: str) -> bytes:
    """Pack the three token fields into a record.

    Args:
        digest: Hex digest (padded or truncated to 40 characters).
        issued_at: Issue time in whole seconds since the epoch.
        identity: Authenticated principal name. Any content is allowed.

    Returns:
        The raw record bytes.

    Raises:
        ValueError: If ``issued_at`` is negative or longer than 12 digits.
    """
    digest_field = digest.encode("latin-1", "replace")[:DIGEST_WIDTH].ljust(DIGEST_WIDTH)
    return digest_field + _time_field(issued_at) + _identity_bytes(identity)


def decode(record: bytes) -> DecodedToken:
    """Unpack a record produced by :func:`encode`.

    Never raises. Missing or garbled fields come back empty (``digest``,
    ``identity``) or as ``0`` (``issued_at``), which always fails validation.
    Identity bytes that are not UTF-8 (e.g. Latin-1 names in older cookies)
    are kept as ``surrogateescape`` characters.
    """
    digest = record[:DIGEST_WIDTH].rstrip(_PAD).decode("latin-1")

    time_field = record[DIGEST_WIDTH:DIGEST_WIDTH + TIME_WIDTH].strip(_PAD)
    issued_at = int(time_field) if time_field.isdigit() else 0

    identity = _identity_text(record[DIGEST_WIDTH + TIME_WIDTH:])
    return DecodedToken(digest, issued_at, identity)


def to_cookie_value(record: bytes) -> str:
    """Percent-encode a record so it can travel in a ``Set-Cookie`` header."""
    return quote_from_bytes(record, safe="")


def from_cookie_value(value: str) -> bytes:
    """Inverse of :func:`to_cookie_value`. Never raises."""
    return unquote_to_bytes(value)


# ---------------------------------------------------------------------------
# Digest
# ---------------------------------------------------------------------------


def _digest(issued_at: int, identity: bytes, secret: str, algorithm: str) -> str:
    key = secret.encode("utf-8")

    if algorithm == HMAC_SHA1:
        return hmac.new(key, _time_field(issued_at) + identity, hashlib.sha1).hexdigest()
    if algorithm == LEGACY_SHA1:
        return hashlib.sha1(str(int(issued_at)).encode("ascii") + identity + key).hexdigest()
    raise ValueError(f"Unknown digest algorithm: {algorithm!r}")


def compute_digest(
    issued_at: int,
    identity: str,
    secret: str,
    algorithm: str = DEFAULT_DIGEST,
) -> str:
    """Compute the 40-character integrity tag over (issued_at, identity, secret).

    ``hmac-sha1`` keys HMAC-SHA1 with the secret over the fixed-width time
    field followed by the identity. ``sha1`` is the plain
    ``sha1_hex(issued_at . identity . secret)`` of the Perl module, kept so
    that cookies it issued still validate.

    The ``sha1`` concatenation has no field boundary: leading digits of an
    identity can be moved into the time field without changing the digest
    (a cookie for ``"12x"`` at time ``T`` hashes like one for ``"x"`` at
    ``T12``). :func:`validate` therefore rejects future issue times in that
    mode, which leaves only shifts to an older, stale time.

    Raises:
        ValueError: If ``algorithm`` is unknown (configuration rejects unknown
            names up front, so this never happens while serving requests),
            or ``issued_at`` does not fit the 12-digit time field.
    """
    return _digest(issued_at, _identity_bytes(identity), secret, algorithm)


# ---------------------------------------------------------------------------
# Validate / issue
# ---------------------------------------------------------------------------


def validate(
    record: bytes,
    now: int,
    secret: str,
    refresh: int,
    algorithm: str = DEFAULT_DIGEST,
) -> TokenCheck:
    """Check a record's freshness and digest.

    A record is valid when it is younger than ``refresh`` seconds and its
    digest matches the one recomputed with ``secret`` over the identity
    bytes exactly as received. Both conditions are always evaluated. With
    the ``sha1`` digest a record issued in the future is never fresh.
    """
    token = decode(record)
    expected = _digest(token.issued_at, record[DIGEST_WIDTH + TIME_WIDTH:], secret, algorithm)

    age = int(now) - token.issued_at
    fresh = age < refresh
    if algorithm == LEGACY_SHA1:
        fresh = fresh and age >= 0
    authentic = hmac.compare_digest(
        expected.encode("ascii"), token.digest.encode("latin-1")
    )

    if fresh and authentic:
        return TokenCheck(True, token.identity)
    return TokenCheck(False)


def issue(
    identity: str,
    now: int,
    secret: str,
    algorithm: str = DEFAULT_DIGEST,
) -> bytes:
    """Mint a record for an identity the caller has already authenticated."""
    issued_at = int(now)
    return encode(compute_digest(issued_at, identity, secret, algorithm), issued_at, identity)
