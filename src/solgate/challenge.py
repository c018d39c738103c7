"""Sign-in challenge records and their canonical text.

The canonical text is what the wallet signs and what the verifier rebuilds,
so its layout is byte-exact:

    <domain> wants you to sign in with your Solana account:
    <address>

    <statement>

    Version: <version>
    Chain ID: <chain_id>
    Nonce: <nonce>
    Issued At: <issued_at>
    Resources:
    - <resource>

The Resources block is present only when there is at least one resource.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict

from solgate.errors import EnvironmentUnavailableError

logger = logging.getLogger(__name__)

STATEMENT = (
    "Clicking Sign or Approve only means you have proved this wallet is owned by you. "
    "This request will not trigger any blockchain transaction or cost any gas fee."
)
VERSION = "1"
CHAIN_ID = "mainnet"
NONCE_BYTES = 4

RandomSource = Callable[[int], bytes]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeRecord(BaseModel):
    """A challenge issued to a wallet. Immutable; equal when all fields are equal."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    domain: str
    address: str
    statement: str
    version: str
    nonce: str
    chain_id: str
    issued_at: str
    resources: tuple[str, ...] = ()

    def message(self) -> str:
        return canonical_text(self)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> ChallengeRecord:
        return cls.model_validate_json(data)


def canonical_text(record: ChallengeRecord) -> str:
    """Build the exact text a wallet signs for this record."""
    message = f"{record.domain} wants you to sign in with your Solana account:\n"
    message += record.address
    message += f"\n\n{record.statement}"

    fields = [
        f"Version: {record.version}",
        f"Chain ID: {record.chain_id}",
        f"Nonce: {record.nonce}",
        f"Issued At: {record.issued_at}",
    ]
    if record.resources:
        fields.append("Resources:")
        fields.extend(f"- {resource}" for resource in record.resources)

    message += "\n\n" + "\n".join(fields)
    return message


def generate_nonce(rng: RandomSource = secrets.token_bytes) -> str:
    """Return 8 lowercase hex chars from 4 random bytes.

    The bytes are read as a little-endian u32 and hex-encoded in that same
    little-endian byte order, never as the decimal value.
    """
    try:
        raw = rng(NONCE_BYTES)
    except (OSError, NotImplementedError) as e:
        raise EnvironmentUnavailableError(f"Random source failed: {e}") from e
    if not isinstance(raw, (bytes, bytearray)) or len(raw) != NONCE_BYTES:
        raise EnvironmentUnavailableError(
            f"Random source must return {NONCE_BYTES} bytes, got {raw!r}"
        )
    # Identical to the little-endian bytes of int.from_bytes(raw, "little").
    return bytes(raw).hex()


def format_issued_at(moment: datetime) -> str:
    """Format an aware datetime as RFC 3339 in UTC with a 'Z' suffix."""
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise EnvironmentUnavailableError("Clock returned a naive datetime")
    try:
        utc = moment.astimezone(timezone.utc)
    except OverflowError as e:
        raise EnvironmentUnavailableError(f"Clock value out of range: {e}") from e
    return utc.isoformat().replace("+00:00", "Z")


def create_challenge(
    domain: str,
    address: str,
    *,
    rng: RandomSource = secrets.token_bytes,
    clock: Clock = _utcnow,
) -> ChallengeRecord:
    """Issue a new challenge for `address` on behalf of `domain`.

    Neither argument is validated here; a bad address fails at verification.
    Raises EnvironmentUnavailableError if the random source or clock fails.
    """
    nonce = generate_nonce(rng)
    try:
        now = clock()
    except (OSError, OverflowError) as e:
        raise EnvironmentUnavailableError(f"Clock failed: {e}") from e
    if not isinstance(now, datetime):
        raise EnvironmentUnavailableError(f"Clock must return a datetime, got {now!r}")

    record = ChallengeRecord(
        domain=domain,
        address=address,
        statement=STATEMENT,
        version=VERSION,
        nonce=nonce,
        chain_id=CHAIN_ID,
        issued_at=format_issued_at(now),
        resources=(domain,),
    )
    logger.debug("Issued challenge nonce=%s domain=%s", nonce, domain)
    return record
