"""Ed25519 signing and verification of sign-in challenges.

`verify_challenge` reports why a check failed; `verify` collapses that to a
bool for the auth boundary. Neither raises.
"""

from __future__ import annotations

import enum
import logging

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from solgate.challenge import ChallengeRecord, canonical_text
from solgate.errors import InvalidAddressError, InvalidSignatureEncodingError
from solgate.keys import public_key_from_address, signature_from_string, signature_to_string

logger = logging.getLogger(__name__)


class VerifyResult(enum.Enum):
    VERIFIED = "verified"
    MALFORMED_SIGNATURE = "malformed_signature"
    MALFORMED_ADDRESS = "malformed_address"
    INVALID_SIGNATURE = "invalid_signature"

    @property
    def ok(self) -> bool:
        return self is VerifyResult.VERIFIED


def _short(address: str) -> str:
    if not isinstance(address, str) or len(address) <= 12:
        return repr(address)
    return f"{address[:6]}...{address[-4:]}"


def sign_challenge(private_key: bytes, record: ChallengeRecord) -> str:
    """Sign a record's canonical text with an Ed25519 seed. Returns base58 signature."""
    signing_key = SigningKey(private_key)
    signed = signing_key.sign(canonical_text(record).encode("utf-8"))
    return signature_to_string(signed.signature)


def verify_challenge(record: ChallengeRecord, signature: str) -> VerifyResult:
    """Check `signature` against the canonical text of `record`.

    Returns MALFORMED_SIGNATURE if the signature is not base58 of 64 bytes.
    Returns MALFORMED_ADDRESS if the address is not base58 of 32 bytes.
    Returns INVALID_SIGNATURE if the signature doesn't match.
    Returns VERIFIED if the signature is valid.
    """
    try:
        sig_bytes = signature_from_string(signature)
    except InvalidSignatureEncodingError as e:
        logger.info("Challenge rejected (malformed signature) for %s: %s", _short(record.address), e)
        return VerifyResult.MALFORMED_SIGNATURE

    message = canonical_text(record).encode("utf-8")

    try:
        public_key = public_key_from_address(record.address)
    except InvalidAddressError as e:
        logger.info("Challenge rejected (malformed address) for %s: %s", _short(record.address), e)
        return VerifyResult.MALFORMED_ADDRESS

    try:
        VerifyKey(public_key).verify(message, sig_bytes)
    except BadSignatureError:
        logger.info("Challenge rejected (bad signature) for %s", _short(record.address))
        return VerifyResult.INVALID_SIGNATURE
    except Exception:
        logger.warning(
            "Unexpected error verifying challenge for %s", _short(record.address), exc_info=True
        )
        return VerifyResult.INVALID_SIGNATURE
    return VerifyResult.VERIFIED


def verify(record: ChallengeRecord, signature: str) -> bool:
    """True only when the signature is a valid Ed25519 signature over the record."""
    return verify_challenge(record, signature).ok
