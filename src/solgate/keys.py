"""Ed25519 keypairs and base58 address/signature encoding.

A Solana address is the base58 encoding of a raw 32-byte Ed25519 public key.
Signatures travel as base58 of the raw 64-byte Ed25519 signature.
"""

from __future__ import annotations

import json
from pathlib import Path

import base58 as b58
from nacl.signing import SigningKey

from solgate.errors import InvalidAddressError, InvalidSignatureEncodingError, KeypairFileError

PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64
_SEED_LENGTH = 32


def generate_keypair() -> tuple[bytes, bytes]:
    """Generate an Ed25519 keypair. Returns (seed, public_key) as raw 32-byte values."""
    signing_key = SigningKey.generate()
    return bytes(signing_key), bytes(signing_key.verify_key)


def public_key_from_seed(seed: bytes) -> bytes:
    if len(seed) != _SEED_LENGTH:
        raise ValueError(f"Ed25519 seed must be {_SEED_LENGTH} bytes, got {len(seed)}")
    return bytes(SigningKey(seed).verify_key)


def address_from_public_key(public_key: bytes) -> str:
    """Encode a raw 32-byte Ed25519 public key as a base58 address."""
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise InvalidAddressError(
            f"Ed25519 public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    return b58.b58encode(public_key).decode("ascii")


def _b58decode(value: str) -> bytes:
    if not isinstance(value, str):
        raise ValueError(f"Expected a base58 string, got {type(value).__name__}")
    # b58decode strips surrounding whitespace; the wire form must not carry any.
    if value != value.strip():
        raise ValueError("Base58 string has surrounding whitespace")
    return b58.b58decode(value)


def public_key_from_address(address: str) -> bytes:
    """Decode a base58 address into exactly 32 public key bytes.

    Raises InvalidAddressError on bad base58 or a decoded length other than 32.
    """
    try:
        decoded = _b58decode(address)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid base58 address: {e}") from e
    if len(decoded) != PUBLIC_KEY_LENGTH:
        raise InvalidAddressError(
            f"Decoded address must be {PUBLIC_KEY_LENGTH} bytes, got {len(decoded)}"
        )
    return decoded


def validate_address(address: str) -> bool:
    """Check if a string decodes to a 32-byte public key without raising."""
    try:
        public_key_from_address(address)
        return True
    except InvalidAddressError:
        return False


def signature_to_string(signature: bytes) -> str:
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureEncodingError(
            f"Ed25519 signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    return b58.b58encode(signature).decode("ascii")


def signature_from_string(signature: str) -> bytes:
    """Decode a base58 signature into exactly 64 raw bytes."""
    try:
        decoded = _b58decode(signature)
    except ValueError as e:
        raise InvalidSignatureEncodingError(f"Invalid base58 signature: {e}") from e
    if len(decoded) != SIGNATURE_LENGTH:
        raise InvalidSignatureEncodingError(
            f"Decoded signature must be {SIGNATURE_LENGTH} bytes, got {len(decoded)}"
        )
    return decoded


def load_keypair(path: str | Path) -> tuple[bytes, bytes]:
    """Read a Solana CLI keypair file. Returns (seed, public_key).

    The file is a JSON array of 64 integers: the 32-byte seed followed by
    the 32-byte public key.
    """
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise KeypairFileError(f"Cannot read keypair file {path}: {e}") from e

    if not isinstance(data, list) or len(data) != _SEED_LENGTH + PUBLIC_KEY_LENGTH:
        raise KeypairFileError(f"Keypair file {path} must hold a JSON array of 64 integers")
    if not all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in data):
        raise KeypairFileError(f"Keypair file {path} contains values outside 0..255")

    raw = bytes(data)
    seed, public_key = raw[:_SEED_LENGTH], raw[_SEED_LENGTH:]
    if public_key_from_seed(seed) != public_key:
        raise KeypairFileError(f"Public key in {path} does not match its seed")
    return seed, public_key


def write_keypair(path: str | Path, seed: bytes) -> bytes:
    """Write a Solana CLI keypair file for a seed. Returns the public key."""
    public_key = public_key_from_seed(seed)
    Path(path).write_text(json.dumps(list(seed + public_key)))
    return public_key
