"""Domain exceptions for solgate.

Construction failures raise these. Verification never does: decode errors
are caught in `solgate.signing` and folded into a `VerifyResult`.
"""

from __future__ import annotations


class SolgateError(Exception):
    """Base for all solgate errors. Carries a detail string."""

    def __init__(self, detail: str = "solgate error") -> None:
        self.detail = detail
        super().__init__(detail)


class EnvironmentUnavailableError(SolgateError):
    def __init__(self, detail: str = "Randomness or clock unavailable") -> None:
        super().__init__(detail)


class InvalidAddressError(SolgateError, ValueError):
    def __init__(self, detail: str = "Invalid address") -> None:
        super().__init__(detail)


class InvalidSignatureEncodingError(SolgateError, ValueError):
    def __init__(self, detail: str = "Invalid signature encoding") -> None:
        super().__init__(detail)


class KeypairFileError(SolgateError, ValueError):
    def __init__(self, detail: str = "Invalid keypair file") -> None:
        super().__init__(detail)
