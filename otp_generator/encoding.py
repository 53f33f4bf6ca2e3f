"""Secret decoding helpers for the CLI and REST callers."""

import base64
import binascii

from .errors import InvalidArgumentError


def decode_secret(value: str, base32: bool = False) -> bytes:
    """
    Turn a secret given as text into the raw bytes the generators expect.

    - base32=False: the UTF-8 bytes of the text (the otpauth URI form).
    - base32=True: Base32-decode, case-insensitive, padding optional.

    Raises:
        InvalidArgumentError: if the Base32 text is not valid
    """
    if not base32:
        return value.encode("utf-8")
    secret = value.replace(" ", "").upper()
    missing_padding = len(secret) % 8
    if missing_padding:
        secret += "=" * (8 - missing_padding)
    try:
        return base64.b32decode(secret, casefold=True)
    except binascii.Error as e:
        raise InvalidArgumentError("Invalid Base32 secret") from e
