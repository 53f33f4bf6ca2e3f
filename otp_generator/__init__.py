"""
otp_generator package
=====================

HOTP/TOTP generation and verification per RFC 4226 & RFC 6238, plus the
otpauth:// URI format used to onboard authenticator apps.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC-SHA*(key=secret, msg=counter)) mod 10^digits
  → the counter is supplied by the caller (event-based tokens).

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor(epoch_millis / period_millis)
  → default period 30 seconds, 6 digits, SHA1.

- Dynamic Truncation:
  offset = last byte & 0x0F, 4 bytes from offset, top bit cleared.

──────────────────────────────────────────────
Quick usage
──────────────────────────────────────────────
>>> from otp_generator import hotp_generator, totp_generator, parse_uri
>>> hotp = hotp_generator(b"12345678901234567890")
>>> hotp.generate(1)
'287082'
>>> hotp.verify("287082", counter=0, window=1)
True
>>> totp = totp_generator(b"12345678901234567890", period=30)
>>> uri = totp.get_uri("otp-tool", "alice@example")
>>> parse_uri(uri).period.total_seconds()
30.0

Secrets are raw bytes; decoding Base32 (or anything else) is up to the caller.
"""

from .errors import (
    ComputationError,
    ConfigurationError,
    InvalidArgumentError,
    InvalidURIError,
    OTPError,
)
from .generators import (
    HOTPGenerator,
    TOTPGenerator,
    hotp_generator,
    parse_uri,
    totp_generator,
)
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    HMACAlgorithm,
    OTPConfig,
    derive_code,
    verify_code,
)
from .otp_uri import OTPAuthURI, format_otpauth_uri, parse_otpauth_uri

__version__ = "1.0.0"

__all__ = [
    "ComputationError",
    "ConfigurationError",
    "InvalidArgumentError",
    "InvalidURIError",
    "OTPError",
    "HOTPGenerator",
    "TOTPGenerator",
    "hotp_generator",
    "totp_generator",
    "parse_uri",
    "DEFAULT_DIGITS",
    "DEFAULT_TIME_STEP",
    "HMACAlgorithm",
    "OTPConfig",
    "derive_code",
    "verify_code",
    "OTPAuthURI",
    "format_otpauth_uri",
    "parse_otpauth_uri",
]
