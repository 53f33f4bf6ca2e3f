"""
otp_uri.py — otpauth:// URI encoding and decoding.

Format (one of counter / period, never both):

    otpauth://{hotp|totp}/{issuer}[:{account}]?secret=..&algorithm=..&digits=..&counter=..
    otpauth://totp/FooCorp:alice%40example.com?secret=..&algorithm=SHA1&digits=6&period=30

The query string is only ever handled as a loose dict inside this module;
callers get an OTPAuthURI back, whose to_config() yields a validated OTPConfig.
"""

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse

from .errors import InvalidArgumentError, InvalidURIError, OTPError
from .otp_core import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    MAX_COUNTER,
    ExplicitCounter,
    HMACAlgorithm,
    OTPConfig,
    to_period,
)

logger = logging.getLogger(__name__)

SCHEME = "otpauth"
HOTP = "hotp"
TOTP = "totp"

# query parameter names
SECRET = "secret"
ALGORITHM = "algorithm"
DIGITS = "digits"
COUNTER = "counter"
PERIOD = "period"

_UINT = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class OTPAuthURI:
    """Decoded (or to-be-encoded) otpauth:// URI."""

    otp_type: str
    secret: bytes
    issuer: str = ""
    account: str = ""
    algorithm: HMACAlgorithm = DEFAULT_ALGORITHM
    digits: int = DEFAULT_DIGITS
    counter: Optional[int] = None
    period: Optional[timedelta] = None

    def to_config(self) -> OTPConfig:
        return OTPConfig(secret=self.secret, algorithm=self.algorithm,
                         password_length=self.digits)

    def to_uri(self) -> str:
        return format_otpauth_uri(self)


def format_otpauth_uri(record: OTPAuthURI) -> str:
    """
    Build the otpauth:// URI for `record`.

    - Label is "issuer:account", or just "issuer" when account is empty;
      both parts are percent-escaped.
    - Query carries secret, algorithm, digits and then counter (HOTP) or
      period in whole seconds (TOTP).

    Raises:
        InvalidArgumentError: wrong OTP type, bad counter, non-text label, or a secret
            that has no text form
    """
    if record.otp_type == HOTP:
        if record.counter is None:
            raise InvalidArgumentError("HOTP URI requires a counter")
        moving_factor = (COUNTER, str(ExplicitCounter().counter(record.counter)))
    elif record.otp_type == TOTP:
        period = to_period(record.period if record.period is not None else DEFAULT_TIME_STEP)
        moving_factor = (PERIOD, str(int(period.total_seconds())))
    else:
        raise InvalidArgumentError(f"Not a supported OTP type: {record.otp_type!r}")

    try:
        secret = record.secret.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidArgumentError("Secret has no text form for an otpauth URI") from e

    for name, value in (("issuer", record.issuer), ("account", record.account)):
        if not isinstance(value, str):
            raise InvalidArgumentError(f"{name} must be a string, got {value!r}")

    label = quote(record.issuer, safe="")
    if record.account:
        label += ":" + quote(record.account, safe="")

    query = [
        (SECRET, secret),
        (ALGORITHM, record.algorithm.name),
        (DIGITS, str(record.digits)),
        moving_factor,
    ]
    return f"{SCHEME}://{record.otp_type}/{label}?{urlencode(query, quote_via=quote)}"


def _split_label(path: str):
    """Return (issuer, account) from the raw URI path."""
    raw = path[1:] if path.startswith("/") else path
    if ":" in raw:
        issuer, account = raw.split(":", 1)
    else:
        parts = re.split("%3A", raw, maxsplit=1, flags=re.IGNORECASE)
        issuer, account = parts[0], (parts[1] if len(parts) > 1 else "")
    return unquote(issuer), unquote(account)


def _parse_uint(value: str) -> int:
    if not _UINT.fullmatch(value):
        raise ValueError(f"Not an unsigned integer: {value!r}")
    return int(value)


def parse_otpauth_uri(uri: str) -> OTPAuthURI:
    """
    Decode an otpauth:// URI.

    Required: secret (and counter for HOTP). Defaults: digits=6,
    algorithm=SHA1, period=30s (TOTP).

    Raises:
        InvalidURIError: wrong scheme/type, missing secret, or any value that
            cannot be parsed or fails validation (original error chained)
        InvalidArgumentError: HOTP URI without a counter
    """
    try:
        parsed = urlparse(uri)
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidURIError(str(uri)) from e

    if parsed.scheme != SCHEME:
        raise InvalidURIError(uri, "Not an otpauth URI")
    otp_type = parsed.netloc.lower()
    if otp_type not in (HOTP, TOTP):
        raise InvalidURIError(uri, "Not a supported OTP type")

    issuer, account = _split_label(parsed.path)
    query: Dict[str, List[str]] = parse_qs(parsed.query, keep_blank_values=True)

    def first(key: str) -> Optional[str]:
        values = query.get(key)
        return values[0] if values else None

    secret = first(SECRET)
    if not secret:
        raise InvalidURIError(uri, "Secret query parameter must be set")

    raw_counter = first(COUNTER)
    if otp_type == HOTP and raw_counter is None:
        raise InvalidArgumentError("Counter query parameter must be set for HOTP")

    raw_digits = first(DIGITS)
    raw_algorithm = first(ALGORITHM)
    raw_period = first(PERIOD)
    try:
        record = OTPAuthURI(
            otp_type=otp_type,
            secret=secret.encode("utf-8"),
            issuer=issuer,
            account=account,
            algorithm=(HMACAlgorithm.from_name(raw_algorithm)
                       if raw_algorithm is not None else DEFAULT_ALGORITHM),
            digits=_parse_uint(raw_digits) if raw_digits is not None else DEFAULT_DIGITS,
            counter=_parse_uint(raw_counter) if otp_type == HOTP else None,
            period=(to_period(_parse_uint(raw_period) if raw_period is not None
                              else DEFAULT_TIME_STEP)
                    if otp_type == TOTP else None),
        )
        if record.counter is not None and record.counter > MAX_COUNTER:
            raise ValueError("Counter must be an unsigned 64-bit integer")
        # validate the invariants now so nothing half-valid leaves the codec
        record.to_config()
    except (ValueError, OTPError) as e:
        logger.debug("Rejected otpauth URI: %s", e)
        raise InvalidURIError(uri) from e
    return record
