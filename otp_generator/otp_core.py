"""
otp_core.py — Core algorithms for HOTP (RFC 4226) / TOTP (RFC 6238).

What lives here:
- The HMAC-truncation engine: counter -> HMAC -> dynamic truncation -> code.
- Counter sources: an explicit counter (HOTP) and a time step (TOTP).
- The verifier, which re-derives codes over a forward window.

All functions are pure apart from reading the clock for "now". The HMAC
itself is computed by the `cryptography` package; this module never touches
secrets on disk and never logs secrets or codes.
"""

import calendar
import enum
import logging
import math
import struct
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import constant_time, hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from .errors import ComputationError, ConfigurationError, InvalidArgumentError

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
MIN_DIGITS = 6
MAX_DIGITS = 8
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
MAX_COUNTER = 2 ** 64 - 1   # counters are unsigned 64-bit

TimeValue = Union[datetime, date, int, float]


class HMACAlgorithm(enum.Enum):
    """Keyed-hash functions allowed by RFC 6238."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return _HASHES[self]()

    @property
    def digest_size(self) -> int:
        """Native HMAC output length in bytes (20 / 32 / 64)."""
        return self.hash_algorithm.digest_size

    @classmethod
    def from_name(cls, name: str) -> "HMACAlgorithm":
        """
        Look up an algorithm by name, case-insensitively ("sha256", "SHA-256").

        Raises:
            ConfigurationError: if the name is not SHA1, SHA256 or SHA512
        """
        try:
            return cls[name.upper().replace("-", "")]
        except (KeyError, AttributeError) as e:
            raise ConfigurationError(
                f"Invalid algorithm {name!r}, must be SHA1, SHA256 or SHA512"
            ) from e


_HASHES = {
    HMACAlgorithm.SHA1: hashes.SHA1,
    HMACAlgorithm.SHA256: hashes.SHA256,
    HMACAlgorithm.SHA512: hashes.SHA512,
}

DEFAULT_ALGORITHM = HMACAlgorithm.SHA1


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Convert a counter to the 8-byte big-endian message required by RFC 4226.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        InvalidArgumentError: if i does not fit in an unsigned 64-bit integer
    """
    if not 0 <= i <= MAX_COUNTER:
        raise InvalidArgumentError("Counter must be an unsigned 64-bit integer")
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    Apply RFC 4226 dynamic truncation.

    - offset = last_byte & 0x0F
    - take 4 bytes from offset, clear the MSB (0x7F) of the first one
    - return the resulting 31-bit unsigned integer

    Works for any digest of at least 19 bytes, so SHA1/SHA256/SHA512 alike.
    """
    offset = hmac_digest[-1] & 0x0F
    code = (
        ((hmac_digest[offset] & 0x7F) << 24)
        | ((hmac_digest[offset + 1] & 0xFF) << 16)
        | ((hmac_digest[offset + 2] & 0xFF) << 8)
        | (hmac_digest[offset + 3] & 0xFF)
    )
    return code


def compute_hmac(secret: bytes, algorithm: HMACAlgorithm, message: bytes) -> bytes:
    """
    HMAC(algorithm, key=secret, msg=message) through `cryptography`.

    Raises:
        ComputationError: if the algorithm is unknown or the backend cannot
            compute it
    """
    hash_factory = _HASHES.get(algorithm)
    if hash_factory is None:
        raise ComputationError(f"Unsupported HMAC algorithm: {algorithm!r}")
    try:
        mac = crypto_hmac.HMAC(secret, hash_factory())
        mac.update(message)
        return mac.finalize()
    except UnsupportedAlgorithm as e:
        raise ComputationError(f"HMAC-{algorithm.name} is not available") from e


def derive_code(
    secret: bytes,
    algorithm: HMACAlgorithm,
    counter: int,
    digits: int = DEFAULT_DIGITS,
) -> str:
    """
    Derive an OTP code (RFC 4226 HOTP, also used by TOTP).

    Steps:
    1. Message = 8-byte big-endian counter
    2. HMAC(algorithm, key=secret, msg=message)
    3. Dynamic truncate -> 31-bit integer
    4. otp = value % 10^digits
    5. Zero-pad to exactly `digits` characters

    Arguments:
        secret: raw secret bytes
        algorithm: HMACAlgorithm member
        counter: unsigned 64-bit counter
        digits: length of the code

    Returns:
        str: zero-padded numeric code

    Raises:
        InvalidArgumentError: counter out of range
        ComputationError: HMAC could not be computed
    """
    msg = int_to_bytes(counter)
    digest = compute_hmac(secret, algorithm, msg)
    logger.debug("HOTP: HMAC-%s(key=secret, msg=counter=%d), %d digits",
                 algorithm.name, counter, digits)
    dbc = dynamic_truncate(digest)
    return str(dbc % (10 ** digits)).zfill(digits)


# --- Counter derivation ----------------------------------------------------
def to_period(period: Union[timedelta, int, float]) -> timedelta:
    """
    Normalise a TOTP period (timedelta or seconds) and check it is >= 1 second.

    Raises:
        ConfigurationError: if the period is shorter than one second
    """
    if not isinstance(period, timedelta):
        if isinstance(period, bool) or not isinstance(period, (int, float)):
            raise ConfigurationError(f"Period must be a duration, got {period!r}")
        period = timedelta(seconds=period)
    if period.total_seconds() < 1:
        raise ConfigurationError("Period must be at least 1 second")
    return period


def to_epoch_seconds(when: TimeValue) -> int:
    """
    Convert an instant, a calendar date or raw epoch seconds to whole seconds.

    Naive datetimes and plain dates are read as UTC.
    """
    if isinstance(when, datetime):
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return math.floor(when.timestamp())
    if isinstance(when, date):
        return calendar.timegm(when.timetuple())
    if isinstance(when, (int, float)) and not isinstance(when, bool):
        if not math.isfinite(when):
            raise InvalidArgumentError(f"Time must be a finite number, got {when!r}")
        return math.floor(when)
    raise InvalidArgumentError(f"Unsupported time value: {when!r}")


class ExplicitCounter:
    """HOTP counter source: the caller supplies the counter on every call."""

    def counter(self, value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgumentError(f"Counter must be an integer, got {value!r}")
        if not 0 <= value <= MAX_COUNTER:
            raise InvalidArgumentError("Counter must be an unsigned 64-bit integer")
        return value


@dataclass(frozen=True)
class TimeStepCounter:
    """
    TOTP counter source: counter = floor(epoch_millis / period_millis).

    `clock` returns epoch seconds (float) and defaults to time.time; pass a
    fixed clock in tests.
    """

    period: timedelta = timedelta(seconds=DEFAULT_TIME_STEP)
    clock: Callable[[], float] = field(default=time.time, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "period", to_period(self.period))

    @property
    def period_millis(self) -> int:
        return self.period // timedelta(milliseconds=1)

    def _millis(self, when: Optional[TimeValue]) -> int:
        if when is None:
            return int(self.clock() * 1000)
        seconds = to_epoch_seconds(when)
        if seconds <= 0:
            raise InvalidArgumentError("Time must be above zero")
        return seconds * 1000

    def counter(self, when: Optional[TimeValue] = None) -> int:
        """
        Counter for `when` (None = now from the clock).

        Raises:
            InvalidArgumentError: if an explicit time is not above zero
        """
        return self._millis(when) // self.period_millis

    def remaining_seconds(self, when: Optional[TimeValue] = None) -> int:
        """Seconds left before the counter for `when` rolls over."""
        elapsed = self._millis(when) % self.period_millis
        return math.ceil((self.period_millis - elapsed) / 1000)


# --- Verification ----------------------------------------------------------
def verify_code(
    secret: bytes,
    algorithm: HMACAlgorithm,
    digits: int,
    code: str,
    counter: int,
    window: int = 0,
) -> bool:
    """
    Check `code` against the codes for counters [counter, counter + window].

    The window only looks forward: a code for an earlier counter is never
    accepted, so an HOTP code cannot be replayed once the counter moved on.
    Comparison is on the zero-padded strings, in constant time.

    Raises:
        InvalidArgumentError: negative window or counter out of range
    """
    if isinstance(window, bool) or not isinstance(window, int) or window < 0:
        raise InvalidArgumentError("Window must be a non-negative integer")
    # range check up front so an invalid counter never short-circuits to False
    int_to_bytes(counter)

    candidate = str(code).encode("utf-8")
    last = min(counter + window, MAX_COUNTER)
    for test_counter in range(counter, last + 1):
        expected = derive_code(secret, algorithm, test_counter, digits)
        if constant_time.bytes_eq(expected.encode("utf-8"), candidate):
            logger.debug("Code matched at counter=%d (start=%d, window=%d)",
                         test_counter, counter, window)
            return True
    return False


# --- Code engine -----------------------------------------------------------
@dataclass(frozen=True)
class OTPConfig:
    """
    Immutable generator configuration, validated on construction.

    This is the code engine shared by HOTP and TOTP: both hand it a counter,
    they only differ in where that counter comes from.
    """

    secret: bytes
    algorithm: HMACAlgorithm = DEFAULT_ALGORITHM
    password_length: int = DEFAULT_DIGITS

    def __post_init__(self):
        if not isinstance(self.secret, (bytes, bytearray)) or not self.secret:
            raise ConfigurationError("Secret must be a non-empty byte string")
        object.__setattr__(self, "secret", bytes(self.secret))
        if isinstance(self.algorithm, str):
            object.__setattr__(self, "algorithm", HMACAlgorithm.from_name(self.algorithm))
        elif not isinstance(self.algorithm, HMACAlgorithm):
            raise ConfigurationError(f"Unsupported algorithm: {self.algorithm!r}")
        length = self.password_length
        if isinstance(length, bool) or not isinstance(length, int) \
                or not MIN_DIGITS <= length <= MAX_DIGITS:
            raise ConfigurationError(
                f"Password length must be between {MIN_DIGITS} and {MAX_DIGITS} digits"
            )

    def __repr__(self):
        # keep the secret out of tracebacks and logs
        return (f"OTPConfig(secret=<{len(self.secret)} bytes>, "
                f"algorithm={self.algorithm.name}, password_length={self.password_length})")

    def generate(self, counter: int) -> str:
        return derive_code(self.secret, self.algorithm, counter, self.password_length)

    def verify(self, code: str, counter: int, window: int = 0) -> bool:
        return verify_code(self.secret, self.algorithm, self.password_length,
                           code, counter, window)
