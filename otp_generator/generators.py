"""
generators.py — HOTP / TOTP generators and the factory functions that build them.

Both generators wrap one OTPConfig (the code engine) and differ only in the
counter source they pair it with: ExplicitCounter for HOTP, TimeStepCounter
for TOTP. They are immutable, so one instance can be shared across threads.

    >>> hotp = hotp_generator(b"12345678901234567890")
    >>> hotp.generate(0)
    '755224'
    >>> totp = totp_generator(b"12345678901234567890", password_length=8)
    >>> totp.generate(59)
    '94287082'
"""

from datetime import timedelta
from typing import Callable, Optional, Union

from .errors import InvalidURIError
from .otp_core import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    ExplicitCounter,
    HMACAlgorithm,
    OTPConfig,
    TimeStepCounter,
    TimeValue,
)
from .otp_uri import HOTP, TOTP, OTPAuthURI, format_otpauth_uri, parse_otpauth_uri


class HOTPGenerator:
    """Counter-based one-time passwords (RFC 4226)."""

    otp_type = HOTP

    def __init__(self, config: OTPConfig):
        self.config = config
        self._counter = ExplicitCounter()

    def __repr__(self):
        return f"HOTPGenerator({self.config!r})"

    @classmethod
    def with_default_values(cls, secret: bytes) -> "HOTPGenerator":
        """HOTP with SHA1 and 6 digits."""
        return cls(OTPConfig(secret))

    @classmethod
    def from_uri(cls, uri: str) -> "HOTPGenerator":
        """
        Build from an otpauth://hotp/ URI. The counter in the URI is checked
        but not kept: the caller passes the counter to generate().
        """
        record = parse_otpauth_uri(uri)
        if record.otp_type != HOTP:
            raise InvalidURIError(uri, "Not an HOTP URI")
        return cls(record.to_config())

    @property
    def secret(self) -> bytes:
        return self.config.secret

    @property
    def algorithm(self) -> HMACAlgorithm:
        return self.config.algorithm

    @property
    def password_length(self) -> int:
        return self.config.password_length

    def generate(self, counter: int) -> str:
        """
        Code for `counter`.

        Raises:
            InvalidArgumentError: counter is not an unsigned 64-bit integer
        """
        return self.config.generate(self._counter.counter(counter))

    def verify(self, code: str, counter: int, window: int = 0) -> bool:
        """True if `code` matches any counter in [counter, counter + window]."""
        return self.config.verify(code, self._counter.counter(counter), window)

    def get_uri(self, counter: int, issuer: str, account: str = "") -> str:
        return format_otpauth_uri(OTPAuthURI(
            otp_type=HOTP,
            secret=self.secret,
            issuer=issuer,
            account=account,
            algorithm=self.algorithm,
            digits=self.password_length,
            counter=self._counter.counter(counter),
        ))


class TOTPGenerator:
    """Time-based one-time passwords (RFC 6238)."""

    otp_type = TOTP

    def __init__(
        self,
        config: OTPConfig,
        period: Union[timedelta, int] = DEFAULT_TIME_STEP,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config
        if clock is None:
            self._time_step = TimeStepCounter(period)
        else:
            self._time_step = TimeStepCounter(period, clock)

    def __repr__(self):
        return f"TOTPGenerator({self.config!r}, period={self.period!r})"

    @classmethod
    def with_default_values(cls, secret: bytes) -> "TOTPGenerator":
        """TOTP with SHA1, 6 digits and a 30 second period."""
        return cls(OTPConfig(secret))

    @classmethod
    def from_uri(cls, uri: str, clock: Optional[Callable[[], float]] = None) -> "TOTPGenerator":
        record = parse_otpauth_uri(uri)
        if record.otp_type != TOTP:
            raise InvalidURIError(uri, "Not a TOTP URI")
        return cls(record.to_config(), record.period, clock)

    @property
    def secret(self) -> bytes:
        return self.config.secret

    @property
    def algorithm(self) -> HMACAlgorithm:
        return self.config.algorithm

    @property
    def password_length(self) -> int:
        return self.config.password_length

    @property
    def period(self) -> timedelta:
        return self._time_step.period

    def counter(self, when: Optional[TimeValue] = None) -> int:
        return self._time_step.counter(when)

    def generate(self, when: Optional[TimeValue] = None) -> str:
        """
        Code for `when`, or for the current time when omitted.

        `when` may be a datetime, a date, or epoch seconds.

        Raises:
            InvalidArgumentError: an explicit time that is not above zero
        """
        return self.config.generate(self._time_step.counter(when))

    def verify(self, code: str, window: int = 0, when: Optional[TimeValue] = None) -> bool:
        """
        True if `code` matches the step for `when` (default now) or one of the
        `window` steps after it.
        """
        return self.config.verify(code, self._time_step.counter(when), window)

    def remaining_seconds(self, when: Optional[TimeValue] = None) -> int:
        return self._time_step.remaining_seconds(when)

    def get_uri(self, issuer: str, account: str = "") -> str:
        return format_otpauth_uri(OTPAuthURI(
            otp_type=TOTP,
            secret=self.secret,
            issuer=issuer,
            account=account,
            algorithm=self.algorithm,
            digits=self.password_length,
            period=self.period,
        ))


# --- Factories -------------------------------------------------------------
def hotp_generator(
    secret: bytes,
    password_length: int = DEFAULT_DIGITS,
    algorithm: Union[HMACAlgorithm, str] = DEFAULT_ALGORITHM,
) -> HOTPGenerator:
    """
    Validate the options and build an HOTPGenerator.

    Raises:
        ConfigurationError: empty secret, length outside 6..8, unknown algorithm
    """
    return HOTPGenerator(OTPConfig(secret, algorithm, password_length))


def totp_generator(
    secret: bytes,
    password_length: int = DEFAULT_DIGITS,
    period: Union[timedelta, int] = DEFAULT_TIME_STEP,
    algorithm: Union[HMACAlgorithm, str] = DEFAULT_ALGORITHM,
    clock: Optional[Callable[[], float]] = None,
) -> TOTPGenerator:
    """
    Validate the options and build a TOTPGenerator.

    Raises:
        ConfigurationError: as hotp_generator, plus a period under 1 second
    """
    return TOTPGenerator(OTPConfig(secret, algorithm, password_length), period, clock)


def parse_uri(uri: str, clock: Optional[Callable[[], float]] = None):
    """
    Build whichever generator an otpauth:// URI describes.

    Returns:
        HOTPGenerator or TOTPGenerator
    """
    record = parse_otpauth_uri(uri)
    if record.otp_type == HOTP:
        return HOTPGenerator(record.to_config())
    return TOTPGenerator(record.to_config(), record.period, clock)
