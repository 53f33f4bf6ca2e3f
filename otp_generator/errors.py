"""
errors.py — Exception types raised by otp_generator.

Every error subclasses OTPError so callers (CLI, REST backend) can catch the
whole family in one place. The argument and URI errors are also ValueError,
the computation error is a RuntimeError.
"""


class OTPError(Exception):
    """Base class for all otp_generator errors."""


class InvalidArgumentError(OTPError, ValueError):
    """A call received an argument it cannot work with (e.g. time <= 0)."""


class ConfigurationError(InvalidArgumentError):
    """A generator configuration failed validation at construction time."""


class InvalidURIError(OTPError, ValueError):
    """
    An otpauth:// URI could not be decoded.

    Attributes:
        uri: the offending URI string
        reason: short description of what was wrong

    The original exception (if any) is available as __cause__. The message
    leaves the URI out since its query holds the secret.
    """

    def __init__(self, uri: str, reason: str = "URI could not be parsed"):
        super().__init__(reason)
        self.uri = uri
        self.reason = reason


class ComputationError(OTPError, RuntimeError):
    """The HMAC computation could not be performed."""
