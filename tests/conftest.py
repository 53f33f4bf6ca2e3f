import pytest

from backend import create_app

# RFC 4226 Appendix D / RFC 6238 Appendix B secrets
RFC_SECRET_SHA1 = b"12345678901234567890"
RFC_SECRET_SHA256 = b"12345678901234567890123456789012"
RFC_SECRET_SHA512 = b"1234567890123456789012345678901234567890123456789012345678901234"

RFC4226_CODES = [
    "755224", "287082", "359152", "969429", "338314",
    "254676", "287922", "162583", "399871", "520489",
]


@pytest.fixture
def rfc_secret():
    return RFC_SECRET_SHA1


@pytest.fixture
def fixed_clock():
    """Clock frozen at 59 seconds past the epoch (RFC 6238 first vector)."""
    return lambda: 59.0


@pytest.fixture
def app():
    return create_app({"TESTING": True, "OTP_MAX_WINDOW": 3})


@pytest.fixture
def client(app):
    return app.test_client()
