import hashlib
import logging
import re
from datetime import date, datetime, timedelta, timezone

import pyotp
import pytest
from cryptography.exceptions import UnsupportedAlgorithm

from otp_generator import otp_core
from otp_generator.errors import ComputationError, ConfigurationError, InvalidArgumentError
from otp_generator.otp_core import (
    MAX_COUNTER,
    HMACAlgorithm,
    OTPConfig,
    TimeStepCounter,
    derive_code,
    dynamic_truncate,
    int_to_bytes,
    to_epoch_seconds,
    verify_code,
)

from .conftest import RFC4226_CODES, RFC_SECRET_SHA1, RFC_SECRET_SHA256, RFC_SECRET_SHA512

RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


# --- RFC helpers ---
def test_int_to_bytes_is_big_endian():
    assert int_to_bytes(0) == b"\x00" * 8
    assert int_to_bytes(1) == b"\x00\x00\x00\x00\x00\x00\x00\x01"
    assert int_to_bytes(0x0102030405060708) == bytes([1, 2, 3, 4, 5, 6, 7, 8])


@pytest.mark.parametrize("counter", [-1, MAX_COUNTER + 1])
def test_int_to_bytes_rejects_out_of_range(counter):
    with pytest.raises(InvalidArgumentError):
        int_to_bytes(counter)


def test_dynamic_truncate_rfc4226_example():
    # RFC 4226 section 5.4
    digest = bytes.fromhex("1f8698690e02ca16618550ef7f19da8e945b555a")
    assert dynamic_truncate(digest) == 0x50EF7F19
    assert dynamic_truncate(digest) % 10 ** 6 == 872921


def test_dynamic_truncate_clears_top_bit():
    digest = bytes([0xFF] * 19 + [0x00])
    assert dynamic_truncate(digest) == 0x7FFFFFFF


# --- Engine ---
@pytest.mark.parametrize("counter,expected", list(enumerate(RFC4226_CODES)))
def test_rfc4226_vectors(counter, expected):
    assert derive_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, counter, 6) == expected


@pytest.mark.parametrize("seconds,sha1,sha256,sha512", [
    (59, "94287082", "46119246", "90693936"),
    (1111111109, "07081804", "68084774", "25091201"),
    (1111111111, "14050471", "67062674", "99943326"),
    (1234567890, "89005924", "91819424", "93441116"),
    (2000000000, "69279037", "90698825", "38618901"),
    (20000000000, "65353130", "77737706", "47863826"),
])
def test_rfc6238_vectors(seconds, sha1, sha256, sha512):
    counter = seconds // 30
    assert derive_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, counter, 8) == sha1
    assert derive_code(RFC_SECRET_SHA256, HMACAlgorithm.SHA256, counter, 8) == sha256
    assert derive_code(RFC_SECRET_SHA512, HMACAlgorithm.SHA512, counter, 8) == sha512


@pytest.mark.parametrize("digits", [6, 7, 8])
@pytest.mark.parametrize("algorithm", list(HMACAlgorithm))
def test_code_is_fixed_width_numeric(digits, algorithm):
    pattern = re.compile(r"[0-9]{%d}" % digits)
    for counter in range(50):
        code = derive_code(b"some secret", algorithm, counter, digits)
        assert pattern.fullmatch(code), code


def test_leading_zeros_are_kept():
    # 1111111109 // 30 with the RFC secret gives 07081804
    assert derive_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 37037036, 8) == "07081804"


@pytest.mark.parametrize("algorithm,digest", [
    (HMACAlgorithm.SHA1, hashlib.sha1),
    (HMACAlgorithm.SHA256, hashlib.sha256),
    (HMACAlgorithm.SHA512, hashlib.sha512),
])
def test_matches_pyotp(algorithm, digest):
    reference = pyotp.HOTP(RFC_SECRET_B32, digits=7, digest=digest)
    for counter in (0, 1, 42, 10 ** 9):
        assert derive_code(RFC_SECRET_SHA1, algorithm, counter, 7) == reference.at(counter)


def test_max_counter_is_accepted():
    assert len(derive_code(b"key", HMACAlgorithm.SHA1, MAX_COUNTER, 6)) == 6


def test_unknown_algorithm_is_computation_error():
    with pytest.raises(ComputationError):
        derive_code(b"key", "MD5", 0, 6)


def test_backend_failure_is_computation_error(monkeypatch):
    def unsupported(*args, **kwargs):
        raise UnsupportedAlgorithm("no SHA512 here")

    monkeypatch.setattr(otp_core.crypto_hmac, "HMAC", unsupported)
    with pytest.raises(ComputationError) as excinfo:
        derive_code(b"key", HMACAlgorithm.SHA512, 0, 6)
    assert isinstance(excinfo.value.__cause__, UnsupportedAlgorithm)
    assert isinstance(excinfo.value, RuntimeError)


def test_debug_log_never_contains_secret_or_code(caplog):
    with caplog.at_level(logging.DEBUG, logger="otp_generator.otp_core"):
        code = derive_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 1, 6)
    assert "counter=1" in caplog.text
    assert RFC_SECRET_SHA1.decode() not in caplog.text
    assert code not in caplog.text


# --- Algorithm enum ---
def test_digest_sizes():
    assert HMACAlgorithm.SHA1.digest_size == 20
    assert HMACAlgorithm.SHA256.digest_size == 32
    assert HMACAlgorithm.SHA512.digest_size == 64


@pytest.mark.parametrize("name,expected", [
    ("SHA1", HMACAlgorithm.SHA1),
    ("sha256", HMACAlgorithm.SHA256),
    ("SHA-512", HMACAlgorithm.SHA512),
])
def test_algorithm_from_name(name, expected):
    assert HMACAlgorithm.from_name(name) is expected


def test_algorithm_from_unknown_name():
    with pytest.raises(ConfigurationError):
        HMACAlgorithm.from_name("MD5")


# --- Time step counter ---
def test_time_step_counter_explicit_seconds():
    step = TimeStepCounter(30)
    assert step.counter(59) == 1
    assert step.counter(60) == 2
    assert step.counter(1111111109) == 37037036


def test_time_step_counter_uses_clock_for_now():
    step = TimeStepCounter(timedelta(seconds=30), clock=lambda: 59.999)
    assert step.counter() == 1
    assert step.counter(None) == 1


def test_time_step_counter_sub_second_period_granularity():
    step = TimeStepCounter(timedelta(seconds=1, milliseconds=500))
    assert step.counter(3) == 2


@pytest.mark.parametrize("when", [0, -1, 0.5, datetime(1970, 1, 1, tzinfo=timezone.utc)])
def test_explicit_time_must_be_above_zero(when):
    with pytest.raises(InvalidArgumentError, match="above zero"):
        TimeStepCounter(30).counter(when)


def test_current_time_path_has_no_positivity_check():
    assert TimeStepCounter(30, clock=lambda: 0.0).counter() == 0


def test_datetime_and_date_inputs():
    step = TimeStepCounter(30)
    aware = datetime(2005, 3, 18, 1, 58, 29, tzinfo=timezone.utc)
    naive = datetime(2005, 3, 18, 1, 58, 29)
    assert step.counter(aware) == step.counter(1111111109)
    assert step.counter(naive) == step.counter(1111111109)
    assert step.counter(date(1970, 1, 2)) == 86400 // 30


def test_to_epoch_seconds_rejects_other_types():
    with pytest.raises(InvalidArgumentError):
        to_epoch_seconds("59")
    with pytest.raises(InvalidArgumentError):
        to_epoch_seconds(True)


@pytest.mark.parametrize("when", [float("nan"), float("inf"), float("-inf")])
def test_to_epoch_seconds_rejects_non_finite(when):
    with pytest.raises(InvalidArgumentError, match="finite"):
        to_epoch_seconds(when)
    with pytest.raises(InvalidArgumentError):
        TimeStepCounter(30).counter(when)


def test_remaining_seconds():
    step = TimeStepCounter(30)
    assert step.remaining_seconds(59) == 1
    assert step.remaining_seconds(60) == 30
    assert TimeStepCounter(30, clock=lambda: 44.5).remaining_seconds() == 16


@pytest.mark.parametrize("period", [0, 0.5, timedelta(milliseconds=999), -30, "30", True])
def test_period_below_one_second_is_rejected(period):
    with pytest.raises(ConfigurationError):
        TimeStepCounter(period)


# --- Verifier ---
def test_verify_round_trip():
    for algorithm in HMACAlgorithm:
        for digits in (6, 7, 8):
            for counter in (0, 7, 123456):
                code = derive_code(b"round trip", algorithm, counter, digits)
                assert verify_code(b"round trip", algorithm, digits, code, counter)


@pytest.mark.parametrize("start,k,window,expected", [
    (3, 0, 0, True),
    (3, 1, 0, False),
    (3, 2, 2, True),
    (3, 3, 2, False),
    (3, -1, 5, False),
    (0, 9, 9, True),
])
def test_verify_window_is_forward_only(start, k, window, expected):
    code = RFC4226_CODES[start + k]
    assert verify_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 6, code, start, window) is expected


def test_verify_compares_strings_not_numbers():
    code = derive_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 37037036, 8)
    assert code.startswith("0")
    assert verify_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 8, code, 37037036)
    assert not verify_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 8, code.lstrip("0"), 37037036)


def test_verify_wrong_code():
    assert not verify_code(RFC_SECRET_SHA1, HMACAlgorithm.SHA1, 6, "000000", 0, 3)


def test_verify_window_stops_at_max_counter():
    code = derive_code(b"key", HMACAlgorithm.SHA1, MAX_COUNTER, 6)
    assert verify_code(b"key", HMACAlgorithm.SHA1, 6, code, MAX_COUNTER, 5)


@pytest.mark.parametrize("window", [-1, 1.5, True])
def test_verify_rejects_bad_window(window):
    with pytest.raises(InvalidArgumentError):
        verify_code(b"key", HMACAlgorithm.SHA1, 6, "123456", 0, window)


def test_verify_rejects_negative_counter():
    with pytest.raises(InvalidArgumentError):
        verify_code(b"key", HMACAlgorithm.SHA1, 6, "123456", -1)


# --- Config ---
def test_config_defaults():
    config = OTPConfig(b"secret")
    assert config.algorithm is HMACAlgorithm.SHA1
    assert config.password_length == 6


def test_config_accepts_algorithm_name():
    assert OTPConfig(b"secret", "sha512").algorithm is HMACAlgorithm.SHA512


@pytest.mark.parametrize("kwargs", [
    {"secret": b""},
    {"secret": "text secret"},
    {"secret": b"x", "password_length": 5},
    {"secret": b"x", "password_length": 9},
    {"secret": b"x", "password_length": "6"},
    {"secret": b"x", "algorithm": "MD5"},
    {"secret": b"x", "algorithm": hashlib.sha1},
])
def test_config_validation(kwargs):
    with pytest.raises(ConfigurationError):
        OTPConfig(**kwargs)


def test_config_is_immutable():
    config = OTPConfig(b"secret")
    with pytest.raises(AttributeError):
        config.password_length = 8


def test_config_repr_hides_secret():
    assert "topsecret" not in repr(OTPConfig(b"topsecret"))
