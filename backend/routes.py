"""
OTP BACKEND API ROUTES - FLASK BLUEPRINT

Stateless JSON endpoints over otp_generator. Nothing is stored: the secret
travels in every request body (as text, or Base32 with "base32": true).

EXAMPLES:
curl -X POST http://localhost:5000/hotp -H "Content-Type: application/json" \
     -d '{"secret": "12345678901234567890", "counter": 1}'
curl -X POST http://localhost:5000/verify_totp -H "Content-Type: application/json" \
     -d '{"secret": "12345678901234567890", "code": "94287082", "digits": 8, "time": 59}'
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from otp_generator import (
    ComputationError,
    InvalidArgumentError,
    OTPError,
    __version__,
    hotp_generator,
    parse_otpauth_uri,
    totp_generator,
)
from otp_generator.encoding import decode_secret
from otp_generator.otp_core import DEFAULT_DIGITS, DEFAULT_TIME_STEP, HMACAlgorithm

logger = logging.getLogger(__name__)

otp_bp = Blueprint('otp', __name__)


# --- Error handlers ---
@otp_bp.errorhandler(ComputationError)
def handle_computation_error(e):
    logger.error("OTP computation failed: %s", e)
    return jsonify({"error": str(e)}), 500


@otp_bp.errorhandler(OTPError)
def handle_otp_error(e):
    logger.warning("Rejected OTP request: %s", e)
    return jsonify({"error": str(e)}), 400


# --- Request helpers ---
def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _require(data: dict, *fields):
    missing = [f for f in fields if f not in data]
    if missing:
        raise InvalidArgumentError(f"{', '.join(missing)} is required")


def _secret(data: dict) -> bytes:
    secret = data['secret']
    if not isinstance(secret, str):
        raise InvalidArgumentError("secret must be a string")
    return decode_secret(secret, base32=bool(data.get('base32', False)))


def _hotp(data: dict):
    return hotp_generator(
        _secret(data),
        data.get('digits', DEFAULT_DIGITS),
        data.get('algorithm', HMACAlgorithm.SHA1),
    )


def _totp(data: dict):
    return totp_generator(
        _secret(data),
        data.get('digits', DEFAULT_DIGITS),
        data.get('period', DEFAULT_TIME_STEP),
        data.get('algorithm', HMACAlgorithm.SHA1),
    )


def _window(data: dict) -> int:
    window = data.get('window', 0)
    max_window = current_app.config['OTP_MAX_WINDOW']
    if isinstance(window, int) and window > max_window:
        raise InvalidArgumentError(f"window must not exceed {max_window}")
    return window


# --- Routes ---
@otp_bp.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok", "version": __version__})


@otp_bp.route('/hotp', methods=['POST'])
def get_hotp():
    """
    HOTP CODE FOR A COUNTER

    Input: {"secret": "...", "counter": 1, "digits": 6, "algorithm": "SHA1"}
    Output: {"code": "287082"}
    """
    data = _body()
    _require(data, 'secret', 'counter')
    code = _hotp(data).generate(data['counter'])
    return jsonify({"code": code})


@otp_bp.route('/totp', methods=['POST'])
def get_totp():
    """
    TOTP CODE FOR NOW, OR FOR "time" (epoch seconds)

    Input: {"secret": "...", "time": 59, "period": 30, "digits": 8}
    Output: {"code": "94287082", "counter": 1, "remaining": 1}
    """
    data = _body()
    _require(data, 'secret')
    generator = _totp(data)
    when = data.get('time')
    return jsonify({
        "code": generator.generate(when),
        "counter": generator.counter(when),
        "remaining": generator.remaining_seconds(when),
    })


@otp_bp.route('/verify_hotp', methods=['POST'])
def verify_hotp_route():
    """
    VERIFY A HOTP CODE

    Input: {"secret": "...", "code": "287082", "counter": 0, "window": 1}
    Output: {"valid": true}

    The window only looks ahead: counters [counter, counter + window].
    """
    data = _body()
    _require(data, 'secret', 'code', 'counter')
    valid = _hotp(data).verify(str(data['code']), data['counter'], _window(data))
    return jsonify({"valid": valid})


@otp_bp.route('/verify_totp', methods=['POST'])
def verify_totp_route():
    """
    VERIFY A TOTP CODE

    Input: {"secret": "...", "code": "123456", "time": 59, "window": 1}
    Output: {"valid": true}
    """
    data = _body()
    _require(data, 'secret', 'code')
    valid = _totp(data).verify(str(data['code']), _window(data), data.get('time'))
    return jsonify({"valid": valid})


@otp_bp.route('/otpauth_uri', methods=['POST'])
def get_otpauth_uri():
    """
    BUILD AN otpauth:// URI FOR AUTHENTICATOR APPS

    Input: {"type": "totp", "secret": "...", "issuer": "MyApp", "account": "alice@example",
            "period": 30}   (HOTP: "type": "hotp" and "counter": 0)
    Output: {"uri": "otpauth://totp/MyApp:alice%40example?secret=..."}
    """
    data = _body()
    _require(data, 'type', 'secret')
    issuer = data.get('issuer', current_app.config['OTP_DEFAULT_ISSUER'])
    account = data.get('account', '')
    otp_type = data['type']
    if otp_type == 'hotp':
        _require(data, 'counter')
        uri = _hotp(data).get_uri(data['counter'], issuer, account)
    elif otp_type == 'totp':
        uri = _totp(data).get_uri(issuer, account)
    else:
        raise InvalidArgumentError("type must be 'hotp' or 'totp'")
    return jsonify({"uri": uri})


@otp_bp.route('/parse_uri', methods=['POST'])
def parse_uri_route():
    """
    DECODE AN otpauth:// URI

    Input: {"uri": "otpauth://hotp/MyApp?secret=...&counter=0"}
    Output: {"type": "hotp", "issuer": "MyApp", "account": "", "algorithm": "SHA1",
             "digits": 6, "counter": 0}
    """
    data = _body()
    _require(data, 'uri')
    if not isinstance(data['uri'], str):
        raise InvalidArgumentError("uri must be a string")
    record = parse_otpauth_uri(data['uri'])
    result = {
        "type": record.otp_type,
        "issuer": record.issuer,
        "account": record.account,
        "algorithm": record.algorithm.name,
        "digits": record.digits,
    }
    if record.counter is not None:
        result["counter"] = record.counter
    else:
        result["period"] = int(record.period.total_seconds())
    return jsonify(result)
