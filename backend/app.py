"""
FLASK APP ENTRY POINT - OTP BACKEND SERVER
==========================================

Sets up the Flask app, enables CORS and registers the OTP blueprint.

Run locally:
    python -m backend.app
    curl -X POST http://localhost:5000/hotp -H "Content-Type: application/json" \\
         -d '{"secret": "12345678901234567890", "counter": 1}'
"""
import logging

from flask import Flask
from flask_cors import CORS

from .config import Config
from .routes import otp_bp

logger = logging.getLogger(__name__)


def create_app(config_overrides=None) -> Flask:
    """
    Build the Flask app.

    Arguments:
        config_overrides: mapping applied on top of Config (used by tests)
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # CORS so a frontend on another origin can call the API
    CORS(app, origins=app.config['OTP_CORS_ORIGINS'])

    app.register_blueprint(otp_bp)
    logger.debug("OTP backend created (max window=%s)", app.config['OTP_MAX_WINDOW'])
    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True, host='0.0.0.0', port=5000)
