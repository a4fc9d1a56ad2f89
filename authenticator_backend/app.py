"""
FLASK APP ENTRY POINT - AUTHENTICATOR BACKEND SERVER
=====================================================

Sets up the Flask app, enables CORS and registers the OTP blueprint.

The server is stateless: clients send the secret they stored themselves with
every request, the backend only computes.

Configuration (later sources win):
- defaults below
- environment variables prefixed with AUTHENTICATOR_, e.g.
  AUTHENTICATOR_CODE_LENGTH=8 AUTHENTICATOR_TOLERANCE=2
- the mapping passed to create_app()

MAX_SECRET_LENGTH and MAX_TOLERANCE cap the "length" and "tolerance" a
request may send. A bad value in any of these keys makes create_app() raise
InvalidConfiguration.
"""
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from authenticator import GoogleAuthenticator
from authenticator.errors import InvalidConfiguration
from authenticator.otp_core import (
    DEFAULT_CODE_LENGTH,
    DEFAULT_SECRET_LENGTH,
    DEFAULT_TOLERANCE,
    check_length,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "CODE_LENGTH": DEFAULT_CODE_LENGTH,
    "SECRET_LENGTH": DEFAULT_SECRET_LENGTH,
    "TOLERANCE": DEFAULT_TOLERANCE,
    # upper bounds on what a single request may ask for
    "MAX_SECRET_LENGTH": 128,
    "MAX_TOLERANCE": 10,
}


def check_config(config) -> None:
    """Fail at startup on lengths or tolerances that every request would reject."""
    for key in DEFAULT_CONFIG:
        check_length(config[key], key)
    if config["SECRET_LENGTH"] > config["MAX_SECRET_LENGTH"]:
        raise InvalidConfiguration("SECRET_LENGTH must not exceed MAX_SECRET_LENGTH")
    if config["TOLERANCE"] > config["MAX_TOLERANCE"]:
        raise InvalidConfiguration("TOLERANCE must not exceed MAX_TOLERANCE")


def create_app(config: dict = None) -> Flask:
    """
    Build the Flask application.

    One GoogleAuthenticator engine is created here and shared by every request
    (app.extensions["authenticator"]); it is immutable, so that is thread safe.
    """
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("AUTHENTICATOR")
    if config:
        app.config.update(config)
    check_config(app.config)

    # Let a frontend served from another origin call the API
    CORS(app)

    app.extensions["authenticator"] = GoogleAuthenticator(app.config["CODE_LENGTH"])

    from authenticator_backend.routes import otp_bp
    app.register_blueprint(otp_bp)

    @app.route("/", methods=["GET"])
    def index():
        """Service name and available endpoints."""
        return jsonify({
            "service": "authenticator",
            "code_length": app.config["CODE_LENGTH"],
            "endpoints": {
                "POST /secret": "create a new Base32 secret",
                "POST /code": "current code of a secret",
                "POST /verify": "verify a code typed by the user",
                "POST /qr_url": "otpauth URI and QR code image URL",
            },
        })

    logger.info("Authenticator backend ready (code_length=%s)", app.config["CODE_LENGTH"])
    return app


# START THE SERVER
# Only when executed directly (python -m authenticator_backend.app)
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    create_app().run(debug=True, host="0.0.0.0", port=5000)
