"""
AUTHENTICATOR API ROUTES - FLASK BLUEPRINT

Every endpoint takes a JSON body and returns JSON. The secret is supplied by
the caller on each request and is never logged or stored.

EXAMPLES:
curl -X POST http://localhost:5000/secret -H "Content-Type: application/json" -d "{}"
curl -X POST http://localhost:5000/verify -H "Content-Type: application/json" \
     -d '{"secret": "JBSWY3DPEHPK3PXP", "code": "123456"}'
"""
import logging

from flask import Blueprint, current_app, jsonify, request

from authenticator.errors import AuthenticatorError

logger = logging.getLogger(__name__)

otp_bp = Blueprint("otp", __name__)


def _engine():
    return current_app.extensions["authenticator"]


def _missing(data: dict, *fields):
    return [field for field in fields if field not in data]


@otp_bp.errorhandler(AuthenticatorError)
def handle_authenticator_error(e):
    """Bad secret, bad label or bad length: the caller sent wrong input."""
    logger.info("Rejected request: %s", type(e).__name__)
    return jsonify({"error": str(e), "type": type(e).__name__}), 400


@otp_bp.route("/secret", methods=["POST"])
def create_secret():
    """
    CREATE A SECRET

      curl -X POST http://localhost:5000/secret -H "Content-Type: application/json" -d '{"length": 32}'

    Output:
      {"secret": "JBSWY3DPEHPK3PXP"}
    """
    data = request.get_json(silent=True) or {}
    length = data.get("length", current_app.config["SECRET_LENGTH"])
    max_length = current_app.config["MAX_SECRET_LENGTH"]
    if isinstance(length, int) and length > max_length:
        return jsonify({"error": f"length must not exceed {max_length}"}), 400

    secret = _engine().create_secret(length)
    logger.info("Generated secret of %d characters", len(secret))
    return jsonify({"secret": secret}), 201


@otp_bp.route("/code", methods=["POST"])
def get_code():
    """
    CURRENT CODE OF A SECRET

      curl -X POST http://localhost:5000/code -H "Content-Type: application/json" -d '{"secret": "SECRET"}'

    Input:
      {
        "secret": "SECRET",    # REQUIRED
        "time_slice": 0        # optional, Unix time / 30
      }

    Output:
      {"code": "200470", "remaining": 17}
      "remaining" is null when an explicit time_slice was given.
    """
    data = request.get_json(silent=True) or {}
    if _missing(data, "secret"):
        return jsonify({"error": "Secret is required"}), 400

    ga = _engine()
    time_slice = data.get("time_slice")
    if time_slice is not None and (isinstance(time_slice, bool) or not isinstance(time_slice, int)):
        return jsonify({"error": "time_slice must be an integer"}), 400
    remaining = None if time_slice is not None else ga.remaining_seconds()
    code = ga.get_code(data["secret"], time_slice)
    return jsonify({"code": code, "remaining": remaining})


@otp_bp.route("/verify", methods=["POST"])
def verify_code():
    """
    VERIFY A CODE

      curl -X POST http://localhost:5000/verify -H "Content-Type: application/json" \
           -d '{"secret": "SECRET", "code": "123456", "tolerance": 1}'

    Output:
      {"valid": true}  or  {"valid": false}
    """
    data = request.get_json(silent=True) or {}
    missing = _missing(data, "secret", "code")
    if missing:
        return jsonify({"error": f"Missing fields: {', '.join(missing)}"}), 400

    tolerance = data.get("tolerance", current_app.config["TOLERANCE"])
    if isinstance(tolerance, bool) or not isinstance(tolerance, int):
        return jsonify({"error": "Tolerance must be an integer"}), 400
    max_tolerance = current_app.config["MAX_TOLERANCE"]
    if tolerance > max_tolerance:
        return jsonify({"error": f"Tolerance must not exceed {max_tolerance}"}), 400

    valid = _engine().verify_code(data["secret"], data["code"], tolerance=tolerance)
    logger.info("Code verification %s", "succeeded" if valid else "failed")
    return jsonify({"valid": valid})


@otp_bp.route("/qr_url", methods=["POST"])
def get_qr_url():
    """
    ENROLLMENT URI AND QR CODE URL FOR AUTHENTICATOR APPS

      curl -X POST http://localhost:5000/qr_url -H "Content-Type: application/json" \
           -d '{"label": "MyApp:alice@example.com", "secret": "JBSWY3DPEHPK3PXP", "issuer": "MyApp"}'

    Optional: "width", "height" (pixels, default 200), "level" (L/M/Q/H, default M).
    Open "url" in a browser or an <img> tag and scan it with Google Authenticator.
    """
    data = request.get_json(silent=True) or {}
    missing = _missing(data, "label", "secret")
    if missing:
        return jsonify({"error": f"Missing fields: {', '.join(missing)}"}), 400

    if not isinstance(data["secret"], str):
        return jsonify({"error": "Secret must be a string"}), 400

    ga = _engine()
    issuer = data.get("issuer")
    params = {key: data[key] for key in ("width", "height", "level") if key in data}
    return jsonify({
        "url": ga.get_qr_code_url(data["label"], data["secret"], issuer, params),
        "otpauth_uri": ga.get_otpauth_uri(data["label"], data["secret"], issuer),
    })
