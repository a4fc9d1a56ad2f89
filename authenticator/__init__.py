"""
authenticator package
=====================

Google Authenticator compatible one-time passwords (TOTP, RFC 6238).

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC-SHA1(key=secret, msg=counter)) mod 10^digits

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor(timestamp / 30)
  → the code changes every 30 seconds.

- Dynamic Truncation:
  4 bytes of the HMAC, picked at offset (last byte & 0x0F), sign bit cleared.

──────────────────────────────────────────────
Usage for the different teams
──────────────────────────────────────────────

1. Backend developers
   - Create one engine and share it; it holds no per-user state.
        from authenticator import GoogleAuthenticator
        ga = GoogleAuthenticator()
        if ga.verify_code(user.secret, submitted): login_ok = True

2. Frontend developers
   - Show the QR code URL so the user can scan it with Google Authenticator.
        url = ga.get_qr_code_url("MyApp:alice@example.com", secret, issuer="MyApp")

3. Database administrators
   - Store only the Base32 secret. Never store codes, they expire in seconds.

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from authenticator import GoogleAuthenticator
>>> ga = GoogleAuthenticator()
>>> ga.get_code("SECRET", 0)
'200470'
"""
from .errors import (
    AuthenticatorError,
    DecodingError,
    InvalidConfiguration,
    LabelFormatError,
)
from .otp_core import (
    GoogleAuthenticator,
    create_secret,
    hotp,
    str_compare,
    validate_label,
)

__version__ = "1.0.0"

__all__ = [
    "AuthenticatorError",
    "DecodingError",
    "GoogleAuthenticator",
    "InvalidConfiguration",
    "LabelFormatError",
    "create_secret",
    "hotp",
    "str_compare",
    "validate_label",
]
