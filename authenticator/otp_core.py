"""
otp_core.py - Core library for Google Authenticator compatible TOTP (RFC6238).

Goals:
- Pure functions / helpers usable directly from the CLI and the REST API.
- No argparse, no Flask, no file I/O here: the caller stores secrets.
- Each step of the algorithm is a small function so it can be tested alone.

Security notes:
- Secrets are long-lived credentials. Never log them, never echo them in errors.
- HMAC-SHA1 with 30 second steps and an 8-byte counter, as expected by
  Google Authenticator. These are protocol constants, not settings.
"""

import base64
import hashlib
import hmac
import logging
import math
import secrets
import struct
import time
from urllib.parse import quote, quote_plus

from .errors import DecodingError, InvalidConfiguration, LabelFormatError

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_CODE_LENGTH = 6     # Google Authenticator shows 6 digits
DEFAULT_SECRET_LENGTH = 16  # characters of Base32, i.e. 80 bits
DEFAULT_TOLERANCE = 1       # +/- one time slice when verifying
TIME_STEP = 30              # seconds per time slice
BASE32_CHARACTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

OFFSET_MASK = 0x0F
CODE_MASK = 0x7FFFFFFF
MAX_COUNTER = 2 ** 64 - 1   # the counter travels as 8 unsigned bytes

QR_CHART_URL = "https://chart.googleapis.com/chart"
QR_DEFAULT_SIZE = 200
QR_LEVELS = ("L", "M", "Q", "H")
QR_DEFAULT_LEVEL = "M"

LABEL_COLONS = (":", "%3A")
LABEL_ERROR = (
    'A label cannot contain more than a single colon separating the issuer from '
    'the account, i.e. "issuer:account". Examples of valid labels are '
    '"YourCompany:userlogin@yoursite.com" and "BigCoNamespace:JohnDoe". See '
    "https://github.com/google/google-authenticator/wiki/Key-Uri-Format#label"
)


def check_length(value, what: str) -> int:
    # bool is an int subclass, but True is not a length
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidConfiguration(f"{what} must be a non-negative integer, got {value!r}")
    return value


# --- Secrets ---------------------------------------------------------------
def create_secret(length: int = DEFAULT_SECRET_LENGTH) -> str:
    """
    Generate a new random Base32 secret (no padding).

    - Every character is picked independently with secrets.choice (CSPRNG),
      which draws uniformly from the 32 symbols without modulo bias.
    - length=0 gives an empty string.

    Arguments:
        length: number of Base32 characters wanted (default 16)

    Returns:
        str: e.g. "JBSWY3DPEHPK3PXP"

    Raises:
        InvalidConfiguration: if length is negative or not an integer
    """
    check_length(length, "Secret length")
    return "".join(secrets.choice(BASE32_CHARACTERS) for _ in range(length))


def decode_secret(secret_b32: str) -> bytes:
    """
    Decode a Base32 secret into the raw HMAC key.

    - Case-insensitive, trailing "=" padding is optional.
    - An incomplete last group of 8 characters is zero-filled. Its last partial
      byte is kept when it carries non-zero bits, so a short non-canonical
      secret such as "SECRET" keys the HMAC with every bit the user typed.

    Raises:
        DecodingError: on characters outside A-Z2-7
    """
    if not isinstance(secret_b32, str):
        raise DecodingError("Secret must be a Base32 string")
    cleaned = secret_b32.rstrip("=")
    quanta = cleaned + "A" * (-len(cleaned) % 8)
    try:
        raw = base64.b32decode(quanta, casefold=True)
    except ValueError as e:
        raise DecodingError("Invalid Base32 secret") from e

    whole, spare_bits = divmod(len(cleaned) * 5, 8)
    if spare_bits and raw[whole]:
        whole += 1
    return raw[:whole]


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Pack a counter as the 8-byte big-endian message required by RFC4226.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        InvalidConfiguration: if the counter is not an integer in [0, 2**64)
    """
    if isinstance(i, bool) or not isinstance(i, int) or not 0 <= i <= MAX_COUNTER:
        raise InvalidConfiguration(f"Counter must be an integer between 0 and {MAX_COUNTER}, got {i!r}")
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    RFC4226 dynamic truncation.

    - offset = low nibble of the last byte
    - 4 bytes from offset, read as a big-endian unsigned int
    - sign bit cleared, leaving a 31-bit value
    """
    offset = hmac_digest[-1] & OFFSET_MASK
    (value,) = struct.unpack(">I", hmac_digest[offset:offset + 4])
    return value & CODE_MASK


def hotp(secret_b32: str, counter: int, digits: int = DEFAULT_CODE_LENGTH) -> str:
    """
    HOTP code for one counter value (RFC4226).

    Steps:
    1. Base32-decode secret -> raw key bytes
    2. Message = 8-byte counter (big-endian)
    3. HMAC-SHA1(key, message)
    4. Dynamic truncate -> 31-bit value
    5. value % 10^digits
    6. Zero-pad to exactly "digits" characters

    Arguments:
        secret_b32: Base32 secret
        counter: non-negative counter (the time slice for TOTP)
        digits: code length

    Returns:
        str: zero-padded code

    Raises:
        DecodingError: if the secret is not valid Base32
        InvalidConfiguration: if the counter is out of range
    """
    key = decode_secret(secret_b32)
    digest = hmac.new(key, int_to_bytes(counter), hashlib.sha1).digest()
    value = dynamic_truncate(digest)
    return str(value % (10 ** digits)).zfill(digits)


def current_time_slice(timestamp: float = None) -> int:
    """Counter for a Unix timestamp (defaults to now): floor(t / 30)."""
    if timestamp is None:
        timestamp = time.time()
    return int(math.floor(timestamp / TIME_STEP))


def remaining_seconds(timestamp: float = None) -> int:
    """Seconds left before the code of the current slice changes."""
    if timestamp is None:
        timestamp = time.time()
    return TIME_STEP - int(timestamp) % TIME_STEP


def str_compare(safe: str, user: str) -> bool:
    """
    Timing safe string equality.

    hmac.compare_digest does not stop at the first differing byte; only the
    fact that lengths differ can leak. Both sides are compared as UTF-8 bytes
    because compare_digest refuses non-ASCII str.

    Arguments:
        safe: the value computed on our side
        user: the value submitted by the user
    """
    return hmac.compare_digest(safe.encode("utf-8"), user.encode("utf-8"))


# --- Enrollment URI --------------------------------------------------------
def form_encode(value: str) -> str:
    """Form-encode like PHP urlencode: spaces become "+" and "~" is escaped too."""
    return quote_plus(value).replace("~", "%7E")


def validate_label(label: str, issuer: str = None) -> str:
    """
    Check the label of an otpauth URI and return it URL-encoded.

    - "account" (no colon): form-encoded as a whole.
    - "issuer:account" (raw ":" or "%3A"): exactly one separator allowed.
      With an issuer given, the label's issuer part must match it exactly and
      both parts are encoded separately around a literal ":".
      Without an issuer, the whole label is encoded as one unit.

    Arguments:
        label: account label, optionally prefixed with "issuer:"
        issuer: issuer passed next to the label, may be None

    Raises:
        LabelFormatError: several colons, or issuer mismatch
    """
    if not isinstance(label, str):
        raise LabelFormatError("Label must be a string")
    separators = sum(label.count(colon) for colon in LABEL_COLONS)
    if separators == 0:
        return form_encode(label)
    if separators > 1:
        raise LabelFormatError(LABEL_ERROR)

    colon = ":" if ":" in label else "%3A"
    prefix, account = label.split(colon)

    if issuer:
        if prefix != issuer:
            raise LabelFormatError(LABEL_ERROR)
        return quote(prefix, safe="") + ":" + quote(account, safe="")

    return quote(label, safe="")


def format_otpauth_uri(label: str, secret_b32: str, issuer: str = None) -> str:
    """
    Build the key URI read by Google Authenticator.

    otpauth://totp/{label}?secret={secret}[&issuer={issuer}]

    Raises:
        LabelFormatError: if the label is malformed (see validate_label)
    """
    uri = "otpauth://totp/" + validate_label(label, issuer) + "?secret=" + secret_b32
    if issuer and isinstance(issuer, str):
        uri += "&issuer=" + quote(issuer, safe="")
    return uri


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def format_qr_code_url(label: str, secret_b32: str, issuer: str = None, params: dict = None) -> str:
    """
    URL of a QR code image (Google Charts) holding the otpauth URI.

    Supported params (anything invalid silently falls back to the default):
        width:  image width in pixels (default 200)
        height: image height in pixels (default 200)
        level:  error correction level, one of
                - L: recovers up to 7% data loss
                - M: [Default] recovers up to 15% data loss
                - Q: recovers up to 25% data loss
                - H: recovers up to 30% data loss

    Only the URL is built; nothing is fetched or rendered here.
    """
    params = params or {}
    encoded = form_encode(format_otpauth_uri(label, secret_b32, issuer))

    width = _positive_int(params.get("width"), QR_DEFAULT_SIZE)
    height = _positive_int(params.get("height"), QR_DEFAULT_SIZE)
    level = params.get("level")
    if level not in QR_LEVELS:
        level = QR_DEFAULT_LEVEL

    return f"{QR_CHART_URL}?chs={width}x{height}&chld={level}|0&cht=qr&chl={encoded}"


# --- Engine ----------------------------------------------------------------
class GoogleAuthenticator:
    """
    TOTP engine bound to one code length.

    The code length is fixed at construction; with_code_length() hands back a
    new engine instead of mutating this one, so a single instance can be shared
    between threads and between any number of secrets.
    """

    def __init__(self, code_length: int = DEFAULT_CODE_LENGTH):
        self._code_length = check_length(code_length, "Code length")

    def __repr__(self):
        return f"GoogleAuthenticator(code_length={self._code_length})"

    @property
    def code_length(self) -> int:
        return self._code_length

    def with_code_length(self, code_length: int = DEFAULT_CODE_LENGTH) -> "GoogleAuthenticator":
        """Return an engine producing codes of another length."""
        return GoogleAuthenticator(code_length)

    def create_secret(self, length: int = DEFAULT_SECRET_LENGTH) -> str:
        return create_secret(length)

    def get_time_slice(self, timestamp: float = None) -> int:
        return current_time_slice(timestamp)

    def remaining_seconds(self, timestamp: float = None) -> int:
        return remaining_seconds(timestamp)

    def get_code(self, secret_b32: str, time_slice: int = None) -> str:
        """
        Code for a secret at a given time slice (defaults to the current one).

        The same (secret, time slice, code length) always yields the same code.
        """
        if time_slice is None:
            time_slice = current_time_slice()
        return hotp(secret_b32, time_slice, self._code_length)

    def verify_code(self, secret_b32: str, code, tolerance: int = DEFAULT_TOLERANCE,
                    timestamp: float = None) -> bool:
        """
        Check a code typed by the user.

        Codes from (now - tolerance * 30s) to (now + tolerance * 30s) are
        accepted, scanning slices in ascending order. A wrong code is simply
        False, never an exception.

        Arguments:
            secret_b32: Base32 secret of the user
            code: submitted code
            tolerance: allowed drift, in 30 second slices
            timestamp: Unix time to verify at (defaults to now)

        Raises:
            DecodingError: if the secret is not valid Base32
            InvalidConfiguration: if tolerance is not an integer
        """
        # a negative tolerance is an empty window: nothing matches
        if isinstance(tolerance, bool) or not isinstance(tolerance, int):
            raise InvalidConfiguration(f"Tolerance must be an integer, got {tolerance!r}")
        current = current_time_slice(timestamp)
        submitted = code if isinstance(code, str) else str(code)

        for offset in range(-tolerance, tolerance + 1):
            if not 0 <= current + offset <= MAX_COUNTER:
                continue
            if str_compare(self.get_code(secret_b32, current + offset), submitted):
                logger.debug("Code accepted at slice offset %d", offset)
                return True

        logger.debug("Code rejected within +/-%d slices", tolerance)
        return False

    def validate_label(self, label: str, issuer: str = None) -> str:
        return validate_label(label, issuer)

    def get_otpauth_uri(self, label: str, secret_b32: str, issuer: str = None) -> str:
        return format_otpauth_uri(label, secret_b32, issuer)

    def get_qr_code_url(self, label: str, secret_b32: str, issuer: str = None, params: dict = None) -> str:
        return format_qr_code_url(label, secret_b32, issuer, params)

    def str_compare(self, safe: str, user: str) -> bool:
        return str_compare(safe, user)
