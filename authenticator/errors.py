"""
errors.py - Exceptions raised by the authenticator core.

All of them derive from ValueError: every failure is a bad input from the
caller (wrong code length, a secret that is not Base32, a malformed label).
Messages never contain the secret itself.
"""


class AuthenticatorError(ValueError):
    """Base class for every error raised by the authenticator package."""


class InvalidConfiguration(AuthenticatorError):
    """A code length or secret length that is not a non-negative integer."""


class DecodingError(AuthenticatorError):
    """The secret contains characters outside the Base32 alphabet."""


class LabelFormatError(AuthenticatorError):
    """The enrollment label has several colons or disagrees with the issuer."""
