"""Tests for label validation, otpauth URIs and QR code URLs."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from authenticator import LabelFormatError
from authenticator.otp_core import format_otpauth_uri, validate_label


def _query(url):
    parts = urlsplit(url)
    return parts, {key: values[0] for key, values in parse_qs(parts.query).items()}


def test_qr_code_url_is_correct(ga):
    parts, query = _query(ga.get_qr_code_url("Test", "SECRET"))

    assert parts.scheme == "https"
    assert parts.netloc == "chart.googleapis.com"
    assert parts.path == "/chart"
    assert query["chl"] == "otpauth://totp/Test?secret=SECRET"
    assert query["chs"] == "200x200"
    assert query["chld"] == "M|0"
    assert query["cht"] == "qr"


def test_qr_code_url_with_issuer(ga):
    url = ga.get_qr_code_url("Vendor:user@example.com", "SECRET", "Vendor")
    _, query = _query(url)
    assert query["chl"] == "otpauth://totp/Vendor:user%40example.com?secret=SECRET&issuer=Vendor"


def test_qr_code_url_issuer_is_raw_url_encoded(ga):
    _, query = _query(ga.get_qr_code_url("My App:alice", "SECRET", "My App"))
    assert query["chl"] == "otpauth://totp/My%20App:alice?secret=SECRET&issuer=My%20App"


def test_qr_code_url_params(ga):
    url = ga.get_qr_code_url("Test", "SECRET", params={"width": 300, "height": "150", "level": "H"})
    _, query = _query(url)
    assert query["chs"] == "300x150"
    assert query["chld"] == "H|0"


@pytest.mark.parametrize("params", [
    {"width": -5, "height": "abc", "level": "X"},
    {"width": 0, "height": None, "level": "m"},
    {},
])
def test_qr_code_url_invalid_params_fall_back(ga, params):
    _, query = _query(ga.get_qr_code_url("Test", "SECRET", params=params))
    assert query["chs"] == "200x200"
    assert query["chld"] == "M|0"


def test_qr_code_url_rejects_bad_label(ga):
    with pytest.raises(LabelFormatError):
        ga.get_qr_code_url("a:b:c", "SECRET")


def test_otpauth_uri(ga):
    assert ga.get_otpauth_uri("Test", "SECRET") == "otpauth://totp/Test?secret=SECRET"
    assert format_otpauth_uri("Vendor:bob", "SECRET", "Vendor") == \
        "otpauth://totp/Vendor:bob?secret=SECRET&issuer=Vendor"


def test_otpauth_uri_ignores_empty_issuer():
    assert format_otpauth_uri("Test", "SECRET", "") == "otpauth://totp/Test?secret=SECRET"


@pytest.mark.parametrize("label, expected", [
    ("Test", "Test"),
    ("user@example.com", "user%40example.com"),
    ("John Doe", "John+Doe"),
    ("a~b", "a%7Eb"),
])
def test_validate_label_without_colon(label, expected):
    assert validate_label(label, None) == expected


def test_validate_label_with_matching_issuer(ga):
    assert ga.validate_label("Vendor:user@example.com", "Vendor") == "Vendor:user%40example.com"


def test_validate_label_with_encoded_colon_and_issuer():
    assert validate_label("Vendor%3Auser", "Vendor") == "Vendor:user"


def test_validate_label_issuer_mismatch():
    with pytest.raises(LabelFormatError):
        validate_label("Vendor:user@example.com", "Other")


def test_validate_label_issuer_is_case_sensitive():
    with pytest.raises(LabelFormatError):
        validate_label("vendor:user", "Vendor")


@pytest.mark.parametrize("label", ["a:b:c", "a%3Ab%3Ac", "a%3Ab:c", "::"])
def test_validate_label_rejects_several_colons(label):
    with pytest.raises(LabelFormatError):
        validate_label(label, None)
    with pytest.raises(LabelFormatError):
        validate_label(label, "a")


def test_validate_label_without_issuer_encodes_whole_label():
    # the colon is encoded too when no issuer is passed alongside
    assert validate_label("Vendor:user@example.com", None) == "Vendor%3Auser%40example.com"
    assert validate_label("Vendor%3Auser", None) == "Vendor%253Auser"


def test_validate_label_rejects_non_string():
    with pytest.raises(LabelFormatError):
        validate_label(42, None)
