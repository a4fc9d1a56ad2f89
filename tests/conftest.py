"""Shared fixtures."""

from __future__ import annotations

import pytest

from authenticator import GoogleAuthenticator
from authenticator_backend import create_app


@pytest.fixture
def ga():
    return GoogleAuthenticator()


@pytest.fixture
def app():
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()
