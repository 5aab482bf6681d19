"""Pytest configuration and shared fixtures for the roster backend."""
import logging

import pytest

from app import create_app
from config import TestingConfig
from models.database import db
from models.user import User

# Disable some verbose loggers during testing
logging.getLogger('PIL').setLevel(logging.WARNING)

PASSWORD = "geheim123"


@pytest.fixture
def app(tmp_path):
    """Fresh app with an in-memory database and a private upload folder."""

    class Config(TestingConfig):
        UPLOAD_FOLDER = str(tmp_path / "photos")

    app = create_app(Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email, password=PASSWORD, confirmed=True):
        user = User(email=email)
        user.set_password(password)
        if confirmed:
            user.confirm_email()
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def login(client):
    """Sign in and return Authorization headers."""
    def _login(email, password=PASSWORD):
        response = client.post('/api/auth/signin', json={"email": email, "password": password})
        assert response.status_code == 200, response.get_json()
        token = response.get_json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}
    return _login


@pytest.fixture
def owner(make_user, login):
    user = make_user("juf@school.nl")
    return user, login("juf@school.nl")
