"""Sign-up, confirmation, sign-in and sign-out."""
from services.auth_service import generate_confirmation_token

from conftest import PASSWORD


def _signup(client, email="meester@school.nl", password=PASSWORD):
    return client.post('/api/auth/signup', json={"email": email, "password": password})


def test_signup_creates_unconfirmed_user(client):
    response = _signup(client)

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert data["user"]["email"] == "meester@school.nl"
    assert data["confirmation_required"] is True
    # No Gmail token in the test environment
    assert data["confirmation_sent"] is False


def test_signup_normalises_and_rejects_duplicate_email(client):
    assert _signup(client, email="Meester@School.nl").status_code == 201

    response = _signup(client, email="meester@school.nl ")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Email already exists"


def test_signup_rejects_short_password(client):
    response = _signup(client, password="123")
    assert response.status_code == 400
    assert "at least" in response.get_json()["message"]


def test_signup_requires_fields(client):
    response = client.post('/api/auth/signup', json={"email": "x@y.nl"})
    assert response.status_code == 400
    assert "password" in response.get_json()["message"]


def test_unconfirmed_signin_is_reported_distinctly(client):
    _signup(client)

    response = client.post('/api/auth/signin', json={"email": "meester@school.nl", "password": PASSWORD})

    assert response.status_code == 403
    assert response.get_json()["error_code"] == "email_not_confirmed"


def test_wrong_password(client, make_user):
    make_user("juf@school.nl")
    response = client.post('/api/auth/signin', json={"email": "juf@school.nl", "password": "fout-wachtwoord"})

    assert response.status_code == 401
    assert response.get_json()["error_code"] == "invalid_credentials"


def test_confirmation_link_enables_signin(client):
    _signup(client)
    token = generate_confirmation_token("meester@school.nl")

    confirm = client.get(f'/api/auth/confirm/{token}')
    assert confirm.status_code == 200
    assert confirm.get_json()["data"]["email_confirmed"] is True

    signin = client.post('/api/auth/signin', json={"email": "meester@school.nl", "password": PASSWORD})
    assert signin.status_code == 200
    assert "access_token" in signin.get_json()["data"]


def test_bad_confirmation_token(client):
    response = client.get('/api/auth/confirm/not-a-real-token')
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "invalid_confirmation_token"


def test_resend_answers_the_same_for_unknown_addresses(client):
    _signup(client)
    known = client.post('/api/auth/resend-confirmation', json={"email": "meester@school.nl"})
    unknown = client.post('/api/auth/resend-confirmation', json={"email": "niemand@school.nl"})

    assert known.status_code == unknown.status_code == 200
    assert known.get_json()["message"] == unknown.get_json()["message"]


def test_signout_revokes_token(client, owner):
    _, headers = owner
    assert client.get('/api/auth/me', headers=headers).status_code == 200

    assert client.post('/api/auth/signout', headers=headers).status_code == 200

    response = client.get('/api/auth/me', headers=headers)
    assert response.status_code == 401
    assert response.get_json()["error_code"] == "token_revoked"


def test_protected_routes_need_a_token(client):
    response = client.get('/api/cohorts/')
    assert response.status_code == 401
    assert response.get_json()["status"] == "error"


def test_signup_with_numeric_password(client):
    response = client.post('/api/auth/signup', json={"email": "a@b.nl", "password": 12345678})
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "registration_failed"


def test_signup_with_numeric_email(client):
    response = client.post('/api/auth/signup', json={"email": 42, "password": PASSWORD})
    assert response.status_code == 400
    assert response.get_json()["message"] == "A valid email address is required"


def test_signin_with_numeric_password(client, make_user):
    make_user("juf@school.nl")
    response = client.post('/api/auth/signin', json={"email": "juf@school.nl", "password": 12345678})
    assert response.status_code == 401
    assert response.get_json()["error_code"] == "invalid_credentials"


def test_resend_with_numeric_email(client):
    response = client.post('/api/auth/resend-confirmation', json={"email": 42})
    assert response.status_code == 200
