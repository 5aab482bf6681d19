"""
AuthService
===========
Sign-up, sign-in, sign-out and e-mail confirmation.

Confirmation links carry an ``itsdangerous`` signed token with the user's
e-mail; sign-in of an unconfirmed account fails with a dedicated error so
the client can offer "resend confirmation".
"""

import logging
from flask import current_app, url_for
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from models.database import db
from models.user import User, TokenBlocklist
from services.errors import ApplicationError
from services.gmail_service import GmailService
from utils.validation import clean_string

logger = logging.getLogger(__name__)

_SALT = 'email-confirmation'


class AuthError(ApplicationError):
    status_code = 401
    user_message = "Invalid credentials"
    error_code = "invalid_credentials"


class EmailNotConfirmedError(AuthError):
    status_code = 403
    user_message = "Email not confirmed. Please check your email and click the confirmation link."
    error_code = "email_not_confirmed"


class RegistrationError(AuthError):
    status_code = 400
    user_message = "Registration failed"
    error_code = "registration_failed"


class InvalidConfirmationTokenError(AuthError):
    status_code = 400
    user_message = "Confirmation link is invalid or has expired"
    error_code = "invalid_confirmation_token"


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=_SALT)


def normalise_email(email):
    return clean_string(email).lower()


def generate_confirmation_token(email):
    return _serializer().dumps(normalise_email(email))


def confirm_token(token):
    """Return the e-mail in *token* or raise InvalidConfirmationTokenError."""
    try:
        return _serializer().loads(token, max_age=current_app.config['EMAIL_CONFIRMATION_MAX_AGE'])
    except SignatureExpired as exc:
        raise InvalidConfirmationTokenError("Confirmation token expired") from exc
    except BadSignature as exc:
        raise InvalidConfirmationTokenError("Confirmation token invalid") from exc


class AuthService:

    @staticmethod
    def sign_up(email, password):
        email = normalise_email(email)
        if '@' not in email:
            raise RegistrationError("Invalid email", user_message="A valid email address is required")

        min_length = current_app.config['MIN_PASSWORD_LENGTH']
        if not isinstance(password, str) or len(password) < min_length:
            raise RegistrationError(
                "Password too short",
                user_message=f"Password must be at least {min_length} characters",
            )

        if User.query.filter_by(email=email).first():
            raise RegistrationError("Duplicate email", user_message="Email already exists")

        user = User(email=email)
        user.set_password(password)
        if not current_app.config['REQUIRE_EMAIL_CONFIRMATION']:
            user.confirm_email()

        db.session.add(user)
        db.session.commit()
        logger.info(f"Registered user {user.id} (confirmed={user.email_confirmed})")

        mail_sent = False
        if not user.email_confirmed:
            mail_sent = AuthService.send_confirmation(user)
        return user, mail_sent

    @staticmethod
    def sign_in(email, password):
        user = User.query.filter_by(email=normalise_email(email)).first()
        if not isinstance(password, str) or not user or not user.check_password(password):
            raise AuthError(f"Bad credentials for '{normalise_email(email)}'")
        if not user.email_confirmed:
            raise EmailNotConfirmedError(f"User {user.id} has not confirmed {user.email}")
        return user

    @staticmethod
    def sign_out(jti):
        db.session.add(TokenBlocklist(jti=jti))
        db.session.commit()
        logger.info(f"Token {jti} revoked")

    @staticmethod
    def is_token_revoked(jti):
        return TokenBlocklist.query.filter_by(jti=jti).first() is not None

    @staticmethod
    def send_confirmation(user):
        """Mail a confirmation link; delivery failure is logged, not raised."""
        token = generate_confirmation_token(user.email)
        link = url_for('auth.confirm', token=token, _external=True)
        body = (
            "Welkom bij de Leerlingbeheertool!\n\n"
            f"Bevestig je e-mailadres via deze link:\n{link}\n"
        )
        sent, result = GmailService().send_email(user.email, "Bevestig je e-mailadres", body)
        if not sent:
            logger.warning(f"Confirmation mail for user {user.id} not delivered: {result}")
        return sent

    @staticmethod
    def resend_confirmation(email):
        user = User.query.filter_by(email=normalise_email(email)).first()
        if user is None or user.email_confirmed:
            # Same answer either way so the endpoint can't be used to probe accounts
            logger.info(f"Resend skipped for '{normalise_email(email)}'")
            return False
        return AuthService.send_confirmation(user)

    @staticmethod
    def confirm_email(token):
        email = confirm_token(token)
        user = User.query.filter_by(email=email).first()
        if user is None:
            raise InvalidConfirmationTokenError(f"No user for confirmed email {email}")
        if not user.email_confirmed:
            user.confirm_email()
            db.session.commit()
            logger.info(f"User {user.id} confirmed {user.email}")
        return user
