import os
import logging
import tempfile
from dotenv import load_dotenv

load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    # Database
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///database/leerlingbeheer.db'

    if DATABASE_URL.startswith('sqlite:///'):
        # Extract the path after sqlite:///
        db_path = DATABASE_URL.split('sqlite:///')[1]
        # Convert to absolute path relative to basedir (backend ROOT)
        abs_db_path = os.path.join(basedir, db_path)
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{abs_db_path}'
    else:
        SQLALCHEMY_DATABASE_URI = DATABASE_URL

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TESTING = False

    # JWT Configurations
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-me'
    JWT_ACCESS_TOKEN_EXPIRES = 3600  # 1 hour
    JWT_REFRESH_TOKEN_EXPIRES = 2592000  # 30 days

    # HTTPS & Security Requirements
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    JWT_COOKIE_SECURE = True

    # Accounts
    REQUIRE_EMAIL_CONFIRMATION = _env_flag('REQUIRE_EMAIL_CONFIRMATION', True)
    EMAIL_CONFIRMATION_MAX_AGE = int(os.environ.get('EMAIL_CONFIRMATION_MAX_AGE', 86400))  # 24 hours
    MIN_PASSWORD_LENGTH = int(os.environ.get('MIN_PASSWORD_LENGTH', 6))

    # Upload & storage
    UPLOAD_FOLDER      = os.environ.get('UPLOAD_FOLDER') or os.path.join(basedir, 'data', 'student_photos')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB
    PUBLIC_BASE_URL    = os.environ.get('PUBLIC_BASE_URL')  # falls back to the request host

    # Photo pipeline / export
    PHOTO_OUTPUT_SIZE    = 300
    EXPORT_PHOTO_SIZE    = 150
    EXPORT_FETCH_TIMEOUT = float(os.environ.get('EXPORT_FETCH_TIMEOUT', 10))
    # Hosts besides our own storage that export may download student photos from
    EXPORT_PHOTO_HOSTS = [h.strip().lower() for h in os.environ.get('EXPORT_PHOTO_HOSTS', '').split(',') if h.strip()]

    # Gmail API configuration (confirmation mails)
    MAIL_SENDER            = os.environ.get('MAIL_SENDER', 'me')
    GMAIL_TOKEN_PATH       = os.environ.get('GMAIL_TOKEN_PATH') or os.path.join(basedir, 'token.json')

    @staticmethod
    def init_app(app):
        os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

        # Ensure database directory exists for SQLite
        db_uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if db_uri and db_uri.startswith('sqlite:///'):
            db_path = db_uri.split('sqlite:///')[1]
            db_dir = os.path.dirname(os.path.join(os.getcwd(), db_path))
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)

        logger.info(
            f"Database configured for: "
            f"{db_uri.split('@')[-1] if db_uri and '@' in db_uri else db_uri}"
        )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SESSION_COOKIE_SECURE = False
    JWT_COOKIE_SECURE = False
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), 'leerlingbeheer-test-photos')
    PUBLIC_BASE_URL = 'http://testserver'
    GMAIL_TOKEN_PATH = os.path.join(tempfile.gettempdir(), 'missing-token.json')
