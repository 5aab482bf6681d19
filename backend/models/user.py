from models.database import db
from flask_bcrypt import generate_password_hash, check_password_hash
from datetime import datetime

class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    email_confirmed = db.Column(db.Boolean, default=False, nullable=False)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships - Using string names to avoid circular imports during verification
    cohorts = db.relationship('Cohort', backref='owner', lazy=True, cascade="all, delete-orphan")
    shared_access = db.relationship('CohortAccess', backref='user', lazy=True, cascade="all, delete-orphan")

    def set_password(self, password):
        # Decode to string if it returns bytes (bcrypt does)
        self.password_hash = generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        if not self.password_hash:
            return False
        try:
            return check_password_hash(self.password_hash, password)
        except ValueError:
            return False

    def confirm_email(self):
        self.email_confirmed = True
        self.confirmed_at = datetime.utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "email_confirmed": self.email_confirmed,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }


class TokenBlocklist(db.Model):
    """JWT ids revoked by sign-out."""
    __tablename__ = 'token_blocklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, unique=True, index=True)
    revoked_at = db.Column(db.DateTime, default=datetime.utcnow)
