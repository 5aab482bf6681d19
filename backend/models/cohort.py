from models.database import db
from datetime import datetime


class Cohort(db.Model):
    __tablename__ = 'cohorts'

    id         = db.Column(db.Integer, primary_key=True)
    name       = db.Column(db.String(120), nullable=False)
    owner_id   = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    students = db.relationship(
        'Student', backref='cohort', lazy=True,
        cascade="all, delete-orphan", order_by='Student.name',
    )
    access = db.relationship('CohortAccess', backref='cohort', lazy=True, cascade="all, delete-orphan")

    def to_dict(self, permission=None):
        data = {
            "id":            self.id,
            "name":          self.name,
            "owner_id":      self.owner_id,
            "created_at":    self.created_at.isoformat() if self.created_at else None,
            "updated_at":    self.updated_at.isoformat() if self.updated_at else None,
            "student_count": len(self.students),
        }
        if permission is not None:
            data["permission"] = permission
        return data
