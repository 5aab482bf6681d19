from models.database import db
from datetime import datetime

LEERGROEPEN = (1, 2, 3)


class Student(db.Model):
    __tablename__ = 'students'
    __table_args__ = (
        db.CheckConstraint('leergroep IN (1, 2, 3)', name='ck_students_leergroep'),
    )

    id         = db.Column(db.Integer, primary_key=True)
    name       = db.Column(db.String(200), nullable=False)
    leergroep  = db.Column(db.Integer, nullable=False, default=1)
    # Public URL of the cropped 300x300 portrait in blob storage
    photo_url  = db.Column(db.String(512), nullable=True)
    cohort_id  = db.Column(db.Integer, db.ForeignKey('cohorts.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id":         self.id,
            "name":       self.name,
            "leergroep":  self.leergroep,
            "photo_url":  self.photo_url,
            "cohort_id":  self.cohort_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
