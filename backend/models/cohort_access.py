from models.database import db
from datetime import datetime

PERMISSIONS = ('view', 'edit')


class CohortAccess(db.Model):
    """A grant that lets a non-owner view or edit a cohort."""
    __tablename__ = 'cohort_access'
    __table_args__ = (
        db.UniqueConstraint('cohort_id', 'user_id', name='uq_cohort_access_cohort_user'),
    )

    id          = db.Column(db.Integer, primary_key=True)
    cohort_id   = db.Column(db.Integer, db.ForeignKey('cohorts.id'), nullable=False, index=True)
    user_id     = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    permissions = db.Column(db.Enum(*PERMISSIONS, name='cohort_permission'), nullable=False, default='view')
    created_at  = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id":          self.id,
            "cohort_id":   self.cohort_id,
            "user_id":     self.user_id,
            "user_email":  self.user.email if self.user else None,
            "permissions": self.permissions,
            "created_at":  self.created_at.isoformat() if self.created_at else None,
        }
