"""
SharingService
==============
Cohort ownership, access grants and the permission checks built on them.

Effective permission of a user on a cohort:
    owner  – created the cohort
    edit   – granted edit access
    view   – granted view access
    None   – no access
"""

import logging
from sqlalchemy.exc import IntegrityError
from models.database import db
from models.cohort import Cohort
from models.cohort_access import CohortAccess, PERMISSIONS
from models.user import User
from services.errors import (
    AlreadySharedError,
    CannotShareWithOwnerError,
    PermissionDeniedError,
    SharingError,
    UserNotFoundError,
)
from utils.validation import clean_string

logger = logging.getLogger(__name__)

OWNER = 'owner'

# What each permission level is allowed to do
_RANK = {'view': 1, 'edit': 2, OWNER: 3}


class SharingService:

    @staticmethod
    def effective_permission(cohort: Cohort, user_id: int):
        if cohort.owner_id == user_id:
            return OWNER
        grant = CohortAccess.query.filter_by(cohort_id=cohort.id, user_id=user_id).first()
        return grant.permissions if grant else None

    @staticmethod
    def get_cohort(cohort_id: int, user_id: int, required: str = 'view'):
        """Load a cohort and check *user_id* holds at least *required*.

        Returns (cohort, permission). 404 when missing, PermissionDeniedError
        when the user has no or too little access.
        """
        cohort = Cohort.query.get_or_404(cohort_id)
        permission = SharingService.effective_permission(cohort, user_id)
        if permission is None or _RANK[permission] < _RANK[required]:
            logger.info(
                f"User {user_id} denied '{required}' on cohort {cohort_id} (has {permission})"
            )
            raise PermissionDeniedError(f"User {user_id} lacks {required} on cohort {cohort_id}")
        return cohort, permission

    @staticmethod
    def list_cohorts(user_id: int) -> list:
        """Owned and shared cohorts, newest first, as (cohort, permission) pairs."""
        owned = Cohort.query.filter_by(owner_id=user_id).all()
        grants = CohortAccess.query.filter_by(user_id=user_id).all()

        pairs = [(c, OWNER) for c in owned]
        pairs += [(g.cohort, g.permissions) for g in grants if g.cohort.owner_id != user_id]
        pairs.sort(key=lambda p: (p[0].created_at, p[0].id), reverse=True)
        return pairs

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_user(email: str) -> User:
        """Map an e-mail address to a registered user or fail clearly."""
        normalised = clean_string(email).lower()
        user = User.query.filter_by(email=normalised).first() if normalised else None
        if user is None:
            raise UserNotFoundError(f"No user registered with e-mail '{normalised}'")
        return user

    @staticmethod
    def share(cohort: Cohort, email: str, permissions: str = 'view') -> CohortAccess:
        if permissions not in PERMISSIONS:
            raise SharingError(
                f"Invalid permission '{permissions}'",
                user_message=f"permissions must be one of: {', '.join(PERMISSIONS)}",
            )

        user = SharingService.resolve_user(email)
        if user.id == cohort.owner_id:
            raise CannotShareWithOwnerError(f"User {user.id} owns cohort {cohort.id}")

        if CohortAccess.query.filter_by(cohort_id=cohort.id, user_id=user.id).first():
            raise AlreadySharedError(f"Cohort {cohort.id} already shared with user {user.id}")

        grant = CohortAccess(cohort_id=cohort.id, user_id=user.id, permissions=permissions)
        db.session.add(grant)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise AlreadySharedError(str(exc)) from exc

        logger.info(f"Cohort {cohort.id} shared with user {user.id} ({permissions})")
        return grant

    @staticmethod
    def list_access(cohort: Cohort) -> list:
        return CohortAccess.query.filter_by(cohort_id=cohort.id).order_by(CohortAccess.created_at).all()

    @staticmethod
    def revoke(cohort: Cohort, access_id: int) -> dict:
        grant = CohortAccess.query.filter_by(id=access_id, cohort_id=cohort.id).first_or_404()
        revoked = grant.to_dict()
        db.session.delete(grant)
        db.session.commit()
        logger.info(f"Revoked access {access_id} (user {revoked['user_id']}) on cohort {cohort.id}")
        return revoked
