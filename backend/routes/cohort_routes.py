"""
Cohort API Routes
=================
Cohort CRUD plus sharing (access grants). All routes require a valid JWT.
"""

import logging
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from models.database import db
from models.cohort import Cohort
from services.sharing_service import SharingService, OWNER
from services.storage import StorageService
from utils.decorators import current_user_id
from utils.responses import success_response, error_response
from utils.validation import clean_string, validate_json_fields

logger = logging.getLogger(__name__)

cohort_bp = Blueprint("cohorts", __name__)


def _clean_name(data):
    return clean_string(data.get("name"))


# ---------------------------------------------------------------------------
# Cohorts
# ---------------------------------------------------------------------------

@cohort_bp.route("/", methods=["GET"])
@jwt_required()
def list_cohorts():
    """Owned and shared cohorts, newest first, with the caller's permission."""
    pairs = SharingService.list_cohorts(current_user_id())
    return success_response([c.to_dict(permission=p) for c, p in pairs])


@cohort_bp.route("/", methods=["POST"])
@jwt_required()
@validate_json_fields("name")
def create_cohort():
    name = _clean_name(request.get_json())
    if not name:
        return error_response("name is required", 400)

    cohort = Cohort(name=name, owner_id=current_user_id())
    db.session.add(cohort)
    db.session.commit()
    logger.info(f"Cohort {cohort.id} '{name}' created by user {cohort.owner_id}")
    return success_response(cohort.to_dict(permission=OWNER), "Cohort created", 201)


@cohort_bp.route("/<int:cohort_id>", methods=["GET"])
@jwt_required()
def get_cohort(cohort_id):
    cohort, permission = SharingService.get_cohort(cohort_id, current_user_id())
    return success_response(cohort.to_dict(permission=permission))


@cohort_bp.route("/<int:cohort_id>", methods=["PUT"])
@jwt_required()
@validate_json_fields("name")
def rename_cohort(cohort_id):
    cohort, permission = SharingService.get_cohort(cohort_id, current_user_id(), required="edit")
    name = _clean_name(request.get_json())
    if not name:
        return error_response("name is required", 400)

    cohort.name = name
    db.session.commit()
    return success_response(cohort.to_dict(permission=permission), "Cohort updated")


@cohort_bp.route("/<int:cohort_id>", methods=["DELETE"])
@jwt_required()
def delete_cohort(cohort_id):
    """Delete a cohort, its grants, its students and their photos."""
    cohort, _ = SharingService.get_cohort(cohort_id, current_user_id(), required=OWNER)

    name = cohort.name
    photo_urls = [s.photo_url for s in cohort.students if s.photo_url]
    db.session.delete(cohort)
    db.session.commit()

    storage = StorageService()
    removed = 0
    for url in photo_urls:
        try:
            removed += storage.delete_url(url)
        except (OSError, ValueError) as exc:
            logger.error(f"Could not remove photo {url} of cohort {cohort_id}: {exc}")
    logger.info(f"Cohort {cohort_id} deleted ({removed} photo(s) removed)")
    return success_response({"deleted": True, "name": name}, f"Cohort '{name}' deleted")


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

@cohort_bp.route("/<int:cohort_id>/access", methods=["GET"])
@jwt_required()
def list_access(cohort_id):
    cohort, _ = SharingService.get_cohort(cohort_id, current_user_id(), required=OWNER)
    return success_response([a.to_dict() for a in SharingService.list_access(cohort)])


@cohort_bp.route("/<int:cohort_id>/access", methods=["POST"])
@jwt_required()
@validate_json_fields("email")
def share_cohort(cohort_id):
    """Grant view/edit access to the user registered under `email`."""
    cohort, _ = SharingService.get_cohort(cohort_id, current_user_id(), required=OWNER)
    data = request.get_json()

    grant = SharingService.share(cohort, data["email"], data.get("permissions", "view"))
    return success_response(grant.to_dict(), f"Cohort shared with {grant.user.email}", 201)


@cohort_bp.route("/<int:cohort_id>/access/<int:access_id>", methods=["DELETE"])
@jwt_required()
def revoke_access(cohort_id, access_id):
    cohort, _ = SharingService.get_cohort(cohort_id, current_user_id(), required=OWNER)
    revoked = SharingService.revoke(cohort, access_id)
    return success_response(revoked, "Access removed")
