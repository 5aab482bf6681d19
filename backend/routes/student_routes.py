"""
Student API Routes
==================
Roster management inside a cohort. Reading needs any access to the cohort,
writing needs owner or edit access.
"""

import logging
from urllib.parse import urlparse
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from models.database import db
from models.student import Student
from services.roster import filter_by_group, group_counts, group_students
from services.sharing_service import SharingService
from services.storage import StorageService
from utils.decorators import current_user_id
from utils.responses import success_response, validation_error
from utils.validation import clean_string, validate_json_fields, parse_leergroep

logger = logging.getLogger(__name__)

student_bp = Blueprint("students", __name__)


def _load_student(student_id, required="view"):
    student = Student.query.get_or_404(student_id)
    SharingService.get_cohort(student.cohort_id, current_user_id(), required=required)
    return student


def _photo_url(data):
    url = data.get("photo_url")
    if url is None:
        return None
    if not isinstance(url, str):
        raise ValueError("photo_url must be a string or null")
    url = url.strip()
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("photo_url must be an http(s) URL")
    return url


@student_bp.route("/cohorts/<int:cohort_id>/students", methods=["GET"])
@jwt_required()
def list_students(cohort_id):
    """Students ordered by name; `?leergroep=1|2|3|all` narrows the list."""
    cohort, permission = SharingService.get_cohort(cohort_id, current_user_id())
    try:
        group = parse_leergroep(request.args.get("leergroep"), allow_all=True)
    except ValueError as exc:
        return validation_error(str(exc))

    students = Student.query.filter_by(cohort_id=cohort.id).order_by(Student.name).all()
    selected = filter_by_group(students, group)

    return success_response({
        "cohort":     cohort.to_dict(permission=permission),
        "filter":     group,
        "students":   [s.to_dict() for s in selected],
        "grouped":    {str(g): [s.to_dict() for s in members] for g, members in group_students(selected).items()},
        "counts":     {str(g): n for g, n in group_counts(students).items()},
        "total":      len(students),
    })


@student_bp.route("/cohorts/<int:cohort_id>/students", methods=["POST"])
@jwt_required()
@validate_json_fields("name", "leergroep")
def create_student(cohort_id):
    cohort, _ = SharingService.get_cohort(cohort_id, current_user_id(), required="edit")
    data = request.get_json()

    name = clean_string(data.get("name"))
    if not name:
        return validation_error("name is required")
    try:
        leergroep = parse_leergroep(data.get("leergroep"))
        photo_url = _photo_url(data)
    except ValueError as exc:
        return validation_error(str(exc))

    student = Student(name=name, leergroep=leergroep, photo_url=photo_url, cohort_id=cohort.id)
    db.session.add(student)
    db.session.commit()
    logger.info(f"Student {student.id} added to cohort {cohort.id} (leergroep {leergroep})")
    return success_response(student.to_dict(), "Student created", 201)


@student_bp.route("/students/<int:student_id>", methods=["GET"])
@jwt_required()
def get_student(student_id):
    return success_response(_load_student(student_id).to_dict())


@student_bp.route("/students/<int:student_id>", methods=["PUT"])
@jwt_required()
def update_student(student_id):
    """Partial update of name, leergroep and/or photo_url."""
    student = _load_student(student_id, required="edit")
    data = request.get_json(silent=True) or {}

    try:
        if "name" in data:
            name = clean_string(data.get("name"))
            if not name:
                raise ValueError("name cannot be empty")
            student.name = name
        if "leergroep" in data:
            student.leergroep = parse_leergroep(data.get("leergroep"))
        if "photo_url" in data:
            student.photo_url = _photo_url(data)
    except ValueError as exc:
        db.session.rollback()
        return validation_error(str(exc))

    db.session.commit()
    return success_response(student.to_dict(), "Student updated")


@student_bp.route("/students/<int:student_id>/leergroep", methods=["PATCH"])
@jwt_required()
@validate_json_fields("leergroep")
def change_leergroep(student_id):
    student = _load_student(student_id, required="edit")
    try:
        student.leergroep = parse_leergroep(request.get_json().get("leergroep"))
    except ValueError as exc:
        return validation_error(str(exc))

    db.session.commit()
    return success_response(student.to_dict(), f"Moved to leergroep {student.leergroep}")


@student_bp.route("/students/<int:student_id>", methods=["DELETE"])
@jwt_required()
def delete_student(student_id):
    """Delete a student record and its stored photo."""
    student = _load_student(student_id, required="edit")
    name, photo_url = student.name, student.photo_url

    db.session.delete(student)
    db.session.commit()

    photo_removed = False
    if photo_url:
        try:
            photo_removed = StorageService().delete_url(photo_url)
        except (OSError, ValueError) as exc:
            logger.error(f"Could not remove photo {photo_url} of student {student_id}: {exc}")

    return success_response(
        {"deleted": True, "name": name, "photo_removed": photo_removed},
        f"Student '{name}' deleted",
    )
