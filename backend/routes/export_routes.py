import io
from flask import Blueprint, request, current_app, send_file
from flask_jwt_extended import jwt_required
from models.student import Student
from services.export_service import DocumentExporter, ExportEntry, ExportResult, make_photo_fetcher
from services.sharing_service import SharingService
from services.storage import StorageService
from utils.decorators import current_user_id, log_request
from utils.responses import error_response, validation_error
from utils.validation import parse_leergroep

export_bp = Blueprint('export', __name__)

@export_bp.route('/<int:cohort_id>/export', methods=['GET'])
@jwt_required()
@log_request
def export_cohort(cohort_id):
    """Download the cohort roster (optionally one leergroep) as a Word document"""
    cohort, _ = SharingService.get_cohort(cohort_id, current_user_id())
    try:
        group = parse_leergroep(request.args.get('leergroep'), allow_all=True)
    except ValueError as e:
        return validation_error(str(e))

    students = Student.query.filter_by(cohort_id=cohort.id).order_by(Student.name).all()
    entries = [ExportEntry(s.name, s.leergroep, s.photo_url) for s in students]
    if not any(group == 'all' or e.leergroep == group for e in entries):
        return error_response("No students to export", 400)

    fetcher = make_photo_fetcher(
        StorageService(),
        timeout=current_app.config['EXPORT_FETCH_TIMEOUT'],
        allowed_hosts=current_app.config['EXPORT_PHOTO_HOSTS'],
    )
    exporter = DocumentExporter(fetcher, photo_size=current_app.config['EXPORT_PHOTO_SIZE'])
    result = exporter.export(cohort.name, entries, group)

    response = send_file(
        io.BytesIO(result.data),
        mimetype=ExportResult.mime_type,
        as_attachment=True,
        download_name=result.filename,
    )
    response.headers['X-Student-Count'] = str(result.student_count)
    response.headers['X-Missing-Photos'] = str(result.missing_photos)
    return response
