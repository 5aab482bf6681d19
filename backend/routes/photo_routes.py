import os
from flask import Blueprint, request, current_app, send_from_directory, abort
from flask_jwt_extended import jwt_required
from services.crop_session import CropSession
from services.photo_cropper import CropRegion, DisplaySize, initialize_crop, update_crop
from services.storage import StorageService
from utils.decorators import current_user_id, log_request
from utils.responses import success_response, validation_error
from utils.validation import validate_file_upload, validate_json_fields, parse_number

photo_bp = Blueprint('photos', __name__)

CROP_FIELDS = ('x', 'y', 'width', 'height')


def _display_from(source):
    width = parse_number(source, 'display_width')
    height = parse_number(source, 'display_height')
    if width <= 0 or height <= 0:
        raise ValueError("display_width and display_height must be positive")
    return DisplaySize(width, height)


def _region_from(source):
    if not isinstance(source, dict):
        raise ValueError("crop must be an object with x, y, width and height")
    for field in CROP_FIELDS:
        parse_number(source, field)
    return CropRegion.from_dict(source)


@photo_bp.route('/crop/initial', methods=['POST'])
@jwt_required()
@validate_json_fields('display_width', 'display_height')
def initial_crop():
    """Default crop region for a preview rendered at the given size"""
    try:
        display = _display_from(request.get_json())
    except ValueError as e:
        return validation_error(str(e))
    return success_response(initialize_crop(display).to_dict())


@photo_bp.route('/crop/adjust', methods=['POST'])
@jwt_required()
@validate_json_fields('crop', 'candidate', 'display_width', 'display_height')
def adjust_crop():
    """Clamp a dragged/resized region back into the preview and to 1:1"""
    data = request.get_json()
    try:
        display = _display_from(data)
        current = _region_from(data['crop'])
        candidate = _region_from(data['candidate'])
    except (ValueError, KeyError) as e:
        return validation_error(str(e))
    return success_response(update_crop(current, candidate, display).to_dict())


@photo_bp.route('/crop', methods=['POST'])
@jwt_required()
@log_request
@validate_file_upload('photo')
def crop_and_upload():
    """
    Crop an uploaded photo to a 300x300 square and store it.

    Form-data: `photo` (image file), `x`, `y`, `width`, `height` (committed
    crop, display coordinates), `display_width`, `display_height`.
    Returns the public URL to put on the student record.
    """
    file = request.files['photo']
    try:
        display = _display_from(request.form)
        crop = _region_from(request.form.to_dict())
    except ValueError as e:
        return validation_error(str(e))

    session = CropSession(display, output_size=current_app.config['PHOTO_OUTPUT_SIZE'])
    session.load(file.read(), file.mimetype, file.filename)
    session.initialize()
    session.update(crop)
    output = session.commit()

    storage = StorageService()
    photo_url = storage.upload(output.filename, output.data, output.mime_type)
    filename = storage.name_from_url(photo_url)
    current_app.logger.info(
        f"User {current_user_id()} stored cropped photo {filename} ({output.size} bytes)"
    )

    return success_response({
        "photo_url": photo_url,
        "filename": filename,
        "mime_type": output.mime_type,
        "width": output.width,
        "height": output.height,
        "source_rect": output.source_rect.to_dict()
    }, "Photo cropped and uploaded successfully", 201)


@photo_bp.route('/<filename>', methods=['GET'])
def serve_photo(filename):
    """Public URL target for stored photos"""
    storage = StorageService()
    if not storage.exists(filename):
        abort(404)
    return send_from_directory(storage.root, os.path.basename(storage.path_for(filename)))
