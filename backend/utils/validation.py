from functools import wraps
from flask import request
from utils.responses import error_response

def validate_json_fields(*fields):
    """Decorator to validate that specific fields exist in the JSON request body."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not request.is_json:
                return error_response("Missing JSON in request", 400)

            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return error_response("Invalid JSON format", 400)

            missing = [field for field in fields if field not in data]
            if missing:
                return error_response(f"Missing required fields: {', '.join(missing)}", 400)
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def validate_file_upload(field_name, allowed_extensions=None):
    """Decorator to validate file uploads."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if field_name not in request.files:
                return error_response(f"No {field_name} part in the request", 400)

            file = request.files[field_name]

            if file.filename == '':
                return error_response("No file selected", 400)

            if allowed_extensions:
                ext = file.filename.rsplit('.', 1)[1].lower() if '.' in file.filename else ''
                if ext not in allowed_extensions:
                    return error_response(
                        f"Invalid file type. Allowed: {', '.join(sorted(allowed_extensions))}", 400
                    )

            return f(*args, **kwargs)
        return decorated_function
    return decorator

def parse_leergroep(value, allow_all=False):
    """Return 1, 2 or 3 (or 'all' when allowed); raise ValueError otherwise."""
    if allow_all and (value is None or str(value).strip().lower() in ('', 'all')):
        return 'all'
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError("leergroep must be 1, 2 or 3")
    try:
        group = int(value)
    except (TypeError, ValueError):
        raise ValueError("leergroep must be 1, 2 or 3")
    if group not in (1, 2, 3):
        raise ValueError("leergroep must be 1, 2 or 3")
    return group

def parse_number(source, name):
    """Read a finite float from a mapping; raise ValueError with the field name."""
    raw = source.get(name)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"'{name}' must be a number")
    if value != value or value in (float('inf'), float('-inf')):
        raise ValueError(f"'{name}' must be a number")
    return value

def clean_string(value):
    """Stripped *value*, or '' when it is missing or not a string."""
    return value.strip() if isinstance(value, str) else ''
