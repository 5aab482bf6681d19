from flask import jsonify


def success_response(data=None, message="Success", status_code=200):
    return jsonify({
        "status": "success",
        "message": message,
        "data": data
    }), status_code


def error_response(message="An error occurred", status_code=400, error_code=None, details=None):
    body = {
        "status": "error",
        "message": message
    }
    if error_code:
        body["error_code"] = error_code
    if details is not None:
        body["details"] = details
    return jsonify(body), status_code


def validation_error(message):
    return error_response(message, 400, error_code="validation_error")
