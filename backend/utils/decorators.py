from functools import wraps
from flask import request, current_app
from flask_jwt_extended import get_jwt_identity
from services.errors import ApplicationError
import time
import traceback

def current_user_id():
    """JWT identity as the integer user id (tokens carry it as a string)."""
    return int(get_jwt_identity())

def log_request(f):
    """Decorator to log request details, execution time and errors"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        start_time = time.time()
        path = request.path
        method = request.method
        current_app.logger.info(f">>> Starting {method} {path}")

        try:
            response = f(*args, **kwargs)
        except ApplicationError as e:
            # Expected failures go to the registered error handlers
            duration = time.time() - start_time
            current_app.logger.info(
                f"<<< Failed {method} {path} | {type(e).__name__}: {e} | Duration: {duration:.4f}s"
            )
            raise
        except Exception as e:
            duration = time.time() - start_time
            current_app.logger.error(
                f"!!! Error in {method} {path} after {duration:.4f}s: {str(e)}\n{traceback.format_exc()}"
            )
            raise

        duration = time.time() - start_time

        # Extract status code from response if it's a tuple or Response object
        status_code = 200
        if isinstance(response, tuple):
            status_code = response[1]
        elif hasattr(response, 'status_code'):
            status_code = response.status_code

        current_app.logger.info(f"<<< Finished {method} {path} | Status: {status_code} | Duration: {duration:.4f}s")
        return response

    return decorated_function
