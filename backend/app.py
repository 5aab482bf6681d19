from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_bcrypt import Bcrypt
from config import Config
from models.database import init_db, db
from datetime import datetime
from flask_migrate import Migrate
from dotenv import load_dotenv
from services.errors import ApplicationError
from utils.responses import error_response

load_dotenv()

def register_error_handlers(app):
    @app.errorhandler(ApplicationError)
    def handle_application_error(e):
        """Known failures: user-facing message, no traceback"""
        db.session.rollback()
        app.logger.warning(f"{type(e).__name__} on {request.method} {request.path}: {e}")
        return error_response(e.user_message, e.status_code, error_code=e.error_code)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Resource not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', 405)

    @app.errorhandler(413)
    def too_large(error):
        limit = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return error_response(f"File too large. Maximum size is {limit}MB", 413)

    # Global Error Handler
    @app.errorhandler(Exception)
    def handle_exception(e):
        """Global exception handler to return JSON instead of HTML"""
        from werkzeug.exceptions import HTTPException
        if isinstance(e, HTTPException):
            return error_response(e.description, e.code)

        db.session.rollback()
        app.logger.exception(f"Unhandled Exception on {request.method} {request.path}: {e}")
        return error_response(
            "Internal Server Error", 500,
            details=str(e) if app.config.get('DEBUG') else "Check server logs"
        )


def register_jwt_callbacks(jwt):
    from services.auth_service import AuthService

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return AuthService.is_token_revoked(jwt_payload['jti'])

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return error_response("Token has been revoked", 401, error_code="token_revoked")

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("Token has expired", 401, error_code="token_expired")

    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_response("Missing or invalid authorization token", 401, error_code="unauthorized")

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_response(f"Invalid token: {reason}", 401, error_code="invalid_token")


def create_app(config_class=Config):
    """Application factory function"""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions FIRST
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    jwt = JWTManager(app)
    Bcrypt(app)
    config_class.init_app(app)
    init_db(app)
    Migrate(app, db)
    register_jwt_callbacks(jwt)

    # Register blueprints - ALL imports here
    from routes.auth_routes import auth_bp
    from routes.cohort_routes import cohort_bp
    from routes.student_routes import student_bp
    from routes.photo_routes import photo_bp
    from routes.export_routes import export_bp

    # Register all blueprints
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(cohort_bp, url_prefix='/api/cohorts')
    app.register_blueprint(export_bp, url_prefix='/api/cohorts')
    app.register_blueprint(student_bp, url_prefix='/api')
    app.register_blueprint(photo_bp, url_prefix='/api/photos')

    register_error_handlers(app)

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({
            'status': 'healthy',
            'app': 'Leerlingbeheertool',
            'timestamp': datetime.utcnow().isoformat(),
            'version': '1.0.0'
        }), 200

    # Request logging
    @app.before_request
    def log_request():
        app.logger.info(f"{request.method} {request.path} - {request.remote_addr}")

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=True
    )
