from flask import Blueprint, request
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt,
    get_jwt_identity
)
from models.user import User
from services.auth_service import AuthService
from utils.decorators import current_user_id
from utils.responses import success_response
from utils.validation import validate_json_fields

auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/signup', methods=['POST'])
@validate_json_fields('email', 'password')
def signup():
    data = request.get_json()
    user, mail_sent = AuthService.sign_up(data['email'], data['password'])

    if user.email_confirmed:
        message = "User registered successfully"
    else:
        message = "Please check your email and click the confirmation link to verify your account."

    return success_response({
        "user": user.to_dict(),
        "confirmation_required": not user.email_confirmed,
        "confirmation_sent": mail_sent
    }, message, 201)

@auth_bp.route('/signin', methods=['POST'])
@validate_json_fields('email', 'password')
def signin():
    data = request.get_json()
    user = AuthService.sign_in(data['email'], data['password'])

    access_token = create_access_token(identity=str(user.id))
    refresh_token = create_refresh_token(identity=str(user.id))

    return success_response({
        "access_token": access_token,
        "refresh_token": refresh_token,
        "user": user.to_dict()
    }, "Login successful")

@auth_bp.route('/signout', methods=['POST'])
@jwt_required(verify_type=False)
def signout():
    """Revoke the presented access or refresh token"""
    AuthService.sign_out(get_jwt()['jti'])
    return success_response(None, "Signed out")

@auth_bp.route('/resend-confirmation', methods=['POST'])
@validate_json_fields('email')
def resend_confirmation():
    AuthService.resend_confirmation(request.get_json()['email'])
    return success_response(None, "If the account exists and is unconfirmed, a new confirmation email has been sent")

@auth_bp.route('/confirm/<token>', methods=['GET'])
def confirm(token):
    user = AuthService.confirm_email(token)
    return success_response(user.to_dict(), "Email confirmed")

@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Endpoint to refresh access tokens"""
    current_user = get_jwt_identity()
    new_access_token = create_access_token(identity=current_user)
    return success_response({"access_token": new_access_token}, "Token refreshed")

@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    user = User.query.get_or_404(current_user_id())
    return success_response(user.to_dict())
