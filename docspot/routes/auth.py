from flask import Blueprint, request, jsonify, current_app, g
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
import logging

from docspot.errors import ValidationError
from docspot.services import repository
from docspot.utils.audit import log_audit
from docspot.utils.decorators import require_role

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _token_claims(user):
    return {
        "email": user.email,
        "role": user.role,
    }


def _account_payload(user):
    data = user.to_dict()
    if user.role == 'doctor' and user.doctor_profile is not None:
        data['doctor_profile'] = user.doctor_profile.to_dict()
    return data


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register a patient or doctor account
    Body: { email, password, full_name, phone, role, date_of_birth?, address? }
    Doctors also send: specialty, license_number, years_of_experience,
    education, bio?, consultation_fee
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')

    user = repository.register_user(data, current_app.config.get('MIN_PASSWORD_LENGTH', 6))

    log_audit('user', 'register', user_id=user.id, entity_id=str(user.id), details={'role': user.role})

    if user.role == 'doctor':
        message = 'Registration successful! Your doctor profile is pending admin approval.'
    else:
        message = 'Registration successful! You can now sign in.'

    return jsonify({
        'success': True,
        'data': _account_payload(user),
        'message': message
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login endpoint - authenticates a user and returns JWT tokens"""
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    email = data.get('email')
    password = data.get('password')

    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        return jsonify({
            'success': False,
            'error': 'Email and password required'
        }), 400

    user = repository.fetch_user_by_email(email)

    if not user or not user.check_password(password):
        logger.info("Failed login for %s", email)
        return jsonify({
            'success': False,
            'error': 'Invalid email or password'
        }), 401

    if not user.is_active:
        return jsonify({
            'success': False,
            'error': 'Account is deactivated'
        }), 403

    repository.record_login(user)

    # Identity is the user id (must be a string for the JWT "sub" claim)
    identity = str(user.id)
    additional_claims = _token_claims(user)

    access_token = create_access_token(
        identity=identity,
        additional_claims=additional_claims,
        fresh=True,
    )
    refresh_token = create_refresh_token(
        identity=identity,
        additional_claims=additional_claims,
    )

    expires = current_app.config['JWT_ACCESS_TOKEN_EXPIRES']
    return jsonify({
        'success': True,
        'data': _account_payload(user),
        'access_token': access_token,
        'refresh_token': refresh_token,
        'token_type': 'bearer',
        'expires_in': int(expires.total_seconds())
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Stateless JWT: the client just deletes its tokens"""
    return jsonify({
        'success': True,
        'message': 'Logged out successfully (delete tokens on client)'
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
@require_role()
def get_current_user():
    """Get the signed-in user's account"""
    return jsonify({
        'success': True,
        'data': _account_payload(g.user)
    }), 200


@auth_bp.route('/me', methods=['PUT'])
@jwt_required()
@require_role()
def update_current_user():
    """
    Update contact details
    Body: { full_name?, phone?, date_of_birth?, address? }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')

    user = repository.update_user(g.user, data)
    return jsonify({
        'success': True,
        'data': _account_payload(user),
        'message': 'Profile updated successfully'
    }), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token using refresh token"""
    identity = get_jwt_identity()
    try:
        user = repository.fetch_user(int(identity))
    except (TypeError, ValueError):
        raise ValidationError('Invalid token subject')

    if not user.is_active:
        return jsonify({
            'success': False,
            'error': 'Account is deactivated'
        }), 403

    # Claims come from the stored account, not the old token
    new_access_token = create_access_token(
        identity=identity,
        additional_claims=_token_claims(user),
        fresh=False  # refreshed tokens are not fresh
    )
    expires = current_app.config['JWT_ACCESS_TOKEN_EXPIRES']
    return jsonify({
        'success': True,
        'access_token': new_access_token,
        'token_type': 'bearer',
        'expires_in': int(expires.total_seconds())
    }), 200
