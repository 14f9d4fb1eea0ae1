from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
import logging

from docspot.errors import NotFound, ValidationError
from docspot.models import SPECIALTIES
from docspot.services import repository
from docspot.services.directory import filter_directory
from docspot.services.identity import AdminIdentity
from docspot.utils.decorators import require_role
from docspot.utils.session import current_identity

logger = logging.getLogger(__name__)

doctor_bp = Blueprint('doctor', __name__, url_prefix='/api/doctors')


def _own_profile(user):
    if user.doctor_profile is None:
        raise NotFound('Doctor profile not found')
    return user.doctor_profile


@doctor_bp.route('', methods=['GET'])
def list_doctors():
    """
    Doctor directory (approved doctors only)
    Query params:
        search: name or specialty substring (optional)
        specialty: exact specialty (optional)
        sort: name | experience | fee (default: name)
    """
    search = request.args.get('search', '', type=str)
    specialty = request.args.get('specialty', type=str) or None
    sort_by = request.args.get('sort', 'name', type=str)

    doctors = repository.fetch_doctors(approved_only=True)
    visible = filter_directory(doctors, search=search, specialty=specialty, sort_by=sort_by)

    return jsonify({
        'success': True,
        'data': [d.to_dict() for d in visible],
        'count': len(visible),
        'filters': {
            'search': search.strip(),
            'specialty': specialty,
            'sort': sort_by
        }
    }), 200


@doctor_bp.route('/specialties', methods=['GET'])
def list_specialties():
    return jsonify({
        'success': True,
        'data': list(SPECIALTIES)
    }), 200


@doctor_bp.route('/<int:doctor_id>', methods=['GET'])
def get_doctor(doctor_id):
    """
    Doctor detail with availability.
    Unapproved profiles are only shown to their owner and to admins.
    """
    doctor = repository.fetch_doctor(doctor_id)
    if not doctor.is_approved:
        viewer = current_identity()
        if not viewer or not (isinstance(viewer, AdminIdentity) or viewer.user_id == doctor.user_id):
            raise NotFound('Doctor not found')

    return jsonify({
        'success': True,
        'data': doctor.to_dict(include_availability=True)
    }), 200


@doctor_bp.route('/me', methods=['GET'])
@jwt_required()
@require_role('doctor')
def get_own_profile():
    doctor = _own_profile(g.user)
    return jsonify({
        'success': True,
        'data': doctor.to_dict(include_availability=True)
    }), 200


@doctor_bp.route('/me', methods=['PUT'])
@jwt_required()
@require_role('doctor')
def update_own_profile():
    """
    Update professional details
    Body: { specialty?, license_number?, years_of_experience?, education?, bio?, consultation_fee? }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')
    if 'is_approved' in data:
        raise ValidationError('Approval status cannot be changed here', field='is_approved')

    doctor = repository.update_doctor_profile(_own_profile(g.user), data)
    return jsonify({
        'success': True,
        'data': doctor.to_dict(include_availability=True),
        'message': 'Doctor profile updated successfully'
    }), 200


@doctor_bp.route('/me/availability', methods=['PUT'])
@jwt_required()
@require_role('doctor')
def replace_own_availability():
    """
    Replace weekly availability windows (display only)
    Body: { "availability": [{ day_of_week, start_time, end_time, is_available? }] }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')

    doctor = _own_profile(g.user)
    slots = repository.replace_availability(doctor, data.get('availability'))
    return jsonify({
        'success': True,
        'data': [s.to_dict() for s in slots],
        'message': 'Availability updated successfully'
    }), 200
