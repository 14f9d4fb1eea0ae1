from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
import logging

from docspot.errors import NotFound, ValidationError
from docspot.services import lifecycle, repository
from docspot.services.appointment_view import filter_appointments, view_for
from docspot.services.identity import DoctorIdentity, PatientIdentity, identity_for
from docspot.utils.decorators import require_role

logger = logging.getLogger(__name__)

appointment_bp = Blueprint('appointment', __name__, url_prefix='/api/appointments')


def _fetch_for(identity):
    """Load the candidate set for the requester straight from the store"""
    if isinstance(identity, PatientIdentity):
        return repository.fetch_appointments(patient_id=identity.user_id)
    if isinstance(identity, DoctorIdentity):
        if identity.doctor_id is None:
            return []
        return repository.fetch_appointments(doctor_id=identity.doctor_id)
    return []


def _view_payload(appointment, identity):
    data = view_for(appointment, identity).to_dict()
    data['allowed_transitions'] = lifecycle.allowed_targets(appointment, identity)
    return data


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')
    return data


@appointment_bp.route('', methods=['GET'])
@jwt_required()
@require_role('patient', 'doctor')
def list_appointments():
    """
    List the signed-in user's appointments, ascending by date.
    Query params:
        status: all | pending | confirmed | cancelled | completed (default: all)
    """
    status = request.args.get('status', 'all', type=str)
    identity = identity_for(g.user)

    views = filter_appointments(_fetch_for(identity), identity, status)
    result = [_view_payload(view.appointment, identity) for view in views]

    return jsonify({
        'success': True,
        'data': result,
        'count': len(result),
        'status': status
    }), 200


@appointment_bp.route('/<int:appointment_id>', methods=['GET'])
@jwt_required()
@require_role('patient', 'doctor')
def get_appointment(appointment_id):
    """Get a single appointment the user takes part in"""
    identity = identity_for(g.user)
    appointment = repository.fetch_appointment(appointment_id)
    if lifecycle.owner_role(appointment, identity) is None:
        raise NotFound('Appointment not found')

    return jsonify({
        'success': True,
        'data': _view_payload(appointment, identity)
    }), 200


@appointment_bp.route('', methods=['POST'])
@jwt_required()
@require_role('patient')
def create_appointment():
    """
    Book an appointment
    Access: patient
    Body: { doctor_id, appointment_date (YYYY-MM-DD), appointment_time (HH:MM), reason, notes?, documents? }
    """
    identity = identity_for(g.user)
    appointment = lifecycle.book_appointment(identity, _json_body())

    return jsonify({
        'success': True,
        'data': _view_payload(appointment, identity),
        'message': 'Appointment booked successfully'
    }), 201


@appointment_bp.route('/<int:appointment_id>/status', methods=['PUT'])
@jwt_required()
@require_role('patient', 'doctor')
def update_appointment_status(appointment_id):
    """
    Change appointment status
    Body: { "status": "confirmed" | "cancelled" | "completed" }
    """
    data = _json_body()
    new_status = data.get('status')
    if not new_status:
        raise ValidationError('Field "status" is required', field='status')

    identity = identity_for(g.user)
    appointment = lifecycle.transition_appointment(appointment_id, identity, new_status)

    return jsonify({
        'success': True,
        'data': _view_payload(appointment, identity),
        'message': f'Appointment status updated to {appointment.status}'
    }), 200


def _transition_view(appointment_id, action):
    identity = identity_for(g.user)
    appointment = action(appointment_id, identity)
    return jsonify({
        'success': True,
        'data': _view_payload(appointment, identity),
        'message': f'Appointment {appointment.status}'
    }), 200


@appointment_bp.route('/<int:appointment_id>/confirm', methods=['POST'])
@jwt_required()
@require_role('doctor')
def confirm_appointment(appointment_id):
    return _transition_view(appointment_id, lifecycle.confirm_appointment)


@appointment_bp.route('/<int:appointment_id>/cancel', methods=['POST'])
@jwt_required()
@require_role('patient', 'doctor')
def cancel_appointment(appointment_id):
    return _transition_view(appointment_id, lifecycle.cancel_appointment)


@appointment_bp.route('/<int:appointment_id>/complete', methods=['POST'])
@jwt_required()
@require_role('doctor')
def complete_appointment(appointment_id):
    return _transition_view(appointment_id, lifecycle.complete_appointment)


@appointment_bp.route('/<int:appointment_id>', methods=['DELETE'])
@jwt_required()
@require_role('patient', 'doctor')
def delete_appointment(appointment_id):
    """
    Remove a cancelled or completed appointment from the lists (soft delete)
    """
    identity = identity_for(g.user)
    lifecycle.remove_appointment(appointment_id, identity)
    return jsonify({
        'success': True,
        'message': f'Appointment {appointment_id} deleted successfully'
    }), 200
