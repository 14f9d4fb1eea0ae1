"""
Appointment lifecycle.

    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled
    cancelled, completed: terminal

Every operation takes the acting identity explicitly. A transition is a
single conditional UPDATE, so readers only ever see the old or the new status.
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from docspot.errors import InvalidTransition, PermissionDenied, ValidationError
from docspot.models import Appointment, AppointmentStatus, TERMINAL_STATUSES
from docspot.services import repository, validation
from docspot.services.identity import (
    AdminIdentity,
    DoctorIdentity,
    Identity,
    PatientIdentity,
)
from docspot.utils.audit import log_audit

logger = logging.getLogger(__name__)

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
CANCELLED = AppointmentStatus.CANCELLED
COMPLETED = AppointmentStatus.COMPLETED

# (from, to) -> roles allowed to make the move; the actor must also own the appointment
TRANSITIONS = {
    (PENDING, CONFIRMED): frozenset({'doctor'}),
    (PENDING, CANCELLED): frozenset({'patient', 'doctor'}),
    (CONFIRMED, COMPLETED): frozenset({'doctor'}),
    (CONFIRMED, CANCELLED): frozenset({'doctor'}),
}


def owner_role(appointment: Appointment, actor: Identity) -> Optional[str]:
    """
    The role under which actor owns this appointment, or None.

    Patients own their bookings; doctors own bookings made against their
    profile. Admins own nothing.
    """
    if isinstance(actor, PatientIdentity):
        return 'patient' if appointment.patient_id == actor.user_id else None
    if isinstance(actor, DoctorIdentity):
        doctor = appointment.doctor
        if doctor is not None and doctor.user_id == actor.user_id:
            return 'doctor'
        return None
    if isinstance(actor, AdminIdentity):
        return None
    raise TypeError(f'Unknown identity type: {type(actor).__name__}')


def allowed_targets(appointment: Appointment, actor: Identity) -> list:
    """Statuses this actor may move the appointment to right now"""
    role = owner_role(appointment, actor)
    current = appointment.status_enum
    return [
        to.value for (frm, to), roles in TRANSITIONS.items()
        if frm == current and role in roles
    ]


def _coerce_status(target: Any) -> AppointmentStatus:
    try:
        return AppointmentStatus(target)
    except ValueError:
        raise InvalidTransition(f'Unknown status "{target}". Valid values: {", ".join(AppointmentStatus.values())}')


def check_transition(appointment: Appointment, actor: Identity, target: Any) -> AppointmentStatus:
    """Raise InvalidTransition unless actor may move appointment to target"""
    target = _coerce_status(target)
    current = appointment.status_enum

    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f'Appointment is already {current.value}; no further changes are allowed')

    roles = TRANSITIONS.get((current, target))
    if roles is None:
        raise InvalidTransition(f'Cannot change appointment from {current.value} to {target.value}')

    role = owner_role(appointment, actor)
    if role not in roles:
        raise InvalidTransition(f'You are not allowed to change this appointment to {target.value}')

    return target


def book_appointment(actor: Identity, data: Dict[str, Any]) -> Appointment:
    """
    Create a pending appointment for a patient.

    Requires an approved doctor, a date that is today or later, an HH:MM time
    and a non-empty reason. Raises DoctorNotBookable for a missing or
    unapproved doctor; nothing is written in that case.
    """
    if not isinstance(actor, PatientIdentity):
        raise InvalidTransition('Only patients can book appointments')
    if not isinstance(data, dict):
        raise ValidationError('Request body must be JSON')

    if data.get('doctor_id') in (None, ''):
        raise ValidationError('Field "doctor_id" is required', field='doctor_id')
    doctor_id = validation.parse_id(data.get('doctor_id'), 'doctor_id')

    appointment_date = validation.parse_date(data.get('appointment_date'), 'appointment_date')
    if appointment_date < date.today():
        raise ValidationError('Appointment date cannot be in the past', field='appointment_date')
    appointment_time = validation.validate_time(data.get('appointment_time'), 'appointment_time')
    reason = validation.require_text(data, 'reason')
    notes = validation.optional_text(data, 'notes')
    documents = validation.validate_documents(data.get('documents'))

    appointment = repository.create_appointment({
        'patient_id': actor.user_id,
        'doctor_id': doctor_id,
        'appointment_date': appointment_date,
        'appointment_time': appointment_time,
        'reason': reason,
        'notes': notes,
        'documents': documents,
    })

    logger.info(
        "Appointment %s booked by patient %s with doctor %s on %s %s",
        appointment.id, actor.user_id, doctor_id, appointment_date, appointment_time,
    )
    log_audit('appointment', 'create', user_id=actor.user_id, entity_id=str(appointment.id),
              details={'doctor_id': doctor_id, 'date': appointment_date.isoformat()})
    return appointment


def transition_appointment(appointment_id: int, actor: Identity, target: Any) -> Appointment:
    """Apply one lifecycle transition and return the authoritative record"""
    appointment = repository.fetch_appointment(appointment_id)
    try:
        target_status = check_transition(appointment, actor, target)
    except InvalidTransition as e:
        logger.warning(
            "Rejected transition of appointment %s (%s -> %s) by user %s: %s",
            appointment_id, appointment.status, target, actor.user_id, e.message,
        )
        raise

    previous = appointment.status
    applied = repository.update_appointment_status(appointment_id, target_status.value, previous)
    if not applied:
        # Someone else changed it first; report against what is stored now
        current = repository.refresh_appointment(appointment)
        logger.warning(
            "Stale transition of appointment %s: expected %s, found %s",
            appointment_id, previous, current.status,
        )
        raise InvalidTransition(f'Appointment is now {current.status}; please reload and try again')

    appointment = repository.refresh_appointment(appointment)
    logger.info(
        "Appointment %s moved %s -> %s by user %s",
        appointment_id, previous, appointment.status, actor.user_id,
    )
    log_audit('appointment', 'transition', user_id=actor.user_id, entity_id=str(appointment_id),
              details={'from': previous, 'to': appointment.status})
    return appointment


def confirm_appointment(appointment_id: int, actor: Identity) -> Appointment:
    return transition_appointment(appointment_id, actor, CONFIRMED)


def cancel_appointment(appointment_id: int, actor: Identity) -> Appointment:
    return transition_appointment(appointment_id, actor, CANCELLED)


def complete_appointment(appointment_id: int, actor: Identity) -> Appointment:
    return transition_appointment(appointment_id, actor, COMPLETED)


def remove_appointment(appointment_id: int, actor: Identity) -> None:
    """
    Soft-delete a finished appointment.

    Cancellation itself always goes through the status lifecycle; removal
    only hides an appointment that is already cancelled or completed.
    """
    appointment = repository.fetch_appointment(appointment_id)
    if owner_role(appointment, actor) is None:
        raise PermissionDenied('You are not allowed to remove this appointment')
    if not appointment.is_terminal:
        raise InvalidTransition('Only cancelled or completed appointments can be removed; cancel it first')

    status = appointment.status
    repository.delete_appointment(appointment_id)
    logger.info("Appointment %s removed by user %s", appointment_id, actor.user_id)
    log_audit('appointment', 'delete', user_id=actor.user_id, entity_id=str(appointment_id),
              details={'status': status})
