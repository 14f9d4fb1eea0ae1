"""
Repository Service
Data access for users, doctor profiles and appointments.

Database failures are rolled back and re-raised as CollaboratorUnavailable,
so callers never see a half-applied write.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from docspot.extensions import db
from docspot.errors import (
    CollaboratorUnavailable,
    DoctorNotBookable,
    NotFound,
    ValidationError,
)
from docspot.models import (
    Appointment,
    AppointmentStatus,
    Doctor,
    DoctorAvailability,
    User,
)
from docspot.services import validation

logger = logging.getLogger(__name__)


@contextmanager
def collaborator_call(operation: str):
    """Roll back and translate database errors for one repository call"""
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Database error during %s: %s", operation, e, exc_info=True)
        raise CollaboratorUnavailable(f'Could not {operation}. Please try again.') from e


# ---------------------------------------------------------------- users ------

def fetch_user(user_id: int) -> User:
    with collaborator_call('load user'):
        user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    return user


def fetch_user_by_email(email: str) -> Optional[User]:
    if not isinstance(email, str):
        return None
    with collaborator_call('load user'):
        return User.query.filter_by(email=email.strip().lower()).first()


def register_user(data: Dict[str, Any], min_password_length: int = 6) -> User:
    """
    Create a patient or doctor account.

    Doctors get their profile in the same transaction; it always starts
    unapproved. Admin accounts cannot be self-registered.
    """
    role = data.get('role') or 'patient'
    if role not in ('patient', 'doctor'):
        raise ValidationError('Role must be "patient" or "doctor"', field='role')

    email = validation.validate_email(data.get('email'))
    password = validation.validate_password(data.get('password'), min_password_length)
    full_name = validation.require_text(data, 'full_name')
    phone = validation.require_text(data, 'phone')

    if fetch_user_by_email(email):
        raise ValidationError('Email already registered', field='email')

    user = User(
        email=email,
        full_name=full_name,
        phone=phone,
        role=role,
        is_active=True,
    )
    if role == 'patient':
        user.date_of_birth = validation.parse_optional_date(data.get('date_of_birth'), 'date_of_birth')
        user.address = validation.optional_text(data, 'address')
    user.set_password(password)

    profile_fields = _doctor_profile_fields(data) if role == 'doctor' else None

    with collaborator_call('register account'):
        db.session.add(user)
        if profile_fields is not None:
            db.session.flush()  # Get user.id
            db.session.add(Doctor(user_id=user.id, is_approved=False, **profile_fields))
        db.session.commit()

    logger.info("Registered %s account %s (id=%s)", role, email, user.id)
    return user


def create_user(email: str, password: str, full_name: str, role: str, **extra) -> User:
    """Create an account of any role, including admin; used by seeding scripts"""
    if role not in ('patient', 'doctor', 'admin'):
        raise ValidationError('Invalid role', field='role')
    user = User(
        email=validation.validate_email(email),
        full_name=full_name,
        role=role,
        is_active=True,
        **extra,
    )
    user.set_password(password)
    with collaborator_call('create account'):
        db.session.add(user)
        db.session.commit()
    return user


def update_user(user: User, data: Dict[str, Any]) -> User:
    """Update contact details; email and role stay fixed"""
    changes = {}
    if 'full_name' in data:
        changes['full_name'] = validation.require_text(data, 'full_name')
    if 'phone' in data:
        changes['phone'] = validation.require_text(data, 'phone')
    if 'address' in data:
        changes['address'] = validation.optional_text(data, 'address')
    if 'date_of_birth' in data:
        changes['date_of_birth'] = validation.parse_optional_date(data.get('date_of_birth'), 'date_of_birth')

    with collaborator_call('update account'):
        for field, value in changes.items():
            setattr(user, field, value)
        db.session.commit()
    return user


def record_login(user: User) -> None:
    with collaborator_call('record login'):
        user.last_login = datetime.utcnow()
        user.login_count = (user.login_count or 0) + 1
        db.session.commit()


# -------------------------------------------------------------- doctors ------

def _doctor_profile_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'specialty': validation.validate_specialty(data.get('specialty')),
        'license_number': validation.require_text(data, 'license_number'),
        'years_of_experience': validation.non_negative_int(data.get('years_of_experience', 0), 'years_of_experience'),
        'education': validation.require_text(data, 'education'),
        'bio': validation.optional_text(data, 'bio'),
        'consultation_fee': validation.non_negative_amount(data.get('consultation_fee'), 'consultation_fee'),
    }


def create_doctor_profile(user: User, data: Dict[str, Any]) -> Doctor:
    """Create the profile for an existing doctor account (always unapproved)"""
    if user.role != 'doctor':
        raise ValidationError('Doctor profiles can only belong to doctor accounts', field='user_id')
    if user.doctor_profile is not None:
        raise ValidationError('Doctor profile already exists', field='user_id')

    doctor = Doctor(user_id=user.id, is_approved=False, **_doctor_profile_fields(data))
    with collaborator_call('create doctor profile'):
        db.session.add(doctor)
        db.session.commit()
    logger.info("Created doctor profile %s for user %s (pending approval)", doctor.id, user.id)
    return doctor


def update_doctor_profile(doctor: Doctor, data: Dict[str, Any]) -> Doctor:
    """Update professional details; the approval flag is not editable here"""
    full = _doctor_profile_fields({**_profile_values(doctor), **data})
    changes = {field: full[field] for field in full if field in data}

    with collaborator_call('update doctor profile'):
        for field, value in changes.items():
            setattr(doctor, field, value)
        db.session.commit()
    return doctor


def _profile_values(doctor: Doctor) -> Dict[str, Any]:
    return {
        'specialty': doctor.specialty,
        'license_number': doctor.license_number,
        'years_of_experience': doctor.years_of_experience,
        'education': doctor.education,
        'bio': doctor.bio,
        'consultation_fee': doctor.consultation_fee,
    }


def fetch_doctors(specialty: Optional[str] = None, approved_only: Optional[bool] = None) -> List[Doctor]:
    """Doctor profiles with their users joined, in id order"""
    with collaborator_call('load doctors'):
        query = Doctor.query.options(joinedload(Doctor.user))
        if specialty:
            query = query.filter(Doctor.specialty == specialty)
        if approved_only is not None:
            query = query.filter(Doctor.is_approved == approved_only)
        return query.order_by(Doctor.id.asc()).all()


def fetch_doctor(doctor_id: int) -> Doctor:
    with collaborator_call('load doctor'):
        doctor = Doctor.query.options(
            joinedload(Doctor.user),
            selectinload(Doctor.availability),
        ).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise NotFound('Doctor not found')
    return doctor


def set_doctor_approval(doctor_id: int, approved: bool = True) -> Doctor:
    """Flip the approval gate; only the external admin process calls this"""
    doctor = fetch_doctor(doctor_id)
    with collaborator_call('update doctor approval'):
        doctor.is_approved = approved
        db.session.commit()
    logger.info("Doctor %s approval set to %s", doctor_id, approved)
    return doctor


def replace_availability(doctor: Doctor, windows: Any) -> List[DoctorAvailability]:
    """Replace the doctor's weekly availability windows"""
    if not isinstance(windows, list):
        raise ValidationError('Availability must be a list of windows', field='availability')

    slots = []
    for idx, window in enumerate(windows):
        if not isinstance(window, dict):
            raise ValidationError(f'Availability entry {idx} must be an object', field='availability')
        day = validation.non_negative_int(window.get('day_of_week'), 'day_of_week')
        if day > 6:
            raise ValidationError('Field "day_of_week" must be between 0 and 6', field='day_of_week')
        start = validation.validate_time(window.get('start_time'), 'start_time')
        end = validation.validate_time(window.get('end_time'), 'end_time')
        if start >= end:
            raise ValidationError('Window start_time must be before end_time', field='end_time')
        slots.append(DoctorAvailability(
            day_of_week=day,
            start_time=start,
            end_time=end,
            is_available=bool(window.get('is_available', True)),
        ))

    with collaborator_call('update availability'):
        doctor.availability = slots
        db.session.commit()
    return doctor.availability


# --------------------------------------------------------- appointments ------

def fetch_appointments(
    patient_id: Optional[int] = None,
    doctor_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[Appointment]:
    """Live (not removed) appointments ordered ascending by date"""
    with collaborator_call('load appointments'):
        query = Appointment.query.options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor).joinedload(Doctor.user),
        ).filter(Appointment.deleted_at.is_(None))
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(
            Appointment.appointment_date.asc(),
            Appointment.appointment_time.asc(),
            Appointment.id.asc(),
        ).all()


def fetch_appointment(appointment_id: int) -> Appointment:
    with collaborator_call('load appointment'):
        appointment = Appointment.query.filter(
            Appointment.id == appointment_id,
            Appointment.deleted_at.is_(None),
        ).first()
    if not appointment:
        raise NotFound('Appointment not found')
    return appointment


def create_appointment(data: Dict[str, Any]) -> Appointment:
    """
    Insert a pending appointment.

    The doctor is re-checked here so no row is ever written against a missing
    or unapproved profile.
    """
    with collaborator_call('create appointment'):
        doctor = db.session.get(Doctor, data['doctor_id'])
    if not doctor or not doctor.is_approved:
        raise DoctorNotBookable('This doctor is not available for booking')

    appointment = Appointment(
        patient_id=data['patient_id'],
        doctor_id=doctor.id,
        appointment_date=data['appointment_date'],
        appointment_time=data['appointment_time'],
        status=AppointmentStatus.PENDING.value,
        reason=data['reason'],
        notes=data.get('notes'),
        documents=data.get('documents') or [],
    )
    with collaborator_call('create appointment'):
        db.session.add(appointment)
        db.session.commit()
    return appointment


def update_appointment_status(appointment_id: int, new_status: str, expected_status: str) -> bool:
    """
    Conditionally move an appointment from expected_status to new_status.

    One UPDATE statement; returns False when the row was not in
    expected_status any more (or is gone), leaving it untouched.
    """
    with collaborator_call('update appointment status'):
        updated = Appointment.query.filter(
            Appointment.id == appointment_id,
            Appointment.status == expected_status,
            Appointment.deleted_at.is_(None),
        ).update(
            {'status': new_status, 'updated_at': datetime.utcnow()},
            synchronize_session=False,
        )
        if updated != 1:
            db.session.rollback()
            return False
        db.session.commit()
    return True


def refresh_appointment(appointment: Appointment) -> Appointment:
    """Re-read the authoritative row"""
    with collaborator_call('load appointment'):
        db.session.refresh(appointment)
    return appointment


def delete_appointment(appointment_id: int) -> None:
    """Soft-delete; the row stays for the audit trail"""
    with collaborator_call('delete appointment'):
        updated = Appointment.query.filter(
            Appointment.id == appointment_id,
            Appointment.deleted_at.is_(None),
        ).update({'deleted_at': datetime.utcnow()}, synchronize_session=False)
        if updated != 1:
            db.session.rollback()
            raise NotFound('Appointment not found')
        db.session.commit()
