"""
Role-scoped appointment list.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from docspot.errors import ValidationError
from docspot.models import Appointment, AppointmentStatus
from docspot.services.identity import AdminIdentity, DoctorIdentity, Identity, PatientIdentity

STATUS_FILTERS = ('all',) + tuple(AppointmentStatus.values())


@dataclass(frozen=True)
class AppointmentView:
    """An appointment plus the other party's details for display"""
    appointment: Appointment
    counterpart_name: Optional[str]
    counterpart_role: str
    counterpart_specialty: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.appointment.to_dict()
        if self.counterpart_role == 'patient':
            data['patient_name'] = self.counterpart_name
        else:
            data['doctor_name'] = self.counterpart_name
            data['doctor_specialty'] = self.counterpart_specialty
        return data


def _in_scope(appointment: Appointment, requester: Identity) -> bool:
    if isinstance(requester, PatientIdentity):
        return appointment.patient_id == requester.user_id
    if isinstance(requester, DoctorIdentity):
        doctor = appointment.doctor
        return doctor is not None and doctor.user_id == requester.user_id
    if isinstance(requester, AdminIdentity):
        return False
    raise TypeError(f'Unknown identity type: {type(requester).__name__}')


def view_for(appointment: Appointment, requester: Identity) -> AppointmentView:
    """Join in the counterpart: the patient for doctors, the doctor for everyone else"""
    if isinstance(requester, DoctorIdentity):
        patient = appointment.patient
        return AppointmentView(
            appointment=appointment,
            counterpart_name=patient.full_name if patient else None,
            counterpart_role='patient',
        )
    doctor = appointment.doctor
    return AppointmentView(
        appointment=appointment,
        counterpart_name=doctor.display_name if doctor else None,
        counterpart_role='doctor',
        counterpart_specialty=doctor.specialty if doctor else None,
    )


def filter_appointments(
    appointments: Iterable[Appointment],
    requester: Identity,
    status: Optional[str] = 'all',
) -> List[AppointmentView]:
    """
    The requester's appointments with the given status, ascending by date.

    Ties on date are broken by time, then id. Removed appointments are skipped.
    """
    status = status or 'all'
    if status not in STATUS_FILTERS:
        raise ValidationError(f'Invalid status. Valid values: {", ".join(STATUS_FILTERS)}', field='status')

    selected = [
        a for a in appointments
        if a.deleted_at is None
        and _in_scope(a, requester)
        and (status == 'all' or a.status == status)
    ]
    selected.sort(key=lambda a: (a.appointment_date, a.appointment_time or '', a.id or 0))
    return [view_for(a, requester) for a in selected]
