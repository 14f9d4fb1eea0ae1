from .identity import (
    PatientIdentity,
    DoctorIdentity,
    AdminIdentity,
    identity_for,
)

from .directory import filter_directory

from .appointment_view import AppointmentView, filter_appointments

from .lifecycle import (
    TRANSITIONS,
    check_transition,
    book_appointment,
    transition_appointment,
    confirm_appointment,
    cancel_appointment,
    complete_appointment,
    remove_appointment,
)

__all__ = [
    # Identity
    "PatientIdentity",
    "DoctorIdentity",
    "AdminIdentity",
    "identity_for",
    # Filters
    "filter_directory",
    "AppointmentView",
    "filter_appointments",
    # Lifecycle
    "TRANSITIONS",
    "check_transition",
    "book_appointment",
    "transition_appointment",
    "confirm_appointment",
    "cancel_appointment",
    "complete_appointment",
    "remove_appointment",
]
