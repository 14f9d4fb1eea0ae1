from .user import User
from .doctor import Doctor, DoctorAvailability, SPECIALTIES
from .appointment import Appointment, AppointmentStatus, TERMINAL_STATUSES
from .audit_log import AuditLog

__all__ = ["User", "Doctor", "DoctorAvailability", "SPECIALTIES", "Appointment", "AppointmentStatus", "TERMINAL_STATUSES", "AuditLog"]
