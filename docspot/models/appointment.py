from enum import Enum
from docspot.extensions import db
from .base import TimestampMixin


class AppointmentStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'

    @classmethod
    def values(cls):
        return [s.value for s in cls]


TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})


class Appointment(db.Model, TimestampMixin):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id'), nullable=False, index=True)

    appointment_date = db.Column(db.Date, nullable=False, index=True)
    appointment_time = db.Column(db.String(10), nullable=False)  # e.g., "10:45"

    # Status: pending, confirmed, cancelled, completed
    status = db.Column(db.String(20), nullable=False, default=AppointmentStatus.PENDING.value, index=True)

    reason = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text)
    documents = db.Column(db.JSON, nullable=True)  # list of document references

    # Soft delete (history is kept for the views and the audit trail)
    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    # Relationships
    patient = db.relationship('User', foreign_keys=[patient_id], backref='appointments')
    doctor = db.relationship('Doctor', back_populates='appointments')

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name='ck_appointments_status',
        ),
    )

    @property
    def status_enum(self):
        return AppointmentStatus(self.status)

    @property
    def is_terminal(self):
        return self.status_enum in TERMINAL_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'doctor_id': self.doctor_id,
            'appointment_date': self.appointment_date.isoformat() if self.appointment_date else None,
            'appointment_time': self.appointment_time,
            'status': self.status,
            'reason': self.reason,
            'notes': self.notes,
            'documents': self.documents or [],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Appointment {self.id} patient={self.patient_id} doctor={self.doctor_id} on {self.appointment_date} {self.appointment_time} [{self.status}]>"
