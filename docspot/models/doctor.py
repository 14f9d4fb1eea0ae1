from docspot.extensions import db
from .base import TimestampMixin

SPECIALTIES = (
    'Cardiology',
    'Dermatology',
    'Endocrinology',
    'Gastroenterology',
    'Neurology',
    'Oncology',
    'Orthopedics',
    'Pediatrics',
    'Psychiatry',
    'Radiology',
    'Surgery',
    'Urology',
)


class Doctor(db.Model, TimestampMixin):
    __tablename__ = 'doctors'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False, index=True)

    # Professional details
    specialty = db.Column(db.String(100), nullable=False, index=True)
    license_number = db.Column(db.String(100), nullable=False)
    years_of_experience = db.Column(db.Integer, nullable=False, default=0)
    education = db.Column(db.Text, nullable=False)
    bio = db.Column(db.Text)
    consultation_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    # Approval gate - only the external admin process flips this
    is_approved = db.Column(db.Boolean, default=False, nullable=False, index=True)

    # Relationships
    user = db.relationship('User', back_populates='doctor_profile')
    availability = db.relationship(
        'DoctorAvailability',
        backref='doctor',
        cascade='all, delete-orphan',
        order_by=lambda: [DoctorAvailability.day_of_week, DoctorAvailability.start_time],
        lazy=True,
    )
    appointments = db.relationship('Appointment', back_populates='doctor', lazy='dynamic')

    __table_args__ = (
        db.CheckConstraint('years_of_experience >= 0', name='ck_doctors_experience'),
        db.CheckConstraint('consultation_fee >= 0', name='ck_doctors_fee'),
    )

    @property
    def display_name(self):
        return self.user.full_name if self.user else ''

    def to_dict(self, include_availability=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'full_name': self.display_name,
            'email': self.user.email if self.user else None,
            'phone': self.user.phone if self.user else None,
            'specialty': self.specialty,
            'license_number': self.license_number,
            'years_of_experience': self.years_of_experience,
            'education': self.education,
            'bio': self.bio,
            'consultation_fee': float(self.consultation_fee) if self.consultation_fee is not None else None,
            'is_approved': self.is_approved,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_availability:
            data['availability'] = [slot.to_dict() for slot in self.availability]
        return data

    def __repr__(self):
        return f"<Doctor {self.id} - {self.specialty} (approved={self.is_approved})>"


class DoctorAvailability(db.Model):
    """Weekly availability window, display only"""
    __tablename__ = 'doctor_availability'

    id = db.Column(db.Integer, primary_key=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id'), nullable=False, index=True)
    day_of_week = db.Column(db.Integer, nullable=False)  # 0-6, Sunday-Saturday
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    is_available = db.Column(db.Boolean, default=True, nullable=False)

    __table_args__ = (
        db.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_availability_day'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'doctor_id': self.doctor_id,
            'day_of_week': self.day_of_week,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'is_available': self.is_available,
        }
