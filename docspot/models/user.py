from docspot.extensions import db, bcrypt
from .base import TimestampMixin
from flask_login import UserMixin


class User(db.Model, TimestampMixin, UserMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Personal Information
    full_name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(20))
    date_of_birth = db.Column(db.Date)
    address = db.Column(db.String(255))

    # Role - 'patient', 'doctor' or 'admin'; fixed at registration
    role = db.Column(db.String(20), nullable=False, index=True)

    # Status
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Last login tracking
    last_login = db.Column(db.DateTime, nullable=True)
    login_count = db.Column(db.Integer, default=0)

    doctor_profile = db.relationship('Doctor', back_populates='user', uselist=False)

    __table_args__ = (
        db.CheckConstraint("role IN ('patient', 'doctor', 'admin')", name='ck_users_role'),
    )

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'phone': self.phone,
            'date_of_birth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'address': self.address,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.full_name}) - {self.role}>"
