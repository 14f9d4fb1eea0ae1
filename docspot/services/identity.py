"""
Identity variants for the signed-in user.

Role-specific data lives only on its own variant, so role checks in the
lifecycle engine and the view filter are isinstance matches over a closed set.
"""
from dataclasses import dataclass
from typing import Optional, Union

from docspot.errors import ValidationError


@dataclass(frozen=True)
class PatientIdentity:
    user_id: int
    full_name: str
    email: str
    role = 'patient'


@dataclass(frozen=True)
class DoctorIdentity:
    user_id: int
    full_name: str
    email: str
    doctor_id: Optional[int] = None
    specialty: Optional[str] = None
    is_approved: bool = False
    role = 'doctor'


@dataclass(frozen=True)
class AdminIdentity:
    user_id: int
    full_name: str
    email: str
    role = 'admin'


Identity = Union[PatientIdentity, DoctorIdentity, AdminIdentity]


def identity_for(user) -> Identity:
    """Build the identity variant matching a User row"""
    if user.role == 'patient':
        return PatientIdentity(user_id=user.id, full_name=user.full_name, email=user.email)
    if user.role == 'doctor':
        profile = user.doctor_profile
        return DoctorIdentity(
            user_id=user.id,
            full_name=user.full_name,
            email=user.email,
            doctor_id=profile.id if profile else None,
            specialty=profile.specialty if profile else None,
            is_approved=bool(profile and profile.is_approved),
        )
    if user.role == 'admin':
        return AdminIdentity(user_id=user.id, full_name=user.full_name, email=user.email)
    raise ValidationError(f'Unknown role "{user.role}"', field='role')
