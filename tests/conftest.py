"""Shared test fixtures."""
import itertools
from datetime import date, timedelta

import pytest
from flask_jwt_extended import create_access_token

from docspot import create_app
from docspot.extensions import db
from docspot.services import lifecycle, repository
from docspot.services.identity import identity_for


@pytest.fixture
def app():
    """Application with a fresh in-memory database."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_patient(app):
    counter = itertools.count(1)

    def _create(full_name='Pat Patient', email=None):
        n = next(counter)
        return repository.register_user({
            'role': 'patient',
            'email': email or f'patient{n}@example.com',
            'password': 'secret123',
            'full_name': full_name,
            'phone': f'555-02{n:02d}',
        })
    return _create


@pytest.fixture
def make_doctor(app):
    """Create a doctor account and return its profile."""
    counter = itertools.count(1)

    def _create(full_name='Jane Lee', specialty='Cardiology', years=10, fee=100, approved=True):
        n = next(counter)
        user = repository.register_user({
            'role': 'doctor',
            'email': f'doctor{n}@example.com',
            'password': 'secret123',
            'full_name': full_name,
            'phone': f'555-01{n:02d}',
            'specialty': specialty,
            'license_number': f'LIC-{n}',
            'years_of_experience': years,
            'education': 'MD',
            'consultation_fee': fee,
        })
        doctor = user.doctor_profile
        if approved:
            repository.set_doctor_approval(doctor.id, True)
        return doctor
    return _create


@pytest.fixture
def make_admin(app):
    def _create(email='admin@example.com'):
        return repository.create_user(email=email, password='secret123', full_name='Site Admin', role='admin')
    return _create


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture
def tomorrow():
    return date.today() + timedelta(days=1)


@pytest.fixture
def book(tomorrow):
    """Book an appointment as patient with doctor through the lifecycle engine."""
    def _book(patient, doctor, **overrides):
        data = {
            'doctor_id': doctor.id,
            'appointment_date': tomorrow.isoformat(),
            'appointment_time': '10:30',
            'reason': 'Routine check-up',
        }
        data.update(overrides)
        return lifecycle.book_appointment(identity_for(patient), data)
    return _book
