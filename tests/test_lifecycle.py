"""Tests for the appointment lifecycle engine."""
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from docspot.errors import (
    CollaboratorUnavailable,
    DoctorNotBookable,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from docspot.extensions import db
from docspot.models import Appointment, AppointmentStatus, AuditLog
from docspot.services import lifecycle, repository
from docspot.services.identity import identity_for

ALL_STATUSES = AppointmentStatus.values()
LEGAL_EDGES = {
    ('pending', 'confirmed'),
    ('pending', 'cancelled'),
    ('confirmed', 'completed'),
    ('confirmed', 'cancelled'),
}


def _force_status(appointment, status):
    Appointment.query.filter_by(id=appointment.id).update({'status': status})
    db.session.commit()


def _stored_status(appointment_id):
    db.session.expire_all()
    return db.session.get(Appointment, appointment_id).status


class TestBooking:

    def test_new_appointment_is_pending(self, make_patient, make_doctor, book):
        patient = make_patient()
        doctor = make_doctor()

        appointment = book(patient, doctor, notes='Bring test results', documents=['lab-report.pdf'])

        assert appointment.status == 'pending'
        assert appointment.patient_id == patient.id
        assert appointment.doctor_id == doctor.id
        assert appointment.documents == ['lab-report.pdf']
        assert AuditLog.query.filter_by(entity_type='appointment', action='create').count() == 1

    def test_unapproved_doctor_is_not_bookable(self, make_patient, make_doctor, book):
        patient = make_patient()
        doctor = make_doctor(approved=False)

        with pytest.raises(DoctorNotBookable):
            book(patient, doctor)

        assert Appointment.query.count() == 0

    def test_missing_doctor_is_not_bookable(self, make_patient, tomorrow):
        patient = make_patient()

        with pytest.raises(DoctorNotBookable):
            lifecycle.book_appointment(identity_for(patient), {
                'doctor_id': 999,
                'appointment_date': tomorrow.isoformat(),
                'appointment_time': '09:00',
                'reason': 'Headache',
            })
        assert Appointment.query.count() == 0

    def test_today_is_allowed(self, make_patient, make_doctor, book):
        appointment = book(make_patient(), make_doctor(), appointment_date=date.today().isoformat())
        assert appointment.appointment_date == date.today()

    @pytest.mark.parametrize('overrides, field', [
        ({'appointment_date': (date.today() - timedelta(days=1)).isoformat()}, 'appointment_date'),
        ({'appointment_date': '17/10/2030'}, 'appointment_date'),
        ({'appointment_time': '25:00'}, 'appointment_time'),
        ({'appointment_time': ''}, 'appointment_time'),
        ({'reason': '   '}, 'reason'),
        ({'reason': None}, 'reason'),
        ({'doctor_id': 'abc'}, 'doctor_id'),
        ({'doctor_id': None}, 'doctor_id'),
        ({'documents': 'not-a-list'}, 'documents'),
    ])
    def test_invalid_input_is_rejected(self, make_patient, make_doctor, book, overrides, field):
        patient = make_patient()
        doctor = make_doctor()

        with pytest.raises(ValidationError) as exc:
            book(patient, doctor, **overrides)

        assert exc.value.field == field
        assert Appointment.query.count() == 0

    def test_only_patients_can_book(self, make_doctor, make_admin, tomorrow):
        doctor = make_doctor()
        other_doctor = make_doctor(full_name='Sam Ortiz')
        data = {
            'doctor_id': doctor.id,
            'appointment_date': tomorrow.isoformat(),
            'appointment_time': '09:00',
            'reason': 'Consult',
        }

        with pytest.raises(InvalidTransition):
            lifecycle.book_appointment(identity_for(other_doctor.user), data)
        with pytest.raises(InvalidTransition):
            lifecycle.book_appointment(identity_for(make_admin()), data)
        assert Appointment.query.count() == 0


class TestTransitions:

    def test_confirm_then_complete_then_terminal(self, make_patient, make_doctor, book):
        patient = make_patient()
        doctor = make_doctor()
        appointment = book(patient, doctor)
        doctor_identity = identity_for(doctor.user)

        confirmed = lifecycle.confirm_appointment(appointment.id, doctor_identity)
        assert confirmed.status == 'confirmed'

        completed = lifecycle.complete_appointment(appointment.id, doctor_identity)
        assert completed.status == 'completed'

        for target in ALL_STATUSES:
            with pytest.raises(InvalidTransition):
                lifecycle.transition_appointment(appointment.id, doctor_identity, target)
        with pytest.raises(InvalidTransition):
            lifecycle.cancel_appointment(appointment.id, identity_for(patient))
        assert _stored_status(appointment.id) == 'completed'

    @pytest.mark.parametrize('source', ALL_STATUSES)
    @pytest.mark.parametrize('target', ALL_STATUSES)
    def test_owning_doctor_follows_edge_table(self, make_patient, make_doctor, book, source, target):
        doctor = make_doctor()
        appointment = book(make_patient(), doctor)
        _force_status(appointment, source)

        if (source, target) in LEGAL_EDGES:
            updated = lifecycle.transition_appointment(appointment.id, identity_for(doctor.user), target)
            assert updated.status == target
        else:
            with pytest.raises(InvalidTransition):
                lifecycle.transition_appointment(appointment.id, identity_for(doctor.user), target)
            assert _stored_status(appointment.id) == source

    def test_patient_can_only_cancel_pending(self, make_patient, make_doctor, book):
        patient = make_patient()
        doctor = make_doctor()
        patient_identity = identity_for(patient)

        first = book(patient, doctor)
        with pytest.raises(InvalidTransition):
            lifecycle.confirm_appointment(first.id, patient_identity)
        assert lifecycle.cancel_appointment(first.id, patient_identity).status == 'cancelled'

        second = book(patient, doctor, appointment_time='11:00')
        lifecycle.confirm_appointment(second.id, identity_for(doctor.user))
        with pytest.raises(InvalidTransition):
            lifecycle.cancel_appointment(second.id, patient_identity)
        with pytest.raises(InvalidTransition):
            lifecycle.complete_appointment(second.id, patient_identity)
        assert _stored_status(second.id) == 'confirmed'

    def test_doctor_can_cancel_confirmed(self, make_patient, make_doctor, book):
        doctor = make_doctor()
        appointment = book(make_patient(), doctor)
        doctor_identity = identity_for(doctor.user)

        lifecycle.confirm_appointment(appointment.id, doctor_identity)
        cancelled = lifecycle.cancel_appointment(appointment.id, doctor_identity)

        assert cancelled.status == 'cancelled'

    def test_non_owners_cannot_transition(self, make_patient, make_doctor, make_admin, book):
        doctor = make_doctor()
        other_doctor = make_doctor(full_name='Sam Ortiz')
        appointment = book(make_patient(), doctor)
        other_patient = make_patient(full_name='Other Patient')

        for actor in (identity_for(other_doctor.user), identity_for(make_admin())):
            with pytest.raises(InvalidTransition):
                lifecycle.confirm_appointment(appointment.id, actor)
        with pytest.raises(InvalidTransition):
            lifecycle.cancel_appointment(appointment.id, identity_for(other_patient))

        assert _stored_status(appointment.id) == 'pending'

    def test_unknown_status_is_invalid(self, make_patient, make_doctor, book):
        doctor = make_doctor()
        appointment = book(make_patient(), doctor)

        with pytest.raises(InvalidTransition):
            lifecycle.transition_appointment(appointment.id, identity_for(doctor.user), 'rescheduled')
        assert _stored_status(appointment.id) == 'pending'

    def test_missing_appointment(self, make_doctor):
        doctor = make_doctor()
        with pytest.raises(NotFound):
            lifecycle.confirm_appointment(12345, identity_for(doctor.user))

    def test_transition_advances_update_timestamp(self, make_patient, make_doctor, book):
        doctor = make_doctor()
        appointment = book(make_patient(), doctor)
        Appointment.query.filter_by(id=appointment.id).update({'updated_at': datetime(2000, 1, 1)})
        db.session.commit()

        confirmed = lifecycle.confirm_appointment(appointment.id, identity_for(doctor.user))

        assert confirmed.updated_at > datetime(2000, 1, 1)

    def test_transition_touches_no_other_appointment(self, make_patient, make_doctor, book):
        doctor = make_doctor()
        patient = make_patient()
        first = book(patient, doctor)
        second = book(patient, doctor, appointment_time='12:00')

        lifecycle.cancel_appointment(first.id, identity_for(patient))

        assert _stored_status(second.id) == 'pending'

    def test_concurrent_change_is_reported_not_overwritten(self, make_patient, make_doctor, book, monkeypatch):
        patient = make_patient()
        doctor = make_doctor()
        appointment = book(patient, doctor)
        original = repository.update_appointment_status

        def racing_update(appointment_id, new_status, expected_status):
            # The patient cancels between our read and our write
            _force_status(appointment, 'cancelled')
            return original(appointment_id, new_status, expected_status)

        monkeypatch.setattr(repository, 'update_appointment_status', racing_update)

        with pytest.raises(InvalidTransition) as exc:
            lifecycle.confirm_appointment(appointment.id, identity_for(doctor.user))

        assert 'cancelled' in exc.value.message
        assert _stored_status(appointment.id) == 'cancelled'

    def test_failed_write_leaves_status_unchanged(self, make_patient, make_doctor, book, monkeypatch):
        doctor = make_doctor()
        appointment = book(make_patient(), doctor)

        def failing_commit(self):
            raise OperationalError('UPDATE appointments', {}, Exception('database is down'))

        monkeypatch.setattr(Session, 'commit', failing_commit)

        with pytest.raises(CollaboratorUnavailable):
            lifecycle.confirm_appointment(appointment.id, identity_for(doctor.user))

        monkeypatch.undo()
        assert _stored_status(appointment.id) == 'pending'


class TestRemoval:

    def test_only_terminal_appointments_can_be_removed(self, make_patient, make_doctor, book):
        patient = make_patient()
        appointment = book(patient, make_doctor())
        patient_identity = identity_for(patient)

        with pytest.raises(InvalidTransition):
            lifecycle.remove_appointment(appointment.id, patient_identity)

        lifecycle.cancel_appointment(appointment.id, patient_identity)
        lifecycle.remove_appointment(appointment.id, patient_identity)

        with pytest.raises(NotFound):
            repository.fetch_appointment(appointment.id)
        # the row is kept for history
        assert db.session.get(Appointment, appointment.id).deleted_at is not None

    def test_strangers_cannot_remove(self, make_patient, make_doctor, book):
        patient = make_patient()
        appointment = book(patient, make_doctor())
        lifecycle.cancel_appointment(appointment.id, identity_for(patient))

        with pytest.raises(PermissionDenied):
            lifecycle.remove_appointment(appointment.id, identity_for(make_patient(full_name='Someone Else')))
        assert db.session.get(Appointment, appointment.id).deleted_at is None

    def test_removal_is_audited(self, make_patient, make_doctor, book):
        patient = make_patient()
        appointment = book(patient, make_doctor())
        lifecycle.cancel_appointment(appointment.id, identity_for(patient))

        lifecycle.remove_appointment(appointment.id, identity_for(patient))

        entry = AuditLog.query.filter_by(entity_type='appointment', action='delete').one()
        assert entry.entity_id == str(appointment.id)
        assert entry.actor.email == patient.email
        assert entry.details == {'status': 'cancelled'}


def test_allowed_targets_per_role(make_patient, make_doctor, book):
    patient = make_patient()
    doctor = make_doctor()
    appointment = book(patient, doctor)

    assert lifecycle.allowed_targets(appointment, identity_for(patient)) == ['cancelled']
    assert sorted(lifecycle.allowed_targets(appointment, identity_for(doctor.user))) == ['cancelled', 'confirmed']
