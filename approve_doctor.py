#!/usr/bin/env python3
"""
Approve (or revoke) a doctor profile so it shows up in the directory.
Run with: python approve_doctor.py <doctor_id> [--revoke]
"""
import sys

from docspot import create_app
from docspot.errors import DocspotError
from docspot.services import repository


def main(argv):
    if not argv or not argv[0].isdigit():
        print("Usage: python approve_doctor.py <doctor_id> [--revoke]")
        return 2

    doctor_id = int(argv[0])
    approved = '--revoke' not in argv[1:]

    app = create_app()
    with app.app_context():
        try:
            doctor = repository.set_doctor_approval(doctor_id, approved)
        except DocspotError as e:
            print(f"  ✗ {e.message}")
            return 1

        state = 'approved' if doctor.is_approved else 'not approved'
        print(f"  ✓ Doctor {doctor.id} ({doctor.display_name}, {doctor.specialty}) is now {state}")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
