#!/usr/bin/env python3
"""
Create the database tables, the default admin account and a few demo accounts.
Run with: python init_admin.py
"""
from docspot import create_app
from docspot.extensions import db
from docspot.models import User
from docspot.services import repository

DEFAULT_ADMIN = {
    'email': 'admin@docspot.local',
    'password': 'admin123',
    'full_name': 'DocSpot Admin',
}

DEMO_PATIENT = {
    'role': 'patient',
    'email': 'patient1@docspot.local',
    'password': 'patient123',
    'full_name': 'Alex Patient',
    'phone': '555-0100',
}

DEMO_DOCTORS = [
    {
        'role': 'doctor',
        'email': 'jane.lee@docspot.local',
        'password': 'doctor123',
        'full_name': 'Jane Lee',
        'phone': '555-0101',
        'specialty': 'Cardiology',
        'license_number': 'LIC-1001',
        'years_of_experience': 12,
        'education': 'MD, Johns Hopkins University',
        'bio': 'Interventional cardiologist.',
        'consultation_fee': 150,
    },
    {
        'role': 'doctor',
        'email': 'sam.ortiz@docspot.local',
        'password': 'doctor123',
        'full_name': 'Sam Ortiz',
        'phone': '555-0102',
        'specialty': 'Pediatrics',
        'license_number': 'LIC-1002',
        'years_of_experience': 7,
        'education': 'MD, University of Michigan',
        'consultation_fee': 90,
    },
]


def create_accounts():
    """Create default admin and demo users"""
    app = create_app()

    with app.app_context():
        db.create_all()

        print("=" * 60)
        print("Initializing DocSpot accounts")
        print("=" * 60)
        print()

        created_count = 0

        if User.query.filter_by(email=DEFAULT_ADMIN['email']).first():
            print(f"  - Admin '{DEFAULT_ADMIN['email']}' already exists (skipping)")
        else:
            repository.create_user(role='admin', **DEFAULT_ADMIN)
            created_count += 1
            print(f"  ✓ Created: {DEFAULT_ADMIN['email']} (admin) - Password: {DEFAULT_ADMIN['password']}")

        for account in [DEMO_PATIENT] + DEMO_DOCTORS:
            if User.query.filter_by(email=account['email']).first():
                print(f"  - User '{account['email']}' already exists (skipping)")
                continue

            user = repository.register_user(account)
            if user.role == 'doctor':
                # Demo doctors go straight into the directory
                repository.set_doctor_approval(user.doctor_profile.id, True)
            created_count += 1
            print(f"  ✓ Created: {account['email']} ({account['role']}) - Password: {account['password']}")

        print()
        print("=" * 60)
        print(f"✅ Created {created_count} new account(s)")
        print("=" * 60)
        print("\n⚠️  IMPORTANT: Change passwords after first login!")


if __name__ == '__main__':
    create_accounts()
