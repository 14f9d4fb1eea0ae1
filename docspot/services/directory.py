"""
Patient-facing doctor directory: search, specialty filter and sort over
already-loaded doctor profiles.
"""
from typing import Iterable, List, Optional

from docspot.errors import ValidationError
from docspot.models import Doctor
from docspot.services.validation import validate_specialty

SORT_KEYS = {
    'name': lambda d: (d.display_name or '').casefold(),
    'experience': lambda d: -(d.years_of_experience or 0),
    'fee': lambda d: d.consultation_fee or 0,
}


def matches_search(doctor: Doctor, term: str) -> bool:
    """Case-insensitive substring match on the doctor's name or specialty"""
    if not term:
        return True
    needle = term.casefold()
    return needle in (doctor.display_name or '').casefold() or needle in (doctor.specialty or '').casefold()


def filter_directory(
    doctors: Iterable[Doctor],
    search: Optional[str] = '',
    specialty: Optional[str] = None,
    sort_by: str = 'name',
) -> List[Doctor]:
    """
    Visible doctors for the directory, in display order.

    Unapproved profiles are always dropped, whatever the query. Sorting is
    stable, so ties keep their input order.
    """
    if sort_by not in SORT_KEYS:
        raise ValidationError(f'Invalid sort. Valid values: {", ".join(SORT_KEYS)}', field='sort')
    if specialty:
        validate_specialty(specialty)

    term = (search or '').strip()
    visible = [
        d for d in doctors
        if d.is_approved
        and matches_search(d, term)
        and (not specialty or d.specialty == specialty)
    ]
    return sorted(visible, key=SORT_KEYS[sort_by])
