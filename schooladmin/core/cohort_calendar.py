"""
Cohort calendar.

Pure functions that tie cohorts, grades and dates together:

- Cohorts are numbered from the first one, which started ninth grade in
  September 1973, and are named with the Hebrew gematria of that number
  (``מחזור נ"ב`` is cohort 52, start year 2024).
- An academic year starts on 1 September. A cohort is in ninth grade during
  the academic year that starts in its start year, tenth grade the year after,
  and so on up to twelfth grade.

Every function that depends on "today" takes an optional ``today`` argument
so callers (and tests) can pin the date.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple, Union

from .errors import ValidationError
from .models.domain.enums import REGULAR_GRADES

FIRST_COHORT_YEAR = 1973
COHORT_PREFIX = "מחזור "
ACADEMIC_YEAR_START_MONTH = 9

GEMATRIA_VALUES: Dict[str, int] = {
    "א": 1,
    "ב": 2,
    "ג": 3,
    "ד": 4,
    "ה": 5,
    "ו": 6,
    "ז": 7,
    "ח": 8,
    "ט": 9,
    "י": 10,
    "כ": 20,
    "ל": 30,
    "מ": 40,
    "נ": 50,
    "ס": 60,
    "ע": 70,
    "פ": 80,
    "צ": 90,
    "ק": 100,
    "ר": 200,
    "ש": 300,
    "ת": 400,
}

_LETTERS_BY_VALUE: List[Tuple[int, str]] = sorted(
    ((value, letter) for letter, value in GEMATRIA_VALUES.items()), reverse=True
)

GRADE_OFFSETS: Dict[str, int] = {grade: offset for offset, grade in enumerate(REGULAR_GRADES)}

NEXT_GRADE: Dict[str, Optional[str]] = {
    "ט'": "י'",
    "י'": 'י"א',
    'י"א': 'י"ב',
    'י"ב': None,
}


# =====================================================================
# Gematria
# =====================================================================


def number_to_gematria(number: int) -> str:
    """Render a positive integer in gematria, e.g. ``52 -> 'נ"ב'`` and ``1 -> "א'"``."""
    if number <= 0:
        raise ValidationError("מספר חייב להיות חיובי")

    letters = []
    remaining = number
    for value, letter in _LETTERS_BY_VALUE:
        if value >= 100:
            while remaining >= value:
                letters.append(letter)
                remaining -= value
        elif remaining >= value:
            letters.append(letter)
            remaining -= value

    if len(letters) == 1:
        return letters[0] + "'"
    return "".join(letters[:-1]) + '"' + letters[-1]


def gematria_to_number(text: str) -> int:
    """Inverse of ``number_to_gematria``; also accepts the ``מחזור`` prefix."""
    cleaned = text.strip()
    if cleaned.startswith(COHORT_PREFIX):
        cleaned = cleaned[len(COHORT_PREFIX) :].strip()
    cleaned = cleaned.rstrip("'\"").replace('"', "").replace("'", "")

    total = 0
    for char in cleaned:
        value = GEMATRIA_VALUES.get(char)
        if value is None:
            raise ValidationError(f'אות לא תקינה בגימטריה: "{char}"')
        total += value

    if total <= 0:
        raise ValidationError(f'לא ניתן להמיר את הגימטריה "{text}" למספר')
    return total


# =====================================================================
# Cohort names
# =====================================================================


def generate_cohort_name(start_year: int) -> str:
    """Name of the cohort that started ninth grade in ``start_year``."""
    number = start_year - FIRST_COHORT_YEAR + 1
    if number <= 0:
        raise ValidationError(f"שנת מחזור חייבת להיות {FIRST_COHORT_YEAR} או מאוחר יותר")
    return f"{COHORT_PREFIX}{number_to_gematria(number)}"


def validate_cohort_name(name: str, start_year: int) -> None:
    expected = generate_cohort_name(start_year)
    if name != expected:
        raise ValidationError(
            f'שם המחזור "{name}" לא תואם לשנת ההתחלה {start_year}. השם הנכון הוא: "{expected}"'
        )


def parse_cohort_input(value: Union[int, str]) -> int:
    """Resolve a cohort given as a start year (``2024``, ``"2024"``) or a name (``'מחזור נ"ב'``, ``'נ"ב'``)."""
    if isinstance(value, int):
        return value

    text = str(value).strip()
    if text.isdigit():
        return int(text)

    try:
        return FIRST_COHORT_YEAR + gematria_to_number(text) - 1
    except ValidationError:
        raise ValidationError(
            f'לא ניתן לזהות מחזור: "{value}". '
            'אנא הזן שנה (למשל: 2024) או גימטריה (למשל: "מחזור נ"ב" או "נ"ב")'
        )


def max_cohort_year(today: Optional[date] = None) -> int:
    """Latest start year accepted for a cohort: next calendar year."""
    return (today or date.today()).year + 1


# =====================================================================
# Academic years and grades
# =====================================================================


def academic_year_start(year: int) -> date:
    return date(year, ACADEMIC_YEAR_START_MONTH, 1)


def academic_start_year(on: date) -> int:
    """Calendar year in which the academic year containing ``on`` started."""
    return on.year if on.month >= ACADEMIC_YEAR_START_MONTH else on.year - 1


def grade_number(grade: str) -> int:
    """9 for ט' through 12 for י"ב."""
    if grade not in GRADE_OFFSETS:
        raise ValidationError(f'כיתה לא תקינה: "{grade}"')
    return 9 + GRADE_OFFSETS[grade]


def calculate_grade_at_date(start_year: int, on: date) -> Optional[str]:
    """Grade of the cohort on a given date, or None before it started.

    After twelfth grade the cohort stays at י"ב.
    """
    diff = academic_start_year(on) - start_year
    if diff < 0:
        return None
    if diff >= len(REGULAR_GRADES):
        return REGULAR_GRADES[-1]
    return REGULAR_GRADES[diff]


def calculate_cohort_grade_and_status(start_year: int, today: Optional[date] = None) -> Tuple[Optional[str], bool]:
    """Current grade of a cohort and whether it is still studying.

    Cohorts that will start next September have no grade yet and are
    inactive; graduated cohorts keep י"ב and are inactive.
    """
    diff = academic_start_year(today or date.today()) - start_year
    if diff < 0:
        return None, False
    if diff >= len(REGULAR_GRADES):
        return REGULAR_GRADES[-1], False
    return REGULAR_GRADES[diff], True


def calculate_cohort_from_grade(grade: str, today: Optional[date] = None) -> int:
    """Start year of the cohort that is in ``grade`` on ``today``."""
    today = today or date.today()
    if grade not in GRADE_OFFSETS:
        raise ValidationError(f'כיתה לא תקינה: "{grade}"')

    start_year = academic_start_year(today) - GRADE_OFFSETS[grade]
    upper = max_cohort_year(today)
    if start_year < FIRST_COHORT_YEAR or start_year > upper:
        raise ValidationError(
            f'לא ניתן לחשב מחזור מכיתה "{grade}" - התוצאה {start_year} '
            f"מחוץ לטווח המותר ({FIRST_COHORT_YEAR}-{upper})"
        )
    return start_year


def cohort_study_window(start_year: int) -> Tuple[date, date]:
    """``[first day of ninth grade, day after twelfth grade ends)`` for a cohort."""
    return academic_year_start(start_year), academic_year_start(start_year + len(REGULAR_GRADES))


def grade_year_window(start_year: int, grade: str) -> Tuple[date, date]:
    """``[start, end)`` of the academic year in which the cohort sat ``grade``."""
    first_year = start_year + grade_number(grade) - 9
    return academic_year_start(first_year), academic_year_start(first_year + 1)


def next_grade(grade: str) -> Optional[str]:
    """Grade after ``grade``; None after twelfth grade.

    Raises:
        ValidationError: for grades outside the regular progression
    """
    if grade not in NEXT_GRADE:
        raise ValidationError(f"Cannot promote from grade {grade}")
    return NEXT_GRADE[grade]


def format_date(value: date) -> str:
    """dd.mm.yyyy, the form used in user-facing messages."""
    return value.strftime("%d.%m.%Y")
