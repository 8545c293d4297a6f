"""
Field validators for imported student rows.

Each ``validate_*`` function returns ``(is_valid, error)`` where ``error`` is a
Hebrew message for the records office, or None. They never raise, so a sheet
with many bad cells can be reported in one pass.
"""

from __future__ import annotations

import random
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from .models.domain.enums import Gender

ValidationResult = Tuple[bool, Optional[str]]

ID_NUMBER_LENGTH = 9
EMAIL_MAX_LENGTH = 254
EXCEL_EPOCH = date(1899, 12, 30)
MIN_DATE = date(1900, 1, 1)
TRACK_SIMILARITY_THRESHOLD = 0.7
MAX_TRACK_SUGGESTIONS = 5

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d.%m.%Y", "%d-%m-%Y", "%Y/%m/%d")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def clean_text(value: Any) -> Optional[str]:
    """Cell value as a stripped string, None for blank cells."""
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _digits(value: Any) -> str:
    return re.sub(r"\D", "", clean_text(value) or "")


# =====================================================================
# ID numbers
# =====================================================================


def _id_checksum(digits: str) -> int:
    total = 0
    for index, char in enumerate(digits):
        step = int(char) * (2 if index % 2 else 1)
        total += step - 9 if step > 9 else step
    return total


def normalize_id_number(value: Any) -> str:
    """Digits of an ID cell; Excel turns leading zeros into a shorter number, so pad back to nine."""
    digits = _digits(value)
    if digits and len(digits) < ID_NUMBER_LENGTH and isinstance(value, (int, float)):
        digits = digits.zfill(ID_NUMBER_LENGTH)
    return digits


def validate_israeli_id(value: Any) -> ValidationResult:
    digits = normalize_id_number(value)
    if not digits:
        return False, "ת.ז חייבת להכיל 9 ספרות"
    if len(digits) != ID_NUMBER_LENGTH:
        return False, f"ת.ז חייבת להכיל בדיוק 9 ספרות. התקבל: {len(digits)} ספרות"
    if len(set(digits)) == 1:
        return False, "ת.ז לא חוקית - כל הספרות זהות"
    if _id_checksum(digits) % 10 != 0:
        return False, "ת.ז לא חוקית - ספרת ביקורת שגויה"
    return True, None


def generate_valid_israeli_id(rng: Optional[random.Random] = None) -> str:
    """Random ID number that passes ``validate_israeli_id``; used for templates and tests."""
    rng = rng or random.Random()
    while True:
        body = "".join(str(rng.randint(0, 9)) for _ in range(ID_NUMBER_LENGTH - 1))
        check = (10 - _id_checksum(body + "0") % 10) % 10
        candidate = body + str(check)
        if len(set(candidate)) > 1:
            return candidate


# =====================================================================
# Contact details
# =====================================================================


def validate_phone(value: Any) -> ValidationResult:
    """Accept Israeli landline and mobile numbers, local or in ``+972`` form."""
    text = clean_text(value)
    if not text:
        return False, "מספר טלפון ריק"

    cleaned = re.sub(r"[^\d+]", "", text)
    if cleaned.startswith("+972"):
        rest = cleaned[4:]
        if rest.isdigit() and ((len(rest) == 9 and rest.startswith("5")) or 8 <= len(rest) <= 9):
            return True, None
    elif cleaned.startswith("0"):
        if cleaned.isdigit() and ((len(cleaned) == 10 and cleaned.startswith("05")) or 9 <= len(cleaned) <= 10):
            return True, None
    elif cleaned.isdigit():
        if (len(cleaned) == 9 and cleaned.startswith("5")) or 8 <= len(cleaned) <= 10:
            return True, None

    return False, "פורמט מספר טלפון לא חוקי"


def validate_email(value: Any) -> ValidationResult:
    text = clean_text(value)
    if not text:
        return False, "כתובת דואר אלקטרוני ריקה"
    if len(text) > EMAIL_MAX_LENGTH:
        return False, "כתובת דואר אלקטרוני ארוכה מדי"
    if not _EMAIL_PATTERN.match(text):
        return False, "פורמט כתובת דואר אלקטרוני לא חוקי"
    return True, None


# =====================================================================
# Dates
# =====================================================================


def _from_excel_serial(serial: float) -> date:
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except OverflowError:
        raise ValueError(f"Date serial out of range: {serial!r}")


def parse_sheet_date(value: Any) -> Optional[date]:
    """Convert a cell to a date.

    Accepts ``datetime``/``date`` objects (what openpyxl returns for date
    cells), Excel serial numbers, and day-first or ISO strings. Returns None
    for blank cells and raises ``ValueError`` for anything else.
    """
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_excel_serial(value)

    text = str(value).strip()
    if re.fullmatch(r"\d+(\.\d+)?", text):
        return _from_excel_serial(float(text))
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value!r}")


def validate_date(value: Any, today: Optional[date] = None) -> ValidationResult:
    """Blank is allowed; otherwise the date must fall between 1900 and ten years from now."""
    if is_blank(value):
        return True, None
    try:
        parsed = parse_sheet_date(value)
    except ValueError:
        return False, "פורמט תאריך לא חוקי"

    latest = date((today or date.today()).year + 10, 12, 31)
    if parsed < MIN_DATE or parsed > latest:
        return False, f"התאריך חייב להיות בין {MIN_DATE.year} ל-{latest.year}"
    return True, None


# =====================================================================
# Free-text cells
# =====================================================================


def normalize_gender(value: Any) -> Optional[Gender]:
    text = clean_text(value)
    if not text:
        return None
    upper = text.upper()
    # FEMALE contains MALE, so it is checked first
    if "נקבה" in text or "FEMALE" in upper or text == "נ" or upper == "F":
        return Gender.FEMALE
    if "זכר" in text or "MALE" in upper or text == "ז" or upper == "M":
        return Gender.MALE
    return None


def find_similar_tracks(value: str, track_names: Iterable[str]) -> List[str]:
    """Suggest existing track names for a track cell that does not match exactly.

    Returns an empty list when ``value`` matches a track (case-insensitive).
    """
    needle = value.strip().lower()
    names = list(track_names)
    if any(name.lower() == needle for name in names):
        return []

    suggestions = []
    for name in names:
        candidate = name.lower()
        close = Levenshtein.normalized_similarity(needle, candidate) > TRACK_SIMILARITY_THRESHOLD
        if needle in candidate or candidate in needle or close:
            suggestions.append(name)
    return suggestions[:MAX_TRACK_SUGGESTIONS]
