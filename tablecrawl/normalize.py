# tablecrawl/normalize.py

import math
import re

NAN = float("nan")

_SPACES = re.compile(r"[\u00a0\u202f\u2009\s]+")
_NON_DIGITS = re.compile(r"\D+")
_SIGNED_INT = re.compile(r"-?\d+")
# a separator sitting between digit groups of three: 1,234 / 1 234 / 1'234
_THOUSANDS = re.compile(r"(?<=\d)[,'\u00a0\u202f ](?=\d{3}(?!\d))")
_NUMBER_CHARS = re.compile(r"[^\d.,\-]")


def clean_text(text):
    """Collapse all whitespace (NBSP included) and strip. None becomes ''."""
    if text is None:
        return ""
    return _SPACES.sub(" ", str(text)).strip()


def normalize_header(text):
    return clean_text(text).lower()


def is_number(value):
    """True for finite ints/floats. NaN, None, bools and strings are not numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


# -- Strict integers (price-like cells) --
def parse_int_strict(text):
    """
    Keep only the digit characters of `text`.

    '1,234 €' -> 1234, '-5' -> 5 (no sign), '' -> NaN.
    """
    if text is None:
        return NAN
    digits = _NON_DIGITS.sub("", str(text))
    return int(digits) if digits else NAN


# -- Loose integers (cells with annotation text around the number) --
def parse_int_loose(text):
    """
    Extract the first signed integer substring.

    Thousands separators between digit groups are dropped first, so
    'Δ 1,234.50 pts' -> 1234 and 'Mas 70 (+3)' -> 70. Fractions are ignored.
    """
    if text is None:
        return NAN
    s = _THOUSANDS.sub("", str(text).replace("\u00a0", " "))
    m = _SIGNED_INT.search(s)
    return int(m.group(0)) if m else NAN


# -- General decimals --
def parse_number(text):
    """
    Parse a decimal number out of noisy text.

    Currency/unit symbols and letters are dropped. When both '.' and ',' are
    present the rightmost one is the decimal separator. A lone separator is a
    thousands separator when it is followed by exactly three digits
    ('1,234' -> 1234, '1.234.567' -> 1234567), otherwise a decimal point
    ('12,5' -> 12.5). Returns int when integral, float otherwise, NaN when
    there are no digits.
    """
    if text is None:
        return NAN
    s = _SPACES.sub("", str(text))
    s = s.replace("'", "")
    s = _NUMBER_CHARS.sub("", s)
    if not re.search(r"\d", s):
        return NAN

    negative = s.startswith("-")
    s = s.replace("-", "")

    last_dot, last_comma = s.rfind("."), s.rfind(",")
    if last_dot >= 0 and last_comma >= 0:
        decimal = "." if last_dot > last_comma else ","
        thousands = "," if decimal == "." else "."
        s = s.replace(thousands, "")
    elif last_dot >= 0 or last_comma >= 0:
        sep = "." if last_dot >= 0 else ","
        groups = s.split(sep)
        if len(groups) > 2 or (len(groups[-1]) == 3 and groups[0] not in ("", "0")):
            s = s.replace(sep, "")
            decimal = None
        else:
            decimal = sep
    else:
        decimal = None

    if decimal:
        whole, _, frac = s.rpartition(decimal)
        s = f"{whole.replace(decimal, '')}.{frac}"
    s = s.rstrip(".")
    if s.startswith("."):
        s = "0" + s
    if not s or not re.search(r"\d", s):
        return NAN

    value = float(s)
    if negative:
        value = -value
    if value.is_integer() and "." not in s:
        return int(value)
    return value


def format_number(value, thousands=False):
    """Display helper: ints without '.0', optional thousands commas, NaN -> ''."""
    if not is_number(value):
        return ""
    if float(value).is_integer():
        value = int(value)
    return f"{value:,}" if thousands else str(value)
