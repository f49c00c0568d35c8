# tablecrawl/filters.py

import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from tablecrawl.normalize import format_number, is_number, parse_number


def _label(field):
    return field[:1].upper() + field[1:]


# --- Predicates ---

@dataclass(frozen=True)
class NumericBound:
    """
    min/max bound on a numeric field. A bound of None never excludes.

    Values that are not finite pass unless `require_finite` is set: a missing
    number is not a reason to drop a row.
    """
    field: str
    min: Optional[float] = None
    max: Optional[float] = None
    min_exclusive: bool = False
    max_exclusive: bool = False
    require_finite: bool = False

    def __call__(self, record):
        value = record.get(self.field)
        if not is_number(value):
            return not self.require_finite
        if self.min is not None:
            if self.min_exclusive and not value > self.min:
                return False
            if not self.min_exclusive and not value >= self.min:
                return False
        if self.max is not None:
            if self.max_exclusive and not value < self.max:
                return False
            if not self.max_exclusive and not value <= self.max:
                return False
        return True

    def describe(self):
        parts = []
        name = _label(self.field)
        if self.min is not None:
            parts.append(f"{name}{'>' if self.min_exclusive else '≥'}{format_number(self.min, True)}")
        if self.max is not None:
            parts.append(f"{name}{'<' if self.max_exclusive else '≤'}{format_number(self.max, True)}")
        return " • ".join(parts)


@dataclass(frozen=True)
class NumericEquals:
    """field == value; the field must hold a finite number."""
    field: str
    value: float

    def __call__(self, record):
        value = record.get(self.field)
        return is_number(value) and value == self.value

    def describe(self):
        return f"{_label(self.field)}={format_number(self.value, True)}"


@dataclass(frozen=True)
class StringSet:
    """
    Case-insensitive substring membership.

    `include`: the value must contain at least one entry. `exclude`: it must
    contain none. None or an empty list means no restriction, and an empty
    value passes both.
    """
    field: str
    include: Optional[Tuple[str, ...]] = None
    exclude: Optional[Tuple[str, ...]] = None

    def __call__(self, record):
        value = record.get(self.field) or ""
        if not value:
            return True
        v = str(value).lower()
        if self.include and not any(str(x).lower() in v for x in self.include):
            return False
        if self.exclude and any(str(x).lower() in v for x in self.exclude):
            return False
        return True

    def describe(self):
        parts = []
        name = _label(self.field)
        if self.include:
            parts.append(f"{name} in [{', '.join(self.include)}]")
        if self.exclude:
            parts.append(f"{name} not in [{', '.join(self.exclude)}]")
        return " • ".join(parts)


@dataclass(frozen=True)
class FilterSpec:
    predicates: Tuple[object, ...] = ()

    def describe(self):
        parts = [p.describe() for p in self.predicates]
        return " • ".join(p for p in parts if p) or "No filters"

    def __len__(self):
        return len(self.predicates)


def passes(record, filter_spec):
    """AND of every predicate, stopping at the first one that fails."""
    for predicate in filter_spec.predicates:
        if not predicate(record):
            return False
    return True


# --- Filter expressions (command line) ---

_COMPARISON = re.compile(r"^\s*(\w+)\s*(>=|<=|==|=|>|<)\s*(-?[\d_.,]+)\s*(!?)\s*$")
_MEMBERSHIP = re.compile(r"^\s*(\w+)\s+(not\s+in|in)\s+(.+?)\s*$", re.IGNORECASE)


def _to_number(text):
    value = parse_number(text)
    if not is_number(value):
        raise ValueError(f"Not a number: {text!r}")
    return value


def parse_filter_expr(text):
    """
    Parse one filter expression.

        mas>70          price<=1000      age>=18      tal<9
        price==1        nat in Spain,ESP             nat not in Russia
        price<1000!     (trailing ! = the field must be a finite number)

    Returns a predicate, raises ValueError for anything else.
    """
    m = _COMPARISON.match(text)
    if m:
        field, op, raw, bang = m.groups()
        field = field.lower()
        value = _to_number(raw)
        finite = bang == "!"
        if op in ("==", "="):
            return NumericEquals(field, value)
        if op == ">":
            return NumericBound(field, min=value, min_exclusive=True, require_finite=finite)
        if op == ">=":
            return NumericBound(field, min=value, require_finite=finite)
        if op == "<":
            return NumericBound(field, max=value, max_exclusive=True, require_finite=finite)
        return NumericBound(field, max=value, require_finite=finite)

    m = _MEMBERSHIP.match(text)
    if m:
        field, op, raw = m.groups()
        values = tuple(v.strip() for v in raw.split(",") if v.strip())
        if not values:
            raise ValueError(f"Empty value list in filter: {text!r}")
        if op.lower().startswith("not"):
            return StringSet(field.lower(), exclude=values)
        return StringSet(field.lower(), include=values)

    raise ValueError(f"Cannot parse filter: {text!r}")


def _merge(a, b):
    if isinstance(a, NumericBound) and isinstance(b, NumericBound):
        min_, min_x = (b.min, b.min_exclusive) if b.min is not None else (a.min, a.min_exclusive)
        max_, max_x = (b.max, b.max_exclusive) if b.max is not None else (a.max, a.max_exclusive)
        return NumericBound(a.field, min_, max_, min_x, max_x, a.require_finite or b.require_finite)
    if isinstance(a, StringSet) and isinstance(b, StringSet):
        include = tuple(a.include or ()) + tuple(b.include or ())
        exclude = tuple(a.exclude or ()) + tuple(b.exclude or ())
        return StringSet(a.field, include or None, exclude or None)
    return None


def build_filter_spec(expressions: Sequence[str] = ()):
    """
    Parse expressions into a FilterSpec. Bounds on the same field are merged
    into one predicate (a later bound on the same side wins); the order in
    which fields first appear is kept.
    """
    predicates = []
    for text in expressions or ():
        predicate = parse_filter_expr(text)
        for i, existing in enumerate(predicates):
            if existing.field == predicate.field:
                merged = _merge(existing, predicate)
                if merged is not None:
                    predicates[i] = merged
                    break
        else:
            predicates.append(predicate)
    return FilterSpec(tuple(predicates))


def validate_filter_spec(filter_spec, schema):
    """
    Check every predicate against the fields `schema` extracts. Raises
    ValueError for unknown fields, numeric comparisons on text fields and
    text membership on numeric fields; any of those would silently pass
    every row.
    """
    for predicate in filter_spec.predicates:
        name = getattr(predicate, "field", None)
        if name is None:
            continue
        if name not in schema.field_names:
            raise ValueError(
                f"Unknown {schema.entity} field {name!r}, expected one of: {', '.join(schema.field_names)}"
            )
        numeric = schema.field(name).numeric
        if isinstance(predicate, (NumericBound, NumericEquals)) and not numeric:
            raise ValueError(f"{name!r} is a text field, use 'in' / 'not in' to filter it")
        if isinstance(predicate, StringSet) and numeric:
            raise ValueError(f"{name!r} is a numeric field, use a comparison like {name}>=1")
    return filter_spec
