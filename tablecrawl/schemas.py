# tablecrawl/schemas.py

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

# Field kinds decide which normalizer reads the cell
TEXT = "text"      # trimmed cell text
STRICT = "strict"  # digits only (prices, costs)
LOOSE = "loose"    # first signed integer (age, talent, mastery)
LABEL = "label"    # flag image alt/title, else text (nationality)

NUMERIC_KINDS = (STRICT, LOOSE)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    patterns: Tuple[str, ...] = ()
    kind: str = TEXT
    required: bool = False
    # plausible (low, high) range; either end may be None
    magnitude: Optional[Tuple[Optional[int], Optional[int]]] = None

    @property
    def numeric(self):
        return self.kind in NUMERIC_KINDS

    def matches(self, header):
        """Test a normalized header text against this field's patterns."""
        return any(re.search(p, header) for p in self.patterns)

    def in_range(self, value):
        if self.magnitude is None:
            return True
        low, high = self.magnitude
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True


@dataclass(frozen=True)
class FallbackRule:
    """Structural guess for one numeric field when a table has no header row."""
    field: str
    window: str = "right"  # right | left | any
    width: int = 3
    low: Optional[int] = None
    high: Optional[int] = None


@dataclass(frozen=True)
class StructuralFallback:
    min_rows: int = 10
    min_cols: int = 5
    identity_window: int = 6
    min_link_hits: int = 4
    scan_rows: int = 10
    rules: Tuple[FallbackRule, ...] = ()


@dataclass(frozen=True)
class ColumnSchema:
    entity: str
    fields: Tuple[FieldSpec, ...]
    identity: str
    link_patterns: Tuple[str, ...]
    identity_fallback: Optional[str] = None
    sample_rows: int = 6
    preferred_selector: Optional[str] = None
    fallback: Optional[StructuralFallback] = None
    export_filename: str = "results.csv"
    default_dimensions: Tuple[Optional[str], ...] = (None,)
    default_sort: Optional[str] = None

    def field(self, name):
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    @property
    def field_names(self):
        return [spec.name for spec in self.fields]

    @property
    def required_fields(self):
        return [spec for spec in self.fields if spec.required]

    @property
    def export_fields(self):
        """Fields exported between the Name and Link columns."""
        return [spec for spec in self.fields if spec.name != self.identity]

    def link_matches(self, href):
        return bool(href) and any(p in href for p in self.link_patterns)


# --- Players list ---
PLAYERS = ColumnSchema(
    entity="players",
    fields=(
        FieldSpec("name", "Name", (r"player", r"игрок"), TEXT, required=True),
        FieldSpec("nat", "Nat", (r"^nat", r"^стран"), LABEL),
        FieldSpec("pos", "Pos", (r"^pos", r"^поз"), TEXT),
        # some lists label the age column "Year"
        FieldSpec("age", "Age", (r"^(year|age)$", r"^возр"), LOOSE),
        FieldSpec("tal", "Tal", (r"^tal",), LOOSE),
        FieldSpec("mas", "Mas", (r"\bmas\b",), LOOSE),
        FieldSpec("price", "Price", (r"price", r"цена", r"стоим"), STRICT, required=True),
    ),
    identity="name",
    link_patterns=("/player/",),
    export_filename="players_filtered.csv",
    default_sort="mas",
)

# --- Staff lists (coaches, goalkeeping coaches, physios) ---
STAFF = ColumnSchema(
    entity="staff",
    fields=(
        FieldSpec("name", "Name", (r"^(staff|name)$",), TEXT),
        FieldSpec("pos", "Role", (r"^pos",), TEXT, required=True),
        FieldSpec("nat", "Nat", (r"^nat",), LABEL),
        FieldSpec("age", "Age", (r"^(year|age)$",), LOOSE),
        FieldSpec("tal", "Tal", (r"^tal",), LOOSE, required=True),
        FieldSpec("mas", "Mas", (r"^mas",), LOOSE),
        FieldSpec("salary", "Salary", (r"(salary|wage|price)",), TEXT),
    ),
    identity="name",
    identity_fallback="pos",
    link_patterns=("/staff/",),
    preferred_selector="table#example",
    export_filename="staff_filtered.csv",
    default_dimensions=("Coach", "gCoach", "Phys"),
)

# --- Teams list ---
TEAMS = ColumnSchema(
    entity="teams",
    fields=(
        FieldSpec("name", "Name", (r"(team|команда|club)",), TEXT, required=True),
        FieldSpec("players", "Players", (r"^players?$", r"^игрок"), LOOSE, magnitude=(10, 30)),
        FieldSpec("power", "Power", (r"^(power|strength)", r"^сил"), LOOSE, magnitude=(200, 2000)),
        FieldSpec("price", "Price", (r"(price|цена|стоим|cost)",), STRICT, required=True),
    ),
    identity="name",
    link_patterns=("/team/", "/teams"),
    fallback=StructuralFallback(
        rules=(FallbackRule("price", window="right", width=3, low=50_000),),
    ),
    sample_rows=8,
    export_filename="teams_filtered.csv",
)

SCHEMAS = {schema.entity: schema for schema in (PLAYERS, STAFF, TEAMS)}
