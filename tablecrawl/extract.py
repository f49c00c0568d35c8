# tablecrawl/extract.py

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple
from urllib.parse import urljoin

from tablecrawl.locator import (
    cell_at,
    cell_text,
    identity_link,
    locate_table,
    row_cells,
)
from tablecrawl.normalize import (
    NAN,
    clean_text,
    is_number,
    parse_int_loose,
    parse_int_strict,
)
from tablecrawl.schemas import LABEL, LOOSE, STRICT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """One extracted row. `values` is read-only; numeric fields may be NaN, text fields are never None."""
    name: str
    link: str = ""
    values: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key):
        if key == "name":
            return self.name
        if key == "link":
            return self.link
        return self.values[key]

    def get(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            return default


@dataclass(frozen=True)
class PageResult:
    records: Tuple[Record, ...] = ()
    per_page: int = 0
    found: bool = False


# -- Cell readers --
def read_label(cell):
    """Country label: flag <img alt=...> or title, otherwise the cell text."""
    if cell is None:
        return ""
    img = cell.find("img", alt=True) or cell.find("img", title=True)
    if img is not None:
        value = img.get("alt") or img.get("title")
        if value:
            return clean_text(value)
    return clean_text(cell_text(cell))


def read_cell(cell, spec):
    if spec.kind == STRICT:
        return parse_int_strict(cell_text(cell)) if cell is not None else NAN
    if spec.kind == LOOSE:
        return parse_int_loose(cell_text(cell)) if cell is not None else NAN
    if spec.kind == LABEL:
        return read_label(cell)
    return clean_text(cell_text(cell))


def guess_from_row(tr, spec, taken):
    """First numeric cell within `spec.magnitude`, skipping already mapped columns."""
    for i, cell in enumerate(row_cells(tr)):
        if i in taken:
            continue
        value = parse_int_strict(cell_text(cell))
        if is_number(value) and spec.in_range(value):
            return value
    return NAN


def _identity_column(column_map, schema):
    col = column_map.get(schema.identity)
    if col is None and schema.identity_fallback:
        col = column_map.get(schema.identity_fallback)
    return col


def row_is_complete(tr, located, schema):
    """
    False for separator and advert rows: too few cells to reach every
    required column, or nothing in the identity cell.
    """
    column_map = located.column_map
    ident_col = _identity_column(column_map, schema)
    needed = [column_map.get(spec.name) for spec in schema.required_fields]
    needed = [c for c in needed + [ident_col] if c is not None]
    if needed and len(row_cells(tr)) <= max(needed):
        return False
    ident_cell = cell_at(tr, ident_col)
    if ident_cell is None:
        return False
    return bool(cell_text(ident_cell) or ident_cell.find("a", href=True))


def extract_record(tr, located, schema, base_url=""):
    column_map = located.column_map
    ident_col = _identity_column(column_map, schema)
    ident_cell = cell_at(tr, ident_col)

    anchor = identity_link(ident_cell, schema)
    if anchor is None and ident_cell is not None:
        anchor = ident_cell.find("a", href=True)
    if anchor is not None:
        name = clean_text(anchor.get_text(" ", strip=True)) or clean_text(cell_text(ident_cell))
        link = urljoin(base_url, anchor["href"]) if base_url else anchor["href"]
    else:
        name = clean_text(cell_text(ident_cell))
        link = ""

    taken = {c for c in column_map.values() if c is not None}
    values = {}
    for spec in schema.fields:
        if spec.name == schema.identity:
            continue
        col = column_map.get(spec.name)
        if col is not None:
            values[spec.name] = read_cell(cell_at(tr, col), spec)
        elif spec.numeric and spec.magnitude is not None:
            values[spec.name] = guess_from_row(tr, spec, taken)
        else:
            values[spec.name] = NAN if spec.numeric else ""
    return Record(name=name, link=link, values=values)


def extract_rows(located, schema, base_url="", debug=False, debug_rows=20):
    """
    Build one Record per complete body row of a located table, in row order.

    `per_page` counts every body row, skipped ones included; pagination
    relies on it.
    """
    records = []
    for i, tr in enumerate(located.body_rows):
        if not row_is_complete(tr, located, schema):
            if debug and i < debug_rows:
                logger.debug("[%s][Skip] %s", schema.entity, cell_text(tr))
            continue
        record = extract_record(tr, located, schema, base_url)
        records.append(record)
        if debug and i < debug_rows:
            logger.debug("[%s][Row] %s %s", schema.entity, record.name, dict(record.values))
    return PageResult(tuple(records), len(located.body_rows), True)


def parse_page(document, schema, base_url="", debug=False, debug_rows=20):
    located = locate_table(document, schema)
    if located is None:
        if debug:
            logger.debug("No %s table found.", schema.entity)
        return PageResult()
    return extract_rows(located, schema, base_url, debug, debug_rows)
