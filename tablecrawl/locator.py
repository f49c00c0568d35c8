# tablecrawl/locator.py

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from tablecrawl.normalize import is_number, normalize_header, parse_int_strict

logger = logging.getLogger(__name__)


@dataclass
class LocatedTable:
    table: object
    column_map: Dict[str, Optional[int]]
    headers: List[str] = field(default_factory=list)
    body_rows: list = field(default_factory=list)
    strategy: str = "header"


def parse_document(markup):
    return BeautifulSoup(markup or "", "html.parser")


# --- Table structure helpers ---

def _owned(table, name):
    """Descendants called `name` that belong to `table` itself, not to a nested table."""
    return [el for el in table.find_all(name) if el.find_parent("table") is table]


def row_cells(tr):
    return tr.find_all(["td", "th"], recursive=False)


def cell_at(tr, index):
    if index is None:
        return None
    cells = row_cells(tr)
    return cells[index] if 0 <= index < len(cells) else None


def cell_text(cell):
    if cell is None:
        return ""
    return cell.get_text(" ", strip=True)


def header_row(table):
    """First row of the head section, or the first row of the table."""
    for thead in _owned(table, "thead"):
        rows = thead.find_all("tr", recursive=False)
        if rows:
            return rows[0]
    rows = _owned(table, "tr")
    return rows[0] if rows else None


def headers_absent(table):
    if _owned(table, "thead"):
        return False
    first = header_row(table)
    return first is None or first.find("th", recursive=False) is None


def body_rows(table, skip=None):
    """
    Rows of the first body section; without an explicit tbody, every row
    outside thead/tfoot. `skip` (the header row) is never returned.
    """
    tbodies = _owned(table, "tbody")
    if tbodies:
        rows = tbodies[0].find_all("tr", recursive=False)
    else:
        rows = [
            tr for tr in _owned(table, "tr")
            if tr.parent is not None and tr.parent.name not in ("thead", "tfoot")
        ]
    return [tr for tr in rows if tr is not skip]


def identity_link(cell, schema):
    """First anchor in `cell` whose href looks like the entity's detail link."""
    if cell is None:
        return None
    for a in cell.find_all("a", href=True):
        if schema.link_matches(a["href"]):
            return a
    return None


# --- Candidate checks ---

def _candidates(document, schema):
    seen = []
    if schema.preferred_selector:
        seen.extend(document.select(schema.preferred_selector))
    for table in document.find_all("table"):
        if not any(table is t for t in seen):
            seen.append(table)
    return seen


def _identity_column(column_map, schema):
    col = column_map.get(schema.identity)
    if col is None and schema.identity_fallback:
        col = column_map.get(schema.identity_fallback)
    return col


def _has_identity_links(rows, col, schema):
    return any(identity_link(cell_at(tr, col), schema) is not None for tr in rows)


def match_headers(table, schema):
    """Map schema fields to columns by header text; None if the table does not qualify."""
    head = header_row(table)
    if head is None:
        return None
    headers = [normalize_header(cell_text(c)) for c in row_cells(head)]

    column_map = {}
    for spec in schema.fields:
        column_map[spec.name] = next(
            (i for i, h in enumerate(headers) if spec.matches(h)), None
        )
    missing = [spec.name for spec in schema.required_fields if column_map[spec.name] is None]
    if missing:
        logger.debug("Table rejected, no header for %s: %s", missing, headers)
        return None

    rows = body_rows(table, skip=head)
    col = _identity_column(column_map, schema)
    if col is None or not _has_identity_links(rows[:schema.sample_rows], col, schema):
        logger.debug("Table rejected, no %s links in column %s", schema.link_patterns, col)
        return None

    return LocatedTable(table, column_map, headers, rows, "header")


def _window(rule, cols):
    if rule.window == "right":
        return list(range(cols - 1, max(-1, cols - 1 - rule.width), -1))
    if rule.window == "left":
        return list(range(0, min(cols, rule.width)))
    return list(range(cols))


def match_structure(table, schema):
    """Guess columns for a header-less table from link and number patterns."""
    fb = schema.fallback
    rows = body_rows(table)
    if len(rows) < fb.min_rows:
        return None
    cols = len(row_cells(rows[0]))
    if cols < fb.min_cols:
        return None
    sample = rows[:fb.scan_rows]

    ident = None
    for c in range(min(cols, fb.identity_window)):
        hits = sum(1 for tr in sample if identity_link(cell_at(tr, c), schema) is not None)
        if hits >= fb.min_link_hits:
            ident = c
            break
    if ident is None:
        return None

    column_map = {spec.name: None for spec in schema.fields}
    column_map[schema.identity] = ident

    for rule in fb.rules:
        best_col, best = None, 0
        for c in _window(rule, cols):
            if c == ident:
                continue
            hits = 0
            for tr in sample:
                value = parse_int_strict(cell_text(cell_at(tr, c)))
                if not is_number(value):
                    continue
                if rule.low is not None and value < rule.low:
                    continue
                if rule.high is not None and value > rule.high:
                    continue
                hits += 1
            if hits > best:
                best_col, best = c, hits
        column_map[rule.field] = best_col

    missing = [spec.name for spec in schema.required_fields if column_map[spec.name] is None]
    if missing:
        logger.debug("Structural guess failed for %s", missing)
        return None
    return LocatedTable(table, column_map, [], rows, "structural")


def locate_table(document, schema):
    """
    Find the table holding `schema`'s entities.

    Header matching runs over every candidate first (document order, with the
    schema's preferred selector in front). Only when no table qualifies and
    the schema has a structural fallback are header-less tables guessed at.
    Returns a LocatedTable or None.
    """
    candidates = _candidates(document, schema)
    for table in candidates:
        hit = match_headers(table, schema)
        if hit:
            return hit

    if schema.fallback is not None:
        for table in candidates:
            if not headers_absent(table):
                continue
            hit = match_structure(table, schema)
            if hit:
                logger.debug("Using structural guess for %s table: %s", schema.entity, hit.column_map)
                return hit

    return None
