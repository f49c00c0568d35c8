# tablecrawl/results.py

import csv
from dataclasses import dataclass
from typing import Tuple

import pandas as pd

from tablecrawl.normalize import format_number


def _cell(value):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the accumulated results; safe to render at any time."""
    results: Tuple[object, ...]
    scanned_count: int
    done: bool
    columns: Tuple[Tuple[str, str], ...] = ()  # (field name, label)
    summary: str = ""

    @property
    def header(self):
        return ["#", "Name"] + [label for _, label in self.columns] + ["Link"]

    def to_frame(self):
        """
        One row per result, every value already rendered as text: integers
        without '.0' and missing numbers as ''.
        """
        rows = []
        for i, record in enumerate(self.results, start=1):
            row = [str(i), record.name]
            row.extend(_cell(record.get(name)) for name, _ in self.columns)
            row.append(record.link)
            rows.append(row)
        return pd.DataFrame(rows, columns=self.header, dtype=object)

    def to_csv(self):
        """Delimited export: every field quoted, embedded quotes doubled, LF rows."""
        return self.to_frame().to_csv(
            index=False,
            quoting=csv.QUOTE_ALL,
            lineterminator="\n",
        )


class ResultSink:
    """
    Accepted records in discovery order plus the scanned-row denominator.

    Nothing is ever re-sorted or de-duplicated.
    """

    def __init__(self, columns=(), summary=""):
        self.columns = tuple(columns)
        self.summary = summary
        self._results = []
        self.scanned_count = 0
        self.done = False

    @classmethod
    def for_schema(cls, schema, summary=""):
        return cls([(spec.name, spec.label) for spec in schema.export_fields], summary)

    def add(self, record):
        if self.done:
            raise RuntimeError("Result sink is closed")
        self._results.append(record)

    def extend(self, records):
        for record in records:
            self.add(record)

    def add_scanned(self, count):
        self.scanned_count += count

    def finish(self):
        self.done = True

    def snapshot(self):
        return Snapshot(
            results=tuple(self._results),
            scanned_count=self.scanned_count,
            done=self.done,
            columns=self.columns,
            summary=self.summary,
        )

    def export(self):
        return self.snapshot().to_csv()

    def __len__(self):
        return len(self._results)
