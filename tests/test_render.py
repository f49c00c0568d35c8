# tests/test_render.py

import csv

from tablecrawl.extract import Record
from tablecrawl.render import ConsoleRenderer, CsvFileRenderer, MultiRenderer
from tablecrawl.results import ResultSink
from tablecrawl.schemas import PLAYERS


def sink_with(count, summary="Mas>70"):
    sink = ResultSink.for_schema(PLAYERS, summary)
    sink.extend(
        Record(f"P{i}", f"/player/{i}", {"nat": "Spain", "pos": "Cf", "age": 20, "tal": 5, "mas": 80, "price": 1000 + i})
        for i in range(count)
    )
    sink.add_scanned(20)
    return sink


# --- Test ConsoleRenderer ---

def test_console_progress_line():
    lines = []
    ConsoleRenderer(title="Players filter", out=lines.append).render(sink_with(3).snapshot())
    assert lines == ["🔄 Players filter: 3 matches (scanned ~20)"]

def test_console_final_table_is_limited():
    lines = []
    sink = sink_with(5)
    sink.finish()
    ConsoleRenderer(limit=2, out=lines.append).render(sink.snapshot())

    assert "🎉 Results: 5 matches (scanned ~20)" in lines[0]
    assert lines[1].strip() == "Mas>70"
    table = lines[2]
    assert "P0" in table and "P1" in table and "P2" not in table
    assert "Link" not in table
    assert lines[3].strip() == "... 3 more"

def test_console_nothing_matched():
    lines = []
    sink = sink_with(0, summary="")
    sink.finish()
    ConsoleRenderer(out=lines.append).render(sink.snapshot())
    assert lines[-1].strip() == "⚠️ Nothing matched"

# --- Test CsvFileRenderer ---

def test_csv_renderer_rewrites_file_each_time(tmp_path):
    renderer = CsvFileRenderer(str(tmp_path / "out"), "players_filtered.csv")
    sink = sink_with(2)
    renderer.render(sink.snapshot())
    sink.extend([Record("Late", "/player/99", {"price": 1})])
    sink.finish()
    renderer.render(sink.snapshot())

    with open(renderer.path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "#"
    assert [r[1] for r in rows[1:]] == ["P0", "P1", "Late"]

def test_csv_renderer_reports_saved_when_done(tmp_path, capsys):
    renderer = CsvFileRenderer(str(tmp_path), "x.csv")
    sink = sink_with(1)
    renderer.render(sink.snapshot())
    assert capsys.readouterr().out == ""
    sink.finish()
    renderer.render(sink.snapshot())
    assert "✅ Saved 1 rows" in capsys.readouterr().out

# --- Test MultiRenderer ---

def test_multi_renderer_calls_each_in_order():
    seen = []

    class Tag:
        def __init__(self, tag):
            self.tag = tag

        def render(self, snapshot):
            seen.append((self.tag, len(snapshot.results)))

    MultiRenderer(Tag("a"), None, Tag("b")).render(sink_with(1).snapshot())
    assert seen == [("a", 1), ("b", 1)]
