# tablecrawl/render.py

import os


class ConsoleRenderer:
    """Progress line per page; the final snapshot is printed as a table."""

    def __init__(self, title="Results", limit=20, out=print):
        self.title = title
        self.limit = limit
        self.out = out

    def render(self, snapshot):
        count = len(snapshot.results)
        if not snapshot.done:
            self.out(f"🔄 {self.title}: {count} matches (scanned ~{snapshot.scanned_count})")
            return

        self.out(f"\n🎉 {self.title}: {count} matches (scanned ~{snapshot.scanned_count}) ✓")
        if snapshot.summary:
            self.out(f"   {snapshot.summary}")
        if count:
            df = snapshot.to_frame()
            self.out(df.drop(columns=["Link"]).head(self.limit).to_string(index=False))
            if count > self.limit:
                self.out(f"   ... {count - self.limit} more")
        else:
            self.out("   ⚠️ Nothing matched")


class CsvFileRenderer:
    """Rewrite the export file on every render, so an interrupted crawl keeps what it found."""

    def __init__(self, output_dir, filename):
        self.output_dir = output_dir
        self.filename = filename

    @property
    def path(self):
        return os.path.join(self.output_dir, self.filename)

    def render(self, snapshot):
        os.makedirs(self.output_dir, exist_ok=True)
        with open(self.path, "w", newline="", encoding="utf-8") as f:
            f.write(snapshot.to_csv())
        if snapshot.done:
            print(f"   ✅ Saved {len(snapshot.results)} rows → {self.path}")


class MultiRenderer:
    def __init__(self, *renderers):
        self.renderers = [r for r in renderers if r is not None]

    def render(self, snapshot):
        for renderer in self.renderers:
            renderer.render(snapshot)
