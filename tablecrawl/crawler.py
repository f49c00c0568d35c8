# tablecrawl/crawler.py

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from tablecrawl.extract import PageResult, parse_page
from tablecrawl.filters import FilterSpec, passes
from tablecrawl.locator import parse_document
from tablecrawl.results import ResultSink

logger = logging.getLogger(__name__)


class CrawlPhase(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    FILTERING = "filtering"
    RENDERING = "rendering"
    ADVANCING = "advancing"
    STOPPED = "stopped"  # current dimension finished
    DONE = "done"


def build_page_url(entry_url, offset, dimension=None, sort=None,
                   offset_param="start", dimension_param="pos", sort_param="sort"):
    """
    URL of one list page. Every query parameter of `entry_url` other than the
    paging ones is carried over. dimension=None drops the dimension parameter
    ("all"); sort=None keeps whatever sort the entry URL already had.
    """
    parts = urlparse(entry_url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    existing_sort = next((v for k, v in params if k == sort_param), None)
    kept = [(k, v) for k, v in params if k not in (offset_param, dimension_param, sort_param)]

    if dimension is not None:
        kept.append((dimension_param, str(dimension)))
    sort_value = sort if sort is not None else existing_sort
    if sort_value is not None:
        kept.append((sort_param, sort_value))
    kept.append((offset_param, str(offset)))
    return urlunparse(parts._replace(query=urlencode(kept)))


class Pacer:
    """Randomized delay within delay*(1 ± jitter), never negative."""

    def __init__(self, delay, jitter=0.0, rng=None):
        self.delay = delay
        self.jitter = jitter
        self.rng = rng or random.Random()

    def next_delay(self):
        if self.delay <= 0:
            return 0.0
        spread = self.delay * self.jitter
        return max(0.0, self.rng.uniform(self.delay - spread, self.delay + spread))


@dataclass
class CrawlState:
    sink: ResultSink
    phase: CrawlPhase = CrawlPhase.IDLE
    dimension_index: int = 0
    dimension: Optional[str] = None
    offset: int = 0
    page_index: int = 0
    page_size: Optional[int] = None
    pages_fetched: int = 0
    last_page: PageResult = field(default_factory=PageResult)


class PaginationController:
    """
    Drives the crawl one page at a time:

        IDLE -> FETCHING -> EXTRACTING -> FILTERING -> RENDERING
             -> ADVANCING -> FETCHING ...   or   -> STOPPED -> (next dimension | DONE)

    A dimension stops on a failed fetch, a page without a matching table, an
    empty page, a page shorter than the page size, or after `max_pages` pages.
    Every fetch waits for the previous page to be rendered and for a pacing
    delay.
    """

    def __init__(self, config, fetcher, schema, filter_spec=None, renderer=None,
                 sleep=time.sleep, rng=None):
        self.config = config
        self.fetcher = fetcher
        self.schema = schema
        self.filter_spec = filter_spec or FilterSpec()
        self.renderer = renderer
        self.sleep = sleep
        self.dimensions = list(config.dimensions) or [None]
        self.page_pacer = Pacer(config.page_delay, config.jitter, rng)
        self.dimension_pacer = Pacer(config.dimension_delay, config.jitter, rng)
        self.state = CrawlState(sink=ResultSink.for_schema(schema, self.filter_spec.describe()))

    @property
    def dimension_label(self):
        return self.state.dimension if self.state.dimension is not None else "all"

    def _enter(self, phase):
        logger.debug("%s -> %s", self.state.phase.value, phase.value)
        self.state.phase = phase

    def _pause(self, pacer):
        delay = pacer.next_delay()
        if delay > 0:
            self.sleep(delay)

    def _start_dimension(self, index):
        state = self.state
        state.dimension_index = index
        state.dimension = self.dimensions[index]
        state.offset = self.config.start_offset if index == 0 else 0
        state.page_index = 0
        state.page_size = self.config.page_size
        logger.info("Crawling %s (%s), offset %s", self.schema.entity, self.dimension_label, state.offset)

    def step(self):
        """Fetch and process one page (or finish). Returns the phase reached."""
        state = self.state
        if state.phase is CrawlPhase.DONE:
            return state.phase

        if state.phase is CrawlPhase.IDLE:
            self._start_dimension(0)
        elif state.phase is CrawlPhase.STOPPED:
            next_index = state.dimension_index + 1
            if next_index >= len(self.dimensions):
                self.finish()
                return state.phase
            self._pause(self.dimension_pacer)
            self._start_dimension(next_index)
        elif state.phase is CrawlPhase.ADVANCING:
            self._pause(self.page_pacer)

        self._process_page()
        return state.phase

    def _process_page(self):
        state = self.state
        config = self.config
        url = build_page_url(
            config.entry_url, state.offset, state.dimension, config.sort,
            config.offset_param, config.dimension_param, config.sort_param,
        )

        self._enter(CrawlPhase.FETCHING)
        result = self.fetcher.fetch_page(url)
        state.pages_fetched += 1
        if not result.ok:
            logger.error("HTTP %s, stopping %s @ %s %s", result.status, self.dimension_label, url, result.error or "")
            self._enter(CrawlPhase.STOPPED)
            return

        self._enter(CrawlPhase.EXTRACTING)
        page = parse_page(
            parse_document(result.body), self.schema, base_url=url,
            debug=config.debug and state.page_index == 0, debug_rows=config.debug_rows,
        )
        state.last_page = page
        if not page.found and not page.records:
            if state.page_index == 0:
                logger.warning(
                    "No %s table on the first page of %s @ %s, check the schema or the URL",
                    self.schema.entity, self.dimension_label, url,
                )
            else:
                logger.info("No table @ offset %s, end of %s", state.offset, self.dimension_label)
            self._enter(CrawlPhase.STOPPED)
            return
        if page.per_page == 0:
            logger.info("Empty page @ offset %s, end of %s", state.offset, self.dimension_label)
            self._enter(CrawlPhase.STOPPED)
            return

        if state.page_size is None:
            state.page_size = page.per_page
        state.sink.add_scanned(page.per_page)

        self._enter(CrawlPhase.FILTERING)
        matched = [record for record in page.records if passes(record, self.filter_spec)]
        state.sink.extend(matched)
        logger.debug("Offset %s: %s rows, %s matched", state.offset, page.per_page, len(matched))

        self._enter(CrawlPhase.RENDERING)
        self._render()
        state.page_index += 1

        if page.per_page < state.page_size:
            logger.info("Last page size %s < %s, end of %s", page.per_page, state.page_size, self.dimension_label)
            self._enter(CrawlPhase.STOPPED)
        elif state.page_index >= config.max_pages:
            logger.warning("Reached %s pages for %s, stopping", config.max_pages, self.dimension_label)
            self._enter(CrawlPhase.STOPPED)
        else:
            state.offset += state.page_size
            self._enter(CrawlPhase.ADVANCING)

    def _render(self):
        if self.renderer is not None:
            self.renderer.render(self.state.sink.snapshot())

    def finish(self):
        """Freeze the crawl and render the final snapshot (only once)."""
        if self.state.phase is CrawlPhase.DONE:
            return
        self.state.sink.finish()
        self._enter(CrawlPhase.DONE)
        self._render()
        logger.info(
            "Done. Matches: %s Scanned: %s", len(self.state.sink), self.state.sink.scanned_count
        )

    def run(self):
        try:
            while self.state.phase is not CrawlPhase.DONE:
                self.step()
        finally:
            self.finish()
        return self.state.sink.snapshot()
