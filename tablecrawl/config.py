# tablecrawl/config.py

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlparse

from tablecrawl.schemas import SCHEMAS

logger = logging.getLogger(__name__)


@dataclass
class CrawlConfig:
    entry_url: str
    dimensions: Tuple[Optional[str], ...] = (None,)
    sort: Optional[str] = None
    start_offset: int = 0
    page_size: Optional[int] = None
    # pacing, seconds
    page_delay: float = 0.3
    dimension_delay: float = 0.6
    jitter: float = 0.25
    max_pages: int = 2000
    debug: bool = False
    debug_rows: int = 20
    # query parameter names of the list pages
    offset_param: str = "start"
    dimension_param: str = "pos"
    sort_param: str = "sort"
    output_dir: str = os.path.join("data", "processed")


def _env_bool(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _env_number(env, key, cast, default):
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, not a valid number; using %s", key, raw, default)
        return default


def env_defaults(environ=None):
    """Defaults that can be overridden from the environment."""
    env = os.environ if environ is None else environ
    return {
        "page_delay": _env_number(env, "TABLECRAWL_PAGE_DELAY", float, CrawlConfig.page_delay),
        "max_pages": _env_number(env, "TABLECRAWL_MAX_PAGES", int, CrawlConfig.max_pages),
        "debug": _env_bool(env.get("TABLECRAWL_DEBUG", "false")),
        "output_dir": env.get("TABLECRAWL_OUTPUT_DIR", CrawlConfig.output_dir),
    }


def build_arg_parser(environ=None):
    defaults = env_defaults(environ)
    parser = argparse.ArgumentParser(
        prog="tablecrawl",
        description="Crawl paginated list pages, filter the rows and export them to CSV.",
    )
    parser.add_argument("entity", choices=sorted(SCHEMAS), help="which list to crawl")
    parser.add_argument("url", nargs="?", help="list page URL (prompted for when omitted)")
    parser.add_argument(
        "-f", "--filter", dest="filters", action="append", default=[], metavar="EXPR",
        help="e.g. 'mas>70', 'price<=1000', 'nat in Spain,ESP', 'tal==3' (repeatable)",
    )
    dims = parser.add_mutually_exclusive_group()
    dims.add_argument(
        "-d", "--dimension", dest="dimensions", action="append", metavar="VALUE",
        help="position/role to crawl (repeatable); default depends on the list",
    )
    dims.add_argument("--all-dimensions", action="store_true", help="crawl without a position/role")
    dims.add_argument("--url-dimension", action="store_true", help="only the position/role in the URL")
    parser.add_argument("--sort", help="sort key requested from the site")
    parser.add_argument("--start", type=int, default=0, help="initial offset")
    parser.add_argument("--page-size", type=int, help="rows per page (default: first page's row count)")
    parser.add_argument("--page-delay", type=float, default=defaults["page_delay"])
    parser.add_argument("--dimension-delay", type=float, default=CrawlConfig.dimension_delay)
    parser.add_argument("--jitter", type=float, default=CrawlConfig.jitter)
    parser.add_argument("--max-pages", type=int, default=defaults["max_pages"])
    parser.add_argument("--debug", action="store_true", default=defaults["debug"])
    parser.add_argument("--output-dir", default=defaults["output_dir"])
    parser.add_argument("--browser", action="store_true", help="load pages in Chrome instead of requests")
    parser.add_argument(
        "--browser-cookies", action="store_true",
        help="fetch with requests, reusing the cookies of the Chrome profile",
    )
    parser.add_argument(
        "--headless", dest="headless", action="store_true", default=True,
        help="run Chrome without a window (default)",
    )
    parser.add_argument("--no-headless", dest="headless", action="store_false", help="show the Chrome window")
    parser.add_argument("--profile-dir", help="Chrome user data dir with a logged-in session")
    return parser


def resolve_dimensions(args, schema, entry_url, dimension_param="pos"):
    if args.all_dimensions:
        return (None,)
    if args.url_dimension:
        values = parse_qs(urlparse(entry_url).query).get(dimension_param)
        return (values[0] if values else None,)
    if args.dimensions:
        return tuple(args.dimensions)
    return tuple(schema.default_dimensions)


def resolve_sort(args, schema, entry_url, sort_param="sort"):
    """Explicit --sort, else the sort already in the URL (None keeps it), else the list default."""
    if args.sort is not None:
        return args.sort
    if parse_qs(urlparse(entry_url).query).get(sort_param):
        return None
    return schema.default_sort


def config_from_args(args, entry_url):
    schema = SCHEMAS[args.entity]
    return CrawlConfig(
        entry_url=entry_url,
        dimensions=resolve_dimensions(args, schema, entry_url),
        sort=resolve_sort(args, schema, entry_url),
        start_offset=args.start,
        page_size=args.page_size,
        page_delay=args.page_delay,
        dimension_delay=args.dimension_delay,
        jitter=args.jitter,
        max_pages=args.max_pages,
        debug=args.debug,
        output_dir=args.output_dir,
    )
