# tests/test_config.py

import os

import pytest

from tablecrawl.config import (
    CrawlConfig,
    build_arg_parser,
    config_from_args,
    env_defaults,
    resolve_dimensions,
    resolve_sort,
)
from tablecrawl.schemas import PLAYERS, STAFF


def parse(*argv, environ=None):
    return build_arg_parser(environ or {}).parse_args(list(argv))


# --- Test environment defaults ---

def test_env_defaults_without_environment():
    defaults = env_defaults({})
    assert defaults["page_delay"] == CrawlConfig.page_delay
    assert defaults["max_pages"] == 2000
    assert defaults["debug"] is False
    assert defaults["output_dir"] == os.path.join("data", "processed")

def test_env_defaults_from_environment():
    defaults = env_defaults({
        "TABLECRAWL_PAGE_DELAY": "1.5",
        "TABLECRAWL_MAX_PAGES": "10",
        "TABLECRAWL_DEBUG": "Yes",
        "TABLECRAWL_OUTPUT_DIR": "/tmp/x",
    })
    assert defaults == {"page_delay": 1.5, "max_pages": 10, "debug": True, "output_dir": "/tmp/x"}

def test_environment_feeds_parser_defaults():
    args = parse("players", environ={"TABLECRAWL_MAX_PAGES": "5"})
    assert args.max_pages == 5
    assert parse("players", "--max-pages", "7", environ={"TABLECRAWL_MAX_PAGES": "5"}).max_pages == 7

# --- Test dimensions and sort ---

def test_dimensions_default_per_schema():
    assert resolve_dimensions(parse("players"), PLAYERS, "https://x/players") == (None,)
    assert resolve_dimensions(parse("staff"), STAFF, "https://x/staffs") == ("Coach", "gCoach", "Phys")

def test_dimensions_explicit_all_and_from_url():
    url = "https://x/staffs?pos=Phys"
    assert resolve_dimensions(parse("staff", "-d", "Coach", "-d", "Phys"), STAFF, url) == ("Coach", "Phys")
    assert resolve_dimensions(parse("staff", "--all-dimensions"), STAFF, url) == (None,)
    assert resolve_dimensions(parse("staff", "--url-dimension"), STAFF, url) == ("Phys",)
    assert resolve_dimensions(parse("staff", "--url-dimension"), STAFF, "https://x/staffs") == (None,)

def test_dimension_flags_are_exclusive():
    with pytest.raises(SystemExit):
        parse("staff", "-d", "Coach", "--all-dimensions")

def test_sort_resolution():
    assert resolve_sort(parse("players", "--sort", "age"), PLAYERS, "https://x/players?sort=mas") == "age"
    assert resolve_sort(parse("players"), PLAYERS, "https://x/players?sort=price") is None
    assert resolve_sort(parse("players"), PLAYERS, "https://x/players") == "mas"
    assert resolve_sort(parse("staff"), STAFF, "https://x/staffs") is None

# --- Test config_from_args ---

def test_config_from_args():
    args = parse(
        "players", "https://x/players", "--start", "40", "--page-size", "20",
        "--page-delay", "0", "--jitter", "0", "--debug", "--output-dir", "out",
    )
    config = config_from_args(args, args.url)

    assert config.entry_url == "https://x/players"
    assert config.dimensions == (None,)
    assert config.sort == "mas"
    assert config.start_offset == 40
    assert config.page_size == 20
    assert config.page_delay == 0
    assert config.jitter == 0
    assert config.debug is True
    assert config.output_dir == "out"

def test_unknown_entity_rejected():
    with pytest.raises(SystemExit):
        parse("coaches")

def test_bad_numbers_in_environment_fall_back_to_defaults(caplog):
    defaults = env_defaults({"TABLECRAWL_PAGE_DELAY": "fast", "TABLECRAWL_MAX_PAGES": "lots"})
    assert defaults["page_delay"] == CrawlConfig.page_delay
    assert defaults["max_pages"] == CrawlConfig.max_pages
    assert "TABLECRAWL_PAGE_DELAY" in caplog.text
    assert parse("players", environ={"TABLECRAWL_MAX_PAGES": "1e3"}).max_pages == 2000

# --- Test browser flags ---

def test_headless_flags():
    assert parse("players").headless is True
    assert parse("players", "--headless").headless is True
    assert parse("players", "--no-headless").headless is False
