# tablecrawl/cli.py

import logging
import sys

from tablecrawl.config import build_arg_parser, config_from_args
from tablecrawl.crawler import PaginationController
from tablecrawl.fetch import (
    BrowserPageSource,
    HttpPageSource,
    make_chrome_driver,
    session_from_driver,
)
from tablecrawl.filters import build_filter_spec, validate_filter_spec
from tablecrawl.render import ConsoleRenderer, CsvFileRenderer, MultiRenderer
from tablecrawl.schemas import SCHEMAS


def configure_logging(debug=False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def main(argv=None):
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    schema = SCHEMAS[args.entity]
    try:
        filter_spec = validate_filter_spec(build_filter_spec(args.filters), schema)
    except ValueError as e:
        parser.error(str(e))

    url = args.url or input("🔗 Paste the list page URL you want to crawl: ").strip()
    if not url:
        parser.error("a list page URL is required")

    config = config_from_args(args, url)
    renderer = MultiRenderer(
        ConsoleRenderer(title=f"{schema.entity.title()} filter"),
        CsvFileRenderer(config.output_dir, schema.export_filename),
    )

    print(f"🌐 Crawling {schema.entity} from {url}")
    print(f"📋 {filter_spec.describe()}")

    driver = None
    try:
        if args.browser:
            driver = make_chrome_driver(headless=args.headless, profile_dir=args.profile_dir)
            fetcher = BrowserPageSource(driver)
        elif args.browser_cookies:
            driver = make_chrome_driver(headless=args.headless, profile_dir=args.profile_dir)
            driver.get(url)
            fetcher = HttpPageSource(session=session_from_driver(driver))
        else:
            fetcher = HttpPageSource()
        controller = PaginationController(config, fetcher, schema, filter_spec, renderer)
        snapshot = controller.run()
    finally:
        if driver is not None:
            driver.quit()

    print(f"\n🎉 Done. Total {schema.entity} matched: {len(snapshot.results)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
