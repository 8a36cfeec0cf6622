"""
Entry point for the content import tool.
"""

import argparse
import sys
from collections import Counter

from content_migrator.extractors.import_source import load_import_source
from content_migrator.import_tool import ContentImportTool
from content_migrator.utils.errors import ImportAbortedError

CONFIG_FILE = "config/import_config.json"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import an exported content graph into a Kontent.ai project.")
    parser.add_argument("--source", required=True, help="Path to the JSON export file")
    parser.add_argument("--config", default=CONFIG_FILE, help=f"Path to the JSON config file (default: {CONFIG_FILE})")
    parser.add_argument("--skip-failed-items", action="store_true", help="Log and skip content items that fail to import")
    parser.add_argument("--report-dir", default=None, help="Directory for log and JSON Lines reports")
    return parser.parse_args(argv)


def summarize(results):
    """Return ``{"<item type> <action>": count}`` for the ledger, fetches excluded."""
    counts = Counter(f"{r.item_type} {r.action}" for r in results if r.action != "fetch")
    return dict(sorted(counts.items()))


def main(argv=None):
    """
    Main function to run the content import tool.
    """
    args = parse_args(argv)

    tool = ContentImportTool(config_file=args.config)
    if args.skip_failed_items:
        tool.skip_failed_items = True
    if args.report_dir:
        tool.observer.report_dir = args.report_dir

    tool.log_message("Starting content import.")

    try:
        source = load_import_source(args.source)
    except (OSError, ValueError) as e:
        tool.log_message(f"Could not load export file '{args.source}': {e}", level="ERROR")
        return 1

    tool.log_message(
        f"Found {len(source.import_data.assets)} assets and {len(source.import_data.items)} content item rows to import."
    )

    try:
        results = tool.import_source(source)
    except ImportAbortedError as e:
        for key, count in summarize(e.results).items():
            tool.log_message(f"{key}: {count}", level="WARNING")
        return 1

    for key, count in summarize(results).items():
        tool.log_message(f"{key}: {count}")
    tool.log_message("Import process finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
