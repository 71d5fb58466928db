"""notes-organizer — turn indented freeform notes into a categorized outline."""

import json
import sys
from argparse import ArgumentParser
from pathlib import Path

import app_runtime as rt
from app_contract import APP_VERSION, DEFAULT_LOCALE
from category_rules import supported_locales
from notes_analyzer import analyze


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="notes-organizer",
        description="Turn indented freeform notes into a categorized outline.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="Notes file to analyze (default: read stdin)",
    )
    parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--locale",
        choices=supported_locales(),
        help="Keyword language (default: LOCALE from config, else en)",
    )
    parser.add_argument(
        "--notion",
        action="store_true",
        help="Also append the outline to the configured Notion page",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )
    return parser


def read_input(file_arg: str) -> str:
    if file_arg == "-":
        return sys.stdin.read()
    return Path(file_arg).read_text("utf-8")


def fail(msg: str):
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


def run(args) -> None:
    try:
        cfg = rt.load_config()
    except json.JSONDecodeError as e:
        fail(f"Corrupt config {rt.CONFIG_PATH}: {e}")
    locale = args.locale or cfg.get("LOCALE") or DEFAULT_LOCALE

    try:
        text = read_input(args.file)
    except FileNotFoundError:
        fail(f"File not found: {args.file}")
    except UnicodeDecodeError:
        fail(f"Not a UTF-8 text file: {args.file}")
    except OSError as e:
        fail(f"Could not read {args.file}: {e.strerror or e}")

    try:
        result = analyze(text, locale=locale)
    except ValueError as e:  # EmptyInputError, or an unknown LOCALE in config
        fail(str(e))

    if args.output == "json":
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        sys.stdout.write(result.rendered_output)

    if args.notion:
        token = rt.keychain_get("NOTION_TOKEN")
        page_id = cfg.get("NOTION_PAGE_ID")
        if not token or not page_id:
            fail("Notion is not configured (NOTION_PAGE_ID in config + NOTION_TOKEN in keychain)")
        pipeline = rt.Pipeline(
            status_cb=rt.log,
            output_dir=Path.cwd(),
            notion_token=token,
            page_id=page_id,
            locale=locale,
        )
        source = "stdin" if args.file == "-" else Path(args.file).name
        try:
            url = pipeline.send_to_notion(result, source)
        except RuntimeError as e:
            fail(str(e))
        print(f"Appended to Notion: {url}", file=sys.stderr)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        run(args)
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)


if __name__ == "__main__":
    main()
