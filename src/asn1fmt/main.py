from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from asn1fmt.config import FormatConfig
from asn1fmt.formatter import format_asn1
from asn1fmt.highlight import highlight_html
from asn1fmt.markdown import format_markdown

MARKDOWN_SUFFIXES = (".md", ".markdown")


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _format_text(path: str, text: str, config: FormatConfig) -> str:
    if path.lower().endswith(MARKDOWN_SUFFIXES):
        return format_markdown(text, config)
    return format_asn1(text, config)


def run_format(
    paths: List[str],
    config: FormatConfig,
    *,
    in_place: bool = False,
    check: bool = False,
) -> int:
    """Format each path. Returns the process exit status."""
    changed: List[str] = []

    for path in paths:
        try:
            original = _read_source(path)
        except OSError as e:
            print(f"Cannot read {path}: {e}", file=sys.stderr)
            return 1

        formatted = _format_text(path, original, config)

        if formatted != original:
            changed.append(path)

        if check:
            continue
        if in_place and path != "-":
            if formatted != original:
                Path(path).write_text(formatted, encoding="utf-8")
                print(f"  Formatted {path}")
        else:
            sys.stdout.write(formatted)

    if check:
        for path in changed:
            print(f"Would reformat {path}")
        return 1 if changed else 0
    return 0


def run_highlight(path: str, output: Optional[str], *, standalone: bool) -> int:
    try:
        text = _read_source(path)
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)
        return 1

    html = highlight_html(text, standalone=standalone, title=Path(path).name)
    if output:
        Path(output).write_text(html, encoding="utf-8")
        print(f"  Generated {output}")
    else:
        sys.stdout.write(html)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asn1fmt",
        description="ASN.1 schema formatter",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    fmt = sub.add_parser("format", help="Reformat ASN.1 (or Markdown with ```asn1 blocks)")
    fmt.add_argument("paths", nargs="+", help="Files to format, or - for stdin")
    fmt.add_argument("--indent", type=int, default=FormatConfig.indent_width,
                     help="Spaces per indentation level")
    fmt.add_argument("--max-line-length", type=int, default=FormatConfig.max_line_length,
                     help="Line length used when --wrap is given")
    fmt.add_argument("--wrap", action="store_true",
                     help="Expand long brace lists one member per line")
    mode = fmt.add_mutually_exclusive_group()
    mode.add_argument("--in-place", action="store_true", help="Rewrite files in place")
    mode.add_argument("--check", action="store_true",
                      help="Exit with status 1 if any file would change")

    hl = sub.add_parser("highlight", help="Render ASN.1 as highlighted HTML")
    hl.add_argument("path", help="File to highlight, or - for stdin")
    hl.add_argument("--output", "-o", help="Write HTML here instead of stdout")
    hl.add_argument("--standalone", action="store_true",
                    help="Emit a full HTML page with a stylesheet")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "highlight":
        return run_highlight(args.path, args.output, standalone=args.standalone)

    config = FormatConfig(
        indent_width=args.indent,
        max_line_length=args.max_line_length,
        wrap_long_lines=args.wrap,
    ).validated()
    return run_format(args.paths, config, in_place=args.in_place, check=args.check)


if __name__ == "__main__":
    sys.exit(main())
