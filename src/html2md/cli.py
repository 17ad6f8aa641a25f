"""Command-line interface for html2md."""

import argparse
import asyncio
import posixpath
import re
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from rich.console import Console

from . import __version__
from .core import MarkdownConverter
from .images import unique_filename
from .logging_config import setup_logging
from .models.config import Html2mdConfig, PropertyDataType
from .models.results import ConversionResult


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="html2md",
        description="Convert HTML pages to Markdown, downloading the images they reference",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert one page into ./out (images alongside the Markdown)
  html2md https://example.com/blog/post.html -o out

  # Only convert the article, skip the comments, keep images apart
  html2md https://example.com/post -o out -i out/images -t article -e "div.comments"

  # Front matter taken from the page
  html2md https://example.com/post -o out --front-matter "Title=body > h1" "Date=time:date"
        """,
    )

    parser.add_argument("urls", nargs="+", metavar="URL", help="Pages to convert")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("."),
        help="Directory for Markdown files (default: current directory)",
    )
    parser.add_argument(
        "--image-output",
        "-i",
        type=Path,
        default=None,
        help="Directory for images (default: the Markdown directory)",
    )
    parser.add_argument("--config", "-c", type=Path, default=None, help="YAML configuration file")

    conversion_group = parser.add_argument_group("conversion")
    conversion_group.add_argument(
        "--include-tags",
        "--it",
        "-t",
        default=None,
        metavar="TAGS",
        help="Comma separated tag names or selectors to convert (default: whole body)",
    )
    conversion_group.add_argument(
        "--exclude-tags",
        "--et",
        "-e",
        default=None,
        metavar="TAGS",
        help="Comma separated tag names or selectors to skip",
    )
    conversion_group.add_argument("--default-code-language", default=None, metavar="LANG")
    conversion_group.add_argument(
        "--code-language-class-map",
        nargs="+",
        default=None,
        metavar="CLASS=LANG",
        help="Map a <pre> class token to a fenced code language",
    )
    conversion_group.add_argument(
        "--front-matter",
        nargs="+",
        default=None,
        metavar="NAME=SELECTOR[:date]",
        help="Emit front matter; append ':date' to format the value as a date",
    )

    network_group = parser.add_argument_group("network")
    network_group.add_argument("--max-concurrent", type=int, default=None, help="Pages converted at once")
    network_group.add_argument("--max-retries", type=int, default=None)
    network_group.add_argument("--user-agent", default=None)
    network_group.add_argument("--proxy", default=None)

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only report errors")

    return parser


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_pairs(values: list[str], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, mapped = value.partition("=")
        if not sep or not key.strip() or not mapped.strip():
            raise ValueError(f"{option} expects KEY=VALUE, got {value!r}")
        pairs[key.strip()] = mapped.strip()
    return pairs


def _parse_front_matter(values: list[str]) -> dict[str, dict[str, str]]:
    properties: dict[str, dict[str, str]] = {}
    for name, expression in _parse_pairs(values, "--front-matter").items():
        data_type = PropertyDataType.TEXT
        for candidate in PropertyDataType:
            suffix = f":{candidate.value}"
            if expression.lower().endswith(suffix):
                expression = expression[: -len(suffix)].strip()
                data_type = candidate
                break
        properties[name] = {"path": expression, "data_type": data_type.value}
    return properties


def build_config(args: argparse.Namespace) -> Html2mdConfig:
    """Combine the optional config file with command-line overrides."""
    base = Html2mdConfig.from_yaml_file(args.config) if args.config else Html2mdConfig()
    data = base.model_dump(mode="json")
    conversion = data["conversion"]
    network = data["network"]

    if args.include_tags is not None:
        conversion["include_tags"] = _split_list(args.include_tags)
    if args.exclude_tags is not None:
        conversion["exclude_tags"] = _split_list(args.exclude_tags)
    if args.default_code_language:
        conversion["default_code_language"] = args.default_code_language
    if args.code_language_class_map:
        conversion["code_language_class_map"].update(
            _parse_pairs(args.code_language_class_map, "--code-language-class-map")
        )
    if args.front_matter:
        conversion["front_matter"]["enabled"] = True
        conversion["front_matter"]["single_value_properties"].update(_parse_front_matter(args.front_matter))

    if args.max_concurrent is not None:
        network["max_concurrent"] = args.max_concurrent
    if args.max_retries is not None:
        network["max_retries"] = args.max_retries
    if args.user_agent:
        network["user_agent"] = args.user_agent
    if args.proxy:
        network["proxy"] = args.proxy

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return Html2mdConfig.model_validate(data)


def markdown_filename(url: str) -> str:
    """Name the output after the page: last path segment without extension."""
    segment = unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])
    stem = posixpath.splitext(segment)[0]
    stem = re.sub(r"[^\w\-.]", "_", stem).strip("._")
    return (stem or "index") + ".md"


def write_result(result: ConversionResult, output_dir: Path, image_dir: Path, console: Console) -> None:
    """Write every converted document and harvested image to disk."""
    output_dir.mkdir(parents=True, exist_ok=True)
    image_dir.mkdir(parents=True, exist_ok=True)

    taken: set[str] = set()
    for document in result.documents:
        path = output_dir / unique_filename(markdown_filename(document.source_url), taken)
        path.write_text(document.markdown, encoding="utf-8")
        console.print(f"Wrote [green]{path}[/green]")

    for image in result.images:
        path = image_dir / Path(image.filename).name
        path.write_bytes(image.data)
        console.print(f"Saved image [green]{path}[/green]")


def run_converter(args: argparse.Namespace) -> int:
    console = Console(stderr=True, quiet=args.quiet)

    try:
        config = build_config(args)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(level=config.log_level, log_file=config.log_file)

    async def run() -> ConversionResult:
        async with MarkdownConverter(config.conversion, network=config.network) as converter:
            return await converter.convert_batch(args.urls)

    if not args.quiet:
        console.print(f"[bold blue]html2md[/bold blue] v{__version__}")

    try:
        result = asyncio.run(run())
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        return 130

    write_result(result, args.output, args.image_output or args.output, console)

    for failure in result.failures:
        Console(stderr=True).print(f"[red]Failed:[/red] {failure.source_url} - {failure.message}")

    if not args.quiet:
        console.print()
        console.print("[bold]Results:[/bold]")
        console.print(f"  Documents converted: {len(result.documents)}")
        console.print(f"  Documents failed: {len(result.failures)}")
        console.print(f"  Images saved: {len(result.images)}")

    return 0 if result.succeeded else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_converter(args)


if __name__ == "__main__":
    sys.exit(main())
