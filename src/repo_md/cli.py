"""
repo_md: render a repository as annotated markdown, and read it back.

Commands
--------
generate
    Write the repository's text files as markdown documents with front matter:

    - ``--mode single``: one blob ``<output>/<repo>.md``;
    - ``--mode multi``: one document per file, ``<output>/<repo>/<path>.md``;
    - ``--mode dataset``: same layout, content split into tagged chunks.

to-json
    Parse every document under a directory and write the collection as JSON.

Usage
-----
    repo-md generate --repo path/to/repo --mode dataset --output dataset
    repo-md to-json --source dataset/repo --output repo.json
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from repo_md import __version__
from repo_md.config import GenerationMode
from repo_md.exceptions import RepoMdError
from repo_md.generation import generate
from repo_md.logging import logger, setup_logging
from repo_md.parsing import convert_markdown_to_json
from repo_md.settings import IngestSettings, Settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="repo-md",
        description="Render a repository as markdown documents, or convert them to JSON.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Write markdown documents for a repository.")
    gen.add_argument("--repo", type=str, default=".", help="Repository root.")
    gen.add_argument(
        "--output",
        type=str,
        default=None,
        help="Base output directory (default: markdown/ or dataset/).",
    )
    gen.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in GenerationMode],
        default=GenerationMode.DATASET.value,
        help="single blob, one document per file, or chunked documents.",
    )
    gen.add_argument("--no-git", action="store_true", help="Do not query git.")
    gen.add_argument("--lang-map", type=str, default=None, help="YAML language table.")
    gen.add_argument("--log-file", type=str, default="", help="Log file path.")

    ing = sub.add_parser("to-json", help="Convert a directory of documents to JSON.")
    ing.add_argument("--source", type=str, required=True, help="Directory of documents.")
    ing.add_argument("--output", type=str, required=True, help="JSON file to write.")
    ing.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Skip documents with malformed metadata instead of failing.",
    )
    ing.add_argument("--log-file", type=str, default="", help="Log file path.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings | IngestSettings:
    args = vars(build_parser().parse_args(argv))
    command = args.pop("command")
    if command == "to-json":
        return IngestSettings(**args)
    return Settings(**args)


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        if isinstance(settings, IngestSettings):
            count = convert_markdown_to_json(
                settings.source,
                settings.output,
                strict=not settings.skip_malformed,
            )
            print(f"Wrote {settings.output} documents={count}")
        else:
            written = generate(settings)
            print(f"Wrote {len(written)} file(s) to {settings.output_dir} mode={settings.mode}")
    except (RepoMdError, OSError, UnicodeDecodeError) as e:
        logger.error("command failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
