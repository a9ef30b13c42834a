from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from repo_md.config import MARKDOWN_SUFFIX
from repo_md.exceptions import MalformedMetadataError
from repo_md.file_manipulation import write_text_file
from repo_md.logging import logger
from repo_md.models import FileMetadata, ParsedDocument, Section
from repo_md.output_construction import FRONT_MATTER_SENTINEL

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

_FRONT_MATTER = re.compile(
    rf"\A{FRONT_MATTER_SENTINEL}\n(?P<meta>.*?)^{FRONT_MATTER_SENTINEL}\n(?P<body>.*)\Z",
    re.DOTALL | re.MULTILINE,
)
_ID_TAG = re.compile(r"^\[UUID:(?P<id>[^\]\n]*)\]$")
_CHUNK_BOUNDARY = re.compile(r"(?:\A|(?<=\n```\n)\n)\[UUID:([^\]\n]*)\]\n")
_FENCED = re.compile(r"\A```\n(?P<content>.*)\n```\n?\n?\Z", re.DOTALL)
_LINK = re.compile(r"\A\[(?P<label>[^\]]*)\]\((?P<url>.*)\)\Z")

_SCALAR_KEYS = (
    "title",
    "date",
    "github",
    "contributors",
    "latest_release",
    "release_date",
    "path",
    "size",
)


def split_front_matter(text: str, source: str = "") -> tuple[str, str]:
    """Separate the front matter block from the body.

    Args:
        text (str): the document text
        source (str): where the text comes from, for error messages

    Raises:
        MalformedMetadataError: if the document does not open with a delimited block.

    Returns:
        tuple[str, str]: the metadata lines (without sentinels) and the body
    """
    m = _FRONT_MATTER.match(text)
    if m is None:
        raise MalformedMetadataError(reason="front matter block not found", source=source)
    return m.group("meta"), m.group("body")


def _read_path(value: str, file_name: str) -> str:
    """Return the `path` field, unquoting the quoted form of older documents.

    A value whose last component already equals the file name is taken as is,
    so a path that really starts and ends with `"` survives.
    """
    if value.rsplit("/", 1)[-1] == file_name:
        return value
    if len(value) >= 2 and value[0] == value[-1] == '"':  # noqa: PLR2004
        try:
            unquoted = json.loads(value)
        except json.JSONDecodeError:
            return value
        if isinstance(unquoted, str):
            return unquoted
    return value


def parse_metadata(block: str, source: str = "") -> FileMetadata:
    """Read the front matter lines into a metadata record.

    Args:
        block (str): the lines between the two sentinel lines
        source (str): where the block comes from, for error messages

    Raises:
        MalformedMetadataError: if a field is missing, duplicated or ill-formed.

    Returns:
        FileMetadata: the parsed record
    """
    fields: dict[str, str] = {}
    tags: list[str] | None = None
    current_list: list[str] | None = None
    for line in block.removesuffix("\n").split("\n"):
        if line.startswith("- "):
            if current_list is None:
                raise MalformedMetadataError(reason=f"list item outside tags: {line!r}", source=source)
            current_list.append(line[2:])
            continue
        key, sep, value = line.partition(":")
        if not sep:
            raise MalformedMetadataError(reason=f"unexpected line {line!r}", source=source)
        key = key.strip()
        if key not in _SCALAR_KEYS and key != "tags":
            raise MalformedMetadataError(reason=f"unknown field {key!r}", source=source)
        if key in fields or (key == "tags" and tags is not None):
            raise MalformedMetadataError(reason=f"duplicate field {key!r}", source=source)
        if key == "tags":
            tags = current_list = []
            continue
        current_list = None
        fields[key] = value.removeprefix(" ")

    missing = [k for k in _SCALAR_KEYS if k not in fields]
    if tags is None:
        missing.append("tags")
    if missing:
        raise MalformedMetadataError(reason=f"missing fields: {', '.join(missing)}", source=source)

    ids = [m.group("id") for t in tags if (m := _ID_TAG.match(t))]
    languages = [t for t in tags if not _ID_TAG.match(t)]
    if len(ids) != 1 or len(languages) != 1:
        raise MalformedMetadataError(
            reason="tags must hold one language and one [UUID:...] entry",
            source=source,
        )
    link = _LINK.match(fields["github"])
    if link is None:
        raise MalformedMetadataError(reason="github must read [label](url)", source=source)

    try:
        return FileMetadata(
            title=fields["title"],
            date=fields["date"],
            language=languages[0],
            file_id=ids[0],
            github_label=link.group("label"),
            github_url=link.group("url"),
            contributors=fields["contributors"],
            latest_release=fields["latest_release"],
            release_date=fields["release_date"],
            path=_read_path(fields["path"], link.group("label")),
            size=fields["size"],
        )
    except ValidationError as e:
        raise MalformedMetadataError(reason=str(e), source=source) from e


def parse_sections(body: str, source: str = "") -> tuple[list[Section], str | None]:
    """Recover the tagged chunks, or the single fenced block, of a document body.

    The first line after the header decides the layout: a chunk tag opens a
    chunked body, anything else is one fenced block. Inside a chunked body a
    tag only counts at the start or right after a closing fence and a blank
    line, so tag-like lines in the content stay content.

    A fragment that is not exactly one fenced block after its tag is dropped
    with a warning; the rest of the body is still read.

    Args:
        body (str): everything after the front matter
        source (str): where the body comes from, for log messages

    Returns:
        tuple[list[Section], str | None]: the sections in body order, and the
            whole content for a document without chunk tags
    """
    rest = body.removeprefix("\n")
    # chunked document of an empty file
    if not rest.strip():
        return [], None

    if _CHUNK_BOUNDARY.match(rest) is None:
        m = _FENCED.match(rest)
        if m is None:
            logger.warning("document body has no fenced block", source=source)
            return [], None
        return [], m.group("content")

    tagged = _CHUNK_BOUNDARY.split(rest)[1:]
    sections: list[Section] = []
    for chunk_id, fragment in zip(tagged[::2], tagged[1::2], strict=True):
        m = _FENCED.match(fragment)
        if not chunk_id or m is None:
            logger.warning("dropping malformed chunk", source=source, chunk_id=chunk_id)
            continue
        sections.append(Section(uuid=chunk_id, content=m.group("content")))
    return sections, None


def parse_document(text: str, *, source: str = "") -> ParsedDocument:
    """Parse a generated document back into metadata and content.

    Args:
        text (str): the document text
        source (str): where the text comes from, for messages

    Raises:
        MalformedMetadataError: if the front matter is absent or invalid.

    Returns:
        ParsedDocument: the metadata plus sections (chunked) or content (whole)
    """
    meta, body = split_front_matter(text, source)
    metadata = parse_metadata(meta, source)
    sections, content = parse_sections(body, source)
    return ParsedDocument(file_metadata=metadata, sections=sections, content=content)


def _markdown_files(root: Path) -> list[Path]:
    """Depth-first listing of `.md` files under `root`, siblings in name order."""
    found: list[Path] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            found.extend(_markdown_files(entry))
        elif entry.is_file() and entry.suffix == MARKDOWN_SUFFIX:
            found.append(entry)
    return found


def aggregate(root: Path, *, strict: bool = True) -> list[ParsedDocument]:
    """Parse every markdown document under a directory.

    Empty files are skipped. Read errors always propagate.

    Args:
        root (Path): the directory to walk
        strict (bool): if False, documents with malformed metadata are logged
            and skipped instead of aborting the run

    Raises:
        MalformedMetadataError: on a malformed document when `strict` is True.
        OSError: if a directory or file cannot be read.

    Returns:
        list[ParsedDocument]: the collection, in traversal order
    """
    documents: list[ParsedDocument] = []
    for path in _markdown_files(root):
        text = path.read_bytes().decode("utf-8")
        if not text:
            continue
        try:
            documents.append(parse_document(text, source=str(path)))
        except MalformedMetadataError as e:
            if strict:
                raise
            logger.warning("skipping malformed document", source=str(path), reason=e.reason)
    logger.info("aggregated documents", root=str(root), documents=len(documents))
    return documents


def collection_to_json(documents: Sequence[ParsedDocument]) -> str:
    """Serialize a collection to a pretty-printed JSON array."""
    data: list[dict[str, Any]] = [doc.model_dump(mode="json") for doc in documents]
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_collection(documents: Sequence[ParsedDocument], destination: Path) -> None:
    write_text_file(destination, collection_to_json(documents))


def convert_markdown_to_json(source_dir: Path, destination: Path, *, strict: bool = True) -> int:
    """Aggregate a directory of documents into one JSON file.

    Returns:
        int: the number of documents written
    """
    documents = aggregate(source_dir, strict=strict)
    write_collection(documents, destination)
    return len(documents)
