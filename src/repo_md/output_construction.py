from __future__ import annotations

import io
import uuid
from typing import TYPE_CHECKING

from repo_md.file_manipulation import build_tree_lines

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from repo_md.models import FileMetadata

FRONT_MATTER_SENTINEL = "---"
FENCE = "```"
CHUNK_TAG = "[UUID:{}]"

CHUNK_TARGET = 512
NEWLINE_LOOKBACK_START = 500
CHUNK_LIMIT = 750

# information separators: str.isspace() accepts them, Unicode White_Space does not
_NOT_WHITESPACE = frozenset("\x1c\x1d\x1e\x1f")


def _is_whitespace(ch: str) -> bool:
    return ch.isspace() and ch not in _NOT_WHITESPACE


def new_id() -> str:
    """Return a random UUID4 in canonical hyphenated form."""
    return str(uuid.uuid4())


def _chunk_end(content: str, cursor: int) -> int:
    """Find where the chunk starting at `cursor` ends (exclusive).

    Preference order: a newline in [cursor+500, cursor+512], a newline in
    [cursor+512, cursor+750), a whitespace in the same extended window (left
    for the next chunk), else a hard cut at cursor+512.
    """
    length = len(content)
    end = cursor + CHUNK_TARGET
    if end >= length:
        return length

    nl = content.find("\n", cursor + NEWLINE_LOOKBACK_START, end + 1)
    if nl != -1:
        return nl + 1

    limit = min(cursor + CHUNK_LIMIT, length)
    nl = content.find("\n", end, limit)
    if nl != -1:
        return nl + 1

    for i in range(end, limit):
        if _is_whitespace(content[i]):
            return i
    return end


def chunk_content(content: str) -> list[str]:
    """Split text into near-fixed-size chunks that prefer line boundaries.

    Chunks target 512 characters and may stretch to 750 to end on a newline
    or before a whitespace. Concatenating the result gives back `content`.

    Args:
        content (str): the text to split

    Returns:
        list[str]: the chunks in order; empty for empty content
    """
    chunks: list[str] = []
    cursor = 0
    while cursor < len(content):
        end = _chunk_end(content, cursor)
        chunks.append(content[cursor:end])
        cursor = end
    return chunks


def compose_header(metadata: FileMetadata) -> str:
    """Render the front matter block of a document.

    Values are written verbatim; a value containing a `---` line breaks parsing.

    Args:
        metadata (FileMetadata): the record to render

    Returns:
        str: the block, both sentinel lines included, ending with a newline
    """
    lines = [
        FRONT_MATTER_SENTINEL,
        f"title: {metadata.title}",
        f"date: {metadata.date}",
        "tags:",
        f"- {metadata.language}",
        f"- {CHUNK_TAG.format(metadata.file_id)}",
        f"github: [{metadata.github_label}]({metadata.github_url})",
        f"contributors: {metadata.contributors}",
        f"latest_release: {metadata.latest_release}",
        f"release_date: {metadata.release_date}",
        f"path: {metadata.path}",
        f"size: {metadata.size}",
        FRONT_MATTER_SENTINEL,
    ]
    return "\n".join(lines) + "\n"


def fenced(content: str) -> str:
    return f"{FENCE}\n{content}\n{FENCE}\n"


def assemble_whole(metadata: FileMetadata, content: str) -> str:
    """Build a document holding the whole file content in one fenced block."""
    return f"{compose_header(metadata)}\n{fenced(content)}"


def assemble_chunked(
    metadata: FileMetadata,
    chunks: Sequence[str],
    *,
    id_factory: Callable[[], str] = new_id,
) -> str:
    """Build a document holding one tagged fenced block per chunk.

    Args:
        metadata (FileMetadata): the front matter of the document
        chunks (Sequence[str]): the chunk contents, in file order
        id_factory (Callable[[], str]): source of chunk identifiers

    Returns:
        str: the document text
    """
    blocks = [f"{CHUNK_TAG.format(id_factory())}\n{fenced(chunk)}" for chunk in chunks]
    return f"{compose_header(metadata)}\n" + "\n".join(blocks)


def build_single_markdown(repo_name: str, files: Sequence[tuple[str, str]]) -> str:
    """Build one markdown blob for a whole repository.

    The blob has a title, the file tree and one fenced section per file.

    Args:
        repo_name (str): name shown as title and tree root
        files (Sequence[tuple[str, str]]): (relative path, content) pairs in output order

    Returns:
        str: the markdown blob
    """
    out = io.StringIO()
    out.write(f"# {repo_name}\n\n")
    out.write("## Structure\n")
    out.write(f"{FENCE}text\n")
    out.write("\n".join(build_tree_lines(repo_name, [rel for rel, _ in files])))
    out.write(f"\n{FENCE}\n\n")
    for rel, content in files:
        out.write(f"## File: {rel}\n\n{fenced(content)}")
    return out.getvalue()
