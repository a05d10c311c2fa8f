"""
Unified diff parsing and indexing of pull request changes.

The diff text is supplied by the caller (a file or stdin); nothing here runs
git. Changed files are indexed into a DocumentStore under
`pr:<ref>:<filename>` sources so they can be retrieved next to the docs.
"""

import logging
from dataclasses import dataclass, field

from devassistant.retrieval.chunker import chunk_text
from devassistant.retrieval.store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class ChangedFile:
    """One file touched by a diff."""

    path: str
    """Path on the new (b/) side of the diff."""

    changes: list[str] = field(default_factory=list)
    """Added and removed lines, including their +/- prefix."""

    status: str = "modified"
    """One of added, deleted, renamed, modified."""

    @property
    def additions(self) -> int:
        return sum(1 for line in self.changes if line.startswith("+"))

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.changes if line.startswith("-"))

    @property
    def patch(self) -> str:
        return "\n".join(self.changes)

    @property
    def added_lines(self) -> list[tuple[int, str]]:
        """(1-based position within `changes`, line) for every added line."""
        return [
            (position, line)
            for position, line in enumerate(self.changes, start=1)
            if line.startswith("+")
        ]


def parse_diff(diff: str) -> list[ChangedFile]:
    """
    Split a unified diff into changed files.

    Args:
        diff: Output of `git diff` or `gh pr diff`

    Returns:
        Changed files in diff order; files without +/- lines (pure renames,
        mode changes, binaries) are dropped
    """
    files: list[ChangedFile] = []
    current: ChangedFile | None = None

    for line in diff.splitlines():
        if line.startswith("diff --git"):
            if current is not None and current.changes:
                files.append(current)
            current = ChangedFile(path=_path_from_header(line))
        elif current is None:
            continue
        elif line.startswith("new file mode"):
            current.status = "added"
        elif line.startswith("deleted file mode"):
            current.status = "deleted"
        elif line.startswith("rename from") or line.startswith("rename to"):
            current.status = "renamed"
        elif line.startswith("+++") or line.startswith("---"):
            continue
        elif line.startswith("+") or line.startswith("-"):
            current.changes.append(line)

    if current is not None and current.changes:
        files.append(current)

    return files


def _path_from_header(line: str) -> str:
    # diff --git a/src/app.py b/src/app.py
    _, sep, path = line.partition(" b/")
    return path.strip() if sep else line.split()[-1]


def index_changes(
    store: DocumentStore,
    files: list[ChangedFile],
    ref: str,
    chunk_size: int = 500,
    chunk_overlap: int = 50,
) -> int:
    """
    Add every changed file to the store as pull request context.

    Args:
        store: Store to add to (not cleared)
        files: Parsed diff
        ref: Pull request reference used in the source name
        chunk_size: Words per chunk for long patches
        chunk_overlap: Words shared by consecutive chunks

    Returns:
        Number of documents added
    """
    added = 0
    for changed in files:
        content = f"File: {changed.path}\nStatus: {changed.status}\nChanges:\n{changed.patch}"
        for chunk in chunk_text(content, chunk_size, chunk_overlap):
            store.add(
                content=chunk,
                source=f"pr:{ref}:{changed.path}",
                metadata={
                    "type": "pr_diff",
                    "file": changed.path,
                    "status": changed.status,
                },
            )
            added += 1

    logger.info(f"Indexed {len(files)} changed files from {ref} ({added} documents)")
    return added
