"""
Directory indexing for the document store.

Walks a documentation tree, chunks every supported file and rebuilds the
store from scratch, then persists it.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from devassistant.config import Settings, get_settings
from devassistant.retrieval.chunker import chunk_text
from devassistant.retrieval.store import DocumentStore

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset(
    {"md", "txt", "rst", "json", "yaml", "yml", "toml", "py", "kt", "java"}
)

README_NAME = "README.md"


@dataclass
class IndexReport:
    """Outcome of an indexing run."""

    files_indexed: list[str] = field(default_factory=list)
    chunks_indexed: int = 0
    skipped: dict[str, str] = field(default_factory=dict)
    """Files that could not be read, mapped to the reason."""

    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def is_supported(path: Path) -> bool:
    """Check whether a file extension is on the allow-list."""
    return path.suffix.lower().lstrip(".") in SUPPORTED_EXTENSIONS


class DocumentIndexer:
    """
    Rebuild a DocumentStore from a directory tree.

    Example:
        >>> indexer = DocumentIndexer(store)
        >>> report = indexer.index_directory("project")
        >>> report.chunks_indexed
        42
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[Settings] = None,
        root: Optional[str | Path] = None,
    ) -> None:
        """
        Initialize the indexer.

        Args:
            store: Store to rebuild
            settings: Chunking and traversal settings (default from environment)
            root: Working root searched for README.md (default: current directory)
        """
        self.store = store
        self.settings = settings or get_settings()
        self.root = Path(root) if root is not None else Path.cwd()

    def index_directory(self, path: str | Path) -> IndexReport:
        """
        Clear the store, index README.md and every supported file under path, save.

        Args:
            path: Directory to index

        Returns:
            IndexReport; `error` is set when the directory does not exist,
            in which case the store is neither cleared nor saved, or when
            the index file cannot be written
        """
        directory = Path(path)
        report = IndexReport()

        if not directory.is_dir():
            report.error = f"Directory not found: {directory}"
            logger.error(report.error)
            return report

        logger.info(f"Indexing directory: {directory}")
        self.store.clear()
        seen: set[Path] = set()

        readme = self.root / README_NAME
        if readme.is_file():
            self._index_into_report(readme, report)
            seen.add(readme.resolve())

        for file_path in self._walk(directory):
            resolved = file_path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            self._index_into_report(file_path, report)

        try:
            self.store.save()
        except OSError as e:
            report.error = f"Failed to save index {self.store.index_path}: {e}"
            logger.error(report.error)
            return report

        logger.info(
            f"Indexing complete: {len(report.files_indexed)} files, "
            f"{report.chunks_indexed} chunks"
        )
        return report

    def index_file(self, path: str | Path) -> int:
        """
        Chunk one file and add every chunk to the store.

        Args:
            path: File to index

        Returns:
            Number of chunks added

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not valid UTF-8
        """
        file_path = Path(path)
        text = file_path.read_text(encoding="utf-8")
        chunks = chunk_text(text, self.settings.chunk_size, self.settings.chunk_overlap)
        file_type = file_path.suffix.lstrip(".")

        for index, chunk in enumerate(chunks):
            self.store.add(
                content=chunk,
                source=str(file_path),
                metadata={
                    "chunk_index": str(index),
                    "total_chunks": str(len(chunks)),
                    "file_type": file_type,
                },
            )

        logger.debug(f"Indexed {file_path} ({len(chunks)} chunks)")
        return len(chunks)

    def _index_into_report(self, file_path: Path, report: IndexReport) -> None:
        try:
            added = self.index_file(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable file {file_path}: {e}")
            report.skipped[str(file_path)] = str(e)
            return
        report.files_indexed.append(str(file_path))
        report.chunks_indexed += added

    def _walk(self, directory: Path) -> list[Path]:
        """
        Collect supported files with an explicit stack instead of recursion.

        Hidden directories are skipped, each real directory is visited once
        (symlink cycles), and descent stops at `index_max_depth`.
        """
        files: list[Path] = []
        visited: set[str] = set()
        stack: list[tuple[Path, int]] = [(directory, 0)]

        while stack:
            current, depth = stack.pop()
            real = os.path.realpath(current)
            if real in visited:
                continue
            visited.add(real)

            try:
                entries = sorted(current.iterdir(), key=lambda p: p.name)
            except OSError as e:
                logger.warning(f"Skipping unreadable directory {current}: {e}")
                continue

            subdirs: list[Path] = []
            for entry in entries:
                if entry.is_dir():
                    if entry.name.startswith("."):
                        continue
                    if depth + 1 > self.settings.index_max_depth:
                        logger.warning(f"Maximum depth reached, not descending into {entry}")
                        continue
                    subdirs.append(entry)
                elif entry.is_file() and is_supported(entry):
                    files.append(entry)

            # Reversed so subdirectories pop in name order
            for subdir in reversed(subdirs):
                stack.append((subdir, depth + 1))

        return files
