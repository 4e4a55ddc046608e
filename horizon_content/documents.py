"""
Markdown document loading for the docs, blog and news readers.

Each file starts with a ``---`` delimited YAML front-matter block. Files
without a title are skipped with a warning; the rest of the collection
still loads.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from horizon_content.exceptions import MalformedDocumentError
from horizon_content.logging import get_logger
from horizon_content.types.documents import DocumentRecord, Stability

logger = get_logger("documents")

EXCERPT_LENGTH = 150
ALL_STABILITIES = "all"

_FRONT_MATTER = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)(.*)\Z", re.DOTALL)


def parse_document(raw_text: str, slug: str = "") -> DocumentRecord:
    """
    Parse front matter and body into a DocumentRecord.

    Args:
        raw_text: Full file contents
        slug: Identifier derived from the file name

    Returns:
        DocumentRecord

    Raises:
        MalformedDocumentError: If the front matter is missing, unreadable
            or has no title
    """
    text = raw_text.replace("\r\n", "\n").lstrip("\ufeff")
    match = _FRONT_MATTER.match(text)
    if match is None:
        raise MalformedDocumentError(slug, f"{slug or 'document'}: missing front matter")

    front_matter, body = match.groups()
    try:
        metadata = yaml.safe_load(front_matter) or {}
    except yaml.YAMLError as e:
        raise MalformedDocumentError(slug, f"{slug or 'document'}: invalid front matter: {e}") from e
    if not isinstance(metadata, dict):
        raise MalformedDocumentError(slug, f"{slug or 'document'}: front matter is not a mapping")

    title = _text(metadata.get("title"))
    if not title:
        raise MalformedDocumentError(slug, f"{slug or 'document'}: no title in front matter")

    body = body.strip("\n")
    return DocumentRecord(
        slug=slug,
        title=title,
        excerpt=_text(metadata.get("excerpt")) or _default_excerpt(body),
        body_markdown=body,
        tags=_tags(metadata.get("tags")),
        stability=Stability.parse(metadata.get("stability")),
        image=_text(metadata.get("image")) or None,
        author=_text(metadata.get("author")) or None,
        date=_text(metadata.get("date")) or None,
    )


def filter_documents(
    records: Iterable[DocumentRecord],
    query: str = "",
    tags: Iterable[str] = (),
    stability: Stability | str = ALL_STABILITIES,
) -> list[DocumentRecord]:
    """
    Search and narrow a collection.

    Args:
        records: Documents to filter
        query: Case-insensitive substring matched against title or excerpt
        tags: A document must carry every one of these tags
        stability: Exact stability level, or "all"

    Returns:
        Matching documents, in input order
    """
    needle = query.strip().lower()
    wanted = frozenset(tags)
    level = None if stability == ALL_STABILITIES else Stability.parse(stability)

    return [
        record
        for record in records
        if (not needle or needle in record.title.lower() or needle in record.excerpt.lower())
        and wanted <= record.tags
        and (level is None or record.stability is level)
    ]


@dataclass
class DocumentLibrary:
    """A loaded collection plus the warnings collected while loading it."""

    records: list[DocumentRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_directory(cls, directory: str | Path, pattern: str = "*.md") -> "DocumentLibrary":
        """
        Load every Markdown file under ``directory`` (not recursive).

        The slug is the file name without its extension. Documents are
        ordered by slug.
        """
        library = cls()
        for path in sorted(Path(directory).glob(pattern)):
            if not path.is_file():
                continue
            try:
                raw_text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                message = f"{path.stem}: unreadable file: {e}"
                logger.warning("Skipping document %s: %s", path.stem, message)
                library.warnings.append(message)
                continue
            library.add(raw_text, path.stem)
        return library

    def add(self, raw_text: str, slug: str) -> DocumentRecord | None:
        """Parse and append one document; malformed documents are skipped."""
        try:
            record = parse_document(raw_text, slug)
        except MalformedDocumentError as e:
            logger.warning("Skipping document %s: %s", slug, e.message)
            self.warnings.append(e.message)
            return None
        if self.get(slug) is not None:
            message = f"{slug}: duplicate slug"
            logger.warning("Skipping document %s: %s", slug, message)
            self.warnings.append(message)
            return None
        self.records.append(record)
        return record

    def get(self, slug: str) -> DocumentRecord | None:
        for record in self.records:
            if record.slug == slug:
                return record
        return None

    def tags(self) -> list[str]:
        """Every tag used in the collection, sorted."""
        return sorted({tag for record in self.records for tag in record.tags})

    def filter(
        self,
        query: str = "",
        tags: Iterable[str] = (),
        stability: Stability | str = ALL_STABILITIES,
    ) -> list[DocumentRecord]:
        return filter_documents(self.records, query, tags, stability)

    def __len__(self) -> int:
        return len(self.records)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value).strip()


def _tags(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        # "[a, b]" that YAML kept as a string, or a bare comma list
        value = value.strip().removeprefix("[").removesuffix("]").split(",")
    if not isinstance(value, (list, tuple, set)):
        value = [value]
    return frozenset(str(tag).strip() for tag in value if str(tag).strip())


def _default_excerpt(body: str) -> str:
    flat = body.strip()
    if len(flat) <= EXCERPT_LENGTH:
        return flat
    return flat[:EXCERPT_LENGTH] + "..."
