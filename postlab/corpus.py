from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from postlab.database import Post

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    doc_id: int
    text: str


# Substitutions are applied in order; entity-encoded quotes first so the
# later catch-all entity rule does not eat them.
_CLEANING_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"&#x27;|&quot;|&#x2F;"), "'"),
    (re.compile(r"<a(.*?)>", re.IGNORECASE | re.DOTALL), " "),
    (re.compile(r"&gt;|&lt;|&amp;"), " "),
    (re.compile(r"&#\d+;"), " "),
    (re.compile(r"<[^>]*>"), ""),
]


def clean_text(text: str) -> str:
    """Strip HTML markup and entity-encoding artifacts from a post body."""
    for pattern, repl in _CLEANING_RULES:
        text = pattern.sub(repl, text)
    return text


def coalesce_title_text(title: Optional[str], text: Optional[str]) -> str:
    # Link posts carry their content in the title, comments in the text.
    if title is not None and title.strip():
        return title
    return text or ""


def make_documents(records: Iterable[Tuple[Optional[str], Optional[str]]], clean: bool = True) -> List[Document]:
    docs: List[Document] = []
    for i, (title, text) in enumerate(records, 1):
        body = coalesce_title_text(title, text)
        docs.append(Document(doc_id=i, text=clean_text(body) if clean else body))
    return docs


class CorpusSource(Protocol):
    def fetch(self, max_rows: int) -> List[Document]:
        ...


def _check_max_rows(max_rows: int) -> None:
    if max_rows < 1:
        raise ValueError(f"max_rows must be a positive row limit, got {max_rows}")


class SqlCorpusSource:
    """Reads (title, text) rows from the posts table page by page."""

    def __init__(self, session: Session, page_size: int = 10000, clean: bool = True):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.session = session
        self.page_size = page_size
        self.clean = clean

    def _iter_rows(self, max_rows: int):
        offset = 0
        while offset < max_rows:
            limit = min(self.page_size, max_rows - offset)
            stmt = select(Post.title, Post.text).order_by(Post.id).limit(limit).offset(offset)
            page = self.session.execute(stmt).all()
            log.debug("Fetched %d rows at offset %d", len(page), offset)
            for title, text in page:
                yield title, text
            if len(page) < limit:
                break
            offset += len(page)

    def fetch(self, max_rows: int) -> List[Document]:
        _check_max_rows(max_rows)
        docs = make_documents(self._iter_rows(max_rows), clean=self.clean)
        log.info("Loaded %d documents from posts table (limit %d)", len(docs), max_rows)
        return docs


class TextDirectoryCorpusSource:
    """One document per ``*.txt`` file in a directory, in file name order."""

    def __init__(self, corpus_dir: str | Path, clean: bool = True):
        self.corpus_dir = Path(corpus_dir)
        self.clean = clean

    def fetch(self, max_rows: int) -> List[Document]:
        _check_max_rows(max_rows)
        if not self.corpus_dir.is_dir():
            raise FileNotFoundError(f"Corpus directory not found: {self.corpus_dir}")
        files = sorted(self.corpus_dir.glob("*.txt"))[:max_rows]
        records = ((None, p.read_text(encoding="utf-8", errors="ignore")) for p in files)
        docs = make_documents(records, clean=self.clean)
        log.info("Loaded %d documents from %s", len(docs), self.corpus_dir)
        return docs


class PostLoader:
    """Writes posts into the database; used to seed a local query service."""

    def __init__(self, db: Session):
        self.db = db

    def load_posts(self, records: Iterable[Tuple[Optional[str], Optional[str]]]) -> int:
        post_objects = [Post(title=title, text=text) for title, text in records]
        # Bulk insert for better performance
        self.db.bulk_save_objects(post_objects)
        self.db.commit()
        log.info("Loaded %d posts", len(post_objects))
        return len(post_objects)
