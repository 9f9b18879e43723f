from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple

from postlab.corpus import Document

# Common words to filter out for topic modeling (can be expanded)
STOP_WORDS: FrozenSet[str] = frozenset({
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'for', 'from',
    'has', 'he', 'in', 'is', 'it', 'its', 'of', 'on', 'that', 'the',
    'to', 'was', 'will', 'with', 'i', 'you', 'we', 'they', 'she',
    'him', 'her', 'his', 'their', 'this', 'these', 'those', 'or',
    'but', 'if', 'when', 'where', 'why', 'how', 'what', 'who',
    'which', 'there', 'here', 'then', 'than', 'so', 'up', 'down',
    'out', 'off', 'over', 'under', 'again', 'further', 'once',
    'very', 'all', 'any', 'both', 'each', 'few', 'more', 'most',
    'other', 'some', 'such', 'no', 'nor', 'not', 'only', 'own',
    'same', 'too', 'can', 'could', 'should', 'would', 'may', 'might',
    'must', 'shall', 'do', 'does', 'did', 'have', 'had', 'having',
    'been', 'being', 'me', 'my', 'our', 'your', 'them', 'it\'s',
    'don\'t', 'i\'m', 'just', 'about', 'into', 'also', 'like',
})

# Words are runs of letters/digits (any script), optionally joined by an
# apostrophe or inner hyphen ("don't", "well-known"). Curly apostrophes
# are normalized first.
WORD_RE = re.compile(r"[^\W_]+(?:['\-][^\W_]+)*")


class ShortDocPolicy(enum.Enum):
    """What to do with a document that has fewer tokens than the window."""

    SKIP = "skip"
    SHRINK = "shrink"


@dataclass(frozen=True)
class Window:
    window_id: str
    doc_id: int
    offset: int
    tokens: Tuple[str, ...]


@dataclass(frozen=True)
class WindowConfig:
    width: int = 8
    short_doc_policy: ShortDocPolicy = ShortDocPolicy.SKIP

    def __post_init__(self):
        if self.width < 1:
            raise ValueError(f"window width must be >= 1, got {self.width}")


class WordParser:
    def __init__(self, stop_words: Optional[Iterable[str]] = None, remove_stop_words: bool = False):
        self.stop_words = frozenset(stop_words) if stop_words is not None else STOP_WORDS
        self.remove_stop_words = remove_stop_words

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into lowercased word tokens with punctuation removed.
        """
        text = text.lower().replace("’", "'")
        tokens = WORD_RE.findall(text)
        if self.remove_stop_words:
            tokens = [t for t in tokens if t not in self.stop_words]
        return tokens

    def iter_windows(self, document: Document, cfg: WindowConfig) -> Iterator[Window]:
        """
        Lazily yield every run of ``cfg.width`` consecutive tokens, sliding by one.
        """
        tokens = self.tokenize(document.text)
        if not tokens:
            return
        W = cfg.width
        if len(tokens) < W:
            if cfg.short_doc_policy is ShortDocPolicy.SHRINK:
                yield Window(f"{document.doc_id}_1", document.doc_id, 1, tuple(tokens))
            return
        for off in range(len(tokens) - W + 1):
            yield Window(f"{document.doc_id}_{off + 1}", document.doc_id, off + 1, tuple(tokens[off: off + W]))


def iter_corpus_windows(parser: WordParser, documents: Iterable[Document], cfg: WindowConfig) -> Iterator[Window]:
    for doc in documents:
        yield from parser.iter_windows(doc, cfg)


def iter_token_streams(parser: WordParser, documents: Iterable[Document]) -> Iterator[List[str]]:
    for doc in documents:
        yield parser.tokenize(doc.text)
