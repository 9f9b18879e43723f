import numpy as np
import pytest

from postlab.corpus import Document, PostLoader
from postlab.database import create_tables, make_engine, make_session_factory

FRUIT = ["apple", "banana", "cherry", "grape", "lemon"]
ANIMALS = ["zebra", "tiger", "lion", "horse", "camel"]


@pytest.fixture
def session():
    engine = make_engine("sqlite://")
    create_tables(engine)
    db = make_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def seeded_session(session):
    PostLoader(session).load_posts([
        ("Show HN: a sparse matrix library", "ignored body"),
        ("", "I&#x27;d use <a href=\"https://x.org\">this</a> &gt; that"),
        (None, "<p>plain comment</p>"),
        ("Ask HN: vectors?", None),
        (None, "last one"),
    ])
    return session


@pytest.fixture
def small_corpus():
    return [
        Document(1, "the quick brown fox jumps over the lazy dog"),
        Document(2, "the lazy dog sleeps while the quick fox runs"),
        Document(3, "a quick brown dog jumps over a lazy fox"),
        Document(4, "brown fox and brown dog are quick friends"),
    ]


@pytest.fixture
def topic_documents():
    rng = np.random.default_rng(7)
    docs = []
    for i in range(30):
        vocab = FRUIT if i % 2 == 0 else ANIMALS
        docs.append(Document(i + 1, " ".join(rng.choice(vocab, size=20))))
    return docs
