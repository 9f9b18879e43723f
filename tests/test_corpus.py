import pytest

from postlab.corpus import Document, PostLoader, SqlCorpusSource, TextDirectoryCorpusSource, clean_text, coalesce_title_text, make_documents
from postlab.database import Post


def test_clean_text_strips_entities_and_markup():
    raw = 'I&#x27;d say &quot;hi&quot; <a href="http://example.com">link</a> &amp; more&#8212;<i>text</i>'
    assert clean_text(raw) == "I'd say 'hi'  link   more text"


def test_coalesce_prefers_non_empty_title():
    assert coalesce_title_text("A title", "body") == "A title"
    assert coalesce_title_text("   ", "body") == "body"
    assert coalesce_title_text(None, None) == ""


def test_make_documents_numbers_rows_from_one():
    docs = make_documents([("t", None), (None, "<b>x</b>")])
    assert docs == [Document(1, "t"), Document(2, "x")]


def test_sql_source_respects_row_limit_across_pages(seeded_session):
    docs = SqlCorpusSource(seeded_session, page_size=2).fetch(max_rows=3)
    assert [d.doc_id for d in docs] == [1, 2, 3]
    assert docs[0].text == "Show HN: a sparse matrix library"
    assert docs[1].text == "I'd use  this   that"
    assert docs[2].text == "plain comment"


def test_sql_source_stops_when_rows_run_out(seeded_session):
    docs = SqlCorpusSource(seeded_session, page_size=2).fetch(max_rows=100)
    assert len(docs) == 5
    assert docs[3].text == "Ask HN: vectors?"


def test_sql_source_on_empty_table(session):
    assert SqlCorpusSource(session).fetch(max_rows=10) == []


def test_row_limit_is_required(seeded_session):
    with pytest.raises(ValueError):
        SqlCorpusSource(seeded_session).fetch(max_rows=0)


def test_text_directory_source(tmp_path):
    (tmp_path / "b.txt").write_text("second &amp; file", encoding="utf-8")
    (tmp_path / "a.txt").write_text("first file", encoding="utf-8")
    (tmp_path / "notes.md").write_text("skipped", encoding="utf-8")
    docs = TextDirectoryCorpusSource(tmp_path).fetch(max_rows=10)
    assert [d.text for d in docs] == ["first file", "second   file"]


def test_text_directory_source_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        TextDirectoryCorpusSource(tmp_path / "nope").fetch(max_rows=1)


def test_posts_table_holds_only_what_the_loader_reads(session):
    assert set(Post.__table__.columns.keys()) == {"id", "title", "text"}
    assert PostLoader(session).load_posts([("a title", None), (None, "a body")]) == 2
    rows = session.query(Post.title, Post.text).order_by(Post.id).all()
    assert [tuple(r) for r in rows] == [("a title", None), (None, "a body")]
