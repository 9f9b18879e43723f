import types

import pytest

from postlab.corpus import Document
from postlab.word_parser import ShortDocPolicy, WindowConfig, WordParser, iter_corpus_windows


def test_tokenize_lowercases_and_drops_punctuation():
    parser = WordParser()
    assert parser.tokenize("Don’t PANIC: it's 42, (really)!") == ["don't", "panic", "it's", "42", "really"]


def test_tokenize_can_remove_stop_words():
    parser = WordParser(remove_stop_words=True)
    assert parser.tokenize("The cat and the hat") == ["cat", "hat"]


def test_windows_slide_by_one_token():
    parser = WordParser()
    wins = list(parser.iter_windows(Document(7, "one two three four"), WindowConfig(width=2)))
    assert [w.window_id for w in wins] == ["7_1", "7_2", "7_3"]
    assert [w.tokens for w in wins] == [("one", "two"), ("two", "three"), ("three", "four")]
    assert all(w.doc_id == 7 for w in wins)


def test_windows_are_lazy():
    parser = WordParser()
    wins = parser.iter_windows(Document(1, "a b c"), WindowConfig(width=2))
    assert isinstance(wins, types.GeneratorType)
    assert next(wins).offset == 1


def test_document_exactly_window_width_gives_one_window():
    parser = WordParser()
    wins = list(parser.iter_windows(Document(1, "a b c"), WindowConfig(width=3)))
    assert len(wins) == 1
    assert wins[0].tokens == ("a", "b", "c")


def test_short_document_skipped_by_default():
    parser = WordParser()
    assert list(parser.iter_windows(Document(1, "too short"), WindowConfig(width=8))) == []


def test_short_document_shrinks_when_configured():
    parser = WordParser()
    cfg = WindowConfig(width=8, short_doc_policy=ShortDocPolicy.SHRINK)
    wins = list(parser.iter_windows(Document(3, "too short"), cfg))
    assert len(wins) == 1
    assert wins[0].window_id == "3_1"
    assert wins[0].tokens == ("too", "short")


@pytest.mark.parametrize("policy", list(ShortDocPolicy))
def test_empty_documents_yield_nothing(policy):
    parser = WordParser()
    docs = [Document(1, ""), Document(2, "!!! ...")]
    assert list(iter_corpus_windows(parser, docs, WindowConfig(width=2, short_doc_policy=policy))) == []


def test_corpus_windows_chain_documents():
    parser = WordParser()
    docs = [Document(1, "a b c"), Document(2, "d e")]
    ids = [w.window_id for w in iter_corpus_windows(parser, docs, WindowConfig(width=2))]
    assert ids == ["1_1", "1_2", "2_1"]


def test_window_width_must_be_positive():
    with pytest.raises(ValueError):
        WindowConfig(width=0)


def test_tokenize_keeps_inner_hyphens_and_accented_letters():
    parser = WordParser()
    assert parser.tokenize("a well-known café") == ["a", "well-known", "café"]
    assert parser.tokenize("Naïve -dash- end- x_y") == ["naïve", "dash", "end", "x", "y"]
