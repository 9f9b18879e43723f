import pytest

from postlab.cooccurrence import CountConfig, count_pairs, count_unigrams
from postlab.word_parser import Window, WindowConfig, WordParser, iter_corpus_windows, iter_token_streams


def test_unigram_probabilities_sum_to_one(small_corpus):
    unigrams = count_unigrams(iter_token_streams(WordParser(), small_corpus))
    assert sum(unigrams.probabilities().values()) == pytest.approx(1.0)
    assert unigrams.counts["the"] == 4
    assert unigrams.most_common(1) == [("brown", 4)]


def test_unigrams_of_empty_corpus():
    unigrams = count_unigrams([])
    assert len(unigrams) == 0
    assert unigrams.probability("anything") == 0.0


def test_pairs_count_each_window_once():
    win = Window("1_1", 1, 1, ("a", "b", "a"))
    pairs = count_pairs([win])
    assert pairs.counts == {("a", "a"): 1, ("a", "b"): 1, ("b", "b"): 1}
    assert pairs.total == 3
    assert pairs.n_windows == 1


def test_pairs_are_unordered():
    wins = [Window("1_1", 1, 1, ("b", "a")), Window("1_2", 1, 2, ("a", "b"))]
    pairs = count_pairs(wins, CountConfig(include_diagonal=False))
    assert pairs.counts == {("a", "b"): 2}
    assert pairs.count("b", "a") == 2
    assert pairs.probability("a", "b") == 1.0


def test_pair_counting_is_deterministic(small_corpus):
    parser = WordParser()
    cfg = WindowConfig(width=4)
    first = count_pairs(iter_corpus_windows(parser, small_corpus, cfg))
    second = count_pairs(iter_corpus_windows(parser, list(reversed(small_corpus)), cfg))
    assert first.counts == second.counts
    assert first.total == second.total


def test_pairs_of_no_windows():
    pairs = count_pairs(iter([]))
    assert len(pairs) == 0
    assert pairs.probability("a", "b") == 0.0
