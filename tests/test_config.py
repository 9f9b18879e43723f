import json

import pytest

from postlab.config import config_to_json, load_config
from postlab.lasso import LassoConfig
from postlab.topic_search import TopicSearchConfig
from postlab.word_parser import ShortDocPolicy
from postlab.word_vector_pipeline import PipelineConfig


def test_missing_path_gives_defaults():
    assert load_config(PipelineConfig, None) == PipelineConfig()


def test_partial_nested_config(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({
        "max_rows": 5,
        "windows": {"width": 4, "short_doc_policy": "shrink"},
        "matrix": {"duplicates": "last"},
        "not_a_field": 1,
    }), encoding="utf-8")
    cfg = load_config(PipelineConfig, path)
    assert cfg.max_rows == 5
    assert cfg.windows.width == 4
    assert cfg.windows.short_doc_policy is ShortDocPolicy.SHRINK
    assert cfg.matrix.duplicates.value == "last"
    assert cfg.association.min_count == 20
    assert cfg.reduction.dim == 256


def test_lists_become_tuples(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"ks": [2, 3], "lda": {"max_iter": 7}}), encoding="utf-8")
    cfg = load_config(TopicSearchConfig, path)
    assert cfg.ks == (2, 3)
    assert cfg.lda.max_iter == 7

    path.write_text(json.dumps({"penalty_range": [0.01, 0.5]}), encoding="utf-8")
    assert load_config(LassoConfig, path).penalty_range == (0.01, 0.5)


def test_config_must_be_an_object(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(PipelineConfig, path)


def test_config_round_trips_through_json():
    data = json.loads(config_to_json(PipelineConfig()))
    assert data["windows"]["short_doc_policy"] == "skip"
    assert data["association"]["min_count"] == 20
