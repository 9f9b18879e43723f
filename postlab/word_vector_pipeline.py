from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from postlab.association import AssociationConfig, AssociationScore, score_pairs
from postlab.cooccurrence import CountConfig, PairTable, UnigramTable, count_pairs, count_unigrams
from postlab.corpus import CorpusSource, Document
from postlab.reduction import ReductionConfig, Reducer, WordVectorModel
from postlab.sparse_matrix import AssociationMatrix, MatrixConfig, build_matrix, triples_from_scores
from postlab.word_parser import WindowConfig, WordParser, iter_corpus_windows, iter_token_streams
from postlab.word_vectors import WordVectors


@dataclass(frozen=True)
class PipelineConfig:
    max_rows: int = 100000
    windows: WindowConfig = field(default_factory=WindowConfig)
    counting: CountConfig = field(default_factory=CountConfig)
    association: AssociationConfig = field(default_factory=AssociationConfig)
    matrix: MatrixConfig = field(default_factory=MatrixConfig)
    reduction: ReductionConfig = field(default_factory=ReductionConfig)


@dataclass
class PipelineResult:
    unigrams: UnigramTable
    pairs: PairTable
    scores: List[AssociationScore]
    matrix: AssociationMatrix
    vectors: WordVectors


class WordVectorPipeline:
    """Documents -> skipgram counts -> PMI matrix -> truncated SVD word vectors."""

    def __init__(self, cfg: PipelineConfig, parser: WordParser | None = None, reducer: Reducer | None = None):
        self.cfg = cfg
        self.parser = parser if parser is not None else WordParser()
        self.reducer = reducer
        self.log = logging.getLogger(__name__)

    def count(self, documents: Sequence[Document]):
        cfg = self.cfg
        unigrams = count_unigrams(iter_token_streams(self.parser, documents))
        self.log.info("Counting skipgram pairs (window=%d, policy=%s)...", cfg.windows.width, cfg.windows.short_doc_policy.value)
        pairs = count_pairs(iter_corpus_windows(self.parser, documents, cfg.windows), cfg.counting)
        return unigrams, pairs

    def run(self, documents: Sequence[Document]) -> PipelineResult:
        cfg = self.cfg
        self.log.info("Building word vectors from %d documents", len(documents))
        unigrams, pairs = self.count(documents)
        scores = score_pairs(unigrams, pairs, cfg.association)
        matrix = build_matrix(triples_from_scores(scores), cfg.matrix)
        vectors = WordVectorModel(cfg.reduction, self.reducer).fit(matrix)
        self.log.info("Word vectors built: %d words x %d dims", len(vectors), vectors.dim)
        return PipelineResult(unigrams, pairs, scores, matrix, vectors)

    def run_from_source(self, source: CorpusSource) -> PipelineResult:
        return self.run(source.fetch(self.cfg.max_rows))
