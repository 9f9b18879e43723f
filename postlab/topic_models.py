from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np
from scipy import sparse
from scipy.stats import rankdata
from sklearn.decomposition import LatentDirichletAllocation
from sklearn.feature_extraction.text import CountVectorizer

from postlab.corpus import Document
from postlab.word_parser import WordParser

log = logging.getLogger(__name__)


@dataclass
class DocumentTermMatrix:
    matrix: sparse.csr_matrix  # (n_docs, n_terms) integer counts
    doc_ids: List[int]
    vocabulary: List[str]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.matrix.shape


def document_term_matrix(documents: Sequence[Document], parser: Optional[WordParser] = None,
                         min_df: int = 1) -> DocumentTermMatrix:
    """Cast documents to sparse term counts, stop words removed.

    Documents with no remaining terms are dropped so every row has mass.
    """
    if parser is None:
        parser = WordParser(remove_stop_words=True)
    vectorizer = CountVectorizer(analyzer=parser.tokenize, min_df=min_df)
    X = vectorizer.fit_transform([d.text for d in documents]).tocsr()
    keep = np.flatnonzero(np.asarray(X.sum(axis=1)).ravel() > 0)
    if keep.size == 0:
        raise ValueError("no terms left in any document after tokenizing")
    X = X[keep]
    doc_ids = [documents[i].doc_id for i in keep]
    vocab = vectorizer.get_feature_names_out().tolist()
    log.info("Document-term matrix: %d docs x %d terms (%d dropped empty)", X.shape[0], X.shape[1], len(documents) - keep.size)
    return DocumentTermMatrix(matrix=X, doc_ids=doc_ids, vocabulary=vocab)


@dataclass
class Heldout:
    train: sparse.csr_matrix
    missing: sparse.csr_matrix  # same shape; tokens withheld from train


def make_heldout(matrix: sparse.spmatrix, doc_prop: float = 0.5, word_prop: float = 0.5, seed: int = 0) -> Heldout:
    """Withhold ``word_prop`` of the tokens of ``doc_prop`` of the documents.

    A document never loses all of its tokens. ``train + missing`` equals the input.
    """
    if not 0.0 < doc_prop <= 1.0 or not 0.0 < word_prop < 1.0:
        raise ValueError(f"invalid held-out proportions doc_prop={doc_prop} word_prop={word_prop}")
    X = sparse.csr_matrix(matrix, dtype=np.int64)
    n_docs = X.shape[0]
    rng = np.random.default_rng(seed)
    chosen = rng.choice(n_docs, size=int(math.floor(doc_prop * n_docs)), replace=False)
    rows: List[int] = []
    cols: List[int] = []
    vals: List[int] = []
    for d in sorted(chosen.tolist()):
        start, end = X.indptr[d], X.indptr[d + 1]
        terms = X.indices[start:end]
        counts = X.data[start:end]
        tokens = np.repeat(terms, counts)
        n_missing = int(math.floor(word_prop * tokens.size))
        if n_missing == 0 or n_missing >= tokens.size:
            continue
        picked = rng.choice(tokens.size, size=n_missing, replace=False)
        t, c = np.unique(tokens[picked], return_counts=True)
        rows.extend([d] * t.size)
        cols.extend(t.tolist())
        vals.extend(c.tolist())
    missing = sparse.csr_matrix(
        (np.asarray(vals, dtype=np.int64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
        shape=X.shape,
    )
    train = (X - missing).tocsr()
    train.eliminate_zeros()
    log.info("Held out %d tokens from %d documents", int(missing.sum()), len(set(rows)))
    return Heldout(train=train, missing=missing)


@dataclass
class FittedTopicModel:
    """A trained topic model reduced to its distributions and fit scalars."""

    k: int
    beta: np.ndarray   # (k, n_terms), rows sum to 1
    theta: np.ndarray  # (n_docs, k), rows sum to 1
    bound: float
    iterations: int

    @property
    def lbound(self) -> float:
        # topic labels are exchangeable; add log K! as in the usual model-search plots
        return self.bound + math.lgamma(self.k + 1)

    def top_term_indices(self, n: int = 10) -> np.ndarray:
        # beta desc, term index asc for ties
        return np.argsort(-self.beta, axis=1, kind="stable")[:, :n]

    def top_terms(self, vocabulary: Sequence[str], n: int = 10) -> List[List[Tuple[str, float]]]:
        idx = self.top_term_indices(n)
        return [[(vocabulary[j], float(self.beta[t, j])) for j in idx[t]] for t in range(self.k)]

    def document_topics(self, doc_ids: Sequence[int]) -> List[Tuple[int, int, float]]:
        """Tidy (doc_id, topic, gamma) rows, topics numbered from 1."""
        return [(doc_ids[d], t + 1, float(self.theta[d, t])) for d in range(self.theta.shape[0]) for t in range(self.k)]


class TopicModelTrainer(Protocol):
    def fit(self, matrix: sparse.spmatrix, k: int) -> FittedTopicModel:
        ...


@dataclass(frozen=True)
class LdaConfig:
    max_iter: int = 50
    learning_method: str = "batch"
    random_state: int = 0
    doc_topic_prior: Optional[float] = None
    topic_word_prior: Optional[float] = None


class LdaTrainer:
    """Latent Dirichlet allocation via scikit-learn."""

    def __init__(self, cfg: LdaConfig = LdaConfig()):
        self.cfg = cfg

    def fit(self, matrix: sparse.spmatrix, k: int) -> FittedTopicModel:
        if k < 1:
            raise ValueError(f"topic count must be >= 1, got {k}")
        cfg = self.cfg
        lda = LatentDirichletAllocation(
            n_components=k,
            max_iter=cfg.max_iter,
            learning_method=cfg.learning_method,
            random_state=cfg.random_state,
            doc_topic_prior=cfg.doc_topic_prior,
            topic_word_prior=cfg.topic_word_prior,
        )
        theta = lda.fit_transform(matrix)
        beta = lda.components_ / lda.components_.sum(axis=1, keepdims=True)
        return FittedTopicModel(k=k, beta=beta, theta=theta, bound=float(lda.score(matrix)), iterations=int(lda.n_iter_))


def _row_sums(X: sparse.spmatrix) -> np.ndarray:
    return np.asarray(X.sum(axis=1)).ravel()


def heldout_likelihood(model: FittedTopicModel, heldout: Heldout) -> float:
    """Mean per-token log likelihood of withheld tokens, averaged over documents."""
    M = heldout.missing.tocsr()
    per_doc: List[float] = []
    for d in range(M.shape[0]):
        start, end = M.indptr[d], M.indptr[d + 1]
        if start == end:
            continue
        terms = M.indices[start:end]
        counts = M.data[start:end]
        probs = model.theta[d] @ model.beta[:, terms]
        per_doc.append(float(np.sum(counts * np.log(probs)) / np.sum(counts)))
    if not per_doc:
        return float("nan")
    return float(np.mean(per_doc))


def residual_dispersion(model: FittedTopicModel, matrix: sparse.spmatrix) -> float:
    """Multinomial dispersion of residuals; close to 1 when K is adequate.

    Works on the dense expected-count matrix, so it is meant for evaluation
    corpora that fit in memory.
    """
    X = sparse.csr_matrix(matrix).toarray().astype(float)
    n_docs, n_terms = X.shape
    phat = model.theta @ model.beta
    m = _row_sums(matrix)[:, None] * phat
    denom = m * (1.0 - phat)
    ok = denom > 0
    chi2 = float(np.sum(((X - m) ** 2)[ok] / denom[ok]))
    df = n_docs * (n_terms - 1) - model.k * (n_docs + n_terms)
    return chi2 / max(df, 1)


def semantic_coherence(model: FittedTopicModel, matrix: sparse.spmatrix, n: int = 10) -> np.ndarray:
    """Co-document-frequency coherence of each topic's top ``n`` terms (higher is better)."""
    B = (sparse.csc_matrix(matrix) > 0).astype(np.int64)
    out = np.zeros(model.k)
    for t, top in enumerate(model.top_term_indices(n)):
        sub = B[:, top]
        co = (sub.T @ sub).toarray()
        df = np.diag(co)
        total = 0.0
        for i in range(1, len(top)):
            for j in range(i):
                if df[j] > 0:
                    total += math.log((co[i, j] + 1.0) / df[j])
        out[t] = total
    return out


def exclusivity(model: FittedTopicModel, n: int = 10, frex_weight: float = 0.7) -> np.ndarray:
    """FREX-weighted exclusivity of each topic's top ``n`` terms."""
    beta = model.beta
    excl = beta / beta.sum(axis=0, keepdims=True)
    n_terms = beta.shape[1]
    out = np.zeros(model.k)
    for t, top in enumerate(model.top_term_indices(n)):
        ex_ecdf = rankdata(excl[t], method="max") / n_terms
        fr_ecdf = rankdata(beta[t], method="max") / n_terms
        frex = 1.0 / (frex_weight / ex_ecdf + (1.0 - frex_weight) / fr_ecdf)
        out[t] = float(np.sum(frex[top]))
    return out
