"""
Command line entry points for the post workflows.

- vectors: build PMI/SVD word vectors and search them
- topics:  train and evaluate topic models over several K in parallel
- lasso:   tune, fit and explain a LASSO regression on a CSV table
"""

from __future__ import annotations

import argparse
import contextlib
import dataclasses
import json
import logging
import sys
from typing import Iterator, List

import pandas as pd

from postlab.config import config_to_json, load_config
from postlab.corpus import CorpusSource, SqlCorpusSource, TextDirectoryCorpusSource
from postlab.database import make_engine, make_session_factory
from postlab.lasso import LassoConfig, LassoWorkflow, prepare_features
from postlab.topic_models import document_term_matrix
from postlab.topic_search import TopicSearchConfig, search_k
from postlab.word_vector_pipeline import PipelineConfig, WordVectorPipeline

log = logging.getLogger("postlab")


def _add_source_args(ap: argparse.ArgumentParser) -> None:
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--db", help="SQLAlchemy URL of a database with a posts table")
    src.add_argument("--corpus-dir", help="Directory of *.txt documents")
    ap.add_argument("--max-rows", type=int, default=None, help="Row limit for the corpus query")
    ap.add_argument("--page-size", type=int, default=10000, help="Rows per query page (default: 10000)")
    ap.add_argument("--config", default=None, help="Optional JSON config file")


def _parse_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Data-analysis post workflows")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_v = sub.add_parser("vectors", help="Build word vectors and search them")
    _add_source_args(ap_v)
    ap_v.add_argument("--window", type=int, default=None, help="Skipgram window width (default from config: 8)")
    ap_v.add_argument("--min-count", type=int, default=None, help="Minimum pair count (default from config: 20)")
    ap_v.add_argument("--dim", type=int, default=None, help="Vector dimensions (default from config: 256)")
    ap_v.add_argument("--nearest", action="append", default=[], help="Word to list neighbors for (repeatable)")
    ap_v.add_argument("--analogy", nargs=3, metavar=("A", "B", "C"), help="Search A - B + C")
    ap_v.add_argument("--top", type=int, default=10, help="Results per query (default: 10)")

    ap_t = sub.add_parser("topics", help="Train and evaluate topic models for several K")
    _add_source_args(ap_t)
    ap_t.add_argument("--k", type=int, nargs="+", default=None, help="Topic counts to try")
    ap_t.add_argument("--workers", type=int, default=None, help="Worker processes")
    ap_t.add_argument("--threads", action="store_true", help="Use threads instead of processes")
    ap_t.add_argument("--min-df", type=int, default=2, help="Drop terms in fewer documents (default: 2)")
    ap_t.add_argument("--show-k", type=int, default=None, help="Print top terms for this K")

    ap_l = sub.add_parser("lasso", help="Tune and fit a LASSO regression on a CSV table")
    ap_l.add_argument("csv", help="Input CSV with one row per observation")
    ap_l.add_argument("--outcome", required=True, help="Outcome column")
    ap_l.add_argument("--id-col", action="append", default=[], help="Identifier column to exclude (repeatable)")
    ap_l.add_argument("--config", default=None, help="Optional JSON config file")
    ap_l.add_argument("--top", type=int, default=20, help="Predictors to report (default: 20)")

    return ap.parse_args(argv)


@contextlib.contextmanager
def _open_source(ns: argparse.Namespace) -> Iterator[CorpusSource]:
    """Yield the corpus source; a database session and engine are released on exit."""
    if not ns.db:
        yield TextDirectoryCorpusSource(ns.corpus_dir)
        return
    engine = make_engine(ns.db)
    try:
        with make_session_factory(engine)() as session:
            yield SqlCorpusSource(session, page_size=ns.page_size)
    finally:
        engine.dispose()


def _run_vectors(ns: argparse.Namespace) -> None:
    cfg = load_config(PipelineConfig, ns.config)
    cfg = dataclasses.replace(
        cfg,
        max_rows=(ns.max_rows if ns.max_rows is not None else cfg.max_rows),
        windows=(dataclasses.replace(cfg.windows, width=ns.window) if ns.window is not None else cfg.windows),
        association=(dataclasses.replace(cfg.association, min_count=ns.min_count) if ns.min_count is not None else cfg.association),
        reduction=(dataclasses.replace(cfg.reduction, dim=ns.dim) if ns.dim is not None else cfg.reduction),
    )
    log.debug("Config: %s", config_to_json(cfg))
    with _open_source(ns) as source:
        result = WordVectorPipeline(cfg).run_from_source(source)
    vectors = result.vectors
    print(f"Vocabulary: {len(vectors)} words x {vectors.dim} dims")
    for word in ns.nearest:
        print(f"\nNearest to {word}:")
        for rank, (w, s) in enumerate(vectors.nearest(word, ns.top), 1):
            print(f"  {rank:>3}. {w}\t{s:.4f}")
    if ns.analogy:
        a, b, c = ns.analogy
        print(f"\n{a} - {b} + {c}:")
        query = vectors.combine(plus=[a, c], minus=[b])
        for rank, (w, s) in enumerate(vectors.search(query, ns.top), 1):
            print(f"  {rank:>3}. {w}\t{s:.4f}")


def _run_topics(ns: argparse.Namespace) -> None:
    cfg = load_config(TopicSearchConfig, ns.config)
    cfg = dataclasses.replace(
        cfg,
        ks=(tuple(ns.k) if ns.k else cfg.ks),
        max_workers=(ns.workers if ns.workers is not None else cfg.max_workers),
        use_processes=(False if ns.threads else cfg.use_processes),
    )
    max_rows = ns.max_rows if ns.max_rows is not None else PipelineConfig().max_rows
    with _open_source(ns) as source:
        docs = source.fetch(max_rows)
    dtm = document_term_matrix(docs, min_df=ns.min_df)
    results = search_k(dtm, cfg)
    print(json.dumps([r.summary() for r in results], indent=2))
    if ns.show_k is not None:
        chosen = {r.k: r for r in results}.get(ns.show_k)
        if chosen is None:
            raise ValueError(f"K={ns.show_k} was not among the fitted models")
        for t, terms in enumerate(chosen.model.top_terms(dtm.vocabulary, cfg.n_top_terms), 1):
            print(f"Topic {t}: " + ", ".join(w for w, _ in terms))


def _run_lasso(ns: argparse.Namespace) -> None:
    cfg = load_config(LassoConfig, ns.config)
    df = pd.read_csv(ns.csv)
    X, y = prepare_features(df, ns.outcome, ns.id_col)
    tuned = LassoWorkflow(cfg).tune(X, y)
    final = tuned.finalize(X, y)
    print(f"Best penalty: {final.penalty:.6g}")
    print(f"Training RMSE: {final.rmse(X, y):.4f}")
    print(final.importance().head(ns.top).to_string(index=False))


def main(argv: List[str] | None = None) -> int:
    ns = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    runners = {"vectors": _run_vectors, "topics": _run_topics, "lasso": _run_lasso}
    try:
        runners[ns.cmd](ns)
    except (ValueError, KeyError, FileNotFoundError) as e:
        log.error("%s failed: %s", ns.cmd, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
