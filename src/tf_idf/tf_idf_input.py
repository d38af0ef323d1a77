"""
Purpose
-------
Turn an externally tokenized token stream into the frequency table consumed
by the tf-idf engine, either from in-memory counters or from parquet chunks
on disk.

Key behaviors
-------------
- Convert between `Counter[(document_id, token)]` and DataFrame frequency
  tables.
- Count each parquet chunk of occurrence records independently (map) and sum
  the partial tables per (document_id, token) (reduce).
- Optionally fan the per-chunk counting out over a process pool.

Conventions
-----------
- Chunks live under TOKEN_STREAM_DIR (overridable per call) and match
  TOKEN_STREAM_GLOB; they are processed in sorted path order.
- Each chunk holds one row per token occurrence with the columns
  ['document_id', 'token']; tokens are already normalized upstream.
- A document may span several chunks; only the reduce step sees its totals.

Downstream usage
----------------
`count_token_stream_chunks` feeds `tf_idf.tf_idf_engine.compute_tf_idf` in
the batch entry point; `counts_from_counter` lets notebook code that already
holds a Counter skip the DataFrame plumbing.
"""

from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from infra.logging.infra_logger import InfraLogger
from tf_idf.tf_idf_config import (
    COUNT_COLUMN,
    COUNTS_COLUMNS,
    KEY_COLUMNS,
    TOKEN_STREAM_DIR,
    TOKEN_STREAM_GLOB,
)
from tf_idf.tf_idf_engine import (
    count_token_occurrences,
    empty_counts,
    resolve_logger,
    sort_by_keys,
    uncategorize_keys,
    validate_token_counts,
)
from tf_idf.tf_idf_types import TokenKey


def counts_from_counter(counter: Counter[TokenKey]) -> pd.DataFrame:
    """
    Build a frequency table from a (document_id, token) -> count Counter.

    Parameters
    ----------
    counter : Counter[tuple[object, str]]
        Per-(document, token) term counts.

    Returns
    -------
    pandas.DataFrame
        Frequency table ['document_id', 'token', 'n'] sorted by key.

    Notes
    -----
    - Entries with a count below 1 are kept as-is so that the engine's
      validation rejects them instead of silently dropping them.
    """

    if not counter:
        return empty_counts()
    records: List[tuple[object, str, int]] = [
        (document_id, token, count) for (document_id, token), count in counter.items()
    ]
    return sort_by_keys(pd.DataFrame.from_records(records, columns=COUNTS_COLUMNS))


def counts_to_counter(counts_df: pd.DataFrame) -> Counter[TokenKey]:
    """
    Inverse of `counts_from_counter` for a validated frequency table.
    """

    validate_token_counts(counts_df)
    counter: Counter[TokenKey] = Counter()
    for document_id, token, count in counts_df[COUNTS_COLUMNS].itertuples(index=False):
        counter[(document_id, token)] = int(count)
    return counter


def merge_partial_counts(partials: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """
    Reduce partial frequency tables into one by summing counts per key.

    Parameters
    ----------
    partials : Iterable[pandas.DataFrame]
        Frequency tables, each ['document_id', 'token', 'n'] with unique keys
        of its own; the same key may appear in several partials.

    Returns
    -------
    pandas.DataFrame
        Combined frequency table with unique keys, sorted by key.

    Raises
    ------
    InvalidInputError
        If any partial fails `validate_token_counts`.
    """

    frames: List[pd.DataFrame] = []
    for partial in partials:
        validate_token_counts(partial)
        if not partial.empty:
            frames.append(uncategorize_keys(partial[COUNTS_COLUMNS]))
    if not frames:
        return empty_counts()
    merged: pd.DataFrame = (
        pd.concat(frames, ignore_index=True)
        .groupby(KEY_COLUMNS, sort=False, observed=True)[COUNT_COLUMN]
        .sum()
        .reset_index()
    )
    merged[COUNT_COLUMN] = merged[COUNT_COLUMN].astype("int64")
    return sort_by_keys(merged)


def list_token_stream_chunks(parquet_dir: Path = TOKEN_STREAM_DIR) -> List[Path]:
    return sorted(Path(parquet_dir).glob(TOKEN_STREAM_GLOB))


def count_token_stream_chunk(path: Path) -> pd.DataFrame:
    """
    Read one occurrence chunk and count it into a partial frequency table.

    Parameters
    ----------
    path : pathlib.Path
        Parquet file with at least ['document_id', 'token'].

    Returns
    -------
    pandas.DataFrame
        Partial frequency table for the chunk.

    Raises
    ------
    InvalidInputError
        If the chunk lacks a key column or holds null/invalid keys.
    OSError
        If the file cannot be read.
    """

    occurrences_df: pd.DataFrame = pd.read_parquet(path)
    return count_token_occurrences(occurrences_df)


def count_token_stream_chunks(
    parquet_dir: Path = TOKEN_STREAM_DIR,
    logger: InfraLogger | None = None,
    max_workers: int = 1,
) -> pd.DataFrame:
    """
    Count every token stream chunk under `parquet_dir` and reduce the partial
    tables into the corpus-wide frequency table.

    Parameters
    ----------
    parquet_dir : pathlib.Path, default=TOKEN_STREAM_DIR
        Directory holding `token_stream_chunk_*.parquet` files.
    logger : InfraLogger, optional
        Receives per-chunk debug events and the empty-directory warning.
    max_workers : int, default=1
        1 counts chunks in-process; larger values count them in a
        ProcessPoolExecutor with that many workers.

    Returns
    -------
    pandas.DataFrame
        Frequency table ['document_id', 'token', 'n'] over all chunks. Empty
        (with a WARNING) when no chunk is found.

    Notes
    -----
    - Partials are reduced in chunk order regardless of worker completion
      order, so the result is the same for any `max_workers`.
    """

    logger = resolve_logger(logger)
    chunk_paths: List[Path] = list_token_stream_chunks(parquet_dir)
    if not chunk_paths:
        logger.warning(
            event="no_token_stream_chunks",
            msg="No token stream chunks found",
            context={"parquet_dir": str(parquet_dir), "glob": TOKEN_STREAM_GLOB},
        )
        return empty_counts()

    partials: List[pd.DataFrame]
    if max_workers > 1:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            partials = list(executor.map(count_token_stream_chunk, chunk_paths))
    else:
        partials = [count_token_stream_chunk(path) for path in chunk_paths]

    for path, partial in zip(chunk_paths, partials):
        logger.debug(
            event="counted_token_stream_chunk",
            context={"path": str(path), "key_count": len(partial)},
        )
    counts_df: pd.DataFrame = merge_partial_counts(partials)
    logger.info(
        event="counted_token_stream",
        context={
            "chunk_count": len(chunk_paths),
            "key_count": len(counts_df),
            "max_workers": max_workers,
        },
    )
    return counts_df
