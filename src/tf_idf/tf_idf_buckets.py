"""
Purpose
-------
Choose what a "document" is before scoring: assign every review a document
key, either an existing category (e.g. beer style) or an equal-size rank
bucket of a numeric column (e.g. rating decile), and map a per-review token
stream onto those keys.

Key behaviors
-------------
- `bucket_by_quantile` ranks rows by a numeric column and cuts them into
  `n_buckets` equal-size ordinal buckets 1..n_buckets.
- `bucket_by_column` reuses a categorical column as the document key.
- `attach_document_ids` joins a token stream keyed by review onto the
  bucketed reviews, producing the (document_id, token) occurrence stream.

Conventions
-----------
- Bucket sizes differ by at most one row; ties in the value column are broken
  by row order, so equal values may straddle a bucket boundary.
- Rows with a missing value (or missing category) are dropped; a DEBUG event
  records how many.
- The document key is written to DOCUMENT_ID_COLUMN unless another column
  name is given.

Downstream usage
----------------
Bucket the review table, attach the tokens, then pass the result through
`count_token_occurrences` and `compute_tf_idf`.
"""

import numpy as np
import pandas as pd

from infra.logging.infra_logger import InfraLogger
from tf_idf.tf_idf_config import DEFAULT_BUCKET_COUNT, DOCUMENT_ID_COLUMN, TOKEN_COLUMN
from tf_idf.tf_idf_engine import check_required_columns, resolve_logger
from tf_idf.tf_idf_types import InvalidInputError


def bucket_by_quantile(
    frame: pd.DataFrame,
    value_column: str,
    n_buckets: int = DEFAULT_BUCKET_COUNT,
    bucket_column: str = DOCUMENT_ID_COLUMN,
    logger: InfraLogger | None = None,
) -> pd.DataFrame:
    """
    Assign each row an equal-size rank bucket of `value_column`.

    Parameters
    ----------
    frame : pandas.DataFrame
        Rows to bucket (typically one row per review).
    value_column : str
        Numeric column to rank by (e.g. 'rating').
    n_buckets : int, default=DEFAULT_BUCKET_COUNT
        Number of buckets; 10 gives deciles.
    bucket_column : str, default='document_id'
        Name of the bucket column added to the output.
    logger : InfraLogger, optional
        Receives a DEBUG event with the number of dropped rows.

    Returns
    -------
    pandas.DataFrame
        Copy of the rows with a non-missing `value_column`, plus an int64
        `bucket_column` in 1..n_buckets (the lowest values get bucket 1).

    Raises
    ------
    InvalidInputError
        `field="n_buckets"` when it is not a positive integer;
        `field=<value_column>` when the column is missing.

    Notes
    -----
    - bucket = floor(n_buckets * (row_number - 1) / row_count) + 1, where
      row_number is the 1-based rank with ties broken by first appearance.
    """

    if (
        isinstance(n_buckets, bool)
        or not isinstance(n_buckets, (int, np.integer))
        or n_buckets <= 0
    ):
        raise InvalidInputError("n_buckets", f"must be a positive integer, got {n_buckets!r}")
    n_buckets = int(n_buckets)
    check_required_columns(frame, [value_column])

    present_mask: pd.Series = frame[value_column].notna()
    bucketed: pd.DataFrame = frame.loc[present_mask].copy()
    resolve_logger(logger).debug(
        event="bucketed_by_quantile",
        context={
            "value_column": value_column,
            "n_buckets": n_buckets,
            "dropped_rows": int((~present_mask).sum()),
        },
    )
    if bucketed.empty:
        bucketed[bucket_column] = pd.Series(dtype="int64")
        return bucketed

    row_number: pd.Series = bucketed[value_column].rank(method="first").astype("int64")
    bucketed[bucket_column] = (n_buckets * (row_number - 1) // len(bucketed) + 1).astype("int64")
    return bucketed


def bucket_by_column(
    frame: pd.DataFrame,
    column: str,
    bucket_column: str = DOCUMENT_ID_COLUMN,
    logger: InfraLogger | None = None,
) -> pd.DataFrame:
    """
    Use an existing column (e.g. 'style') as the document key.

    Raises
    ------
    InvalidInputError
        If `column` is missing.
    """

    check_required_columns(frame, [column])
    present_mask: pd.Series = frame[column].notna()
    bucketed: pd.DataFrame = frame.loc[present_mask].copy()
    bucketed[bucket_column] = bucketed[column]
    resolve_logger(logger).debug(
        event="bucketed_by_column",
        context={"column": column, "dropped_rows": int((~present_mask).sum())},
    )
    return bucketed


def attach_document_ids(
    tokens_df: pd.DataFrame,
    documents_df: pd.DataFrame,
    on: str,
    bucket_column: str = DOCUMENT_ID_COLUMN,
) -> pd.DataFrame:
    """
    Map a per-review token stream onto bucketed document keys.

    Parameters
    ----------
    tokens_df : pandas.DataFrame
        One row per token occurrence with columns [on, 'token'].
    documents_df : pandas.DataFrame
        Bucketed reviews with columns [on, bucket_column]; `on` must be unique.
    on : str
        Review identifier column shared by both frames.
    bucket_column : str, default='document_id'
        Document key column in `documents_df`.

    Returns
    -------
    pandas.DataFrame
        Occurrence stream ['document_id', 'token']. Tokens whose review has no
        bucket (e.g. it was dropped for a missing rating) are discarded.

    Raises
    ------
    InvalidInputError
        If a required column is missing or `on` repeats in `documents_df`.
    """

    check_required_columns(tokens_df, [on, TOKEN_COLUMN])
    check_required_columns(documents_df, [on, bucket_column])
    if documents_df[on].duplicated().any():
        raise InvalidInputError(on, "document table must have one row per review")

    occurrences: pd.DataFrame = tokens_df[[on, TOKEN_COLUMN]].merge(
        documents_df[[on, bucket_column]], on=on, how="inner"
    )
    return occurrences.rename(columns={bucket_column: DOCUMENT_ID_COLUMN})[
        [DOCUMENT_ID_COLUMN, TOKEN_COLUMN]
    ].reset_index(drop=True)
