"""
Purpose
-------
Score (document, token) pairs by term frequency, inverse document frequency
and their product, and rank tokens within each document by those scores.

Key behaviors
-------------
- Validate frequency tables up front; no partial result is ever returned.
- Aggregate per-document totals and per-token document frequencies as two
  independent pandas group-bys over the sparse frequency table.
- Apply the configured term weighting (raw count or log(1 + n)).
- Flag (log + `TfIdfTable.degenerate`) inputs with fewer than two documents,
  where every idf collapses to zero.
- Select the top-k tokens per document with a deterministic token tie-break.

Conventions
-----------
- idf uses the natural logarithm: idf = ln(N_D / df). A token present in all
  N_D documents gets exactly 0.0.
- tf = weight(n) / sum(n) over the document, with weight(n) = n (RAW) or
  log(1 + n) (LOG). RAW tf sums to 1 per document; LOG tf stays in (0, 1].
- All returned frames are sorted by (document_id, token) with a fresh
  RangeIndex, so results do not depend on input row order.

Downstream usage
----------------
Build a frequency table (`count_token_occurrences` or
`tf_idf.tf_idf_input`), call `compute_tf_idf`, then `top_k_by_document` on
`result.scores` for per-document term lists.
"""

import numpy as np
import pandas as pd

from infra.logging.infra_logger import InfraLogger, initialize_logger
from tf_idf.tf_idf_config import (
    COMPONENT_NAME,
    COUNT_COLUMN,
    COUNTS_COLUMNS,
    DOCUMENT_FREQUENCY_COLUMN,
    DOCUMENT_ID_COLUMN,
    IDF_COLUMN,
    KEY_COLUMNS,
    MIN_DOCUMENTS_FOR_IDF,
    RANK_COLUMN,
    RANKABLE_KEYS,
    TF_COLUMN,
    TF_IDF_COLUMN,
    TF_IDF_TABLE_COLUMNS,
    TOKEN_COLUMN,
    TOTAL_COLUMN,
)
from tf_idf.tf_idf_types import InvalidInputError, Smoothing, TfIdfTable


def empty_counts() -> pd.DataFrame:
    """
    Return a zero-row frequency table with the canonical columns and dtypes.
    """

    return pd.DataFrame(
        {
            DOCUMENT_ID_COLUMN: pd.Series(dtype=object),
            TOKEN_COLUMN: pd.Series(dtype=object),
            COUNT_COLUMN: pd.Series(dtype="int64"),
        }
    )


def validate_token_counts(counts_df: pd.DataFrame) -> None:
    """
    Check that a frequency table is well-formed.

    Parameters
    ----------
    counts_df : pandas.DataFrame
        Frequency table with columns ['document_id', 'token', 'n'].

    Returns
    -------
    None

    Raises
    ------
    InvalidInputError
        - `field=<column>` if a required column is missing,
        - `field="document_id"` / `"token"` on null keys,
        - `field="token"` on non-string or empty tokens, or on a repeated
          (document_id, token) key,
        - `field="n"` on null, non-numeric, non-integral or < 1 counts.

    Notes
    -----
    - A zero-row table with the right columns is valid.
    """

    check_required_columns(counts_df, COUNTS_COLUMNS)
    if counts_df.empty:
        return
    check_keys(counts_df)

    counts: pd.Series = counts_df[COUNT_COLUMN]
    if counts.isna().any():
        raise InvalidInputError(COUNT_COLUMN, f"{int(counts.isna().sum())} null count(s)")
    if not pd.api.types.is_numeric_dtype(counts) or pd.api.types.is_bool_dtype(counts):
        raise InvalidInputError(COUNT_COLUMN, f"counts must be numeric, got dtype {counts.dtype}")
    if (counts % 1 != 0).any():
        raise InvalidInputError(COUNT_COLUMN, "counts must be whole numbers")
    if (counts < 1).any():
        offending = counts_df.loc[counts < 1, KEY_COLUMNS].iloc[0].tolist()
        raise InvalidInputError(
            COUNT_COLUMN, f"counts must be >= 1; first offending key {tuple(offending)!r}"
        )

    duplicated: pd.Series = counts_df.duplicated(subset=KEY_COLUMNS)
    if duplicated.any():
        offending = counts_df.loc[duplicated, KEY_COLUMNS].iloc[0].tolist()
        raise InvalidInputError(
            TOKEN_COLUMN, f"repeated (document_id, token) key {tuple(offending)!r}"
        )


def check_required_columns(frame: pd.DataFrame, columns: list[str]) -> None:
    for column in columns:
        if column not in frame.columns:
            raise InvalidInputError(column, "required column is missing")


def check_keys(frame: pd.DataFrame) -> None:
    """
    Reject null document ids and null, empty or non-string tokens.
    """

    for column in KEY_COLUMNS:
        nulls: pd.Series = frame[column].isna()
        if nulls.any():
            raise InvalidInputError(column, f"{int(nulls.sum())} null value(s)")
    bad_tokens: pd.Series = ~frame[TOKEN_COLUMN].astype(object).map(
        lambda t: isinstance(t, str) and t != ""
    )
    if bad_tokens.any():
        first_bad = frame.loc[bad_tokens, TOKEN_COLUMN].iloc[0]
        raise InvalidInputError(
            TOKEN_COLUMN, f"tokens must be non-empty strings, got {first_bad!r}"
        )


def count_token_occurrences(occurrences_df: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse a token-occurrence stream into a frequency table.

    Parameters
    ----------
    occurrences_df : pandas.DataFrame
        One row per occurrence with columns ['document_id', 'token']; extra
        columns are ignored.

    Returns
    -------
    pandas.DataFrame
        Frequency table ['document_id', 'token', 'n'] sorted by key. Summing
        `n` per document gives that document's number of input rows.

    Raises
    ------
    InvalidInputError
        On missing columns, null keys or non-string tokens.
    """

    check_required_columns(occurrences_df, KEY_COLUMNS)
    if occurrences_df.empty:
        return empty_counts()
    check_keys(occurrences_df)
    counts_df: pd.DataFrame = (
        uncategorize_keys(occurrences_df)
        .groupby(KEY_COLUMNS, sort=False, observed=True)
        .size()
        .reset_index(name=COUNT_COLUMN)
    )
    counts_df[COUNT_COLUMN] = counts_df[COUNT_COLUMN].astype("int64")
    return sort_by_keys(counts_df)


def compute_term_frequency(
    counts_df: pd.DataFrame, smoothing: Smoothing | str = Smoothing.RAW
) -> pd.DataFrame:
    """
    Compute within-document term frequencies.

    Parameters
    ----------
    counts_df : pandas.DataFrame
        Frequency table ['document_id', 'token', 'n'].
    smoothing : Smoothing | str, default=Smoothing.RAW
        RAW weights each token by `n`, LOG by `log(1 + n)`.

    Returns
    -------
    pandas.DataFrame
        Columns ['document_id', 'token', 'n', 'total', 'tf'] where `total` is
        the document's summed raw count and `tf = weight(n) / total`.

    Raises
    ------
    InvalidInputError
        If the table fails `validate_token_counts` or `smoothing` is unknown.
    """

    smoothing = Smoothing.parse(smoothing)
    validate_token_counts(counts_df)
    return term_frequency_table(normalize_counts(counts_df), smoothing)


def compute_inverse_document_frequency(
    counts_df: pd.DataFrame, logger: InfraLogger | None = None
) -> pd.DataFrame:
    """
    Compute per-token document frequencies and idf = ln(N_D / df).

    Parameters
    ----------
    counts_df : pandas.DataFrame
        Frequency table ['document_id', 'token', 'n'].
    logger : InfraLogger, optional
        Receives the `degenerate_tf_idf` warning; created when omitted.

    Returns
    -------
    pandas.DataFrame
        Columns ['token', 'df', 'idf'] sorted by token.

    Raises
    ------
    InvalidInputError
        If the table fails `validate_token_counts`.

    Notes
    -----
    - With fewer than two documents every idf is 0.0; a WARNING is emitted
      and the table is still returned.
    """

    validate_token_counts(counts_df)
    idf_df, _ = inverse_document_frequency_table(
        normalize_counts(counts_df), resolve_logger(logger)
    )
    return idf_df


def compute_tf_idf(
    counts_df: pd.DataFrame,
    smoothing: Smoothing | str = Smoothing.RAW,
    logger: InfraLogger | None = None,
) -> TfIdfTable:
    """
    Compute tf, idf and tf-idf for every (document_id, token) pair.

    Parameters
    ----------
    counts_df : pandas.DataFrame
        Frequency table ['document_id', 'token', 'n'].
    smoothing : Smoothing | str, default=Smoothing.RAW
        Term weighting for the tf column.
    logger : InfraLogger, optional
        Receives debug progress and the degeneracy warning; created when omitted.

    Returns
    -------
    TfIdfTable
        `scores` with columns ['document_id', 'token', 'n', 'tf', 'idf',
        'tf_idf'], the document count, and the smoothing used.

    Raises
    ------
    InvalidInputError
        If the table fails validation or `smoothing` is unknown. Raised before
        any computation.

    Notes
    -----
    - Output is identical (bit for bit) for any permutation of input rows.
    """

    smoothing = Smoothing.parse(smoothing)
    validate_token_counts(counts_df)
    logger = resolve_logger(logger)

    counts: pd.DataFrame = normalize_counts(counts_df)
    tf_df: pd.DataFrame = term_frequency_table(counts, smoothing)
    logger.debug(event="computed_term_frequency", context={"row_count": len(tf_df)})
    idf_df, document_count = inverse_document_frequency_table(counts, logger)
    logger.debug(
        event="computed_inverse_document_frequency",
        context={"token_count": len(idf_df), "document_count": document_count},
    )

    scores: pd.DataFrame = tf_df.merge(
        idf_df[[TOKEN_COLUMN, IDF_COLUMN]], on=TOKEN_COLUMN, how="left", validate="many_to_one"
    )
    scores[TF_IDF_COLUMN] = scores[TF_COLUMN] * scores[IDF_COLUMN]
    scores = sort_by_keys(scores[TF_IDF_TABLE_COLUMNS])
    logger.debug(
        event="computed_tf_idf",
        context={"row_count": len(scores), "smoothing": smoothing.value},
    )
    return TfIdfTable(scores=scores, document_count=document_count, smoothing=smoothing)


def top_k_by_document(
    tf_idf_table: TfIdfTable | pd.DataFrame, k: int, key: str = TF_IDF_COLUMN
) -> pd.DataFrame:
    """
    Select the `k` highest-scoring tokens of every document.

    Parameters
    ----------
    tf_idf_table : TfIdfTable | pandas.DataFrame
        Result of `compute_tf_idf`, or its `scores` frame.
    k : int
        Number of tokens to keep per document; must be positive.
    key : str, default="tf_idf"
        Ranking column, one of "tf", "idf", "tf_idf".

    Returns
    -------
    pandas.DataFrame
        Input columns plus a 1-based 'rank', ordered by document_id then rank.
        Documents with fewer than `k` tokens contribute all of their rows.

    Raises
    ------
    InvalidInputError
        `field="k"` for a non-positive or non-integer k, `field="key"` for an
        unknown ranking column, `field=<column>` for a missing column.

    Notes
    -----
    - Equal scores are ordered by ascending token, so with k=1 the
      lexicographically smaller of two tied tokens wins.
    """

    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k <= 0:
        raise InvalidInputError("k", f"must be a positive integer, got {k!r}")
    if key not in RANKABLE_KEYS:
        raise InvalidInputError("key", f"expected one of {RANKABLE_KEYS}, got {key!r}")

    frame: pd.DataFrame = (
        tf_idf_table.scores if isinstance(tf_idf_table, TfIdfTable) else tf_idf_table
    )
    check_required_columns(frame, [DOCUMENT_ID_COLUMN, TOKEN_COLUMN, key])

    ranked: pd.DataFrame = frame.sort_values(
        by=[DOCUMENT_ID_COLUMN, key, TOKEN_COLUMN], ascending=[True, False, True]
    )
    top: pd.DataFrame = (
        ranked.groupby(DOCUMENT_ID_COLUMN, sort=False, observed=True).head(int(k)).copy()
    )
    top[RANK_COLUMN] = top.groupby(DOCUMENT_ID_COLUMN, sort=False, observed=True).cumcount() + 1
    return top.reset_index(drop=True)


def term_frequency_table(counts_df: pd.DataFrame, smoothing: Smoothing) -> pd.DataFrame:
    tf_df: pd.DataFrame = counts_df.copy()
    tf_df[TOTAL_COLUMN] = tf_df.groupby(DOCUMENT_ID_COLUMN, observed=True)[COUNT_COLUMN].transform(
        "sum"
    )
    if smoothing is Smoothing.LOG:
        weights: pd.Series = np.log1p(tf_df[COUNT_COLUMN].astype("float64"))
    else:
        weights = tf_df[COUNT_COLUMN].astype("float64")
    tf_df[TF_COLUMN] = weights / tf_df[TOTAL_COLUMN]
    return sort_by_keys(tf_df)


def inverse_document_frequency_table(
    counts_df: pd.DataFrame, logger: InfraLogger
) -> tuple[pd.DataFrame, int]:
    """
    Aggregate document frequencies per token and derive idf.

    Returns
    -------
    tuple[pandas.DataFrame, int]
        (['token', 'df', 'idf'] sorted by token, N_D).
    """

    document_count: int = int(counts_df[DOCUMENT_ID_COLUMN].nunique())
    idf_df: pd.DataFrame = (
        counts_df.groupby(TOKEN_COLUMN, sort=True, observed=True)[DOCUMENT_ID_COLUMN]
        .nunique()
        .reset_index(name=DOCUMENT_FREQUENCY_COLUMN)
    )
    idf_df[DOCUMENT_FREQUENCY_COLUMN] = idf_df[DOCUMENT_FREQUENCY_COLUMN].astype("int64")
    idf_df[IDF_COLUMN] = np.log(
        document_count / idf_df[DOCUMENT_FREQUENCY_COLUMN].astype("float64")
    )
    if document_count < MIN_DOCUMENTS_FOR_IDF:
        logger.warning(
            event="degenerate_tf_idf",
            msg="Fewer than two documents; every idf (and tf-idf) is zero",
            context={"document_count": document_count},
        )
    return idf_df.reset_index(drop=True), document_count


def normalize_counts(counts_df: pd.DataFrame) -> pd.DataFrame:
    """
    Restrict a validated table to its canonical columns with integer counts.
    """

    if counts_df.empty:
        return empty_counts()
    return uncategorize_keys(counts_df[COUNTS_COLUMNS]).astype({COUNT_COLUMN: "int64"})


def uncategorize_keys(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Replace categorical key columns by their plain values.

    Notes
    -----
    - Unused categories would otherwise reappear as zero-count keys in
      groupby results, and sorting would follow category order instead of
      value order.
    """

    categorical: list[str] = [
        column
        for column in KEY_COLUMNS
        if column in frame.columns and isinstance(frame[column].dtype, pd.CategoricalDtype)
    ]
    if not categorical:
        return frame
    return frame.astype({column: frame[column].cat.categories.dtype for column in categorical})


def sort_by_keys(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.sort_values(by=KEY_COLUMNS).reset_index(drop=True)


def resolve_logger(logger: InfraLogger | None) -> InfraLogger:
    if logger is not None:
        return logger
    return initialize_logger(component_name=COMPONENT_NAME)
