"""
Purpose
-------
Print a compact, fixed-width view of the ranked terms per document for
notebook and batch-run inspection.

Conventions
-----------
- Input is the output of `top_k_by_document` (it must carry 'rank').
- Documents are printed in the order they appear; rows within a document in
  rank order.
"""

import pandas as pd

from tf_idf.tf_idf_config import (
    COUNT_COLUMN,
    DOCUMENT_ID_COLUMN,
    RANK_COLUMN,
    TF_IDF_COLUMN,
    TOKEN_COLUMN,
)
from tf_idf.tf_idf_engine import check_required_columns


def summarize_top_terms(top_df: pd.DataFrame, key: str = TF_IDF_COLUMN) -> None:
    """
    Print one block per document listing rank, token, raw count and `key`.

    Parameters
    ----------
    top_df : pandas.DataFrame
        Ranked terms from `top_k_by_document`.
    key : str, default="tf_idf"
        Score column to display.

    Returns
    -------
    None

    Raises
    ------
    InvalidInputError
        If a displayed column is missing.
    """

    check_required_columns(top_df, [DOCUMENT_ID_COLUMN, RANK_COLUMN, TOKEN_COLUMN, key])
    show_count: bool = COUNT_COLUMN in top_df.columns

    print(f"Top terms per document by {key}")
    print("-" * 60)
    if top_df.empty:
        print("(no documents)")
        return
    for document_id, group in top_df.groupby(DOCUMENT_ID_COLUMN, sort=False, observed=True):
        print(f"document: {document_id}")
        print(f"{'rank':>4}  {'token':<20} {'n':>8} {key:>12}")
        for row in group.sort_values(RANK_COLUMN).itertuples(index=False):
            record = row._asdict()
            count: str = str(record[COUNT_COLUMN]) if show_count else "-"
            print(
                f"{record[RANK_COLUMN]:>4}  {record[TOKEN_COLUMN]:<20} "
                f"{count:>8} {record[key]:>12.6f}"
            )
        print()
