"""
Purpose
-------
Single source of truth for the column names, ranking keys, defaults and
file-system locations used by the tf-idf pipeline.

Key behaviors
-------------
- Fix the column vocabulary shared by the occurrence stream, the frequency
  table, the intermediate tf/idf tables and the final tf-idf table.
- Define the default batch-run locations under `local_data/`, overridable
  through environment variables in `tf_idf.run_tf_idf`.

Conventions
-----------
- `document_id` is whatever grouping key the caller chose (a beer style, a
  rating decile, a review id); the pipeline never interprets it.
- Tokens arrive already normalized (case-folded, punctuation-stripped).
- Token stream chunks are parquet files named `token_stream_chunk_<k>.parquet`
  holding the columns DOCUMENT_ID_COLUMN and TOKEN_COLUMN.
- All paths are project-relative and assume the repository root as the
  working directory.

Attributes
----------
DOCUMENT_ID_COLUMN, TOKEN_COLUMN, COUNT_COLUMN : str
    Key and count columns of the frequency table.
TOTAL_COLUMN, TF_COLUMN : str
    Per-document token total and term frequency.
DOCUMENT_FREQUENCY_COLUMN, IDF_COLUMN, TF_IDF_COLUMN : str
    Document frequency, inverse document frequency and their product with tf.
RANK_COLUMN : str
    1-based position of a token inside its document after ranking.
RANKABLE_KEYS : tuple[str, ...]
    Columns `top_k_by_document` may rank by.
MIN_DOCUMENTS_FOR_IDF : int
    Below this many documents every idf is zero and the run is degenerate.
"""

from pathlib import Path

DOCUMENT_ID_COLUMN: str = "document_id"
TOKEN_COLUMN: str = "token"
COUNT_COLUMN: str = "n"
TOTAL_COLUMN: str = "total"
TF_COLUMN: str = "tf"
DOCUMENT_FREQUENCY_COLUMN: str = "df"
IDF_COLUMN: str = "idf"
TF_IDF_COLUMN: str = "tf_idf"
RANK_COLUMN: str = "rank"

KEY_COLUMNS: list[str] = [DOCUMENT_ID_COLUMN, TOKEN_COLUMN]
COUNTS_COLUMNS: list[str] = [DOCUMENT_ID_COLUMN, TOKEN_COLUMN, COUNT_COLUMN]
TF_IDF_TABLE_COLUMNS: list[str] = [
    DOCUMENT_ID_COLUMN,
    TOKEN_COLUMN,
    COUNT_COLUMN,
    TF_COLUMN,
    IDF_COLUMN,
    TF_IDF_COLUMN,
]

RANKABLE_KEYS: tuple[str, ...] = (TF_COLUMN, IDF_COLUMN, TF_IDF_COLUMN)

MIN_DOCUMENTS_FOR_IDF: int = 2

DEFAULT_TOP_K: int = 10

DEFAULT_BUCKET_COUNT: int = 10

COMPONENT_NAME: str = "tf_idf"

TOKEN_STREAM_DIR: Path = Path("local_data") / "token_stream"

TOKEN_STREAM_GLOB: str = "token_stream_chunk_*.parquet"

TF_IDF_OUTPUT_DIR: Path = Path("local_data") / "tf_idf"

TF_IDF_TABLE_FILE_NAME: str = "tf_idf_table.parquet"

TOP_TERMS_FILE_NAME: str = "top_terms.parquet"
