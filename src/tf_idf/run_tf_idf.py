"""
Purpose
-------
Batch entry point: score a tokenized review corpus stored as parquet chunks
and write the full tf-idf table plus the per-document top terms.

Key behaviors
-------------
- Hydrates the environment from `.env` (python-dotenv) and resolves the run
  settings from TF_IDF_* variables.
- Counts the token stream chunks (optionally in worker processes), computes
  tf-idf with the configured smoothing, and ranks the top-k tokens per
  document.
- Writes `tf_idf_table.parquet` and `top_terms.parquet` under the output
  directory and prints the top-terms summary.

Conventions
-----------
- Environment variables (all optional):
    - TF_IDF_TOKEN_DIR   : chunk directory (default local_data/token_stream)
    - TF_IDF_OUTPUT_DIR  : output directory (default local_data/tf_idf)
    - TF_IDF_SMOOTHING   : "raw" or "log" (default raw)
    - TF_IDF_TOP_K       : positive int (default 10)
    - TF_IDF_MAX_WORKERS : positive int (default 1)
- Logging follows LOG_LEVEL / LOG_FORMAT / LOG_DEST (see infra_logger).

Downstream usage
----------------
Run from the project root once the token stream has been written:

    `python -m tf_idf.run_tf_idf`
"""

import os
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from infra.logging.infra_logger import InfraLogger, initialize_logger
from tf_idf.tf_idf_config import (
    COMPONENT_NAME,
    DEFAULT_TOP_K,
    TF_IDF_OUTPUT_DIR,
    TF_IDF_TABLE_FILE_NAME,
    TOKEN_STREAM_DIR,
    TOP_TERMS_FILE_NAME,
)
from tf_idf.tf_idf_engine import compute_tf_idf, top_k_by_document
from tf_idf.tf_idf_input import count_token_stream_chunks
from tf_idf.tf_idf_report import summarize_top_terms
from tf_idf.tf_idf_types import InvalidInputError, Smoothing, TfIdfTable


@dataclass(frozen=True)
class RunSettings:
    """
    Purpose
    -------
    Resolved configuration of one batch run.

    Attributes
    ----------
    token_dir : pathlib.Path
        Directory holding the token stream chunks.
    output_dir : pathlib.Path
        Directory receiving the parquet outputs.
    smoothing : Smoothing
        Term weighting for tf.
    top_k : int
        Tokens kept per document in `top_terms.parquet`.
    max_workers : int
        Worker processes used to count chunks.
    """

    token_dir: Path
    output_dir: Path
    smoothing: Smoothing
    top_k: int
    max_workers: int


def main() -> None:
    """
    Run the full count -> score -> rank -> write pipeline.

    Raises
    ------
    InvalidInputError
        If a TF_IDF_* variable is invalid or the token stream holds malformed
        records.
    OSError
        If chunks cannot be read or outputs cannot be written.
    """

    load_dotenv()
    settings: RunSettings = extract_run_settings()
    logger: InfraLogger = initialize_logger(
        component_name=COMPONENT_NAME,
        run_meta={"smoothing": settings.smoothing.value, "top_k": settings.top_k},
    )
    logger.info(event="tf_idf_run_started", context={"token_dir": str(settings.token_dir)})
    run_tf_idf(settings, logger)


def run_tf_idf(settings: RunSettings, logger: InfraLogger) -> TfIdfTable:
    """
    Execute one batch run with explicit settings.

    Returns
    -------
    TfIdfTable
        The computed table, also written to `settings.output_dir`.
    """

    counts_df: pd.DataFrame = count_token_stream_chunks(
        settings.token_dir, logger=logger, max_workers=settings.max_workers
    )
    result: TfIdfTable = compute_tf_idf(counts_df, smoothing=settings.smoothing, logger=logger)
    top_df: pd.DataFrame = top_k_by_document(result, settings.top_k)

    settings.output_dir.mkdir(parents=True, exist_ok=True)
    table_path: Path = settings.output_dir / TF_IDF_TABLE_FILE_NAME
    top_path: Path = settings.output_dir / TOP_TERMS_FILE_NAME
    result.scores.to_parquet(table_path, index=False)
    top_df.to_parquet(top_path, index=False)
    logger.info(
        event="tf_idf_run_finished",
        context={
            "document_count": result.document_count,
            "row_count": len(result.scores),
            "degenerate": result.degenerate,
            "table_path": str(table_path),
            "top_terms_path": str(top_path),
        },
    )
    summarize_top_terms(top_df)
    return result


def extract_run_settings() -> RunSettings:
    """
    Resolve RunSettings from TF_IDF_* environment variables.

    Raises
    ------
    InvalidInputError
        If TF_IDF_SMOOTHING names no smoothing option or TF_IDF_TOP_K /
        TF_IDF_MAX_WORKERS is not a positive integer.
    """

    return RunSettings(
        token_dir=Path(os.environ.get("TF_IDF_TOKEN_DIR", str(TOKEN_STREAM_DIR))),
        output_dir=Path(os.environ.get("TF_IDF_OUTPUT_DIR", str(TF_IDF_OUTPUT_DIR))),
        smoothing=Smoothing.parse(os.environ.get("TF_IDF_SMOOTHING", Smoothing.RAW.value)),
        top_k=parse_positive_int("TF_IDF_TOP_K", DEFAULT_TOP_K),
        max_workers=parse_positive_int("TF_IDF_MAX_WORKERS", 1),
    )


def parse_positive_int(env_var: str, default: int) -> int:
    raw_value: str | None = os.environ.get(env_var)
    if raw_value is None:
        return default
    try:
        value: int = int(raw_value)
    except ValueError as exc:
        raise InvalidInputError(env_var, f"expected a positive integer, got {raw_value!r}") from exc
    if value <= 0:
        raise InvalidInputError(env_var, f"expected a positive integer, got {raw_value!r}")
    return value


if __name__ == "__main__":
    main()
