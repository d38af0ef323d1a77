"""
Purpose
-------
Shared types for the tf-idf pipeline: the smoothing option, the input
validation error, and the result container returned by `compute_tf_idf`.

Key behaviors
-------------
- `Smoothing` makes the raw-versus-log term weighting an explicit choice.
- `InvalidInputError` names the offending column or argument in `field`.
- `TfIdfTable` carries the scores together with the document count they were
  computed over, so callers can detect the degenerate (< 2 documents) case
  without parsing logs.

Conventions
-----------
- `InvalidInputError` subclasses `ValueError`, so callers catching ValueError
  keep working.
- `TfIdfTable.scores` has the columns of `TF_IDF_TABLE_COLUMNS`, sorted by
  (document_id, token) with a fresh RangeIndex.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

import pandas as pd

from tf_idf.tf_idf_config import MIN_DOCUMENTS_FOR_IDF

DocumentId: TypeAlias = object
TokenKey: TypeAlias = tuple[DocumentId, str]


class InvalidInputError(ValueError):
    """
    Raised when a frequency table, occurrence stream or ranking request is
    malformed.

    Parameters
    ----------
    field : str
        Column or argument that failed validation (e.g. "n", "document_id", "k").
    message : str
        Human-readable description of the failure.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class Smoothing(str, Enum):
    """
    Term weighting applied before dividing by the document total.

    RAW uses the count `n` directly; LOG uses `log(1 + n)`.
    """

    RAW = "raw"
    LOG = "log"

    @classmethod
    def parse(cls, value: "Smoothing | str") -> "Smoothing":
        """
        Accept a member or a case-insensitive name/value ("raw", "LOG", ...).

        Raises
        ------
        InvalidInputError
            If `value` names no smoothing option.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized: str = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        options: str = ", ".join(member.value for member in cls)
        raise InvalidInputError("smoothing", f"expected one of {{{options}}}, got {value!r}")


@dataclass(frozen=True)
class TfIdfTable:
    """
    Purpose
    -------
    Immutable result of one `compute_tf_idf` call.

    Attributes
    ----------
    scores : pandas.DataFrame
        One row per (document_id, token) with n, tf, idf and tf_idf.
    document_count : int
        Number of distinct documents (N_D) the idf was computed over.
    smoothing : Smoothing
        Term weighting used for the tf column.

    Notes
    -----
    - `degenerate` is True when fewer than MIN_DOCUMENTS_FOR_IDF documents were
      present; every idf (and therefore tf_idf) is zero in that case.
    """

    scores: pd.DataFrame
    document_count: int
    smoothing: Smoothing

    @property
    def degenerate(self) -> bool:
        return self.document_count < MIN_DOCUMENTS_FOR_IDF
