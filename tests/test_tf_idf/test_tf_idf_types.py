import pandas as pd
import pytest

from tf_idf.tf_idf_types import InvalidInputError, Smoothing, TfIdfTable


@pytest.mark.parametrize(
    "value, expected",
    [
        (Smoothing.RAW, Smoothing.RAW),
        ("raw", Smoothing.RAW),
        ("LOG", Smoothing.LOG),
        ("  Log ", Smoothing.LOG),
    ],
)
def test_smoothing_parse_accepts_members_and_names(value, expected: Smoothing) -> None:
    assert Smoothing.parse(value) is expected


@pytest.mark.parametrize("value", ["sqrt", "", None, 1])
def test_smoothing_parse_rejects_unknown(value) -> None:
    with pytest.raises(InvalidInputError) as exc_info:
        Smoothing.parse(value)
    assert exc_info.value.field == "smoothing"


def test_invalid_input_error_is_value_error() -> None:
    error = InvalidInputError("n", "counts must be whole numbers")
    assert isinstance(error, ValueError)
    assert error.field == "n"
    assert str(error) == "n: counts must be whole numbers"


@pytest.mark.parametrize("document_count, degenerate", [(0, True), (1, True), (2, False)])
def test_tf_idf_table_degenerate_below_two_documents(
    document_count: int, degenerate: bool
) -> None:
    table = TfIdfTable(pd.DataFrame(), document_count, Smoothing.RAW)
    assert table.degenerate is degenerate
