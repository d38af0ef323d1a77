"""
Purpose
-------
Exercise `tf_idf.tf_idf_buckets`: rank buckets, categorical document keys,
and the review -> document join feeding the engine.
"""

import numpy as np
import pandas as pd
import pytest

from tests.test_tf_idf.tf_idf_testing_utils import RecordingLogger, as_infra_logger
from tf_idf.tf_idf_buckets import attach_document_ids, bucket_by_column, bucket_by_quantile
from tf_idf.tf_idf_engine import compute_tf_idf, count_token_occurrences, top_k_by_document
from tf_idf.tf_idf_types import InvalidInputError


@pytest.fixture
def reviews_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "review_id": [1, 2, 3, 4, 5],
            "style": ["stout", "ipa", "stout", None, "ipa"],
            "rating": [4.5, 3.0, 4.0, 2.5, np.nan],
        }
    )


@pytest.fixture
def review_tokens_df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "review_id": [1, 1, 2, 2, 3, 3, 4, 5],
            "token": [
                "chocolate",
                "beer",
                "hoppy",
                "beer",
                "roasty",
                "beer",
                "flat",
                "citrus",
            ],
        }
    )


def test_bucket_by_quantile_equal_size_buckets() -> None:
    frame = pd.DataFrame({"rating": [40, 10, 30, 20]})
    bucketed: pd.DataFrame = bucket_by_quantile(
        frame, "rating", n_buckets=2, logger=as_infra_logger(RecordingLogger())
    )
    assert bucketed["document_id"].tolist() == [2, 1, 2, 1]
    assert bucketed["document_id"].dtype == np.dtype("int64")


def test_bucket_by_quantile_ties_break_by_row_order() -> None:
    """
    Equal values are spread over buckets in order of appearance.
    """

    frame = pd.DataFrame({"rating": [5, 5, 5]})
    bucketed: pd.DataFrame = bucket_by_quantile(
        frame, "rating", n_buckets=3, logger=as_infra_logger(RecordingLogger())
    )
    assert bucketed["document_id"].tolist() == [1, 2, 3]


def test_bucket_by_quantile_bucket_sizes_differ_by_at_most_one() -> None:
    frame = pd.DataFrame({"rating": np.arange(23, dtype=float)})
    bucketed: pd.DataFrame = bucket_by_quantile(
        frame, "rating", n_buckets=10, logger=as_infra_logger(RecordingLogger())
    )
    sizes = bucketed["document_id"].value_counts()
    assert sorted(sizes.index.tolist()) == list(range(1, 11))
    assert sizes.max() - sizes.min() <= 1


def test_bucket_by_quantile_drops_missing_values(reviews_df: pd.DataFrame) -> None:
    recording_logger = RecordingLogger()
    bucketed: pd.DataFrame = bucket_by_quantile(
        reviews_df,
        "rating",
        n_buckets=2,
        bucket_column="rating_bucket",
        logger=as_infra_logger(recording_logger),
    )

    assert bucketed["review_id"].tolist() == [1, 2, 3, 4]
    assert bucketed["rating_bucket"].tolist() == [2, 1, 2, 1]
    assert "document_id" not in bucketed.columns
    event = recording_logger.events_named("bucketed_by_quantile")[0]
    assert event.context is not None
    assert event.context["dropped_rows"] == 1


def test_bucket_by_quantile_all_missing_gives_empty_frame() -> None:
    frame = pd.DataFrame({"rating": [np.nan, np.nan]})
    bucketed: pd.DataFrame = bucket_by_quantile(
        frame, "rating", n_buckets=4, logger=as_infra_logger(RecordingLogger())
    )
    assert bucketed.empty
    assert "document_id" in bucketed.columns


@pytest.mark.parametrize("n_buckets", [0, -3, 2.5, True])
def test_bucket_by_quantile_rejects_invalid_bucket_count(n_buckets) -> None:
    frame = pd.DataFrame({"rating": [1.0, 2.0]})
    with pytest.raises(InvalidInputError) as exc_info:
        bucket_by_quantile(frame, "rating", n_buckets=n_buckets)
    assert exc_info.value.field == "n_buckets"


def test_bucket_by_quantile_missing_column() -> None:
    with pytest.raises(InvalidInputError) as exc_info:
        bucket_by_quantile(pd.DataFrame({"abv": [5.0]}), "rating", n_buckets=2)
    assert exc_info.value.field == "rating"


def test_bucket_by_column_uses_category(reviews_df: pd.DataFrame) -> None:
    recording_logger = RecordingLogger()
    bucketed: pd.DataFrame = bucket_by_column(
        reviews_df, "style", logger=as_infra_logger(recording_logger)
    )
    assert bucketed["document_id"].tolist() == ["stout", "ipa", "stout", "ipa"]
    assert recording_logger.events_named("bucketed_by_column")[0].context == {
        "column": "style",
        "dropped_rows": 1,
    }


def test_attach_document_ids_discards_unbucketed_reviews(
    reviews_df: pd.DataFrame, review_tokens_df: pd.DataFrame
) -> None:
    """
    Review 4 has no style, so its token never reaches a document.
    """

    documents_df: pd.DataFrame = bucket_by_column(
        reviews_df, "style", logger=as_infra_logger(RecordingLogger())
    )
    occurrences: pd.DataFrame = attach_document_ids(review_tokens_df, documents_df, on="review_id")

    assert list(occurrences.columns) == ["document_id", "token"]
    assert len(occurrences) == 7
    assert "flat" not in occurrences["token"].tolist()


def test_attach_document_ids_rejects_duplicate_reviews(review_tokens_df: pd.DataFrame) -> None:
    documents_df = pd.DataFrame({"review_id": [1, 1], "document_id": ["stout", "ipa"]})
    with pytest.raises(InvalidInputError) as exc_info:
        attach_document_ids(review_tokens_df, documents_df, on="review_id")
    assert exc_info.value.field == "review_id"


def test_attach_document_ids_missing_token_column(reviews_df: pd.DataFrame) -> None:
    tokens_df = pd.DataFrame({"review_id": [1], "word": ["beer"]})
    with pytest.raises(InvalidInputError) as exc_info:
        attach_document_ids(tokens_df, reviews_df, on="review_id", bucket_column="style")
    assert exc_info.value.field == "token"


def test_styles_as_documents_end_to_end(
    reviews_df: pd.DataFrame, review_tokens_df: pd.DataFrame
) -> None:
    """
    Bucket by style, attach tokens, count and score: the shared token "beer"
    scores zero and each style's distinctive tokens rank first.
    """

    logger = as_infra_logger(RecordingLogger())
    documents_df: pd.DataFrame = bucket_by_column(reviews_df, "style", logger=logger)
    occurrences: pd.DataFrame = attach_document_ids(review_tokens_df, documents_df, on="review_id")
    result = compute_tf_idf(count_token_occurrences(occurrences), logger=logger)

    assert result.document_count == 2
    scores = result.scores.set_index(["document_id", "token"])["tf_idf"]
    assert scores.loc[("stout", "beer")] == 0.0
    assert scores.loc[("ipa", "beer")] == 0.0

    top_df: pd.DataFrame = top_k_by_document(result, 1)
    assert top_df.set_index("document_id")["token"].to_dict() == {
        "ipa": "citrus",
        "stout": "chocolate",
    }


def test_categorical_styles_as_documents(
    reviews_df: pd.DataFrame, review_tokens_df: pd.DataFrame
) -> None:
    """
    A categorical style column (with an unused category) yields the same
    counts as a plain one: no zero-count (style, token) pairs appear.
    """

    logger = as_infra_logger(RecordingLogger())
    categorical_reviews: pd.DataFrame = reviews_df.assign(
        style=pd.Categorical(reviews_df["style"], categories=["ipa", "lager", "stout"])
    )

    documents_df: pd.DataFrame = bucket_by_column(categorical_reviews, "style", logger=logger)
    occurrences: pd.DataFrame = attach_document_ids(review_tokens_df, documents_df, on="review_id")
    counts_df: pd.DataFrame = count_token_occurrences(occurrences)

    plain_documents: pd.DataFrame = bucket_by_column(reviews_df, "style", logger=logger)
    plain_counts: pd.DataFrame = count_token_occurrences(
        attach_document_ids(review_tokens_df, plain_documents, on="review_id")
    )
    pd.testing.assert_frame_equal(counts_df, plain_counts)
    assert (counts_df["n"] >= 1).all()
    assert compute_tf_idf(counts_df, logger=logger).document_count == 2


def test_bucket_by_quantile_accepts_numpy_integer_bucket_count() -> None:
    frame = pd.DataFrame({"rating": [40, 10, 30, 20]})
    bucketed: pd.DataFrame = bucket_by_quantile(
        frame, "rating", n_buckets=np.int64(2), logger=as_infra_logger(RecordingLogger())
    )
    assert bucketed["document_id"].tolist() == [2, 1, 2, 1]
