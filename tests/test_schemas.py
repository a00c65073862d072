"""
Tests for request validation models.
"""

import pytest
from pydantic import ValidationError

from embedstore.api.schemas import InitializeRequest, SearchRequest


def test_valid_initialize_request():
    request = InitializeRequest(db_path="store.db", embedding_length=3, data_type=" Float32 ")

    assert request.data_type == "float32"
    assert request.description == ""


@pytest.mark.parametrize("field,value,message", [
    ("db_path", "  ", "db_path cannot be empty"),
    ("embedding_length", 0, "embedding_length must be 1 or greater"),
    ("data_type", "complex64", "data_type must be one of"),
])
def test_invalid_initialize_request(field, value, message):
    fields = {"db_path": "store.db", "embedding_length": 3, "data_type": "float32"}
    fields[field] = value

    with pytest.raises(ValidationError) as excinfo:
        InitializeRequest(**fields)

    assert message in str(excinfo.value)


def test_valid_search_request():
    request = SearchRequest(metric="Cosine", top_k=0, strategy=" ID_FIRST", batch_size=1)

    assert request.metric == "cosine"
    assert request.strategy == "id_first"
    assert request.top_k == 0


def test_search_request_rejects_negative_top_k():
    with pytest.raises(ValidationError) as excinfo:
        SearchRequest(metric="euclidean", top_k=-1, strategy="cursor", batch_size=10)

    assert "top_k must be 0 or greater" in str(excinfo.value)


def test_search_request_rejects_zero_batch():
    with pytest.raises(ValidationError):
        SearchRequest(metric="euclidean", top_k=1, strategy="batched", batch_size=0)


def test_search_request_rejects_blank_names():
    with pytest.raises(ValidationError):
        SearchRequest(metric=" ", top_k=1, strategy="batched", batch_size=1)


def test_validation_error_is_value_error():
    """Callers can catch bad parameters as ValueError."""
    with pytest.raises(ValueError):
        SearchRequest(metric="euclidean", top_k=-5, strategy="cursor", batch_size=1)
