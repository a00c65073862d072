"""
Tests for structured logging and configuration helpers.
"""

import logging
import time

import pytest

from embedstore.core import config
from embedstore.core.db import get_db
from embedstore.util.logging import StructuredLogger, logger
from embedstore.vector.search import search
from embedstore.vector.source import InMemoryEmbeddingSource


@pytest.fixture
def structured(caplog):
    wrapper = StructuredLogger()
    caplog.set_level(logging.DEBUG, logger="embedstore")
    return wrapper


def test_global_logger_name():
    assert logger.logger.name == "embedstore"


def test_single_handler_per_logger():
    """Creating the wrapper twice does not duplicate output."""
    StructuredLogger()
    StructuredLogger()

    assert len(logging.getLogger("embedstore").handlers) == 1


def test_log_operation_levels(structured, caplog):
    structured.log_operation("store.insert", "success", {"count": 1})
    structured.log_operation("store.insert", "failed", {"error": "boom"})

    assert caplog.records[0].levelno == logging.INFO
    assert caplog.records[0].getMessage() == "Operation: store.insert, Status: success, Details: {'count': 1}"
    assert caplog.records[1].levelno == logging.ERROR


def test_store_operation_truncates_ids(structured, caplog):
    structured.log_store_operation("delete", [str(i) for i in range(8)], {"deleted": 8})

    message = caplog.records[-1].getMessage()
    assert "store.delete" in message
    assert "'count': 8" in message
    assert "['0', '1', '2', '3', '4', '...']" in message
    assert "'deleted': 8" in message


def test_search_log_has_duration(structured, caplog):
    start = time.time()
    structured.log_search("cursor", "cosine", 3, 10, 3, start, start + 0.25)

    message = caplog.records[-1].getMessage()
    assert "search.cursor" in message
    assert "'duration_ms': 250.0" in message


def test_validation_error_log(structured, caplog):
    structured.log_validation_error("insert", ValueError("bad length"), {"db_path": "x.db"})

    message = caplog.records[-1].getMessage()
    assert "validation.insert" in message
    assert "rejected" in message
    assert "'error_type': 'ValueError'" in message
    assert "'db_path': 'x.db'" in message


def test_plain_helpers(structured, caplog):
    structured.debug("d")
    structured.warning("w")

    assert [r.levelno for r in caplog.records] == [logging.DEBUG, logging.WARNING]


class TestConfig:

    def test_defaults(self):
        assert config.BULK_LIMIT == 1000
        assert config.DEFAULT_STRATEGY in ["whole_table", "batched", "id_first", "cursor"]

    def test_validate_config_clean(self):
        assert config.validate_config() == []

    def test_validate_config_reports_issues(self, monkeypatch):
        monkeypatch.setattr(config, "BULK_LIMIT", 0)
        monkeypatch.setattr(config, "DEFAULT_STRATEGY", "hnsw")

        issues = config.validate_config()

        assert "BULK_LIMIT must be >= 1" in issues
        assert "Invalid DEFAULT_STRATEGY: hnsw" in issues

    def test_flags_read_environment(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("STRICT_TYPE_CHECK", "TRUE")

        assert config.debug_enabled()
        assert config.strict_type_check_enabled()

        monkeypatch.setenv("DEBUG", "false")
        assert not config.debug_enabled()

    def test_open_db_warns_on_bad_config(self, tmp_path, monkeypatch, caplog):
        """Configuration issues surface as warnings whenever a database is opened."""
        caplog.set_level(logging.INFO, logger="embedstore")
        monkeypatch.setattr(config, "DEFAULT_BATCH_SIZE", 0)

        with get_db(str(tmp_path / "cfg.db")):
            pass

        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert "Configuration issue: DEFAULT_BATCH_SIZE must be >= 1" in warnings

    def test_open_db_quiet_on_clean_config(self, tmp_path, caplog):
        caplog.set_level(logging.INFO, logger="embedstore")

        with get_db(str(tmp_path / "cfg.db")):
            pass

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    def test_search_results_logged_only_in_debug(self, monkeypatch, caplog):
        caplog.set_level(logging.DEBUG, logger="embedstore")
        source = InMemoryEmbeddingSource("float64", 2)
        source.add("p", [1.0, 0.0])

        monkeypatch.setenv("DEBUG", "false")
        search(source, [1.0, 0.0], top_k=1)
        assert not [r for r in caplog.records if r.levelno == logging.DEBUG]

        monkeypatch.setenv("DEBUG", "true")
        search(source, [1.0, 0.0], top_k=1)
        debug = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
        assert debug == ["search.whole_table results: [('p', 0.0)]"]

    def test_ensure_db_directory(self, tmp_path):
        target = tmp_path / "a" / "b" / "store.db"

        config.ensure_db_directory(str(target))

        assert target.parent.is_dir()
