"""Тесты для core/errors.py и config/logging.py."""

import pytest

from graph_engine.config.logging import logger, setup_logging
from graph_engine.core.errors import (
    ElementNotFoundError,
    GraphError,
    InvalidTopologyError,
    NegativeCycleError,
    NegativeWeightError,
    NodeNotFoundError,
)


class TestErrorHierarchy:
    def test_all_errors_are_graph_errors(self):
        for error in (
            NodeNotFoundError("a"),
            ElementNotFoundError("a"),
            InvalidTopologyError("bad"),
            NegativeWeightError("negative"),
            NegativeCycleError(),
        ):
            assert isinstance(error, GraphError)

    def test_node_not_found_message(self):
        error = NodeNotFoundError("x")
        assert str(error) == "Node x not found in graph"
        assert error.node_id == "x"
        assert error.metadata == {"node_id": "x"}

    def test_custom_node_message(self):
        error = NodeNotFoundError("s", "Source node s not found in graph")
        assert str(error) == "Source node s not found in graph"

    def test_invalid_topology_is_value_error(self):
        with pytest.raises(ValueError):
            raise InvalidTopologyError("Graph is not connected")

    def test_negative_weight_metadata(self):
        error = NegativeWeightError("negative", source="a", target="b", weight=-1.0)
        assert isinstance(error, InvalidTopologyError)
        assert error.weight == -1.0
        assert error.metadata["source"] == "a"

    def test_negative_cycle_default_message(self):
        error = NegativeCycleError(cycle=["a", "b"])
        assert str(error) == "Graph contains a negative cycle"
        assert error.cycle == ["a", "b"]

    def test_to_dict(self):
        payload = ElementNotFoundError("e").to_dict()
        assert payload == {
            "type": "ElementNotFoundError",
            "message": "Element e not found",
            "metadata": {"node_id": "e"},
        }


class TestLogging:
    def test_setup_logging_writes_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GRAPH_ENGINE_LOG_LEVEL", raising=False)
        monkeypatch.delenv("GRAPH_ENGINE_LOG_COMPRESSION", raising=False)
        log_path = tmp_path / "engine.log"

        setup_logging("debug", log_file=str(log_path))
        logger.debug("graph engine test message {}", 42)
        logger.complete()
        logger.remove()

        assert "graph engine test message 42" in log_path.read_text(encoding="utf-8")

    def test_level_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GRAPH_ENGINE_LOG_LEVEL", "error")
        monkeypatch.delenv("GRAPH_ENGINE_LOG_COMPRESSION", raising=False)
        log_path = tmp_path / "engine.log"

        setup_logging(log_file=str(log_path))
        logger.warning("should be filtered")
        logger.error("should be written")
        logger.complete()
        logger.remove()

        content = log_path.read_text(encoding="utf-8")
        assert "should be written" in content
        assert "should be filtered" not in content
