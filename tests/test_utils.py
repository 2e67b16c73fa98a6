"""Tests for configuration, logging and retry utilities."""

import io
import json
import logging

import pytest

from pyragent.exceptions import (
    CompletionUnavailable,
    ConfigError,
    ContentFiltered,
    EmbeddingUnavailable,
    ProviderRequestError,
    RateLimited,
)
from pyragent.utils import configure_logging, get_logger, load_config, retry_async, set_log_level
from pyragent.utils.config import AgentConfig, ChunkingConfig, RAGConfig


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_when_file_missing(self, tmp_path):
        """Test defaults are used when no file exists."""
        config = load_config(tmp_path / "missing.yaml", env={})

        assert config.chunking.chunk_size == 1000
        assert config.chunking.chunk_overlap == 200
        assert config.retrieval.top_k == 5
        assert config.retrieval.max_context_chars == 6000
        assert config.agent.max_concurrency == 1
        assert config.embedding.provider == "fake"
        assert config.vector_store.backend == "memory"

    def test_yaml_file(self, tmp_path):
        """Test loading sections from YAML."""
        path = tmp_path / "pyragent.yaml"
        path.write_text(
            "chunking:\n"
            "  chunk_size: 500\n"
            "  chunk_overlap: 50\n"
            "completion:\n"
            "  provider: anthropic\n"
            "  model: claude-3-5-haiku-latest\n"
            "agent:\n"
            "  max_concurrency: 2\n"
            "  deadline_seconds: 30\n"
        )

        config = load_config(path, env={})

        assert config.chunking.chunk_size == 500
        assert config.completion.provider == "anthropic"
        assert config.agent.max_concurrency == 2
        assert config.agent.deadline_seconds == 30.0

    def test_json_file(self, tmp_path):
        """Test loading from JSON."""
        path = tmp_path / "pyragent.json"
        path.write_text(json.dumps({"retrieval": {"top_k": 3}}))

        assert load_config(path, env={}).retrieval.top_k == 3

    def test_empty_yaml_file(self, tmp_path):
        """Test an empty YAML file yields defaults."""
        path = tmp_path / "pyragent.yaml"
        path.write_text("")
        assert load_config(path, env={}) == RAGConfig()

    def test_env_overrides(self, tmp_path):
        """Test environment variables override file values."""
        path = tmp_path / "pyragent.yaml"
        path.write_text("retrieval:\n  top_k: 3\n")

        config = load_config(
            path,
            env={"PYRAGENT_TOP_K": "7", "PYRAGENT_LOG_LEVEL": "DEBUG", "UNRELATED": "x"},
        )

        assert config.retrieval.top_k == 7
        assert config.log_level == "DEBUG"

    def test_invalid_env_value(self, tmp_path):
        """Test a non-integer override is a configuration error."""
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.yaml", env={"PYRAGENT_CHUNK_SIZE": "large"})

    def test_invalid_overlap(self, tmp_path):
        """Test overlap validation applies to loaded files."""
        path = tmp_path / "pyragent.yaml"
        path.write_text("chunking:\n  chunk_size: 100\n  chunk_overlap: 100\n")
        with pytest.raises(ConfigError):
            load_config(path, env={})

    def test_unsupported_format(self, tmp_path):
        """Test unknown file suffixes are rejected."""
        path = tmp_path / "pyragent.toml"
        path.write_text("[chunking]\n")
        with pytest.raises(ConfigError):
            load_config(path, env={})

    def test_malformed_yaml(self, tmp_path):
        """Test YAML syntax errors become ConfigError."""
        path = tmp_path / "pyragent.yaml"
        path.write_text("chunking: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path, env={})

    def test_non_mapping_yaml(self, tmp_path):
        """Test a YAML list at top level becomes ConfigError."""
        path = tmp_path / "pyragent.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path, env={})


class TestConfigSections:
    """Tests for section validators."""

    def test_chunking_validator(self):
        """Test chunk overlap must be below chunk size."""
        with pytest.raises(ValueError):
            ChunkingConfig(chunk_size=10, chunk_overlap=0)

    def test_agent_step_bounds(self):
        """Test min plan steps cannot exceed max."""
        with pytest.raises(ValueError):
            AgentConfig(min_plan_steps=6, max_plan_steps=5)

    def test_unknown_provider_rejected(self):
        """Test provider names are checked."""
        with pytest.raises(ValueError):
            RAGConfig(embedding={"provider": "nonexistent"})


class TestLogging:
    """Tests for logging helpers."""

    @pytest.fixture(autouse=True)
    def package_logger(self):
        logger = logging.getLogger("pyragent")
        handlers, level = list(logger.handlers), logger.level
        yield logger
        logger.handlers[:] = handlers
        logger.setLevel(level)

    def test_get_logger_namespace(self):
        """Test loggers are nested under the package logger."""
        assert get_logger("pyragent.rag.store").name == "pyragent.rag.store"
        assert get_logger("myapp").name == "pyragent.myapp"

    def test_set_log_level(self, package_logger):
        """Test setting the package level by name or number."""
        set_log_level("debug")
        assert package_logger.level == logging.DEBUG
        set_log_level(logging.WARNING)
        assert package_logger.level == logging.WARNING

    def test_unknown_level(self):
        """Test unknown level names are configuration errors."""
        with pytest.raises(ConfigError):
            set_log_level("loud")

    def test_configure_logging(self, package_logger):
        """Test the configured handler writes formatted records once."""
        stream = io.StringIO()
        configure_logging(RAGConfig(log_level="warning"), stream=stream)
        configure_logging(RAGConfig(log_level="warning"), stream=stream)

        get_logger("pyragent.tests").warning("index rebuilt")
        get_logger("pyragent.tests").info("not shown")

        output = stream.getvalue()
        assert output.count("index rebuilt") == 1
        assert "pyragent.tests - WARNING - index rebuilt" in output
        assert "not shown" not in output

    def test_config_rejects_unknown_level(self, tmp_path):
        """Test log_level is validated on load."""
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.yaml", env={"PYRAGENT_LOG_LEVEL": "loud"})
        assert RAGConfig(log_level="debug").log_level == "DEBUG"


class TestRetryAsync:
    """Tests for the caller-side retry policy."""

    @pytest.fixture
    def sleeps(self, monkeypatch):
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        monkeypatch.setattr("pyragent.utils.retry.asyncio.sleep", fake_sleep)
        return delays

    @staticmethod
    def _flaky(errors, result="ok"):
        calls = {"count": 0}

        async def func():
            calls["count"] += 1
            if errors:
                raise errors.pop(0)
            return result

        return func, calls

    @pytest.mark.asyncio
    async def test_exponential_backoff(self, sleeps):
        """Test transient errors are retried with doubling delays."""
        func, calls = self._flaky([CompletionUnavailable(), EmbeddingUnavailable()])

        assert await retry_async(func, base_delay=1.0) == "ok"
        assert calls["count"] == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_rate_limit_delay(self, sleeps):
        """Test the provider-supplied delay is honoured and capped."""
        func, _ = self._flaky([RateLimited(retry_after=5.0), RateLimited(retry_after=120.0)])

        await retry_async(func, max_delay=30.0)
        assert sleeps == [5.0, 30.0]

    @pytest.mark.asyncio
    async def test_gives_up(self, sleeps):
        """Test the last transient error propagates after max_retries."""
        func, calls = self._flaky([CompletionUnavailable() for _ in range(5)])

        with pytest.raises(CompletionUnavailable):
            await retry_async(func, max_retries=2)
        assert calls["count"] == 3

    @pytest.mark.asyncio
    async def test_terminal_errors_not_retried(self, sleeps):
        """Test non-transient errors fail on the first attempt."""
        for error in (ContentFiltered(), ConfigError("bad"), ProviderRequestError("bad key", 401)):
            func, calls = self._flaky([error])
            with pytest.raises(type(error)):
                await retry_async(func)
            assert calls["count"] == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_passes_arguments(self, sleeps):
        """Test positional and keyword arguments reach the function."""

        async def add(a, b=0):
            return a + b

        assert await retry_async(add, 2, b=3) == 5
