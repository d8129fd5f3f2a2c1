"""Shared pytest fixtures for gitignore-rules tests."""
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
import yaml

from gitignore_rules.core import logging as rules_logging
from gitignore_rules.core.logging import Logger, LogLevel, set_global_logger


@pytest.fixture(scope="session")
def test_data_dir() -> Path:
    """Path to test data directory."""
    return Path(__file__).parent / "data"


@pytest.fixture(scope="session")
def gitignore_fixture(test_data_dir: Path) -> str:
    """Ignore file with exclusions and re-inclusions."""
    return (test_data_dir / "gitignore.fixture").read_text(encoding="utf-8")


@pytest.fixture(scope="session")
def no_negatives_fixture(test_data_dir: Path) -> str:
    """Ignore file with exclusions only."""
    return (test_data_dir / "gitignore-no-negatives.fixture").read_text(encoding="utf-8")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Create a project tree with an ignore file.

    Layout:
        .gitignore
        a.log
        src/main.py
        src/build/out.o
    """
    source = temp_dir / "project"
    source.mkdir()

    (source / ".gitignore").write_text("*.log\nbuild/\n", encoding="utf-8")
    (source / "a.log").write_text("log line")

    (source / "src").mkdir()
    (source / "src" / "main.py").write_text("print('test')")

    (source / "src" / "build").mkdir()
    (source / "src" / "build" / "out.o").write_text("Binary content")

    return source


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample gitignore-rules configuration."""
    return {
        "gitignore_rules": {
            "compile_mode": "lazy",
            "strict": False,
            "encoding": "utf-8",
            "logging": {"level": "DEBUG", "file": None},
            "diagnostics": {"enabled": False},
        }
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "gitignore-rules.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Reset the logger registry and GITIGNORE_RULES_* variables between tests."""
    for key in [k for k in list(os.environ) if k.startswith("GITIGNORE_RULES_")]:
        monkeypatch.delenv(key)
    rules_logging._loggers.clear()
    yield
    rules_logging._loggers.clear()


class RecordingHandler(logging.Handler):
    """Handler that keeps emitted records in memory."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> List[str]:
        return [record.getMessage() for record in self.records]


@pytest.fixture
def log_records() -> RecordingHandler:
    """Install a DEBUG package logger whose records are kept in memory."""
    handler = RecordingHandler()
    set_global_logger(Logger(level=LogLevel.DEBUG, handlers=[handler]))
    return handler
