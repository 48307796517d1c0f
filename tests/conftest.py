import os
import pathlib
import random
import sys
import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import vcdisclose`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def _env_flag(name: str) -> bool:
    v = (os.environ.get(name) or '').strip().lower()
    return v in {'1', 'true', 'yes', 'y', 'on'}


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: slow correctness tests (skipped unless VCDISCLOSE_RUN_SLOW=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_slow = _env_flag('VCDISCLOSE_RUN_SLOW')

    for item in items:
        if 'slow' in item.keywords and not run_slow:
            item.add_marker(pytest.mark.skip(reason='slow tests skipped; set VCDISCLOSE_RUN_SLOW=1 to enable'))


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Every test starts from default configuration and no VCDISCLOSE_* overrides."""
    from vcdisclose.config import get_config_manager

    for name in list(os.environ):
        if name.startswith('VCDISCLOSE_') and name != 'VCDISCLOSE_RUN_SLOW':
            monkeypatch.delenv(name, raising=False)
    get_config_manager().reset()
    yield
    get_config_manager().reset()


@pytest.fixture
def rng():
    """Deterministic randomness for reproducible keys and proofs."""
    return random.Random(0x5EED)


@pytest.fixture
def log_stream():
    """Capture vcdisclose log lines (JSON, one per line) at debug level."""
    import io
    from vcdisclose.observability import configure_logging

    stream = io.StringIO()
    handler = configure_logging(level='debug', stream=stream)
    yield stream
    handler._stream = None
    configure_logging()
