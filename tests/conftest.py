import os
from pathlib import Path

import pytest

# Test layer inferred from the directory a test module lives in
_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Protean configuration overlay to run the suite against",
    )


def pytest_sessionstart(session):
    """Select the configuration overlay before any domain module is imported.

    Importing ``ordering.domain`` configures logging, and the log level is
    derived from PROTEAN_ENV, so this has to happen first.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.pop("STOREFRONT_CART_DIR", None)


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(item.fspath).parts
        for layer, marker in _LAYER_MARKERS.items():
            if layer in parts:
                item.add_marker(marker)
                break

        if "integration" in parts and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def _clear_log_context():
    yield

    from ordering.utils.logging import clear_context

    clear_context()
