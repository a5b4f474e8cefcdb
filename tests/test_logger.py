import logging

import pytest

from logger import ROOT, configure_logging, get_logger, resolve_level


@pytest.fixture(autouse=True)
def restore_level():
    root = logging.getLogger(ROOT)
    level = root.level
    yield
    configure_logging(level)


def _console_handlers():
    return [h for h in logging.getLogger(ROOT).handlers if h.get_name() == "storefront-console"]


def test_named_loggers_are_children_of_storefront():
    assert get_logger("catalog").name == "storefront.catalog"
    assert get_logger().name == "storefront"
    assert get_logger("catalog").parent is logging.getLogger(ROOT)


def test_configure_logging_is_idempotent():
    configure_logging("DEBUG")
    configure_logging("DEBUG")
    root = configure_logging("warning")

    assert len(_console_handlers()) == 1
    assert root.level == logging.WARNING
    assert _console_handlers()[0].level == logging.WARNING
    assert root.propagate is False


@pytest.mark.parametrize("raw,expected", [
    ("debug", logging.DEBUG),
    (" ERROR ", logging.ERROR),
    (logging.CRITICAL, logging.CRITICAL),
    (None, logging.INFO),
    ("loud", logging.INFO),
])
def test_resolve_level(raw, expected):
    assert resolve_level(raw) == expected
