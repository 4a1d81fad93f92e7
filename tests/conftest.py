"""
Shared pytest fixtures for itclock tests.
"""

import logging

import pytest

import itclock


@pytest.fixture(autouse=True)
def reset_itclock_logging():
    """Reset the itclock logger around each test.

    Leaves only the library's NullHandler attached and the level at NOTSET,
    so a test that enables logging cannot leak handlers into the next one.
    """
    logger = logging.getLogger("itclock")

    def reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    reset()
    yield
    reset()


@pytest.fixture
def forked_pair() -> tuple[itclock.Stamp, itclock.Stamp]:
    """Two stamps forked from a fresh seed."""
    return itclock.fork(itclock.seed())
