"""
Shared fixtures for simple_config_parser tests.
"""

import pytest


SAMPLE_CONFIG = """; This is a comment
# This is also a comment
hello = World
rust = Is great
test = "TEST"
"""


@pytest.fixture
def sample_text() -> str:
    """The example config from the README."""
    return SAMPLE_CONFIG


@pytest.fixture
def config_file(tmp_path):
    """A config.cfg file on disk holding the README example."""
    path = tmp_path / "config.cfg"
    path.write_text(SAMPLE_CONFIG)
    return path
