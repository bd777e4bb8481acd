"""Tests for plugin loading and environment preparation."""

import pytest

from rebook import Book, ConfigurationError
from rebook.plugins import is_prepared, prepare_environment

PLUGIN_SOURCE = """
CALLS = []


def setup(basedir):
    CALLS.append(basedir)
    with (basedir / "setup.log").open("a") as f:
        f.write("setup\\n")
"""


class TestPrepareEnvironment:
    """Tests for once-per-directory preparation."""

    def test_plugin_file_runs_once(self, make_book):
        """Should load a declared plugin file once per directory."""
        root = make_book(
            {"CHAPS": "a\n", "config.yml": "plugins: [ext.py]\n", "ext.py": PLUGIN_SOURCE}
        )

        Book.load(root)
        Book.load(root)

        assert (root / "setup.log").read_text() == "setup\n"
        assert is_prepared(root)

    def test_repeat_returns_false(self, tmp_path):
        """Should report whether preparation happened now."""
        assert prepare_environment(tmp_path) is True
        assert prepare_environment(tmp_path) is False

    def test_module_plugin(self, tmp_path):
        """Should import plugins by module name."""
        assert prepare_environment(tmp_path, ["json"]) is True

    def test_missing_plugin_file(self, make_book):
        """Should report a missing plugin as a configuration error."""
        root = make_book({"CHAPS": "a\n", "config.yml": "plugins: [absent.py]\n"})

        with pytest.raises(ConfigurationError, match="cannot load plugin absent.py"):
            Book.load(root)
        assert not is_prepared(root)

    def test_unknown_module(self, tmp_path):
        """Should report unknown modules as configuration errors."""
        with pytest.raises(ConfigurationError):
            prepare_environment(tmp_path, ["no_such_module_for_rebook"])
