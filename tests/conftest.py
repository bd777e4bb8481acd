"""Shared fixtures for book model tests."""

from pathlib import Path

import pytest

from rebook import plugins
from rebook.domain import reset_default_book


def write_files(root: Path, files: dict[str, str | bytes]) -> Path:
    """Write a mapping of relative names to contents under root."""
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def clean_global_state():
    """Reset process-wide caches between tests."""
    plugins.reset()
    reset_default_book()
    yield
    plugins.reset()
    reset_default_book()


@pytest.fixture
def make_book(tmp_path):
    """Create a book directory from a mapping of file names to contents."""

    def _make(files: dict[str, str | bytes], name: str = "book") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return write_files(root, files)

    return _make


@pytest.fixture
def sample_book(make_book) -> Path:
    """A small book with two parts, a preface and a postscript."""
    return make_book(
        {
            "CHAPS": "ch1.re\nch2.re\n\nch3.re\n",
            "PART": "Basics\nAdvanced\n",
            "preface.re": "= Preface\n\nHello.\n",
            "postscript.re": "= Afterword\n",
            "ch1.re": (
                "= First Chapter\n"
                "\n"
                "== Introduction\n"
                "//list[hello][Hello world]{\n"
                "puts 'hello'\n"
                "//}\n"
                "//footnote[fn1][A footnote]\n"
                "//image[diagram][A diagram]{\n"
                "//}\n"
            ),
            "ch2.re": "= Second Chapter\n\n//table[tbl][Numbers]{\na\tb\n//}\n",
            "ch3.re": "= Third Chapter\n",
            "images/ch1-diagram.png": b"\x89PNG",
        }
    )
