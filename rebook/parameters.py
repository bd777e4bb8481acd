"""
Book-level configuration.

Parameters are read from an optional YAML file in the book directory
(``config.yml``). Keys are case-insensitive; every key not given keeps
its default.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .domain.metric import PageMetric
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Candidate names of the configuration file, in lookup order
CONFIG_FILES = ("config.yml", "config.yaml")

DEFAULT_IMAGE_TYPES = (
    "eps", "ai", "tif", "tiff", "png", "bmp", "jpg", "jpeg", "gif", "svg", "pdf",
)

# Recognized keys and their accepted value types
SCHEMA: dict[str, tuple[type, ...]] = {
    "chaps_file": (str,),
    "chapter_file": (str,),
    "part_file": (str,),
    "bib_file": (str,),
    "reject_file": (str,),
    "words_file": (str,),
    "predef_file": (str,),
    "postdef_file": (str,),
    "ext": (str,),
    "image_dir": (str,),
    "image_types": (list, str),
    "paper": (str,),
    "lines_per_page_list": (int,),
    "columns_list": (int,),
    "lines_per_page_text": (int,),
    "columns_text": (int,),
    "inencoding": (str,),
    "plugins": (list, str),
}


def _unify_ext(ext: str) -> str:
    return ext if ext.startswith(".") else f".{ext}"


@dataclass(frozen=True)
class Parameters:
    """Immutable bundle of book settings."""

    chapter_file: str = "CHAPS"
    part_file: str = "PART"
    bib_file: Optional[str] = None  # defaults to bib<ext>
    reject_file: str = "REJECT"
    predef_file: str = "PREDEF"
    postdef_file: str = "POSTDEF"
    ext: str = ".re"
    image_dir: str = "images"
    image_types: tuple[str, ...] = DEFAULT_IMAGE_TYPES
    page_metric: PageMetric = field(default_factory=PageMetric.a5)
    inencoding: Optional[str] = None
    plugins: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        ext = _unify_ext(self.ext)
        object.__setattr__(self, "ext", ext)
        object.__setattr__(
            self, "image_types", tuple(_unify_ext(t) for t in self.image_types)
        )
        object.__setattr__(self, "plugins", tuple(self.plugins))
        if self.bib_file is None:
            object.__setattr__(self, "bib_file", f"bib{ext}")

    @classmethod
    def default(cls) -> "Parameters":
        return cls()

    @classmethod
    def load(cls, path: Path) -> "Parameters":
        """Load parameters from a YAML file.

        Args:
            path: Path to the configuration file.

        Returns:
            Parameters with the file's settings over the defaults.

        Raises:
            ConfigurationError: If the file is unreadable, malformed, or
                contains unknown keys, wrong types or an unknown paper size.
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"malformed config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"config {path} must be a mapping")

        logger.debug("Loaded configuration from %s", path)
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Parameters":
        """Build parameters from a mapping of configuration keys."""
        values = _validate(data)

        params: dict[str, Any] = {}
        chapter_file = values.get("chaps_file", values.get("chapter_file"))
        if chapter_file is not None:
            params["chapter_file"] = chapter_file
        reject_file = values.get("reject_file", values.get("words_file"))
        if reject_file is not None:
            params["reject_file"] = reject_file
        for key in (
            "part_file",
            "bib_file",
            "predef_file",
            "postdef_file",
            "ext",
            "image_dir",
            "inencoding",
        ):
            if key in values:
                params[key] = values[key]
        if "image_types" in values:
            params["image_types"] = _as_tuple(values["image_types"])
        if "plugins" in values:
            params["plugins"] = _as_tuple(values["plugins"])
        params["page_metric"] = _page_metric(values)

        return cls(**params)

    def with_overrides(self, **changes: Any) -> "Parameters":
        """Get a copy with some settings replaced."""
        return replace(self, **changes)

    def chapter_path(self, basedir: Path) -> Path:
        return Path(basedir) / self.chapter_file

    def part_path(self, basedir: Path) -> Path:
        return Path(basedir) / self.part_file

    def bib_path(self, basedir: Path) -> Path:
        return Path(basedir) / str(self.bib_file)

    def reject_path(self, basedir: Path) -> Path:
        return Path(basedir) / self.reject_file

    def predef_path(self, basedir: Path) -> Path:
        return Path(basedir) / self.predef_file

    def postdef_path(self, basedir: Path) -> Path:
        return Path(basedir) / self.postdef_file

    def image_path(self, basedir: Path) -> Path:
        return Path(basedir) / self.image_dir


def find_config(basedir: Path) -> Optional[Path]:
    """Find the configuration file of a book directory, if any."""
    for name in CONFIG_FILES:
        candidate = Path(basedir) / name
        if candidate.is_file():
            return candidate
    return None


def _validate(data: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).lower()
        if name not in SCHEMA:
            raise ConfigurationError(f"unknown configuration key: {key}")
        expected = SCHEMA[name]
        # bool is an int subclass but never a valid count
        if isinstance(value, bool) or not isinstance(value, expected):
            names = " or ".join(t.__name__ for t in expected)
            raise ConfigurationError(f"{key} must be {names}, got {value!r}")
        if isinstance(value, list) and not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"{key} must be a list of strings")
        if isinstance(value, int) and value <= 0:
            raise ConfigurationError(f"{key} must be positive, got {value}")
        values[name] = value
    return values


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    return tuple(value)


def _page_metric(values: dict[str, Any]) -> PageMetric:
    paper = values.get("paper")
    if paper is not None:
        metric = PageMetric.preset(paper)
        if metric is None:
            raise ConfigurationError(f"unknown paper size: {paper}")
        return metric
    return PageMetric.create(
        values.get("lines_per_page_list", 46),
        values.get("columns_list", 80),
        values.get("lines_per_page_text", 30),
        values.get("columns_text", 74),  # 37 full-width chars
    )
