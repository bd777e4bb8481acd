"""Paper size description used for page estimation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MetricData:
    """Lines and columns of one kind of printed block."""

    n_lines: int
    n_columns: int


@dataclass(frozen=True)
class PageMetric:
    """Page geometry for list blocks and running text.

    ``page_per_kbyte`` is the page estimate for content that is not text.
    """

    list: MetricData
    text: MetricData
    page_per_kbyte: int = 1

    @classmethod
    def create(
        cls,
        list_lines: int,
        list_columns: int,
        text_lines: int,
        text_columns: int,
        page_per_kbyte: int = 1,
    ) -> "PageMetric":
        return cls(
            list=MetricData(list_lines, list_columns),
            text=MetricData(text_lines, text_columns),
            page_per_kbyte=page_per_kbyte,
        )

    @classmethod
    def a5(cls) -> "PageMetric":
        return cls.create(46, 80, 30, 74, 1)

    @classmethod
    def b5(cls) -> "PageMetric":
        return cls.create(46, 80, 30, 74, 2)

    @classmethod
    def preset(cls, name: str) -> "PageMetric | None":
        """Look up a paper preset by case-insensitive name."""
        factory = PAPER_PRESETS.get(name.lower())
        return factory() if factory else None


PAPER_PRESETS = {
    "a5": PageMetric.a5,
    "b5": PageMetric.b5,
}
