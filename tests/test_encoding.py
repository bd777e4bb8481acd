"""Tests for input encoding normalization."""

import pytest

from rebook.services import CodecTranscoder


@pytest.fixture
def transcoder():
    return CodecTranscoder()


TEXT = "日本語のテキスト\n"


@pytest.mark.parametrize(
    "tag,codec",
    [("EUC", "euc_jp"), ("SJIS", "cp932"), ("JIS", "iso2022_jp")],
)
def test_tagged_decoding(transcoder, tag, codec):
    """Should decode with the codec selected by the tag."""
    assert transcoder.decode(TEXT.encode(codec), tag) == TEXT


def test_tag_case_insensitive_by_default(transcoder):
    """Should accept lower-case tags for content."""
    assert transcoder.codec_for("sjis") == "cp932"


def test_tag_exact_case(transcoder):
    """Should ignore lower-case tags when matching exactly."""
    assert transcoder.codec_for("sjis", ignore_case=False) is None
    assert transcoder.codec_for("SJIS", ignore_case=False) == "cp932"


def test_unknown_tag_detects(transcoder):
    """Should fall back to detection for unknown tags."""
    assert transcoder.decode(TEXT.encode("utf-8"), "UTF8") == TEXT


@pytest.mark.parametrize("codec", ["utf-8", "utf-8-sig", "iso2022_jp", "euc_jp"])
def test_detection(transcoder, codec):
    """Should detect common encodings."""
    assert transcoder.decode(TEXT.encode(codec), None) == TEXT


def test_text_passes_through(transcoder):
    """Should leave already decoded text alone."""
    assert transcoder.decode(TEXT, "EUC") == TEXT


def test_invalid_tagged_input_warns(transcoder, caplog):
    """Should warn when tagged input holds undecodable bytes."""
    data = "日本".encode("euc_jp") + b"\xff"

    with caplog.at_level("WARNING", logger="rebook.services.encoding"):
        text = transcoder.decode(data, "EUC")

    assert text == "日本�"
    assert "Invalid EUC input at byte 4" in caplog.text


def test_valid_tagged_input_is_quiet(transcoder, caplog):
    """Should not warn for well-formed tagged input."""
    with caplog.at_level("WARNING", logger="rebook.services.encoding"):
        transcoder.decode(TEXT.encode("cp932"), "SJIS")

    assert caplog.records == []
