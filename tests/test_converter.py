"""Unit tests for PlainTextConverter."""

from __future__ import annotations

from unittest.mock import patch

from helpscout_exporter.core.converter import PlainTextConverter

TRAFILATURA = "helpscout_exporter.core.converter.trafilatura"


class TestConvertBody:
    """HTML thread bodies are converted via trafilatura."""

    def test_uses_trafilatura_result(self) -> None:
        converter = PlainTextConverter()
        with patch(TRAFILATURA) as mock_traf:
            mock_traf.extract.return_value = "  Hello there.  "
            result = converter.convert_body("<p>Hello there.</p>")

        assert result == "Hello there."
        mock_traf.extract.assert_called_once_with(
            "<p>Hello there.</p>",
            output_format="txt",
            favor_recall=True,
            include_links=True,
            include_tables=True,
        )

    def test_empty_body(self) -> None:
        converter = PlainTextConverter()
        with patch(TRAFILATURA) as mock_traf:
            assert converter.convert_body(None) == ""
            assert converter.convert_body("") == ""

        mock_traf.extract.assert_not_called()


class TestFallback:
    """Tag stripping is used when trafilatura yields nothing."""

    def test_strips_tags_when_trafilatura_returns_none(self) -> None:
        converter = PlainTextConverter()
        with patch(TRAFILATURA) as mock_traf:
            mock_traf.extract.return_value = None
            result = converter.convert_body("<p>Hi, my order <b>#1001</b> never arrived.</p>")

        assert result == "Hi, my order #1001 never arrived."

    def test_unescapes_entities_and_breaks_lines(self) -> None:
        converter = PlainTextConverter()
        with patch(TRAFILATURA) as mock_traf:
            mock_traf.extract.return_value = None
            result = converter.convert_body("Fish &amp; chips<br/>Second line")

        assert result == "Fish & chips\nSecond line"

    def test_falls_back_when_trafilatura_raises(self) -> None:
        converter = PlainTextConverter()
        with patch(TRAFILATURA) as mock_traf:
            mock_traf.extract.side_effect = ValueError("parser exploded")
            result = converter.convert_body("<div>Plain</div>")

        assert result == "Plain"


class TestRenderConversation:
    """render_conversation() lists threads under a subject heading."""

    def test_renders_threads(self, sample_conversation, sample_threads) -> None:
        conversation = {**sample_conversation, "threads": sample_threads}
        converter = PlainTextConverter()

        with patch(TRAFILATURA) as mock_traf:
            mock_traf.extract.return_value = None
            text = converter.render_conversation(conversation)

        assert text.startswith("#349 Order not received")
        assert "--- Ada Lovelace at 2024-03-01T10:00:00Z" in text
        assert "--- agent@example.com at 2024-03-01T12:00:00Z" in text
        assert "Sorry about that & thanks for waiting." in text

    def test_conversation_without_threads(self) -> None:
        text = PlainTextConverter().render_conversation({"id": 5, "threads": []})

        assert text.startswith("#5 (no subject)")
        assert "(no threads exported)" in text
