"""Unit tests for OutputChannelLog."""

import logging
from unittest.mock import MagicMock

from explorer_adapter.core.output_channel_log import OutputChannelLog


class TestOutputChannelLog:
    """Test channel buffering."""

    def test_append_splits_lines(self):
        channel = OutputChannelLog("runner")

        channel.append("first\nsec")
        channel.append("ond\r\nthird")

        assert channel.lines == ["first", "second"]
        channel.append_line("fourth")
        assert channel.lines == ["first", "second", "third", "fourth"]

    def test_bounded(self):
        channel = OutputChannelLog("runner", max_lines=2)

        for index in range(5):
            channel.append_line(str(index))

        assert channel.lines == ["3", "4"]

    def test_disabled_channel_ignores_output(self):
        channel = OutputChannelLog("runner", enabled=False)

        channel.append_line("hidden")

        assert channel.text == ""

    def test_show_uses_reveal_handler(self):
        reveal = MagicMock()
        channel = OutputChannelLog("log", reveal_handler=reveal)

        channel.show()

        reveal.assert_called_once_with(channel)

    def test_show_writes_stdout_by_default(self, capsys):
        channel = OutputChannelLog("log")
        channel.append_line("hello")

        channel.show()

        assert "===== log =====\nhello\n" in capsys.readouterr().out


class TestOutputChannelLogging:
    """Test attaching loggers."""

    def test_attached_logger_writes_into_channel(self):
        channel = OutputChannelLog("log")
        logger = logging.getLogger("explorer_adapter.tests.channel")
        logger.setLevel(logging.DEBUG)
        channel.attach_to(logger, logging.INFO)

        logger.debug("too quiet")
        logger.info("loaded %d tests", 3)

        assert len(channel.lines) == 1
        assert channel.lines[0].endswith("[INFO] loaded 3 tests")
        channel.dispose()

    def test_dispose_detaches_handlers(self):
        channel = OutputChannelLog("log")
        logger = logging.getLogger("explorer_adapter.tests.detach")
        channel.attach_to(logger)

        channel.dispose()
        logger.warning("after dispose")

        assert channel.lines == []
        assert not any(getattr(handler, "channel", None) is channel for handler in logger.handlers)
