# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import json
import logging

import pytest

from hvnat.core.logger import TRACE, EmojiFormatter, JsonFormatter, Log, LogStyle


def _record(msg, level=logging.INFO, ctx=None):
    rec = logging.LogRecord("hvnat", level, __file__, 10, msg, (), None)
    if ctx is not None:
        rec.ctx = ctx
    return rec


@pytest.mark.unit
class TestLevels:
    @pytest.mark.parametrize(
        "verbose,quiet,expected",
        [(0, 0, logging.INFO), (2, 0, logging.DEBUG), (3, 0, TRACE), (0, 1, logging.WARNING), (3, 2, logging.ERROR)],
    )
    def test_level_from_flags(self, verbose, quiet, expected):
        assert Log._level_from_flags(verbose, quiet) == expected


@pytest.mark.unit
class TestFormatters:
    def test_emoji_formatter_appends_ctx(self):
        fmt = EmojiFormatter(LogStyle(color=False))
        line = fmt.format(_record("Created switch", ctx={"switch": "DevNet-Switch", "a": 1}))
        assert "INFO" in line
        assert line.endswith("Created switch a=1 switch=DevNet-Switch")

    def test_ascii_fallback(self):
        fmt = EmojiFormatter(LogStyle(color=False, unicode=False))
        line = fmt.format(_record("➡️  New-NetNat"))
        assert "➡" not in line
        assert "New-NetNat" in line

    def test_json_formatter(self):
        obj = json.loads(JsonFormatter().format(_record("hello", level=logging.WARNING, ctx={"nat": "DevNet-NAT"})))
        assert obj["level"] == "WARNING"
        assert obj["msg"] == "hello"
        assert obj["ctx"] == {"nat": "DevNet-NAT"}


@pytest.mark.unit
class TestSetup:
    def test_setup_with_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "hvnat.log"
        logger = Log.setup(verbose=2, log_file=str(log_file), logger_name="hvnat-test", color=False)
        try:
            Log.step(logger, "New-VMSwitch 'DevNet-Switch'", network="DevNet")
            for h in logger.handlers:
                h.flush()
            text = log_file.read_text(encoding="utf-8")
            assert "New-VMSwitch 'DevNet-Switch'" in text
            assert "network=DevNet" in text
            assert logger.level == logging.DEBUG
        finally:
            for h in list(logger.handlers):
                logger.removeHandler(h)
                h.close()
