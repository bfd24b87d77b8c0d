import io
import pytest
import logging
from unittest.mock import patch
from audiotag.utils import (
    env_flag,
    join_for_printing,
    safe_int,
    setup_logging
)

class TestUtils:
    """Tests for utility functions."""

    def test_safe_int(self):
        assert safe_int("123") == 123
        assert safe_int(456) == 456
        assert safe_int(" 7 ") == 7
        assert safe_int("3/12") is None
        assert safe_int("3.0") is None
        assert safe_int("5 of 12") is None
        assert safe_int("invalid") is None
        assert safe_int(None) is None
        assert safe_int(True) is None

    def test_env_flag(self):
        assert env_flag("1") is True
        assert env_flag(" YES ") is True
        assert env_flag("off") is False
        assert env_flag(None) is False

    def test_join_for_printing(self):
        assert join_for_printing([]) == "(none)"
        assert join_for_printing(["A", "B"]) == "A; B"

    def test_setup_logging_creates_log_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with patch('audiotag.utils.logging.basicConfig') as basic_config:
            setup_logging(verbose=True)
        assert (tmp_path / 'logs').is_dir()
        kwargs = basic_config.call_args.kwargs
        assert kwargs['level'] == logging.DEBUG
        assert len(kwargs['handlers']) == 2
        for handler in kwargs['handlers']:
            handler.close()

    def test_setup_logging_console_stream(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        stream = io.StringIO()
        with patch('audiotag.utils.logging.basicConfig') as basic_config:
            setup_logging(stream=stream)
        handlers = basic_config.call_args.kwargs['handlers']
        assert basic_config.call_args.kwargs['level'] == logging.INFO
        assert handlers[0].stream is stream
        for handler in handlers:
            handler.close()
