"""
Unit tests for utils module

Tests date/time utilities, template loading/rendering, and logging functions.

@author: Generated for outlook_automation repository
"""

import pytest
import logging
from datetime import date, datetime, timedelta
from pathlib import Path
import tempfile
import sys

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from out_of_office.utils import (
    to_date,
    add_days,
    start_of_day,
    end_of_day,
    to_iso8601,
    to_date_string,
    load_message_template,
    render_template,
    setup_logging,
    initialize_log_file,
)


class TestDateTimeFunctions:
    """Test date/time utility functions."""

    def test_to_date_from_datetime(self):
        """Time of day is dropped."""
        assert to_date(datetime(2024, 5, 10, 17, 45)) == date(2024, 5, 10)

    def test_to_date_from_date(self):
        assert to_date(date(2024, 5, 10)) == date(2024, 5, 10)

    def test_add_days_month_boundary(self):
        """Test adding days across a month boundary."""
        assert add_days(date(2024, 1, 31), 1) == date(2024, 2, 1)

    def test_add_days_leap_year(self):
        assert add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)

    def test_start_of_day(self):
        """Test midnight of a datetime in the afternoon."""
        result = start_of_day(datetime(2024, 5, 10, 15, 30, 12))

        assert result == datetime(2024, 5, 10, 0, 0, 0)

    def test_end_of_day_seconds(self):
        """Test end of day at second granularity."""
        assert end_of_day(date(2024, 5, 11)) == datetime(2024, 5, 11, 23, 59, 59)

    def test_end_of_day_milliseconds(self):
        """Test end of day at millisecond granularity."""
        result = end_of_day(date(2024, 5, 11), timedelta(milliseconds=1))

        assert result == datetime(2024, 5, 11, 23, 59, 59, 999000)

    def test_end_of_day_microseconds(self):
        """Test end of day at microsecond granularity."""
        result = end_of_day(date(2024, 5, 11), timedelta(microseconds=1))

        assert result == datetime(2024, 5, 11, 23, 59, 59, 999999)

    def test_end_of_day_year_boundary(self):
        """The last day of the year ends in the same year."""
        assert end_of_day(date(2024, 12, 31)) == datetime(2024, 12, 31, 23, 59, 59)

    def test_end_of_day_invalid_unit(self):
        """Test that a non-positive unit is rejected."""
        with pytest.raises(ValueError):
            end_of_day(date(2024, 5, 11), timedelta(0))

    def test_to_iso8601(self):
        """Test ISO8601 conversion."""
        dt = datetime(2025, 1, 15, 9, 0, 0)
        result = to_iso8601(dt)

        assert result == "2025-01-15T09:00:00"

    def test_to_iso8601_keeps_subseconds(self):
        """Sub-second precision survives the conversion."""
        dt = datetime(2024, 5, 10, 23, 59, 59, 999000)

        assert to_iso8601(dt) == "2024-05-10T23:59:59.999000"

    def test_to_date_string(self):
        assert to_date_string(datetime(2024, 6, 3, 8, 0)) == "2024-06-03"


class TestTemplateRendering:
    """Test template rendering functions."""

    def test_render_template_basic(self):
        """Test basic template rendering."""
        template = "I will be back {RETURN_DATE}."
        result = render_template(template, RETURN_DATE="May 11, 2024")

        assert result == "I will be back May 11, 2024."

    def test_render_template_lowercase_keys(self):
        """Keyword names are matched against upper-case placeholders."""
        template = "{RETURN_DATE} / {RETURN_DATE_LOCAL}"
        result = render_template(template, return_date="May 11, 2024", return_date_local="2024/05/11")

        assert result == "May 11, 2024 / 2024/05/11"

    def test_render_template_unused_placeholders(self):
        """Test that unused placeholders remain in template."""
        template = "Back {RETURN_DATE}, contact {DEPUTY}"
        result = render_template(template, RETURN_DATE="May 11, 2024")

        assert "{DEPUTY}" in result

    def test_load_message_template(self):
        """Test loading a template override from the config directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            (config_dir / "auto_reply_internal.html").write_text("<p>Away until {RETURN_DATE}</p>", encoding="utf-8")

            template = load_message_template(config_dir, "auto_reply_internal.html", "default")

            assert template == "<p>Away until {RETURN_DATE}</p>"

    def test_load_message_template_default(self):
        """Test that the default is returned when no override exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            template = load_message_template(Path(tmpdir), "auto_reply_internal.html", "default")

            assert template == "default"

    def test_load_message_template_no_config_dir(self):
        assert load_message_template(None, "auto_reply_internal.html", "default") == "default"


class TestLogging:
    """Test log file helpers."""

    def test_initialize_log_file_writes_header(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = initialize_log_file(Path(tmpdir), "Out of Office Assistant")

            content = log_file.read_text(encoding="utf-8")

            assert log_file.name == "log.txt"
            assert "Out of Office Assistant Script Log" in content

    def test_setup_logging_writes_to_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = initialize_log_file(Path(tmpdir))
            logger = setup_logging(log_file)

            try:
                logger.info("Meeting sent")
                for handler in logger.handlers:
                    handler.flush()

                assert "[INFO] Meeting sent" in log_file.read_text(encoding="utf-8")
            finally:
                # Release the file so the temp dir can be removed
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

    def test_setup_logging_replaces_handlers(self):
        """Calling setup twice does not duplicate handlers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = initialize_log_file(Path(tmpdir))
            setup_logging(log_file)
            logger = setup_logging(log_file, level=logging.DEBUG)

            try:
                assert len(logger.handlers) == 2
                assert logger.level == logging.DEBUG
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
