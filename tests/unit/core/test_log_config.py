"""Tests for structlog configuration."""

import logging

import structlog

from payrouter.log_config import configure_logging


class TestConfigureLogging:
    def test_level_name_accepted(self):
        try:
            configure_logging("warning")
            config = structlog.get_config()
            assert config["wrapper_class"] is structlog.make_filtering_bound_logger(
                logging.WARNING
            )
        finally:
            structlog.reset_defaults()

    def test_unknown_level_defaults_to_info(self):
        try:
            configure_logging("chatty")
            config = structlog.get_config()
            assert config["wrapper_class"] is structlog.make_filtering_bound_logger(logging.INFO)
        finally:
            structlog.reset_defaults()
