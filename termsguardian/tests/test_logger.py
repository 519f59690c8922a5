import logging

from rich.logging import RichHandler
from termsguardian.utils.logger import setup_logger


class TestSetupLogger:
    def test_returns_named_logger(self):
        logger = setup_logger("termsguardian.some.module")
        assert logger.name == "termsguardian.some.module"

    def test_single_rich_handler(self):
        setup_logger("termsguardian.a")
        setup_logger("termsguardian.b")
        root = logging.getLogger("termsguardian")
        assert sum(isinstance(h, RichHandler) for h in root.handlers) == 1

    def test_level_override(self):
        logger = setup_logger("termsguardian.verbose", level=logging.DEBUG)
        assert logger.level == logging.DEBUG
