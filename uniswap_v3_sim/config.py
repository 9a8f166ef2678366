"""
Configuration settings for the Uniswap V3 simulator

Loads environment variables and provides library configuration.
Settings never change numeric results; they only tune logging and search limits.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Library settings"""

    # Logging
    LOG_LEVEL: str = os.getenv("UNISWAP_V3_SIM_LOG_LEVEL", "WARNING").upper()
    LOG_FORMAT: str = os.getenv(
        "UNISWAP_V3_SIM_LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Tick search
    TICK_SEARCH_HORIZON_WORDS: int = int(os.getenv("UNISWAP_V3_SIM_TICK_SEARCH_HORIZON_WORDS", 32))

    # Best trade search
    BEST_TRADE_MAX_HOPS: int = int(os.getenv("UNISWAP_V3_SIM_BEST_TRADE_MAX_HOPS", 3))
    BEST_TRADE_MAX_RESULTS: int = int(os.getenv("UNISWAP_V3_SIM_BEST_TRADE_MAX_RESULTS", 3))

    def get_log_level(self) -> int:
        """Get numeric log level, falling back to WARNING"""
        return getattr(logging, self.LOG_LEVEL, logging.WARNING)


# Create global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a basic handler to the package logger

    The library itself only installs a NullHandler; call this from scripts or
    notebooks that want to see swap traces.
    """
    numeric_level = getattr(logging, level.upper(), None) if level else settings.get_log_level()
    logging.basicConfig(format=settings.LOG_FORMAT)
    logging.getLogger("uniswap_v3_sim").setLevel(numeric_level)
