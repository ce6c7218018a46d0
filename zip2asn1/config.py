"""
Configuration management for the zip-entry converter.
Loads settings from environment variables with sensible defaults.
"""
import os
from typing import Optional
from dotenv import find_dotenv, load_dotenv


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env_file: Optional path to .env file
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))

        # Input
        self.zip_name = os.getenv('ENV_ZIP_NAME') or None
        self.item_name = os.getenv('ENV_ZIP_ITEM_NAME') or None
        self.item_match = os.getenv('ZIP_ITEM_MATCH', 'exact').lower()

        # Extraction
        chunk_size = os.getenv('CHUNK_SIZE', '65536')
        try:
            self.chunk_size = int(chunk_size)
        except ValueError:
            raise ValueError(f"CHUNK_SIZE must be an integer, got {chunk_size!r}") from None

        # Logging
        self.log_level = os.getenv('LOG_LEVEL', 'WARNING').upper()

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(zip_name={self.zip_name}, "
            f"item_name={self.item_name}, "
            f"item_match={self.item_match}, "
            f"chunk_size={self.chunk_size})"
        )


# Global config instance
_config: Optional[Config] = None


def get_config(env_file: Optional[str] = None) -> Config:
    """
    Get or create global config instance (singleton).

    Args:
        env_file: Optional path to .env file

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config(env_file)
    return _config


def reset_config():
    """Reset global config instance (useful for testing)."""
    global _config
    _config = None
