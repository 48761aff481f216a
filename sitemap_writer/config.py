import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Any

from sitemap_writer.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = "config.json"

# Protocol ceiling is 50,000 URLs / 50MB per file. Default stays at 1/3 below
# the URL ceiling for safety.
PROTOCOL_MAX_URLS = 50000
DEFAULT_MAX_URLS_PER_FILE = 33333
DEFAULT_MAX_FILE_SIZE = 52428800  # 50MB
DEFAULT_OUTPUT_DIRECTORY = "output"


@dataclass(frozen=True)
class GenerationConfig:
    """
    Immutable settings for one generation run.

    Attributes:
        output_dir: Directory the sitemap files are written to
        base_url: Base URL relative entry locations are resolved against
        sitemap_base_url: Base URL shard filenames are resolved against in the
            index (defaults to base_url)
        stylesheet_url: Optional XSL stylesheet referenced by every document
        max_urls_per_file: Entries per sitemap file before sharding
        max_file_size: Advisory byte limit per file (only logged)
    """
    output_dir: str
    base_url: str
    sitemap_base_url: Optional[str] = None
    stylesheet_url: Optional[str] = None
    max_urls_per_file: int = DEFAULT_MAX_URLS_PER_FILE
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def __post_init__(self):
        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise ConfigError("base_url must be a non-empty string")
        if not isinstance(self.output_dir, str) or not self.output_dir.strip():
            raise ConfigError("output_dir must be a non-empty string")

        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        sitemap_base = self.sitemap_base_url or self.base_url
        object.__setattr__(self, "sitemap_base_url", sitemap_base.strip())
        object.__setattr__(self, "stylesheet_url", self.stylesheet_url or None)
        if self.stylesheet_url and "?>" in self.stylesheet_url:
            raise ConfigError(f"stylesheet_url must not contain '?>': {self.stylesheet_url}")

        if isinstance(self.max_urls_per_file, bool) or not isinstance(self.max_urls_per_file, int):
            raise ConfigError(f"max_urls_per_file must be an integer, got {self.max_urls_per_file!r}")
        if not 1 <= self.max_urls_per_file <= PROTOCOL_MAX_URLS:
            raise ConfigError(
                f"max_urls_per_file must be between 1 and {PROTOCOL_MAX_URLS}, "
                f"got {self.max_urls_per_file}"
            )
        if isinstance(self.max_file_size, bool) or not isinstance(self.max_file_size, int) \
                or self.max_file_size < 1:
            raise ConfigError(f"max_file_size must be a positive integer, got {self.max_file_size!r}")


def load_config(path: str = CONFIG_FILE_PATH) -> Optional[Dict[str, Any]]:
    """Loads the run configuration from config.json."""
    if not os.path.exists(path):
        logger.error(f"Configuration file not found: {path}")
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
        logger.info(f"Successfully loaded configuration from {path}")
        if not validate_config(config_data):
            return None
        return config_data
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from {path}: {e}")
        return None
    except OSError as e:
        logger.error(f"Could not read configuration file {path}: {e}")
        return None


def validate_config(config: Dict[str, Any]) -> bool:
    """Validates the structure and content of the configuration."""
    if not isinstance(config, dict):
        logger.error("Configuration must be a dictionary.")
        return False

    for key in ["base_url", "entries_csv"]:
        if key not in config:
            logger.error(f"Configuration is missing required key: '{key}'.")
            return False
        if not isinstance(config[key], str) or not config[key].strip():
            logger.error(f"Value for key '{key}' must be a non-empty string.")
            return False

    for key in ["output_directory", "sitemap_base_url", "stylesheet_url", "manifest_csv"]:
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            logger.error(f"Value for key '{key}' must be a string if set.")
            return False

    for key in ["max_urls_per_file", "max_file_size"]:
        value = config.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            logger.error(f"Value for key '{key}' must be a positive integer.")
            return False

    max_urls = config.get("max_urls_per_file")
    if max_urls is not None and max_urls > PROTOCOL_MAX_URLS:
        logger.error(f"'max_urls_per_file' exceeds the protocol limit of {PROTOCOL_MAX_URLS}.")
        return False

    if not config.get("sitemap_base_url"):
        logger.warning("'sitemap_base_url' not set. Index entries will use 'base_url'.")

    logger.info("Configuration validation successful.")
    return True


def build_generation_config(config: Dict[str, Any]) -> GenerationConfig:
    """Builds the immutable GenerationConfig from a loaded config dict."""
    return GenerationConfig(
        output_dir=config.get("output_directory") or DEFAULT_OUTPUT_DIRECTORY,
        base_url=config.get("base_url", ""),
        sitemap_base_url=config.get("sitemap_base_url"),
        stylesheet_url=config.get("stylesheet_url"),
        max_urls_per_file=config.get("max_urls_per_file", DEFAULT_MAX_URLS_PER_FILE),
        max_file_size=config.get("max_file_size", DEFAULT_MAX_FILE_SIZE),
    )
