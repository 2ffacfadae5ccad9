"""Configuration loading for kaboom."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

logger = logging.getLogger(__name__)

DEFAULT_FEED_FILE = "feed.xml"
DEFAULT_REJECT_SUFFIX = ".rej.xml"


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: Optional[str] = None


@dataclass
class AppConfig:
    feed_file: str = DEFAULT_FEED_FILE
    generator: bool = True
    reject_suffix: str = DEFAULT_REJECT_SUFFIX
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def parse_app_config(path: str) -> AppConfig:
    """Parse the kaboom configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()
    if root.tag != "kaboom":
        raise ValueError(f"Config root element must be <kaboom>, got <{root.tag}>")

    config = AppConfig()

    feed_file = root.findtext("feed")
    if feed_file and feed_file.strip():
        config.feed_file = _resolve_path(config_path, feed_file.strip())

    config.generator = root.findtext("generator", "true").strip().lower() == "true"

    reject_suffix = root.findtext("reject-suffix")
    if reject_suffix and reject_suffix.strip():
        config.reject_suffix = reject_suffix.strip()

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "WARNING").strip()
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file.strip())

    return config
