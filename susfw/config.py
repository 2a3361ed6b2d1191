# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Configuration management for the command-line front end.

Defaults for the download command and logging are read from an optional
susfw.toml file; command-line flags override them.
"""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("susfw.toml")


@dataclass
class CliConfig:
    """CLI configuration settings.

    Attributes:
        out_dir: Default output directory for downloads ("" = transfer default).
        auto_decrypt: Decrypt after download.
        show_md5: Print the server Content-MD5 after download.
        log_level: Root logging level name.
    """

    out_dir: str = ""
    auto_decrypt: bool = True
    show_md5: bool = False
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> CliConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML file. If None, uses ./susfw.toml.

    Returns:
        CliConfig instance with loaded or default settings.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    logger = logging.getLogger(__name__)

    try:
        with open(config_path, "rb") as f:
            config = tomllib.load(f)
    except (FileNotFoundError, OSError) as ex:
        logger.debug("Config file not found or error reading: %s. Using defaults.", ex)
        return CliConfig()
    except tomllib.TOMLDecodeError as ex:
        logger.warning("Invalid config file %s: %s. Using defaults.", config_path, ex)
        return CliConfig()

    download_config = config.get("download", {})
    logging_config = config.get("logging", {})
    level = str(logging_config.get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Unknown log level %r in %s. Using INFO.", level, config_path)
        level = "INFO"
    cfg = CliConfig(
        out_dir=str(download_config.get("out_dir", "")),
        auto_decrypt=bool(download_config.get("auto_decrypt", True)),
        show_md5=bool(download_config.get("show_md5", False)),
        log_level=level,
    )
    logger.debug(
        "Config loaded: out_dir=%s, auto_decrypt=%s, show_md5=%s, log_level=%s",
        cfg.out_dir,
        cfg.auto_decrypt,
        cfg.show_md5,
        cfg.log_level,
    )
    return cfg
