#!/usr/bin/env python3
# env.py
# -*- coding: utf-8 -*-
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

DEFAULT_MODEL = "en_US-ryan-high"
DEFAULT_WORKDIR = "piper"
DEFAULT_PACKAGES = ["piper-tts", "flask"]
DEFAULT_SERVER_URL = "http://localhost:5000"


class LauncherConfig(BaseModel):
    workdir: str = DEFAULT_WORKDIR
    env_dir: str = "env"
    model: str = DEFAULT_MODEL
    packages: List[str] = DEFAULT_PACKAGES
    upgrade_pip: bool = False
    host: Optional[str] = None
    port: Optional[int] = None
    data_dir: Optional[str] = None
    download_on_unknown_failure: bool = True
    server_url: str = DEFAULT_SERVER_URL
    log_file: Optional[str] = None

    @field_validator("packages", mode="before")
    @classmethod
    def split_packages(cls, value):
        if isinstance(value, str):
            value = [p.strip() for p in value.split(",")]
        packages = [p for p in value if p]
        if not packages:
            raise ValueError("At least one package must be installed")
        return packages

    @field_validator("model")
    @classmethod
    def model_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Model identifier must not be empty")
        return value.strip()

    @property
    def workdir_path(self) -> str:
        return os.path.abspath(self.workdir)

    @property
    def env_path(self) -> str:
        """Environment directory; relative values are resolved against workdir."""
        if os.path.isabs(self.env_dir):
            return self.env_dir
        return os.path.join(self.workdir_path, self.env_dir)

    @property
    def model_dir(self) -> str:
        """Where the voice library looks for <model>.onnx files."""
        if self.data_dir:
            return os.path.abspath(self.data_dir)
        return self.workdir_path


# Maps environment variables onto LauncherConfig fields
ENV_VARS = {
    "PIPER_WORKDIR": "workdir",
    "PIPER_ENV_DIR": "env_dir",
    "PIPER_MODEL": "model",
    "PIPER_PACKAGES": "packages",
    "PIPER_UPGRADE_PIP": "upgrade_pip",
    "PIPER_HOST": "host",
    "PIPER_PORT": "port",
    "PIPER_DATA_DIR": "data_dir",
    "PIPER_DOWNLOAD_ON_UNKNOWN": "download_on_unknown_failure",
    "PIPER_URL": "server_url",
    "PIPER_LOG_FILE": "log_file",
}


def setup_env(**overrides) -> LauncherConfig:
    """
    Loads the launcher configuration from a .env file (if present) and the
    process environment.

    Keyword arguments that are not None take precedence over the environment,
    which is how the command line overrides settings.

    Returns:
        LauncherConfig: The validated configuration.

    Raises:
        pydantic.ValidationError: If a value cannot be parsed.
    """
    load_dotenv()

    values = {}
    for var, field_name in ENV_VARS.items():
        raw = os.getenv(var)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()

    values.update({k: v for k, v in overrides.items() if v is not None})

    return LauncherConfig(**values)


def log_config(config: LauncherConfig) -> None:
    logging.debug("Configuration loaded, following values will be used:")
    logging.debug("Working directory: %s", config.workdir_path)
    logging.debug("Environment: %s", config.env_path)
    logging.debug("Model: %s", config.model)
    logging.debug("Packages: %s", ", ".join(config.packages))
