#!/usr/bin/env python3
# venv_env.py
# -*- coding: utf-8 -*-
import logging
import os
import sys

from launcher.errors import EnvironmentCreationError
from utils.process import run_command_with_log

logger = logging.getLogger(__name__)


class VirtualEnvironment:
    """
    Handle on an isolated Python environment living at `path`.

    The environment is created on first use and reused afterwards; nothing
    here ever removes it.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)

    def __repr__(self):
        return f"VirtualEnvironment({self.path!r})"

    @property
    def bin_dir(self) -> str:
        return os.path.join(self.path, "Scripts" if os.name == "nt" else "bin")

    @property
    def python(self) -> str:
        exe = "python.exe" if os.name == "nt" else "python"
        return os.path.join(self.bin_dir, exe)

    def exists(self) -> bool:
        return os.path.isfile(os.path.join(self.path, "pyvenv.cfg")) and os.path.isfile(
            self.python
        )

    def create(self, base_python: str = sys.executable) -> None:
        logger.warning(
            f"Python virtual environment does not exist, creating it at {self.path}"
        )
        try:
            result = run_command_with_log([base_python, "-m", "venv", self.path])
        except OSError as e:
            raise EnvironmentCreationError(
                f"Could not create python virtual environment at {self.path}: {e}"
            ) from e

        if not result.ok:
            raise EnvironmentCreationError(
                f"Could not create python virtual environment at {self.path}",
                exit_code=result.returncode,
            )

    def activate(self) -> str:
        """Return the interpreter every later command must run under."""
        if not self.exists():
            raise EnvironmentCreationError(
                f"No usable python virtual environment at {self.path}"
            )
        return self.python

    def ensure(self, base_python: str = sys.executable) -> str:
        if self.exists():
            logger.info(f"Using existing virtual environment {self.path}")
            return self.activate()

        self.create(base_python)
        return self.activate()
