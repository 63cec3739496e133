#!/usr/bin/env python3
# sequencer.py
# -*- coding: utf-8 -*-
"""
Bootstraps the piper environment and keeps the voice server running.

Steps, in order:
1) Make sure the working directory exists.
2) Activate the virtual environment, creating it first if needed.
3) Install the required packages (a no-op once satisfied).
4) Serve the model.
5) If serving failed because the model is missing, download it and serve
   once more. A second failure is final.
"""

import logging
import os
import sys
from typing import Callable, Optional

from launcher.errors import (
    DownloadError,
    EnvironmentNotFound,
    InstallationError,
    ServeError,
)
from launcher.venv_env import VirtualEnvironment
from launcher.voice_service import PiperVoiceService, ServeResult
from utils.common_enums import ServeFailure
from utils.env import LauncherConfig
from utils.process import run_command_with_log

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[VirtualEnvironment, LauncherConfig], PiperVoiceService]


class BootstrapSequencer:
    def __init__(
        self,
        config: LauncherConfig,
        environment: Optional[VirtualEnvironment] = None,
        service_factory: ServiceFactory = PiperVoiceService,
        base_python: str = sys.executable,
    ):
        self.config = config
        self.environment = environment or VirtualEnvironment(config.env_path)
        self.service_factory = service_factory
        self.base_python = base_python

    def select_directory(self) -> str:
        workdir = self.config.workdir_path
        if not os.path.isdir(workdir):
            raise EnvironmentNotFound(f"Working directory {workdir} does not exist")
        return workdir

    def activate_environment(self) -> str:
        return self.environment.ensure(self.base_python)

    def install_dependencies(self, python: str) -> None:
        packages = list(self.config.packages)
        if self.config.upgrade_pip:
            packages.insert(0, "pip")
        command = [python, "-m", "pip", "install"]
        if self.config.upgrade_pip:
            command.append("--upgrade")
        command += packages

        logger.info(f"Making sure packages are installed: {', '.join(packages)}")
        try:
            result = run_command_with_log(command, cwd=self.config.workdir_path)
        except OSError as e:
            raise InstallationError(f"Could not run pip: {e}") from e

        if not result.ok:
            raise InstallationError(
                "Could not install python dependencies", exit_code=result.returncode
            )

    def should_download(self, attempt: ServeResult) -> bool:
        if attempt.failure == ServeFailure.PORT_IN_USE:
            return False
        if attempt.failure == ServeFailure.UNKNOWN:
            return self.config.download_on_unknown_failure
        return True

    def run(self, model_id: Optional[str] = None) -> int:
        """
        Run the whole bootstrap for `model_id` (defaults to the configured model).

        Blocks for as long as the server is up. Returns 0 when the server
        exits cleanly.

        Raises:
            EnvironmentNotFound: The working directory is missing.
            EnvironmentCreationError: The environment could not be set up.
            InstallationError: pip failed.
            DownloadError: The model could not be fetched.
            ServeError: The server did not start, after the fallback if one applied.
        """
        model_id = model_id or self.config.model

        self.select_directory()
        python = self.activate_environment()
        self.install_dependencies(python)

        service = self.service_factory(self.environment, self.config)

        attempt = service.serve(model_id)
        if attempt.ok:
            return 0

        if not self.should_download(attempt):
            raise ServeError(
                f"Piper HTTP server failed to start ({attempt.failure.value})",
                exit_code=attempt.returncode,
                failure=attempt.failure,
                output=attempt.command.output,
            )

        download = service.download(model_id)
        if not download.ok:
            raise DownloadError(
                f"Could not download piper model {model_id}",
                exit_code=download.returncode,
            )

        attempt = service.serve(model_id)
        if attempt.ok:
            return 0

        raise ServeError(
            f"Piper HTTP server failed to start after downloading {model_id}",
            exit_code=attempt.returncode,
            failure=attempt.failure or ServeFailure.UNKNOWN,
            output=attempt.command.output,
        )
