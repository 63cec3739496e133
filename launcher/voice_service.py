#!/usr/bin/env python3
# voice_service.py
# -*- coding: utf-8 -*-
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional

from launcher.venv_env import VirtualEnvironment
from utils.common_enums import ServeFailure
from utils.env import LauncherConfig
from utils.process import CommandResult, run_command_with_log

logger = logging.getLogger(__name__)

SERVER_MODULE = "piper.http_server"
DOWNLOAD_MODULE = "piper.download_voices"

_PORT_IN_USE = re.compile(
    r"address already in use|errno 98|errno 48|winerror 10048|port .* is in use",
    re.IGNORECASE,
)
_MODEL_MISSING = re.compile(
    r"unable to find voice|download_voices|filenotfounderror|no such file.*\.onnx|\.onnx.*not found",
    re.IGNORECASE,
)


@dataclass
class ServeResult:
    command: CommandResult
    failure: Optional[ServeFailure] = None

    @property
    def ok(self) -> bool:
        return self.command.ok

    @property
    def returncode(self) -> int:
        return self.command.returncode


def classify_failure(output: str, model_on_disk: bool) -> ServeFailure:
    """
    Work out why the server did not come up from what it printed.

    A port conflict wins over everything else since downloading would not
    help. Output that names no cause falls back to checking the model file.
    """
    if _PORT_IN_USE.search(output):
        return ServeFailure.PORT_IN_USE
    if _MODEL_MISSING.search(output) or not model_on_disk:
        return ServeFailure.MODEL_MISSING
    return ServeFailure.UNKNOWN


class PiperVoiceService:
    """Runs the piper-tts entry points inside a virtual environment."""

    def __init__(self, environment: VirtualEnvironment, config: LauncherConfig):
        self.environment = environment
        self.config = config

    def model_path(self, model_id: str) -> str:
        return os.path.join(self.config.model_dir, f"{model_id}.onnx")

    def has_model(self, model_id: str) -> bool:
        return os.path.isfile(self.model_path(model_id))

    def serve_command(self, model_id: str) -> List[str]:
        command = [self.environment.python, "-m", SERVER_MODULE, "-m", model_id]
        if self.config.host:
            command += ["--host", self.config.host]
        if self.config.port:
            command += ["--port", str(self.config.port)]
        if self.config.data_dir:
            command += ["--data-dir", self.config.model_dir]
        return command

    def download_command(self, model_id: str) -> List[str]:
        command = [self.environment.python, "-m", DOWNLOAD_MODULE, model_id]
        if self.config.data_dir:
            command += ["--download-dir", self.config.model_dir]
        return command

    def serve(self, model_id: str) -> ServeResult:
        """
        Start the HTTP server for `model_id` and block while it runs.

        Returns once the server exits. A failed start is reported on the
        result rather than raised, so the caller decides on the fallback.
        """
        logger.info(f"Starting piper HTTP server with model {model_id}")
        try:
            result = run_command_with_log(
                self.serve_command(model_id), cwd=self.config.workdir_path
            )
        except OSError as e:
            logger.error(f"Could not launch piper HTTP server: {e}")
            result = CommandResult(
                args=self.serve_command(model_id), returncode=1, output_tail=[str(e)]
            )

        if result.ok:
            logger.info("Piper HTTP server exited")
            return ServeResult(command=result)

        failure = classify_failure(result.output, self.has_model(model_id))
        logger.warning(
            f"Piper HTTP server failed with status {result.returncode} ({failure.value})"
        )
        return ServeResult(command=result, failure=failure)

    def download(self, model_id: str) -> CommandResult:
        logger.warning(f"Piper model {model_id} not available, downloading now")
        try:
            result = run_command_with_log(
                self.download_command(model_id), cwd=self.config.workdir_path
            )
        except OSError as e:
            logger.error(f"Could not launch piper model download: {e}")
            return CommandResult(
                args=self.download_command(model_id), returncode=1, output_tail=[str(e)]
            )

        if result.ok:
            logger.info(f"Downloaded piper model {model_id}")
        return result
