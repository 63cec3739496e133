#!/usr/bin/env python3
# errors.py
# -*- coding: utf-8 -*-
"""
Errors raised while bootstrapping and launching the voice service.
"""

from typing import Optional

from utils.common_enums import ServeFailure


class BootstrapError(Exception):
    """Base class; exit_code is what the launcher exits with."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        if exit_code < 0:
            # Child killed by signal N; report it the way a shell does
            exit_code = 128 - exit_code
        self.exit_code = exit_code if exit_code else 1


class EnvironmentNotFound(BootstrapError):
    pass


class EnvironmentCreationError(BootstrapError):
    pass


class InstallationError(BootstrapError):
    pass


class ServeError(BootstrapError):
    def __init__(
        self,
        message: str,
        exit_code: int = 1,
        failure: ServeFailure = ServeFailure.UNKNOWN,
        output: Optional[str] = None,
    ):
        super().__init__(message, exit_code)
        self.failure = failure
        self.output = output


class DownloadError(BootstrapError):
    pass
