#!/usr/bin/env python3
# process.py
# -*- coding: utf-8 -*-
"""
Running child processes with their output piped into the log.
"""

import logging
import subprocess
import threading
from collections import deque
from dataclasses import dataclass, field
from os import PathLike
from typing import Deque, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

OUTPUT_TAIL_LINES = 200
TERMINATE_GRACE_SECONDS = 10


@dataclass
class CommandResult:
    args: List[str]
    returncode: int
    output_tail: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(self.output_tail)


def _pump(stream, label: str, tail: Deque[str], lock: threading.Lock) -> None:
    try:
        for line in iter(stream.readline, ""):
            line = line.rstrip("\r\n")
            logger.info("[%s] %s", label, line)
            with lock:
                tail.append(line)
    except (OSError, ValueError) as e:
        logger.error(f"Error reading {label}: {e}")
    finally:
        stream.close()


def run_command_with_log(
    args: Sequence[Union[str, PathLike]],
    cwd: Optional[str] = None,
    env: Optional[dict] = None,
    tail_lines: int = OUTPUT_TAIL_LINES,
) -> CommandResult:
    """
    Run a command to completion, forwarding every line of its stdout and stderr
    to the logger.

    Args:
        args: The argv of the command.
        cwd: Working directory for the child.
        env: Environment for the child; inherits ours when None.
        tail_lines: How many trailing output lines to keep on the result.

    Returns:
        CommandResult: The argv, exit code and the last lines of output.

    Raises:
        OSError: If the command cannot be spawned at all.
        KeyboardInterrupt: Re-raised after the child has been stopped.
    """
    argv = [str(a) for a in args]
    logger.debug(f"Running command: {' '.join(argv)} (cwd={cwd})")

    process = subprocess.Popen(
        argv,
        cwd=cwd,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
        bufsize=1,
    )

    tail: Deque[str] = deque(maxlen=tail_lines)
    lock = threading.Lock()
    readers = [
        threading.Thread(
            target=_pump, args=(process.stdout, "stdout", tail, lock), daemon=True
        ),
        threading.Thread(
            target=_pump, args=(process.stderr, "stderr", tail, lock), daemon=True
        ),
    ]
    for reader in readers:
        reader.start()

    try:
        returncode = process.wait()
    except KeyboardInterrupt:
        logger.warning(f"Interrupted, stopping {argv[0]}")
        stop_process(process)
        raise
    finally:
        for reader in readers:
            reader.join(timeout=TERMINATE_GRACE_SECONDS)

    with lock:
        output_tail = list(tail)

    if returncode != 0:
        logger.debug(f"Command exited with status {returncode}: {' '.join(argv)}")
    return CommandResult(args=argv, returncode=returncode, output_tail=output_tail)


def stop_process(process: subprocess.Popen) -> None:
    """Terminate a child, killing it if it ignores the request."""
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning("Child did not exit after terminate, killing it")
        process.kill()
        process.wait()
