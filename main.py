#!/usr/bin/env python3
# main.py
# -*- coding: utf-8 -*-
import argparse
import logging
import sys
from typing import List, Optional

import httpx
from pydantic import ValidationError

from launcher.client import PiperHTTPClient
from launcher.errors import BootstrapError
from launcher.sequencer import BootstrapSequencer
from utils.common_enums import Command
from utils.env import log_config, setup_env
from utils.logging_utils import setup_logging

INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Set up a piper environment and serve a voice over HTTP."
    )
    parser.add_argument("--model", help="Voice to serve (default en_US-ryan-high)")
    parser.add_argument(
        "--workdir", help="Directory holding the environment (default ./piper)"
    )
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("-v", "--verbose", action="store_true")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser(Command.SERVE.value, help="Bootstrap and serve (default)")
    say = subparsers.add_parser(
        Command.SAY.value, help="Send text to a running server and save the WAV"
    )
    say.add_argument("text")
    say.add_argument("-o", "--output", default="output.wav")
    say.add_argument("--url", help="Server URL (default http://localhost:5000)")
    return parser


def serve(config) -> int:
    return BootstrapSequencer(config).run(config.model)


def say(config, args) -> int:
    client = PiperHTTPClient(args.url or config.server_url)
    try:
        client.speak(args.text, args.output)
    except (ValueError, RuntimeError, httpx.HTTPError) as e:
        logging.error(f"Speech synthesis failed: {e}")
        return 1
    print(f"Speech synthesis successful. The output file is saved at: {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = setup_env(
            model=args.model, workdir=args.workdir, log_file=args.log_file
        )
    except ValidationError as e:
        setup_logging(args.log_file, args.verbose)
        logging.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.log_file, args.verbose)
    log_config(config)

    try:
        if args.command == Command.SAY.value:
            return say(config, args)
        return serve(config)
    except BootstrapError as e:
        logging.error(f"{type(e).__name__}: {e}")
        return e.exit_code
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down")
        return INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
