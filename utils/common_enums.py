#!/usr/bin/env python3
# common_enums.py
# -*- coding: utf-8 -*-
"""
Enumerations for fixed expressions used across the launcher
"""

from enum import Enum


class ServeFailure(str, Enum):
    MODEL_MISSING = "model_missing"
    PORT_IN_USE = "port_in_use"
    UNKNOWN = "unknown"


class Command(str, Enum):
    SERVE = "serve"
    SAY = "say"
