#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Dockerized MySQL management package.
"""

from .commands import Command, app, main
from .errors import (
    CommandFailed,
    ContainersAlreadyRunning,
    ContainersNotRunning,
    DbctlError,
    Interrupted,
    InvalidSettings,
    MissingConfigFile,
    MissingDumpFile,
    MissingOrchestrationDescriptor,
    MissingRequiredCredential,
    MissingRequiredExecutable,
)
from .manager import DatabaseManager
from .models import ComposeConfig, MySQLConfig, RuntimeConfig, Secrets, Settings

__all__ = [
    # Commands
    "app",
    "main",
    "Command",
    # Manager
    "DatabaseManager",
    # Models
    "Settings",
    "Secrets",
    "ComposeConfig",
    "RuntimeConfig",
    "MySQLConfig",
    # Errors
    "DbctlError",
    "MissingConfigFile",
    "MissingRequiredCredential",
    "InvalidSettings",
    "MissingOrchestrationDescriptor",
    "MissingRequiredExecutable",
    "ContainersAlreadyRunning",
    "ContainersNotRunning",
    "MissingDumpFile",
    "CommandFailed",
    "Interrupted",
]
