#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Error types raised by dbctl.

Every error is terminal: the CLI prints it as a single line on stderr and
exits with ``exit_code``.
"""


class DbctlError(Exception):
    """Base class for all dbctl errors."""

    exit_code: int = 1


class MissingConfigFile(DbctlError):
    """The secrets file does not exist."""


class MissingRequiredCredential(DbctlError):
    """The secrets file does not define the root credential."""


class InvalidSettings(DbctlError):
    """dbctl.yaml exists but does not validate."""


class MissingOrchestrationDescriptor(DbctlError):
    """The compose file does not exist."""


class MissingRequiredExecutable(DbctlError):
    """An external executable is not on PATH."""


class ContainersAlreadyRunning(DbctlError):
    pass


class ContainersNotRunning(DbctlError):
    pass


class MissingDumpFile(DbctlError):
    pass


class CommandFailed(DbctlError):
    """A delegated command whose output dbctl needs to read has failed."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = ""):
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"{' '.join(cmd)} failed: {detail}")
        self.cmd = cmd
        self.exit_code = returncode


class Interrupted(DbctlError):
    """Ctrl-C while dbctl was waiting on a delegated command."""

    exit_code = 130
