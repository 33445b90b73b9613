#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2026 plumiume
# SPDX-License-Identifier: MIT
# License: MIT License (https://opensource.org/licenses/MIT)
# See LICENSE.txt for details.

"""
Configuration models for dbctl.
"""

import re
import shlex
from typing import Tuple, Type

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# Docker's container name rule
CONTAINER_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")

# ============================================================================
# Secrets
# ============================================================================


class Secrets(BaseSettings):
    """Credentials read from the local secrets file"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    mysql_root_password: SecretStr = Field(description="MySQL root password")

    @field_validator("mysql_root_password")
    @classmethod
    def validate_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("MYSQL_ROOT_PASSWORD must not be empty")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Only the secrets file counts.
        The ambient process environment is deliberately not consulted.
        """
        return init_settings, dotenv_settings


# ============================================================================
# Project settings (dbctl.yaml)
# ============================================================================


class ComposeConfig(BaseModel):
    """Orchestrator configuration"""

    file: str = Field(
        default="docker-compose.yml",
        description="Compose descriptor path, relative to the project directory",
    )
    command: str = Field(
        default="docker-compose",
        description="Orchestrator command line (e.g. 'docker-compose' or 'docker compose')",
    )

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        if not shlex.split(v):
            raise ValueError("compose.command must not be empty")
        return v

    @property
    def argv(self) -> list[str]:
        return shlex.split(self.command)


class RuntimeConfig(BaseModel):
    """Container runtime configuration"""

    command: str = Field(default="docker", description="Container runtime executable")
    container: str = Field(default="mysql", description="Database container name")

    @field_validator("container")
    @classmethod
    def validate_container(cls, v: str) -> str:
        if not CONTAINER_NAME_PATTERN.match(v):
            raise ValueError(f"Invalid container name: {v!r}")
        return v


class MySQLConfig(BaseModel):
    """MySQL service configuration"""

    image: str = Field(default="mysql:8.0", min_length=1)
    port: int = Field(default=3306, ge=1, le=65535, description="Published host port")
    user: str = Field(default="root", min_length=1, description="Client user")
    data_dir: str = Field(default="./data/mysql", description="Data volume path")
    dumps_dir: str = Field(
        default="dumps", min_length=1, description="Directory holding <name>.sql dumps"
    )


class Settings(BaseSettings):
    """Main configuration model"""

    model_config = SettingsConfigDict(
        env_prefix="DBCTL_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    secrets_file: str = Field(default=".env", min_length=1)
    compose: ComposeConfig = Field(default_factory=ComposeConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    mysql: MySQLConfig = Field(default_factory=MySQLConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings sources priority.
        Priority: env vars > YAML (init) > defaults
        """
        return env_settings, init_settings
