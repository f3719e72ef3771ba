"""
Builder settings and project configuration.

Process-level settings are read from the environment (``GASBUILD_*``) by
pydantic-settings. The project's ``build.config.json`` is parsed into typed
models and written back only through ``ConfigStore``, which is the one
place deployment identifiers get persisted.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gasbuild.config")


class BuilderSettings(BaseSettings):
    """Environment-driven settings for the build tool itself."""

    model_config = SettingsConfigDict(
        env_prefix="GASBUILD_",
        env_file=".env",
        extra="ignore",
    )

    CONFIG_PATH: str = "build.config.json"
    NPX_COMMAND: str = "npx"
    SCRIPT_HOST: str = "script.google.com"
    MANIFEST_NAME: str = "appsscript.json"
    DEV_SERVER_PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    TOOLCHAIN: str = "node"


settings = BuilderSettings()


class ConfigError(Exception):
    """The build configuration is missing or malformed."""


class _ConfigModel(BaseModel):
    # Unknown keys survive a load/save round trip.
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class FrontendConfig(_ConfigModel):
    build: bool = True
    src: str = "src/frontend"
    minify: bool = True


class BackendConfig(_ConfigModel):
    build: bool = True
    src: str = "src/backend"
    minify: bool = False
    concatenate: bool = True
    out_file: str = Field("Code.js", alias="outFile")
    priority_order: List[str] = Field(default_factory=list, alias="priorityOrder")


class DeploymentConfig(_ConfigModel):
    dev_deployment_id: Optional[str] = Field(None, alias="devDeploymentId")
    prod_deployment_id: Optional[str] = Field(None, alias="prodDeploymentId")


class BuildConfig(_ConfigModel):
    out_dir: str = Field("dist", alias="outDir")
    manifest: str = "appsscript.json"
    package: str = "package.json"
    frontend: FrontendConfig = Field(default_factory=FrontendConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    deployment: DeploymentConfig = Field(default_factory=DeploymentConfig)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _deployment_field(key: str) -> str:
    """Map a JSON key such as ``devDeploymentId`` to its model field name."""
    for name, field in DeploymentConfig.model_fields.items():
        if key in (name, field.alias):
            return name
    raise ConfigError(f"Unknown deployment key: {key}")


class ConfigStore:
    """Reads and writes ``build.config.json``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read_raw(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {self.path}")
        except OSError as e:
            raise ConfigError(f"Could not read configuration {self.path}: {e}")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be an object: {self.path}")
        return data

    def write_raw(self, data: Dict[str, Any]) -> None:
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def load(self) -> BuildConfig:
        data = self.read_raw()
        try:
            return BuildConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self.path}: {e}")

    def save(self, config: BuildConfig) -> None:
        self.write_raw(config.to_json_dict())

    def record_deployment_id(self, config: BuildConfig, key: str, value: str) -> None:
        """
        Persist a discovered deployment identifier.

        The file is re-read so edits made since startup are kept; only
        ``deployment.<key>`` changes. The in-memory ``config`` is updated
        after the write completes.
        """
        field_name = _deployment_field(key)
        json_key = DeploymentConfig.model_fields[field_name].alias or field_name

        data = self.read_raw()
        deployment = data.get("deployment")
        if not isinstance(deployment, dict):
            deployment = {}
        deployment[json_key] = value
        data["deployment"] = deployment
        self.write_raw(data)

        setattr(config.deployment, field_name, value)
        logger.debug(f"Recorded deployment.{json_key} = {value}")


def load_config(path: Union[str, Path]) -> BuildConfig:
    return ConfigStore(path).load()


def read_banner(package_path: Union[str, Path]) -> str:
    """Header comment built from ``package.json``; empty if unavailable."""
    try:
        pkg = json.loads(Path(package_path).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return ""
    if not isinstance(pkg, dict):
        return ""
    name = pkg.get("name") or "App"
    version = pkg.get("version") or "0.0.0"
    return f"/**\n * {name} v{version}\n */\n"
