# -----------------------------------------------------------------------------
# SETTINGS - ENGINE FLAGS & REQUEST FILES
# -----------------------------------------------------------------------------
# Responsibility: Load engine settings from scratchbuild.yaml (optional) with
# SCRATCHBUILD_* environment overrides (.env supported), and load build
# requests from YAML files.
#
# Precedence: defaults < YAML file < environment.
# -----------------------------------------------------------------------------

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from rich.console import Console

from scratchbuild.core.engine import EngineConfig
from scratchbuild.domain.models import BuildRequest

console = Console()

PROJECT_ROOT = Path(__file__).parent.parent.parent
SETTINGS_PATH = PROJECT_ROOT / "scratchbuild.yaml"
ENV_PREFIX = "SCRATCHBUILD_"


class EngineSettings(BaseModel):
    """
    Pydantic model for engine settings.

    Loaded from scratchbuild.yaml at startup.
    """

    show_build_logs: bool = False
    push_to_daemon: bool = True
    push_to_registry: bool = False
    verbose: bool = False
    docker_host: str | None = None

    def to_engine_config(self) -> EngineConfig:
        return EngineConfig(
            show_build_logs=self.show_build_logs,
            push_to_daemon=self.push_to_daemon,
            push_to_registry=self.push_to_registry,
            verbose=self.verbose,
        )


def _env_overrides() -> dict:
    overrides: dict = {}
    for name in ("show_build_logs", "push_to_daemon", "push_to_registry", "verbose"):
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value

    docker_host = os.getenv("DOCKER_HOST")
    if docker_host:
        overrides["docker_host"] = docker_host
    return overrides


def load_settings(settings_path: Path | None = None, use_env: bool = True) -> EngineSettings:
    """
    Load engine settings.

    Args:
        settings_path: YAML file to read (default: scratchbuild.yaml at the project root).
        use_env: Apply .env / SCRATCHBUILD_* overrides.

    Returns:
        Validated EngineSettings.

    Raises:
        pydantic.ValidationError: If a value has the wrong type.
    """
    path = settings_path or SETTINGS_PATH
    data: dict = {}
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        console.print(f"[green][SETTINGS] Loaded: {path}[/green]")
    else:
        console.print(f"[yellow][SETTINGS] {path.name} not found, using defaults[/yellow]")

    if use_env:
        load_dotenv(PROJECT_ROOT / ".env")
        data.update(_env_overrides())

    return EngineSettings(**data)


def load_build_request(request_path: Path) -> BuildRequest:
    """
    Load a build request from YAML.

    Relative layer sources are resolved against the request file's directory.

    Raises:
        FileNotFoundError: If the request file does not exist.
        pydantic.ValidationError: If the request does not match the model.
    """
    with open(request_path) as f:
        data = yaml.safe_load(f) or {}

    request = BuildRequest.model_validate(data)
    base_dir = request_path.resolve().parent
    for layer in request.layers:
        if layer.source and not os.path.isabs(layer.source):
            layer.source = str(base_dir / layer.source)
    return request
