from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from relkit.cli.commands._helpers import emit_error
from relkit.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol, RichConsole

REPO_ENV = "RELKIT_REPO"
CONFIG_ENV = "RELKIT_CONFIG"
QUIET_ENV = "RELKIT_QUIET"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol


def detect_root() -> Path:
    env = os.environ.get(REPO_ENV)
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd().resolve()


def build_context() -> CLIContext:
    root = detect_root()
    env_config = os.environ.get(CONFIG_ENV)
    config_path = Path(env_config).expanduser() if env_config else root / CONFIG_FILE_NAME

    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        emit_error(
            kind="validation",
            message=config_result.error.message,
            hint=str(config_path),
        )

    return CLIContext(
        root=root,
        config=config_result.value,
        console=RichConsole(quiet=os.environ.get(QUIET_ENV) == "1"),
    )
