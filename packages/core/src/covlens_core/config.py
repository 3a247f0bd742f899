import math
import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "coverage_files": None,  # glob pattern(s), one per line
    "title_prefix": "",
    "additional_message": "",
    "update_comment": False,
    "coverage_artifact_name": "",  # uploads this run's merged trace and finds the baseline
    "minimum_coverage": "0",
    "working_directory": "./",  # cwd for genhtml
    "artifact_name": "",  # uploads the HTML report; empty = skip
    "store": None,  # None = pick from token; "local" = directory store for local runs
    "store_path": ".covlens-artifacts",
}

_TRUE_STRINGS = {"true", "yes", "1", "on"}
_FALSE_STRINGS = {"false", "no", "0", "off", ""}


def load_config(config_path: str = ".covlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .covlens.yml in the current directory
      3. CLI argument / INPUT_* environment overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update({key.replace("-", "_"): value for key, value in file_config.items()})

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # The token is the only credential; an explicit option wins over the environment.
    token = config.get("github_token") or os.environ.get("GITHUB_TOKEN") or ""
    config["github_token"] = str(token).strip()
    config["update_comment"] = parse_bool(config["update_comment"])

    return config


def parse_bool(value) -> bool:
    """Interpret an Actions-style boolean input ("true"/"false", any case)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Expected a boolean, got {value!r}.")


def parse_minimum_coverage(value) -> float:
    """
    Parse the minimum-coverage threshold.

    Empty or missing means no threshold (0). Anything that is not a number
    fails the run rather than silently disabling the gate.
    """
    if value is None:
        return 0.0
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        minimum = float(text)
    except ValueError:
        raise ValueError(f"minimum-coverage must be a number, got {value!r}.")
    if not math.isfinite(minimum):
        raise ValueError(f"minimum-coverage must be a finite number, got {value!r}.")
    return minimum
