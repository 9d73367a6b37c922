# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Settings loading and merging for cmpkgtool.

Configuration Layers
--------------------
1. **Built-in defaults** (DEFAULT_SETTINGS)
   - msiexec switches, execution context, HTTP timeout
2. **Settings file** (cmpkg.yaml)
   - Explicit path, or the first cmpkg.yaml found walking upward from the
     working directory
   - Site code, AdminService server, folder root, default DP group
3. **Environment** (CMPKG_SITE_CODE, CMPKG_SERVER)
   - Overrides for CI agents that share one settings file

CLI flags are applied on top by the caller.

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Example settings file
---------------------

    apiVersion: cmpkg/v1
    site:
      code: PS1
      server: cm01.corp.example.com
    application:
      folder_root: Packaged
    distribution:
      group: All DPs

Error Handling
--------------
- ConfigError: Explicit settings file missing, YAML parse errors, empty or
  non-mapping documents. Errors are chained with "from err".
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from cmpkgtool.exceptions import ConfigError
from cmpkgtool.logging import get_global_logger

SETTINGS_FILENAME = "cmpkg.yaml"

DEFAULT_SETTINGS: dict[str, Any] = {
    "apiVersion": "cmpkg/v1",
    "site": {
        "code": None,
        "server": None,
        "verify_ssl": True,
        "timeout": 60,
        "scope_id": None,
    },
    "application": {
        "folder_root": None,
        "install_args": "/qn /norestart",
        "uninstall_args": "/qn /norestart",
        "install_behavior": "InstallForSystem",
        "logon_requirement": "WhetherOrNotUserLoggedOn",
        "user_interaction": "Hidden",
        "max_runtime": 120,
        "estimated_runtime": 10,
        "language": "en-US",
    },
    "distribution": {
        "group": None,
    },
}

ENV_OVERRIDES = {
    "CMPKG_SITE_CODE": ("site", "code"),
    "CMPKG_SERVER": ("site", "server"),
}


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """
    Load a YAML settings file and return the parsed mapping.

    Raises:
      ConfigError - missing file, invalid YAML, empty or non-mapping document
    """
    if not p.exists():
        raise ConfigError(f"Settings file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"Settings file is empty: {p}")
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping (dict): {p}")
    return data


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def find_settings_file(start_dir: Path) -> Path | None:
    """
    Walk upward from 'start_dir' looking for cmpkg.yaml.
    Returns the file path or None if not found.
    """
    start_dir = start_dir.resolve()
    for parent in [start_dir] + list(start_dir.parents):
        candidate = parent / SETTINGS_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _apply_env_overrides(cfg: dict[str, Any]) -> None:
    logger = get_global_logger()
    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            cfg.setdefault(section, {})[key] = value
            logger.verbose("CONFIG", f"Override from {var}: {section}.{key}={value}")


def load_settings(
    config_path: Path | None = None,
    *,
    search_dir: Path | None = None,
) -> dict[str, Any]:
    """
    Load and merge the effective settings.

    Steps
      1) Start from DEFAULT_SETTINGS.
      2) Load 'config_path', or discover cmpkg.yaml upward from 'search_dir'
         (default: working directory). A discovered file is optional; an
         explicit one must exist.
      3) Merge: defaults -> file (dicts deep-merge, lists replace).
      4) Apply environment overrides.

    Returns
      A merged settings dict. Inputs are never mutated.

    Raises
      ConfigError on a missing explicit file or invalid YAML.
    """
    logger = get_global_logger()
    merged = copy.deepcopy(DEFAULT_SETTINGS)

    if config_path is not None:
        settings_file: Path | None = Path(config_path)
    else:
        settings_file = find_settings_file(search_dir or Path.cwd())

    if settings_file is not None:
        logger.verbose("CONFIG", f"Loading settings: {settings_file}")
        overlay = _load_yaml_file(settings_file)
        merged = _deep_merge_dicts(merged, overlay)
        for section in ("site", "application", "distribution"):
            if not isinstance(merged.get(section), dict):
                raise ConfigError(f"'{section}' must be a mapping in {settings_file}")
    else:
        logger.verbose("CONFIG", "No settings file found, using built-in defaults")

    _apply_env_overrides(merged)

    logger.debug(
        "CONFIG",
        "Effective settings:\n"
        + yaml.dump(merged, default_flow_style=False, sort_keys=False).rstrip(),
    )
    return merged


def apply_cli_overrides(
    settings: dict[str, Any],
    *,
    site_code: str | None = None,
    server: str | None = None,
    dp_group: str | None = None,
) -> dict[str, Any]:
    """Return a copy of 'settings' with non-empty CLI values applied."""
    overlay: dict[str, Any] = {}
    if site_code:
        overlay.setdefault("site", {})["code"] = site_code
    if server:
        overlay.setdefault("site", {})["server"] = server
    if dp_group:
        overlay.setdefault("distribution", {})["group"] = dp_group
    return _deep_merge_dicts(settings, overlay)
