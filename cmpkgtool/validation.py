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

"""Pre-flight validation of publish inputs.

These checks run before the installer is opened and before any AdminService
call, so a bad invocation never leaves a half-created application behind.

Validation Checks:

- Installer path exists, is a file, and is absolute (content location)
- A distribution point group is given when distribution is requested
- Site code and AdminService server are configured

Warnings (non-fatal):

- Installer does not have an .msi extension
- Transform file is not found next to the installer

Example:
    ```python
    from pathlib import Path
    from cmpkgtool.request import PublishRequest, installer_pure_path
    from cmpkgtool.validation import validate_request

    result = validate_request(PublishRequest(Path("widget.msi"), distribute=True), {})
    for error in result.errors:
        print(f"Error: {error}")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from cmpkgtool.exceptions import ConfigError
from cmpkgtool.logging import get_global_logger
from cmpkgtool.request import PublishRequest, installer_pure_path
from cmpkgtool.results import ValidationResult

__all__ = ["validate_request", "ensure_valid", "resolve_site_code", "resolve_dp_group"]


def resolve_site_code(request: PublishRequest, settings: dict[str, Any]) -> str | None:
    """Site code from the request, else from settings."""
    return request.site_code or (settings.get("site", {}) or {}).get("code")


def resolve_dp_group(request: PublishRequest, settings: dict[str, Any]) -> str | None:
    """Distribution point group from the request, else from settings."""
    group = request.dp_group or (settings.get("distribution", {}) or {}).get("group")
    if group is not None and not str(group).strip():
        return None
    return group


def validate_request(
    request: PublishRequest, settings: dict[str, Any] | None = None
) -> ValidationResult:
    """Validate publish inputs without opening the installer or calling the site.

    Args:
        request: Per-run inputs.
        settings: Effective settings. Default is empty.

    Returns:
        ValidationResult with status "valid" or "invalid".
    """
    logger = get_global_logger()
    settings = settings or {}
    errors: list[str] = []
    warnings: list[str] = []
    installer = Path(request.installer_path)

    if not installer.exists():
        errors.append(f"Installer not found: {installer}")
    elif not installer.is_file():
        errors.append(f"Installer path is not a file: {installer}")
    elif not installer_pure_path(request.installer_path).is_absolute():
        errors.append(
            "Installer path must be a UNC or absolute path so ConfigMgr can "
            f"fetch the content: {installer}"
        )
    else:
        logger.verbose("VALIDATE", f"[OK] Installer found: {installer}")
        if installer.suffix.lower() != ".msi":
            warnings.append(
                f"Installer does not have an .msi extension: {installer.name}"
            )
        if request.transform and request.transform.strip():
            transform = installer.parent / request.transform.strip()
            if not transform.exists():
                warnings.append(f"Transform not found next to installer: {transform}")

    if request.distribute and not resolve_dp_group(request, settings):
        errors.append(
            "Distribution requested but no distribution point group was given"
        )

    if not resolve_site_code(request, settings):
        errors.append("Site code is not configured")

    if not (settings.get("site", {}) or {}).get("server"):
        errors.append("AdminService server is not configured")

    return ValidationResult(
        status="invalid" if errors else "valid",
        errors=errors,
        warnings=warnings,
        installer_path=str(installer),
    )


def ensure_valid(
    request: PublishRequest, settings: dict[str, Any] | None = None
) -> ValidationResult:
    """Validate and raise ConfigError listing every error when invalid."""
    logger = get_global_logger()
    result = validate_request(request, settings)
    for warning in result.warnings:
        logger.verbose("WARNING", warning)
    if result.errors:
        raise ConfigError("; ".join(result.errors))
    return result
