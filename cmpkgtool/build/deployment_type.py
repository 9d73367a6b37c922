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

"""MSI deployment type definition.

This module assembles everything the application digest needs to describe an
MSI deployment type: content location, command lines, product code for detection,
and execution context.

Design Principles:
    - Content location is the directory holding the installer
    - Commands reference the installer by file name
    - Execution context comes from settings (application.*)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cmpkgtool.installer import InstallerMetadata
from cmpkgtool.request import PublishRequest, installer_pure_path

from .commands import (
    DEFAULT_MSIEXEC_ARGS,
    build_install_command,
    build_uninstall_command,
)


@dataclass(frozen=True)
class DeploymentTypeSpec:
    """Definition of an MSI deployment type.

    Attributes:
        name: Deployment type display name.
        content_location: Directory containing the installer (UNC path).
        installer_name: Installer file name.
        product_code: MSI ProductCode, used for detection.
        install_command: Install command line.
        uninstall_command: Uninstall command line.
        install_behavior: InstallForSystem, InstallForUser, or
            InstallForSystemIfResourceIsDeviceOtherwiseInstallForUser.
        logon_requirement: OnlyWhenUserLoggedOn, WhetherOrNotUserLoggedOn,
            or OnlyWhenNoUserLoggedOn.
        user_interaction: Normal, Minimized, Maximized, or Hidden.
        max_runtime: Maximum allowed run time in minutes.
        estimated_runtime: Estimated installation time in minutes.
    """

    name: str
    content_location: str
    installer_name: str
    product_code: str
    install_command: str
    uninstall_command: str
    install_behavior: str = "InstallForSystem"
    logon_requirement: str = "WhetherOrNotUserLoggedOn"
    user_interaction: str = "Hidden"
    max_runtime: int = 120
    estimated_runtime: int = 10


def build_deployment_type(
    metadata: InstallerMetadata,
    request: PublishRequest,
    settings: dict[str, Any] | None = None,
) -> DeploymentTypeSpec:
    """Build the deployment type definition for an installer.

    Args:
        metadata: Installer metadata.
        request: Per-run inputs (transform, extra install arguments).
        settings: Effective settings; the "application" section supplies
            msiexec switches and execution context.

    Returns:
        DeploymentTypeSpec named after the application.
    """
    app_settings = (settings or {}).get("application", {}) or {}
    installer = installer_pure_path(request.installer_path)

    base_install = app_settings.get("install_args", DEFAULT_MSIEXEC_ARGS)
    base_uninstall = app_settings.get("uninstall_args", DEFAULT_MSIEXEC_ARGS)

    return DeploymentTypeSpec(
        name=metadata.application_name,
        content_location=str(installer.parent),
        installer_name=installer.name,
        product_code=metadata.product_code,
        install_command=build_install_command(
            installer.name,
            transform=request.transform,
            extra_args=request.install_args,
            base_args=base_install or "",
        ),
        uninstall_command=build_uninstall_command(
            metadata.product_code, base_args=base_uninstall or ""
        ),
        install_behavior=app_settings.get("install_behavior", "InstallForSystem"),
        logon_requirement=app_settings.get(
            "logon_requirement", "WhetherOrNotUserLoggedOn"
        ),
        user_interaction=app_settings.get("user_interaction", "Hidden"),
        max_runtime=int(app_settings.get("max_runtime", 120)),
        estimated_runtime=int(app_settings.get("estimated_runtime", 10)),
    )
