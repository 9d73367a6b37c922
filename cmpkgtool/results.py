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

"""Public API return types for cmpkgtool.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from cmpkgtool.core import publish_application
        from cmpkgtool.request import PublishRequest

        result = publish_application(
            PublishRequest(Path(r"\\\\fs01\\apps\\Acme\\widget.msi"), site_code="PS1")
        )
        print(result.application_name)  # Attribute access, not dict access
        ```

Note:
    Only public API return types belong in this module. Domain types (like
    InstallerMetadata and DeploymentTypeSpec) stay with their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PublishResult:
    """Result from publishing an application.

    Attributes:
        application_name: Name of the created application.
        manufacturer: Manufacturer from the installer.
        product_name: ProductName from the installer.
        version: ProductVersion from the installer.
        product_code: ProductCode from the installer.
        site_code: ConfigMgr site code.
        ci_id: CI_ID of the created application.
        folder_path: Console path the application was moved to.
        install_command: Deployment type install command.
        uninstall_command: Deployment type uninstall command.
        distribution: "skipped", "started" or "already_distributed".
        status: Always "success" for a completed publish.
    """

    application_name: str
    manufacturer: str
    product_name: str
    version: str
    product_code: str
    site_code: str
    ci_id: int
    folder_path: str
    install_command: str
    uninstall_command: str
    distribution: str
    status: str


@dataclass(frozen=True)
class InspectResult:
    """Result from inspecting an installer without touching the site.

    Attributes:
        application_name: Name the application would get.
        manufacturer: Manufacturer from the installer.
        product_name: ProductName from the installer.
        version: ProductVersion from the installer.
        product_code: ProductCode from the installer.
        folder_path: Folder path below the Applications node.
        content_location: Directory that would become the content source.
        install_command: Install command that would be registered.
        uninstall_command: Uninstall command that would be registered.
    """

    application_name: str
    manufacturer: str
    product_name: str
    version: str
    product_code: str
    folder_path: str
    content_location: str
    install_command: str
    uninstall_command: str


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating publish inputs.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        installer_path: String path to the validated installer.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    installer_path: str
