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

"""Core orchestration for cmpkgtool.

This module coordinates the publish workflow: read the installer, create the
application and its deployment type, file it in the console, confirm it and
optionally distribute its content.

Publish Workflow:

1. Validate inputs (installer exists, DP group given when distributing)
2. Read installer metadata (Manufacturer, ProductName, ProductVersion, ProductCode)
3. Build install/uninstall command lines and the MSI deployment type
4. Resolve the site's authoring scope
5. Create the application "Manufacturer ProductName Version" with its
   deployment type in one SDMPackageXML document
6. Ensure the Manufacturer/ProductName folder exists
7. Move the application into the folder
8. Re-fetch the application by name to confirm it exists
9. Distribute content (optional, "already distributed" is not an error)

Design Principles:

- Steps 1-2 never touch the site; invalid input fails before any API call
- Functions return frozen dataclasses; the CLI formats them
- Errors are exceptions from cmpkgtool.exceptions; nothing is retried here

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from cmpkgtool.core import publish_application
        from cmpkgtool.request import PublishRequest

        result = publish_application(
            PublishRequest(
                installer_path=Path(r"\\\\fs01\\apps\\Acme\\widget.msi"),
                transform="corp.mst",
                site_code="PS1",
                distribute=True,
                dp_group="All DPs",
            )
        )
        print(result.folder_path)  # PS1:\\Application\\Acme\\Widget
        ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from cmpkgtool.auth import CredentialManager
from cmpkgtool.build import build_application_digest, build_deployment_type
from cmpkgtool.cm import AdminServiceClient, distribute_content, ensure_folder_path
from cmpkgtool.cm.folders import folder_parts
from cmpkgtool.config import load_settings
from cmpkgtool.exceptions import (
    ApplicationNotFoundError,
    CMPKGError,
    ConfigError,
    NetworkError,
)
from cmpkgtool.installer import read_installer_metadata
from cmpkgtool.logging import get_global_logger
from cmpkgtool.request import PublishRequest
from cmpkgtool.results import InspectResult, PublishResult
from cmpkgtool.validation import ensure_valid, resolve_dp_group, resolve_site_code

TOTAL_STEPS = 9


def _console_path(site_code: str, parts: list[str]) -> str:
    return "\\".join([f"{site_code}:", "Application", *parts])


def inspect_installer(
    installer_path: Path,
    transform: str | None = None,
    install_args: str | None = None,
    settings: dict[str, Any] | None = None,
) -> InspectResult:
    """Show what publishing an installer would create, without calling the site.

    Args:
        installer_path: Path to the MSI.
        transform: Optional transform relative to the installer.
        install_args: Optional extra install arguments.
        settings: Effective settings. Default is the built-in defaults.

    Returns:
        InspectResult with the derived name, folder and command lines.

    Raises:
        ConfigError: If the installer does not exist.
        InstallerError: If the installer cannot be read.
    """
    settings = settings if settings is not None else load_settings()
    installer_path = Path(installer_path)
    if not installer_path.is_file():
        raise ConfigError(f"Installer not found: {installer_path}")

    request = PublishRequest(
        installer_path=installer_path, transform=transform, install_args=install_args
    )
    metadata = read_installer_metadata(installer_path)
    spec = build_deployment_type(metadata, request, settings)
    parts = folder_parts(
        (settings.get("application", {}) or {}).get("folder_root"),
        *metadata.folder_parts,
    )

    return InspectResult(
        application_name=metadata.application_name,
        manufacturer=metadata.manufacturer,
        product_name=metadata.product_name,
        version=metadata.product_version,
        product_code=metadata.product_code,
        folder_path="/".join(parts),
        content_location=spec.content_location,
        install_command=spec.install_command,
        uninstall_command=spec.uninstall_command,
    )


def publish_application(
    request: PublishRequest,
    settings: dict[str, Any] | None = None,
    client: Any | None = None,
) -> PublishResult:
    """Create, file, confirm and optionally distribute an MSI application.

    This is the main entry point for the 'cmpkg publish' command.

    Args:
        request: Per-run inputs. site_code and dp_group fall back to settings.
        settings: Effective settings. Default loads cmpkg.yaml (if any) via
            load_settings().
        client: AdminService client. Default builds one from settings with
            credentials from CredentialManager; a client built here is closed
            before returning.

    Returns:
        PublishResult describing the created application.

    Raises:
        ConfigError: Installer missing, distribution requested without a
            group, site code/server missing, unknown DP group, or no
            credentials on a host without integrated Windows authentication.
        InstallerError: If the installer metadata cannot be read.
        NetworkError: On AdminService failures.
        ApplicationNotFoundError: If the application cannot be found after
            it was created.

    Note:
        Validation and metadata extraction happen before a client is
        created, so invalid input never reaches the site.
    """
    logger = get_global_logger()
    settings = settings if settings is not None else load_settings()

    # 1. Validate
    logger.step(1, TOTAL_STEPS, "Validating inputs...")
    ensure_valid(request, settings)
    site_code = str(resolve_site_code(request, settings))
    dp_group = resolve_dp_group(request, settings)

    # 2. Read installer
    logger.step(2, TOTAL_STEPS, "Reading installer metadata...")
    metadata = read_installer_metadata(request.installer_path)
    app_name = metadata.application_name
    logger.verbose("PUBLISH", f"Application name: {app_name}")

    owns_client = client is None
    if client is None:
        credentials = CredentialManager()
        client = AdminServiceClient.from_settings(settings, auth=credentials.get_auth())

    try:
        # 3. Build commands and deployment type
        logger.step(3, TOTAL_STEPS, "Building install/uninstall commands...")
        spec = build_deployment_type(metadata, request, settings)
        logger.verbose("PUBLISH", f"Install:   {spec.install_command}")
        logger.verbose("PUBLISH", f"Uninstall: {spec.uninstall_command}")

        # 4. Authoring scope
        logger.step(4, TOTAL_STEPS, "Resolving authoring scope...")
        site = settings.get("site", {}) or {}
        scope_id = site.get("scope_id") or client.get_authoring_scope()
        logger.verbose("PUBLISH", f"Authoring scope: {scope_id}")

        # 5. Create application with its deployment type
        logger.step(5, TOTAL_STEPS, f"Creating application '{app_name}'...")
        app_settings = settings.get("application", {}) or {}
        digest = build_application_digest(
            metadata,
            spec,
            scope_id,
            language=app_settings.get("language") or "en-US",
        )
        application = client.create_application(digest)
        if application.get("CI_ID") is None:
            raise NetworkError(
                f"Application '{app_name}' was created but no CI_ID was returned"
            )
        logger.verbose("PUBLISH", f"Created CI_ID {application['CI_ID']}")

        # 6. Folder
        parts = folder_parts(app_settings.get("folder_root"), *metadata.folder_parts)
        logger.step(6, TOTAL_STEPS, f"Ensuring folder {'/'.join(parts)}...")
        folder = ensure_folder_path(client, parts)

        # 7. Move
        logger.step(7, TOTAL_STEPS, "Moving application into folder...")
        model_name = application.get("ModelName") or digest.model_name
        client.move_object(model_name, int(folder["ContainerNodeID"]))

        # 8. Confirm
        logger.step(8, TOTAL_STEPS, "Confirming application...")
        confirmed = client.get_application(app_name)
        if confirmed is None:
            raise ApplicationNotFoundError(
                f"Application '{app_name}' was not found after creation"
            )

        # 9. Distribute
        distribution = "skipped"
        if request.distribute and dp_group:
            logger.step(9, TOTAL_STEPS, f"Distributing content to '{dp_group}'...")
            package_id = confirmed.get("PackageID") or application.get("PackageID")
            if not package_id:
                raise CMPKGError(
                    f"Application '{app_name}' has no content package to distribute"
                )
            distribution = distribute_content(client, package_id, dp_group)
        else:
            logger.step(9, TOTAL_STEPS, "Skipping content distribution")
    finally:
        if owns_client:
            client.close()

    return PublishResult(
        application_name=app_name,
        manufacturer=metadata.manufacturer,
        product_name=metadata.product_name,
        version=metadata.product_version,
        product_code=metadata.product_code,
        site_code=site_code,
        ci_id=int(confirmed.get("CI_ID", application["CI_ID"])),
        folder_path=_console_path(site_code, parts),
        install_command=spec.install_command,
        uninstall_command=spec.uninstall_command,
        distribution=distribution,
        status="success",
    )

