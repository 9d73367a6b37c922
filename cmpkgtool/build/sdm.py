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


"""Application definition (SDMPackageXML) serialization.

ConfigMgr stores an application and its deployment types as one AppMgmtDigest
document in SMS_Application.SDMPackageXML. Posting a new SMS_Application with
that property is how the AdminService creates an application, so the MSI
deployment type, its command lines and its execution context all travel in
the same document.

Digest Layout:

    AppMgmtDigest
      Application           (title, publisher, version, DT reference)
      DeploymentType        (MSI technology)
        Installer
          Contents          (content location + installer file)
          DetectAction      (MSI ProductCode)
          InstallAction     (install command, execution context, exit codes)
          UninstallAction   (uninstall command)

Every object carries the site's authoring scope ("ScopeId_<site GUID>") and
a logical name; the application's ModelName is "<scope>/<logical name>".

Example:
    ```python
    digest = build_application_digest(metadata, spec, "ScopeId_1A2B...")
    client.create_application(digest)
    ```
"""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from lxml import etree

from cmpkgtool.installer import InstallerMetadata

from .deployment_type import DeploymentTypeSpec

DIGEST_NAMESPACE = (
    "http://schemas.microsoft.com/SystemCenterConfigurationManager/2009/AppMgmtDigest"
)
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
DEFAULT_LANGUAGE = "en-US"

SUCCESS_EXIT_CODES = (0, 1707)
REBOOT_EXIT_CODES = (3010,)
HARD_REBOOT_EXIT_CODES = (1641,)
FAST_RETRY_EXIT_CODES = (1618,)

# DeploymentTypeSpec.install_behavior -> ExecutionContext argument
EXECUTION_CONTEXTS = {
    "InstallForSystem": "System",
    "InstallForUser": "User",
    "InstallForSystemIfResourceIsDeviceOtherwiseInstallForUser": "Any",
}

# DeploymentTypeSpec.logon_requirement -> RequiresLogOn argument (empty = either)
LOGON_REQUIREMENTS = {
    "OnlyWhenUserLoggedOn": "true",
    "WhetherOrNotUserLoggedOn": "",
    "OnlyWhenNoUserLoggedOn": "false",
}


@dataclass(frozen=True)
class ApplicationDigest:
    """A serialized application ready to post as SDMPackageXML.

    Attributes:
        scope_id: Authoring scope, e.g. "ScopeId_1A2B3C4D-...".
        application_id: Logical name of the application.
        deployment_type_id: Logical name of the MSI deployment type.
        content_id: Identifier of the deployment type's content.
        xml: The AppMgmtDigest document.
    """

    scope_id: str
    application_id: str
    deployment_type_id: str
    content_id: str
    xml: str

    @property
    def model_name(self) -> str:
        return f"{self.scope_id}/{self.application_id}"


def scope_id_from_site_id(site_id: str) -> str:
    """Turn a site GUID ("{1A2B...}") into an authoring scope ID."""
    return "ScopeId_" + site_id.strip().strip("{}").upper()


def _logical_name(kind: str) -> str:
    return f"{kind}_{uuid.uuid4()}"


def _el(parent: etree._Element, tag: str, text: str | None = None, **attrib: str):
    node = etree.SubElement(parent, f"{{{DIGEST_NAMESPACE}}}{tag}", attrib)
    if text is not None:
        node.text = text
    return node


def _args(parent: etree._Element, args: Iterable[tuple[str, str, object]]) -> None:
    """Write an <Args> block of (name, type, value) entries."""
    node = _el(parent, "Args")
    for name, arg_type, value in args:
        arg = _el(node, "Arg", Name=name, Type=arg_type)
        if isinstance(value, tuple):
            for item in value:
                _el(arg, "Item", str(item))
        elif value is not None:
            arg.text = str(value)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _action_args(
    command: str, spec: DeploymentTypeSpec, context: str, execute_time: int
) -> list[tuple[str, str, object]]:
    """Arguments shared by the MSI install and uninstall actions."""
    return [
        ("InstallCommandLine", "String", command),
        ("WorkingDirectory", "String", None),
        ("ExecutionContext", "String", context),
        ("RequiresLogOn", "String", LOGON_REQUIREMENTS.get(spec.logon_requirement)),
        ("RequiresElevatedRights", "Boolean", "false"),
        ("RequiresUserInteraction", "Boolean", "false"),
        ("RequiresReboot", "Boolean", "false"),
        ("UserInteractionMode", "String", spec.user_interaction),
        ("PostInstallBehavior", "String", "BasedOnExitCode"),
        ("ExecuteTime", "Int32", execute_time),
        ("MaxExecuteTime", "Int32", spec.max_runtime),
        ("RunAs32Bit", "Boolean", "false"),
        ("SuccessExitCodes", "Int32[]", SUCCESS_EXIT_CODES),
        ("RebootExitCodes", "Int32[]", REBOOT_EXIT_CODES),
        ("HardRebootExitCodes", "Int32[]", HARD_REBOOT_EXIT_CODES),
        ("FastRetryExitCodes", "Int32[]", FAST_RETRY_EXIT_CODES),
    ]


def build_application_digest(
    metadata: InstallerMetadata,
    spec: DeploymentTypeSpec,
    scope_id: str,
    language: str = DEFAULT_LANGUAGE,
) -> ApplicationDigest:
    """Serialize an application with a single MSI deployment type.

    Args:
        metadata: Installer metadata (title, publisher, version).
        spec: Deployment type definition (content, commands, context).
        scope_id: Site authoring scope ("ScopeId_<site GUID>").
        language: Display language of the application. Default is "en-US".

    Returns:
        ApplicationDigest with fresh logical names and the XML document.
    """
    application_id = _logical_name("Application")
    deployment_type_id = _logical_name("DeploymentType")
    content_id = _logical_name("Content")
    resource_ids = (f"Res_{n}" for n in itertools.count(1))

    root = etree.Element(
        f"{{{DIGEST_NAMESPACE}}}AppMgmtDigest",
        nsmap={None: DIGEST_NAMESPACE, "xsi": XSI_NAMESPACE},
    )

    # Application
    app = _el(
        root,
        "Application",
        AuthoringScopeId=scope_id,
        LogicalName=application_id,
        Version="1",
    )
    info = _el(_el(app, "DisplayInfo", DefaultLanguage=language), "Info", Language=language)
    _el(info, "Title", metadata.application_name)
    _el(info, "Publisher", metadata.manufacturer)
    _el(info, "Version", metadata.product_version)
    _el(
        _el(app, "DeploymentTypes"),
        "DeploymentType",
        AuthoringScopeId=scope_id,
        LogicalName=deployment_type_id,
        Version="1",
    )
    _el(app, "Title", metadata.application_name, ResourceId=next(resource_ids))
    _el(app, "Publisher", metadata.manufacturer, ResourceId=next(resource_ids))
    _el(app, "SoftwareVersion", metadata.product_version, ResourceId=next(resource_ids))
    _el(app, "AutoInstall", "true")

    # Deployment type
    dt = _el(
        root,
        "DeploymentType",
        AuthoringScopeId=scope_id,
        LogicalName=deployment_type_id,
        Version="1",
    )
    _el(dt, "Title", spec.name, ResourceId=next(resource_ids))
    _el(dt, "DeploymentTechnology", "GLOBAL/MSIDeploymentTechnology")
    _el(dt, "Technology", "MSI")
    _el(dt, "Hosting", "Native")

    context = EXECUTION_CONTEXTS.get(spec.install_behavior, "System")
    installer = _el(dt, "Installer", Technology="MSI")
    _el(installer, "ExecuteAsUser", _bool(context == "User"))

    location = spec.content_location
    if not location.endswith("\\"):
        location += "\\"
    content = _el(_el(installer, "Contents"), "Content", ContentId=content_id, Version="1")
    _el(content, "File", Name=spec.installer_name)
    _el(content, "Location", location)
    _el(content, "PeerCache", "true")
    _el(content, "OnFastNetwork", "Download")
    _el(content, "OnSlowNetwork", "DoNothing")

    detect = _el(installer, "DetectAction")
    _el(detect, "Provider", "MSI")
    _args(detect, [("ProductCode", "String", spec.product_code)])

    install = _el(installer, "InstallAction")
    _el(install, "Provider", "MSI")
    _el(install, "Content", ContentId=content_id, Version="1")
    _args(install, _action_args(spec.install_command, spec, context, spec.estimated_runtime))

    uninstall = _el(installer, "UninstallAction")
    _el(uninstall, "Provider", "MSI")
    _args(uninstall, _action_args(spec.uninstall_command, spec, context, 0))

    custom = _el(installer, "CustomData")
    _el(custom, "DetectionMethod", "ProductCode")
    _el(custom, "InstallCommandLine", spec.install_command)
    _el(custom, "UninstallSetting", "SameAsInstall")
    _el(custom, "UninstallCommandLine", spec.uninstall_command)
    _el(custom, "ProductCode", spec.product_code)
    _el(custom, "InstallContent", ContentId=content_id, Version="1")

    xml = '<?xml version="1.0" encoding="utf-16"?>' + etree.tostring(
        root, encoding="unicode"
    )
    return ApplicationDigest(
        scope_id=scope_id,
        application_id=application_id,
        deployment_type_id=deployment_type_id,
        content_id=content_id,
        xml=xml,
    )
