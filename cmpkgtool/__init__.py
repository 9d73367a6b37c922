"""
cmpkgtool - ConfigMgr application packaging from MSI metadata

A Python-based CLI tool that turns a Windows Installer package on a content
share into a ready-to-deploy Configuration Manager application.

cmpkgtool provides:
  - MSI Property table extraction (msilib, PowerShell COM, or msitools)
  - Application naming from Manufacturer, ProductName and ProductVersion
  - MSI deployment type with generated install/uninstall commands
  - Manufacturer/Product console folders, created on demand
  - Optional content distribution to a distribution point group

Quick Start
-----------
Preview what would be created:

    $ cmpkg inspect \\\\fs01\\apps\\Acme\\widget.msi

Publish and distribute:

    $ cmpkg publish \\\\fs01\\apps\\Acme\\widget.msi --site-code PS1 \\
        --distribute --dp-group "All DPs"

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    Publish and inspect orchestration.
validation : module
    Pre-flight input checks.
installer : package
    MSI property extraction and InstallerMetadata.
build : package
    msiexec command lines and deployment type definition.
cm : package
    AdminService client, folders and distribution.
config : package
    Layered YAML settings.

Public API
----------
    from cmpkgtool.core import publish_application, inspect_installer
    from cmpkgtool.request import PublishRequest
    from cmpkgtool.config import load_settings
    from cmpkgtool.installer import read_installer_metadata

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "cmpkg - ConfigMgr application packaging from MSI metadata"

from cmpkgtool.config import load_settings
from cmpkgtool.core import inspect_installer, publish_application
from cmpkgtool.installer import InstallerMetadata, read_installer_metadata
from cmpkgtool.request import PublishRequest

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "publish_application",
    "inspect_installer",
    "load_settings",
    "read_installer_metadata",
    "InstallerMetadata",
    "PublishRequest",
]
