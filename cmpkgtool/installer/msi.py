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

"""MSI Property table extraction for cmpkgtool.

This module reads the Property table of a Windows Installer (MSI) database
and turns it into InstallerMetadata. It tries multiple backends in order of
preference so the tool works both on a ConfigMgr admin workstation and on a
Linux build agent.

Backend Priority:

On Windows:

1. msilib (Python standard library, removed in Python 3.13)
2. PowerShell COM (WindowsInstaller.Installer, always available)

On Linux/macOS:

1. msiinfo (from msitools package, must be installed separately)

Installation Requirements:

Linux/macOS:

- Install msitools package:
    - Debian/Ubuntu: `sudo apt-get install msitools`
    - RHEL/Fedora: `sudo dnf install msitools`
    - macOS: `brew install msitools`

Example:
    Read installer metadata:

        from cmpkgtool.installer.msi import read_installer_metadata

        meta = read_installer_metadata(r"\\\\fs01\\apps\\7-Zip\\7z2408-x64.msi")
        print(meta.application_name)
        # Igor Pavlov 7-Zip 24.08 (x64 edition) 24.08.00.0

Note:
    This is pure file introspection; no network calls are made beyond
    reading the file from its share. Errors are chained for debugging
    (check the 'from err' clause).
"""

from __future__ import annotations

from pathlib import Path
import shutil
import subprocess
import sys

try:
    import msilib  # type: ignore  # Windows-only standard library module
except ImportError:
    msilib = None  # type: ignore

from cmpkgtool.exceptions import InstallerError
from cmpkgtool.logging import get_global_logger

from .metadata import InstallerMetadata

PROPERTY_QUERY = "SELECT `Property`, `Value` FROM `Property`"


def _parse_tab_separated(output: str) -> dict[str, str]:
    """Parse "Property<TAB>Value" lines into a mapping.

    msiinfo prints the IDT header (column names, column types, table name)
    ahead of the rows; those lines are skipped.
    """
    properties: dict[str, str] = {}
    for index, line in enumerate(output.splitlines()):
        parts = line.rstrip("\r").split("\t", 1)
        if len(parts) != 2:
            continue
        name, value = parts
        if index < 3 and name in ("Property", "s72"):
            continue
        properties[name.strip()] = value
    return properties


def _read_with_msilib(p: Path) -> dict[str, str]:
    db = msilib.OpenDatabase(str(p), msilib.MSIDBOPEN_READONLY)
    try:
        view = db.OpenView(PROPERTY_QUERY)
        view.Execute(None)
        properties: dict[str, str] = {}
        while True:
            try:
                rec = view.Fetch()
            except msilib.MSIError:
                break
            if rec is None:
                break
            properties[rec.GetString(1)] = rec.GetString(2)
        view.Close()
        return properties
    finally:
        db.Close()


def _read_with_powershell(p: Path) -> dict[str, str]:
    literal = str(p).replace("'", "''")
    ps_script = f"""
[Console]::OutputEncoding = [Text.Encoding]::UTF8
$installer = New-Object -ComObject WindowsInstaller.Installer
$db = $installer.GetType().InvokeMember('OpenDatabase', 'InvokeMethod', $null, $installer, @('{literal}', 0))
$view = $db.GetType().InvokeMember('OpenView', 'InvokeMethod', $null, $db, @('SELECT Property, Value FROM Property'))
$view.GetType().InvokeMember('Execute', 'InvokeMethod', $null, $view, $null)
while ($record = $view.GetType().InvokeMember('Fetch', 'InvokeMethod', $null, $view, $null)) {{
    $name = $record.GetType().InvokeMember('StringData', 'GetProperty', $null, $record, 1)
    $value = $record.GetType().InvokeMember('StringData', 'GetProperty', $null, $record, 2)
    Write-Output "$name`t$value"
}}
$view.GetType().InvokeMember('Close', 'InvokeMethod', $null, $view, $null)
"""
    result = subprocess.run(
        ["powershell", "-NoProfile", "-NonInteractive", "-Command", ps_script],
        check=True,
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=30,
    )
    return _parse_tab_separated(result.stdout)


def _read_with_msiinfo(msiinfo: str, p: Path) -> dict[str, str]:
    # msiinfo export <package> Property -> stdout (IDT format, tab-separated)
    result = subprocess.run(
        [msiinfo, "export", str(p), "Property"],
        check=True,
        capture_output=True,
        text=True,
        encoding="utf-8",
    )
    return _parse_tab_separated(result.stdout)


def read_msi_properties(file_path: str | Path) -> dict[str, str]:
    """Read the complete Property table of an MSI file.

    Args:
        file_path: Path to the MSI file.

    Returns:
        Mapping of property name to value.

    Raises:
        FileNotFoundError: If the MSI file doesn't exist.
        InstallerError: If the backend fails or the table is empty.
        NotImplementedError: If no extraction backend is available on this system.
    """
    logger = get_global_logger()
    p = Path(file_path)
    if not p.exists():
        raise FileNotFoundError(f"MSI not found: {p}")

    logger.verbose("MSI", f"Reading Property table from: {p.name}")

    properties: dict[str, str] | None = None

    if sys.platform.startswith("win") and msilib is not None:
        logger.debug("MSI", "Trying backend: msilib...")
        try:
            properties = _read_with_msilib(p)
        except Exception as err:
            raise InstallerError(
                f"failed to read MSI Property table via msilib: {err}"
            ) from err
        backend = "msilib"

    elif sys.platform.startswith("win"):
        logger.debug("MSI", "Trying backend: PowerShell COM...")
        try:
            properties = _read_with_powershell(p)
        except subprocess.CalledProcessError as err:
            detail = (err.stderr or "").strip()
            raise InstallerError(
                f"PowerShell MSI query failed (exit code {err.returncode})"
                + (f": {detail}" if detail else "")
            ) from err
        except subprocess.TimeoutExpired as err:
            raise InstallerError("PowerShell MSI query timed out") from err
        backend = "PowerShell COM"

    else:
        msiinfo = shutil.which("msiinfo")
        if not msiinfo:
            logger.debug("MSI", "No MSI extraction backend available on this system")
            raise NotImplementedError(
                "MSI property extraction is not available on this host. "
                "On Windows, ensure PowerShell is available. "
                "On Linux/macOS, install 'msitools'."
            )
        logger.debug("MSI", "Trying backend: msiinfo (msitools)...")
        try:
            properties = _read_with_msiinfo(msiinfo, p)
        except subprocess.CalledProcessError as err:
            detail = (err.stderr or "").strip()
            raise InstallerError(
                f"msiinfo failed (exit code {err.returncode})"
                + (f": {detail}" if detail else "")
            ) from err
        backend = "msiinfo"

    if not properties:
        raise InstallerError(f"Property table is empty or unreadable: {p.name}")

    logger.verbose("MSI", f"Read {len(properties)} properties (via {backend})")
    return properties


def read_installer_metadata(file_path: str | Path) -> InstallerMetadata:
    """Extract Manufacturer, ProductName, ProductVersion and ProductCode.

    Args:
        file_path: Path to the MSI file.

    Returns:
        Immutable metadata for the installer.

    Raises:
        FileNotFoundError: If the MSI file doesn't exist.
        InstallerError: If the table cannot be read or a required
            property is missing.
        NotImplementedError: If no extraction backend is available.
    """
    logger = get_global_logger()
    p = Path(file_path)
    properties = read_msi_properties(p)
    metadata = InstallerMetadata.from_properties(p, properties)

    logger.verbose("MSI", f"Manufacturer:   {metadata.manufacturer}")
    logger.verbose("MSI", f"ProductName:    {metadata.product_name}")
    logger.verbose("MSI", f"ProductVersion: {metadata.product_version}")
    logger.verbose("MSI", f"ProductCode:    {metadata.product_code}")
    return metadata
