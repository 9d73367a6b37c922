"""
Tests for cmpkgtool.installer package.

Tests MSI property extraction including:
- InstallerMetadata naming and required properties
- msiinfo (msitools) backend
- PowerShell COM backend
- Backend availability and failure handling
"""

from __future__ import annotations

import subprocess
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from cmpkgtool.exceptions import InstallerError
from cmpkgtool.installer import (
    InstallerMetadata,
    read_installer_metadata,
    read_msi_properties,
)
from cmpkgtool.installer.msi import _parse_tab_separated

MSIINFO_OUTPUT = (
    "Property\tValue\n"
    "s72\tl0\n"
    "Property\tProperty\n"
    "Manufacturer\tAcme\n"
    "ProductName\tWidget\n"
    "ProductVersion\t1.0\n"
    "ProductCode\t{11111111-2222-3333-4444-555555555555}\n"
    "ARPNOMODIFY\t1\n"
)

LINUX = SimpleNamespace(platform="linux")
WINDOWS = SimpleNamespace(platform="win32")


def _completed(stdout: str) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr="")


class TestInstallerMetadata:
    """Tests for InstallerMetadata."""

    def test_application_name(self, tmp_test_dir):
        """Test that the name is Manufacturer ProductName Version."""
        meta = InstallerMetadata.from_properties(
            tmp_test_dir / "w.msi",
            {
                "Manufacturer": "Acme",
                "ProductName": "Widget",
                "ProductVersion": "1.0",
                "ProductCode": "{X}",
            },
        )

        assert meta.application_name == "Acme Widget 1.0"
        assert meta.folder_parts == ("Acme", "Widget")

    def test_values_are_stripped(self, tmp_test_dir):
        """Test that stray whitespace does not leak into names."""
        meta = InstallerMetadata.from_properties(
            tmp_test_dir / "w.msi",
            {
                "Manufacturer": " Acme ",
                "ProductName": "Widget  ",
                "ProductVersion": "1.0",
                "ProductCode": "{X}",
            },
        )

        assert meta.application_name == "Acme Widget 1.0"

    def test_missing_property_raises(self, tmp_test_dir):
        """Test that a missing required property is named in the error."""
        with pytest.raises(InstallerError, match="ProductCode"):
            InstallerMetadata.from_properties(
                tmp_test_dir / "w.msi",
                {"Manufacturer": "Acme", "ProductName": "Widget", "ProductVersion": "1"},
            )

    def test_blank_property_raises(self, tmp_test_dir, sample_properties):
        """Test that a blank required property counts as missing."""
        sample_properties["Manufacturer"] = "   "

        with pytest.raises(InstallerError, match="Manufacturer"):
            InstallerMetadata.from_properties(tmp_test_dir / "w.msi", sample_properties)

    def test_full_table_is_kept(self, sample_metadata):
        """Test that extra properties remain available."""
        assert sample_metadata.properties["ProductLanguage"] == "1033"


class TestParseTabSeparated:
    """Tests for IDT/tab-separated parsing."""

    def test_skips_idt_header(self):
        """Test that msiinfo header rows are not treated as properties."""
        props = _parse_tab_separated(MSIINFO_OUTPUT)

        assert "s72" not in props
        assert props["Manufacturer"] == "Acme"
        assert props["ARPNOMODIFY"] == "1"
        assert len(props) == 5

    def test_handles_crlf_and_tabs_in_values(self):
        """Test CRLF line endings and values containing tabs."""
        props = _parse_tab_separated("ProductName\tWidget\tPro\r\nFoo\tbar\r\n")

        assert props == {"ProductName": "Widget\tPro", "Foo": "bar"}


class TestReadMsiProperties:
    """Tests for backend selection."""

    def test_missing_file(self, tmp_test_dir):
        """Test that a missing MSI raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_msi_properties(tmp_test_dir / "missing.msi")

    def test_msiinfo_backend(self, installer_file):
        """Test extraction via msiinfo on non-Windows hosts."""
        with (
            patch("cmpkgtool.installer.msi.sys", LINUX),
            patch("cmpkgtool.installer.msi.shutil.which", return_value="/usr/bin/msiinfo"),
            patch(
                "cmpkgtool.installer.msi.subprocess.run",
                return_value=_completed(MSIINFO_OUTPUT),
            ) as mock_run,
        ):
            props = read_msi_properties(installer_file)

        assert props["ProductVersion"] == "1.0"
        cmd = mock_run.call_args[0][0]
        assert cmd == ["/usr/bin/msiinfo", "export", str(installer_file), "Property"]

    def test_msiinfo_failure(self, installer_file):
        """Test that msiinfo errors become InstallerError."""
        error = subprocess.CalledProcessError(1, ["msiinfo"], stderr="not an MSI")
        with (
            patch("cmpkgtool.installer.msi.sys", LINUX),
            patch("cmpkgtool.installer.msi.shutil.which", return_value="/usr/bin/msiinfo"),
            patch("cmpkgtool.installer.msi.subprocess.run", side_effect=error),
        ):
            with pytest.raises(InstallerError, match="not an MSI"):
                read_msi_properties(installer_file)

    def test_empty_table(self, installer_file):
        """Test that an empty Property table is an error."""
        with (
            patch("cmpkgtool.installer.msi.sys", LINUX),
            patch("cmpkgtool.installer.msi.shutil.which", return_value="/usr/bin/msiinfo"),
            patch(
                "cmpkgtool.installer.msi.subprocess.run",
                return_value=_completed("Property\tValue\ns72\tl0\nProperty\tProperty\n"),
            ),
        ):
            with pytest.raises(InstallerError, match="empty"):
                read_msi_properties(installer_file)

    def test_no_backend(self, installer_file):
        """Test that hosts without any backend raise NotImplementedError."""
        with (
            patch("cmpkgtool.installer.msi.sys", LINUX),
            patch("cmpkgtool.installer.msi.shutil.which", return_value=None),
        ):
            with pytest.raises(NotImplementedError, match="msitools"):
                read_msi_properties(installer_file)

    def test_powershell_backend(self, installer_file):
        """Test extraction via PowerShell COM when msilib is unavailable."""
        output = "Manufacturer\tAcme\nProductName\tWidget\n"
        with (
            patch("cmpkgtool.installer.msi.sys", WINDOWS),
            patch("cmpkgtool.installer.msi.msilib", None),
            patch(
                "cmpkgtool.installer.msi.subprocess.run",
                return_value=_completed(output),
            ) as mock_run,
        ):
            props = read_msi_properties(installer_file)

        assert props == {"Manufacturer": "Acme", "ProductName": "Widget"}
        assert mock_run.call_args[0][0][0] == "powershell"

    def test_powershell_output_is_utf8(self, installer_file):
        """Test that non-ASCII property values survive the PowerShell backend."""
        output = "Manufacturer\tMüller GmbH\nProductName\tGrüße\n"
        with (
            patch("cmpkgtool.installer.msi.sys", WINDOWS),
            patch("cmpkgtool.installer.msi.msilib", None),
            patch(
                "cmpkgtool.installer.msi.subprocess.run",
                return_value=_completed(output),
            ) as mock_run,
        ):
            props = read_msi_properties(installer_file)

        assert props["Manufacturer"] == "Müller GmbH"
        assert mock_run.call_args.kwargs["encoding"] == "utf-8"
        script = mock_run.call_args[0][0][-1]
        assert "[Console]::OutputEncoding = [Text.Encoding]::UTF8" in script

    def test_powershell_timeout(self, installer_file):
        """Test that a hung PowerShell query becomes InstallerError."""
        with (
            patch("cmpkgtool.installer.msi.sys", WINDOWS),
            patch("cmpkgtool.installer.msi.msilib", None),
            patch(
                "cmpkgtool.installer.msi.subprocess.run",
                side_effect=subprocess.TimeoutExpired(["powershell"], 30),
            ),
        ):
            with pytest.raises(InstallerError, match="timed out"):
                read_msi_properties(installer_file)


class TestReadInstallerMetadata:
    """Tests for read_installer_metadata."""

    def test_reads_required_properties(self, installer_file):
        """Test metadata extraction end to end through msiinfo."""
        with (
            patch("cmpkgtool.installer.msi.sys", LINUX),
            patch("cmpkgtool.installer.msi.shutil.which", return_value="/usr/bin/msiinfo"),
            patch(
                "cmpkgtool.installer.msi.subprocess.run",
                return_value=_completed(MSIINFO_OUTPUT),
            ),
        ):
            meta = read_installer_metadata(installer_file)

        assert meta.application_name == "Acme Widget 1.0"
        assert meta.product_code == "{11111111-2222-3333-4444-555555555555}"
        assert meta.path == installer_file
