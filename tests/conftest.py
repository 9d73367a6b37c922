"""
Pytest configuration and shared fixtures for cmpkgtool tests.

This module provides reusable fixtures and test utilities used across
the test suite, including a recording stand-in for the AdminService client.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml
from lxml import etree

from cmpkgtool.config import DEFAULT_SETTINGS
from cmpkgtool.exceptions import NetworkError
from cmpkgtool.installer import InstallerMetadata
from cmpkgtool.logging import SilentLogger, set_global_logger

PRODUCT_CODE = "{11111111-2222-3333-4444-555555555555}"
DIGEST_NS = {
    "d": "http://schemas.microsoft.com/SystemCenterConfigurationManager/2009/AppMgmtDigest"
}


def _title(xml: str) -> str:
    root = etree.fromstring(xml.split("?>", 1)[1].encode("utf-8"))
    return root.findtext("d:Application/d:Title", namespaces=DIGEST_NS)


class FakeAdminService:
    """Records every call and answers from in-memory state.

    Attributes:
        calls: (operation, args) tuples in call order.
        folders: {(name, parent_id): record} of existing folders.
        digests: ApplicationDigest objects passed to create_application.
        applications: {name: record} returned by get_application.
        groups: {name: record} of distribution point groups.
        group_content: set of (group_id, package_id) already distributed.
        distribution_error: NetworkError raised by start_distribution.
        distribute_lands_anyway: If True, a failed start_distribution still
            records the package as present in the group.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.digests: list[Any] = []
        self.folders: dict[tuple[str, int], dict[str, Any]] = {}
        self.applications: dict[str, dict[str, Any]] = {}
        self.groups: dict[str, dict[str, Any]] = {
            "All DPs": {"GroupID": "{AAAA-0001}", "Name": "All DPs"}
        }
        self.group_content: set[tuple[str, str]] = set()
        self.distribution_error: NetworkError | None = None
        self.distribute_lands_anyway = False
        self.register_created_application = True
        self.closed = False
        self._next_folder_id = 100

    def operations(self) -> list[str]:
        return [name for name, _ in self.calls]

    def get_authoring_scope(self):
        self.calls.append(("get_authoring_scope", ()))
        return "ScopeId_ABC"

    def create_application(self, digest):
        self.calls.append(("create_application", (digest.application_id,)))
        self.digests.append(digest)
        name = _title(digest.xml)
        record = {
            "CI_ID": 16777217,
            "ModelName": digest.model_name,
            "LocalizedDisplayName": name,
            "PackageID": "PS100042",
        }
        if self.register_created_application:
            self.applications[name] = record
        return record

    def get_folder(self, name, parent_id=0):
        self.calls.append(("get_folder", (name, parent_id)))
        return self.folders.get((name, parent_id))

    def create_folder(self, name, parent_id=0):
        self.calls.append(("create_folder", (name, parent_id)))
        record = {
            "ContainerNodeID": self._next_folder_id,
            "Name": name,
            "ParentContainerNodeID": parent_id,
        }
        self._next_folder_id += 1
        self.folders[(name, parent_id)] = record
        return record

    def move_object(self, model_name, target_id, source_id=0):
        self.calls.append(("move_object", (model_name, target_id, source_id)))

    def get_application(self, name):
        self.calls.append(("get_application", (name,)))
        return self.applications.get(name)

    def get_distribution_point_group(self, name):
        self.calls.append(("get_distribution_point_group", (name,)))
        return self.groups.get(name)

    def get_group_content(self, group_id, package_id):
        self.calls.append(("get_group_content", (group_id, package_id)))
        if (group_id, package_id) in self.group_content:
            return [{"GroupID": group_id, "PackageID": package_id}]
        return []

    def start_distribution(self, group_id, package_id):
        self.calls.append(("start_distribution", (group_id, package_id)))
        if self.distribution_error is not None:
            if self.distribute_lands_anyway:
                self.group_content.add((group_id, package_id))
            raise self.distribution_error
        self.group_content.add((group_id, package_id))

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_global_logger():
    """Keep the global logger silent between tests."""
    yield
    set_global_logger(SilentLogger())


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove CMPKG_* variables so host settings never leak into tests."""
    for var in ("CMPKG_SITE_CODE", "CMPKG_SERVER", "CMPKG_USERNAME", "CMPKG_PASSWORD"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def installer_file(tmp_test_dir: Path) -> Path:
    """Provide an installer file on disk (content is never parsed)."""
    path = tmp_test_dir / "apps" / "Acme" / "widget.msi"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"not really an msi")
    return path


@pytest.fixture
def sample_properties() -> dict[str, str]:
    """Provide a Property table for a small product."""
    return {
        "Manufacturer": "Acme",
        "ProductName": "Widget",
        "ProductVersion": "1.0",
        "ProductCode": PRODUCT_CODE,
        "ProductLanguage": "1033",
        "UpgradeCode": "{99999999-8888-7777-6666-555555555555}",
    }


@pytest.fixture
def sample_metadata(installer_file: Path, sample_properties) -> InstallerMetadata:
    """Provide InstallerMetadata for the sample installer."""
    return InstallerMetadata.from_properties(installer_file, sample_properties)


@pytest.fixture
def sample_settings() -> dict[str, Any]:
    """Provide effective settings with a site configured."""
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    settings["site"]["code"] = "PS1"
    settings["site"]["server"] = "cm01.corp.example.com"
    return settings


@pytest.fixture
def fake_client() -> FakeAdminService:
    """Provide a recording AdminService stand-in."""
    return FakeAdminService()


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("cmpkg.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create
