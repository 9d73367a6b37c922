"""
Tests for cmpkgtool.cm folder and distribution helpers.

Tests:
- Folder path splitting
- Idempotent folder creation
- Distribution outcomes decided from group content status
"""

from __future__ import annotations

import pytest

from cmpkgtool.cm import (
    ALREADY_DISTRIBUTED,
    DISTRIBUTION_STARTED,
    distribute_content,
    ensure_folder_path,
    folder_parts,
)
from cmpkgtool.exceptions import ConfigError, NetworkError


class TestFolderParts:
    """Tests for folder_parts."""

    def test_joins_segments(self):
        assert folder_parts("Packaged/MSI", "Acme", "Widget") == [
            "Packaged",
            "MSI",
            "Acme",
            "Widget",
        ]

    def test_backslashes_and_blanks(self):
        """Test that console-style separators and empty parts are handled."""
        assert folder_parts(None, "\\Packaged\\ ", "", "Acme") == ["Packaged", "Acme"]


class TestEnsureFolderPath:
    """Tests for ensure_folder_path."""

    def test_creates_missing_levels(self, fake_client):
        """Test that each missing level is created under its parent."""
        folder = ensure_folder_path(fake_client, ["Acme", "Widget"])

        assert folder["Name"] == "Widget"
        assert folder["ParentContainerNodeID"] == 100
        assert ("create_folder", ("Acme", 0)) in fake_client.calls
        assert ("create_folder", ("Widget", 100)) in fake_client.calls

    def test_reuses_existing_levels(self, fake_client):
        """Test that an existing manufacturer folder is reused."""
        fake_client.folders[("Acme", 0)] = {"ContainerNodeID": 7, "Name": "Acme"}

        folder = ensure_folder_path(fake_client, ["Acme", "Widget"])

        assert fake_client.operations().count("create_folder") == 1
        assert ("create_folder", ("Widget", 7)) in fake_client.calls
        assert folder["ContainerNodeID"] == 100

    def test_second_run_creates_nothing(self, fake_client):
        """Test idempotency across two runs."""
        first = ensure_folder_path(fake_client, ["Acme", "Widget"])
        fake_client.calls.clear()

        second = ensure_folder_path(fake_client, ["Acme", "Widget"])

        assert second == first
        assert "create_folder" not in fake_client.operations()

    def test_empty_path_is_root(self, fake_client):
        """Test that no parts resolves to the root node."""
        assert ensure_folder_path(fake_client, [])["ContainerNodeID"] == 0
        assert fake_client.calls == []

    def test_created_folder_without_id(self, fake_client):
        """Test that a create without ContainerNodeID is an error."""
        fake_client.create_folder = lambda name, parent_id=0: {"Name": name}

        with pytest.raises(NetworkError, match="ContainerNodeID"):
            ensure_folder_path(fake_client, ["Acme"])


class TestDistributeContent:
    """Tests for distribute_content."""

    def test_started(self, fake_client):
        result = distribute_content(fake_client, "PS100042", "All DPs")

        assert result == DISTRIBUTION_STARTED
        assert ("{AAAA-0001}", "PS100042") in fake_client.group_content

    def test_already_present_skips_call(self, fake_client):
        """Test that content already in the group is not redistributed."""
        fake_client.group_content.add(("{AAAA-0001}", "PS100042"))

        result = distribute_content(fake_client, "PS100042", "All DPs")

        assert result == ALREADY_DISTRIBUTED
        assert "start_distribution" not in fake_client.operations()

    def test_failure_with_content_present(self, fake_client):
        """Test that a failed call is tolerated when the package landed."""
        fake_client.distribution_error = NetworkError("HTTP 500", status_code=500)
        fake_client.distribute_lands_anyway = True

        assert distribute_content(fake_client, "PS100042", "All DPs") == (
            ALREADY_DISTRIBUTED
        )
        assert fake_client.operations().count("get_group_content") == 2

    def test_failure_propagates(self, fake_client):
        """Test that other failures are raised unchanged."""
        error = NetworkError("HTTP 403", status_code=403)
        fake_client.distribution_error = error

        with pytest.raises(NetworkError) as exc:
            distribute_content(fake_client, "PS100042", "All DPs")

        assert exc.value is error

    def test_unknown_group(self, fake_client):
        """Test that an unknown group is a configuration error."""
        with pytest.raises(ConfigError, match="Pilot DPs"):
            distribute_content(fake_client, "PS100042", "Pilot DPs")

        assert "start_distribution" not in fake_client.operations()
