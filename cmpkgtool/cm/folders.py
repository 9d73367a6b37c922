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

"""Console folder placement for applications."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from cmpkgtool.exceptions import NetworkError
from cmpkgtool.logging import get_global_logger

from .client import ROOT_CONTAINER_ID


def folder_parts(*segments: str | None) -> list[str]:
    """Flatten folder segments, splitting on "/" or "\\" and dropping blanks."""
    parts: list[str] = []
    for segment in segments:
        if not segment:
            continue
        for part in segment.replace("\\", "/").split("/"):
            part = part.strip()
            if part:
                parts.append(part)
    return parts


def ensure_folder_path(
    client: Any, parts: Iterable[str], root_id: int = ROOT_CONTAINER_ID
) -> dict[str, Any]:
    """Make sure every folder in 'parts' exists, creating only missing ones.

    Args:
        client: AdminServiceClient (or compatible).
        parts: Folder names from the Applications node downward.
        root_id: ContainerNodeID to start from. Default is the root node.

    Returns:
        The deepest folder record. Must contain "ContainerNodeID".

    Raises:
        NetworkError: If a created folder comes back without an ID.
    """
    logger = get_global_logger()
    parent_id = root_id
    folder: dict[str, Any] = {"ContainerNodeID": root_id, "Name": ""}
    path: list[str] = []

    for name in parts:
        path.append(name)
        existing = client.get_folder(name, parent_id)
        if existing is not None:
            logger.verbose("FOLDER", f"Exists: {'/'.join(path)}")
            folder = existing
        else:
            logger.verbose("FOLDER", f"Creating: {'/'.join(path)}")
            folder = client.create_folder(name, parent_id)
            if folder.get("ContainerNodeID") is None:
                raise NetworkError(
                    f"Folder '{'/'.join(path)}' was created but no "
                    "ContainerNodeID was returned"
                )
        parent_id = int(folder["ContainerNodeID"])

    return folder
