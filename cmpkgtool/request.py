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

"""Publish request type.

A PublishRequest carries what the operator asked for on one run. Settings
(server, folder root, msiexec switches) live in the loaded configuration;
the request only holds per-run inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath


@dataclass(frozen=True)
class PublishRequest:
    """Inputs for a single publish run.

    Attributes:
        installer_path: Path to the MSI, usually on a UNC share.
        transform: Optional transform path relative to the installer.
        install_args: Optional extra arguments for the install command.
        site_code: ConfigMgr site code. None falls back to settings.
        distribute: If True, distribute content after creation.
        dp_group: Distribution point group name. None falls back to settings.
    """

    installer_path: Path
    transform: str | None = None
    install_args: str | None = None
    site_code: str | None = None
    distribute: bool = False
    dp_group: str | None = None


def installer_pure_path(path: str | Path) -> PurePath:
    """Return a pure path that splits the installer location correctly.

    UNC and drive paths use Windows semantics even when the tool runs on a
    POSIX host.
    """
    raw = str(path)
    if "\\" in raw:
        return PureWindowsPath(raw)
    return PurePosixPath(raw)
