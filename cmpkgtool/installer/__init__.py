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

"""Installer inspection for cmpkgtool.

Public API:

- read_installer_metadata: Read an MSI and return InstallerMetadata
- read_msi_properties: Read the raw MSI Property table
- InstallerMetadata: Immutable installer metadata
"""

from .metadata import REQUIRED_PROPERTIES, InstallerMetadata
from .msi import read_installer_metadata, read_msi_properties

__all__ = [
    "InstallerMetadata",
    "REQUIRED_PROPERTIES",
    "read_installer_metadata",
    "read_msi_properties",
]
