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

"""Installer metadata model.

InstallerMetadata is the immutable view of an MSI's Property table that the
rest of the tool works from. The application name, folder path and uninstall
command are all derived from it.

Example:
    ```python
    meta = InstallerMetadata.from_properties(
        Path(r"\\\\fs01\\apps\\Acme\\widget.msi"),
        {
            "Manufacturer": "Acme",
            "ProductName": "Widget",
            "ProductVersion": "1.0",
            "ProductCode": "{11111111-2222-3333-4444-555555555555}",
        },
    )
    meta.application_name  # "Acme Widget 1.0"
    ```
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from cmpkgtool.exceptions import InstallerError

# Properties every MSI must carry for the tool to create an application.
REQUIRED_PROPERTIES = ("Manufacturer", "ProductName", "ProductVersion", "ProductCode")


@dataclass(frozen=True)
class InstallerMetadata:
    """Metadata read from an installer's Property table.

    Attributes:
        path: Path to the installer file.
        manufacturer: Manufacturer property.
        product_name: ProductName property.
        product_version: ProductVersion property.
        product_code: ProductCode property (a braced GUID).
        properties: The full Property table as read from the file.
    """

    path: Path
    manufacturer: str
    product_name: str
    product_version: str
    product_code: str
    properties: Mapping[str, str] = field(default_factory=dict, compare=False)

    @property
    def application_name(self) -> str:
        """Name of the application record: "Manufacturer ProductName Version"."""
        parts = (self.manufacturer, self.product_name, self.product_version)
        return " ".join(p.strip() for p in parts if p.strip())

    @property
    def folder_parts(self) -> tuple[str, str]:
        """Two-level console folder path for this product."""
        return (self.manufacturer.strip(), self.product_name.strip())

    @classmethod
    def from_properties(
        cls, path: Path, properties: Mapping[str, str]
    ) -> InstallerMetadata:
        """Build metadata from a Property table mapping.

        Raises:
            InstallerError: If any required property is missing or blank.
        """
        missing = [
            name for name in REQUIRED_PROPERTIES if not properties.get(name, "").strip()
        ]
        if missing:
            raise InstallerError(
                f"Installer {Path(path).name} is missing required "
                f"propert{'y' if len(missing) == 1 else 'ies'}: {', '.join(missing)}"
            )

        return cls(
            path=Path(path),
            manufacturer=properties["Manufacturer"].strip(),
            product_name=properties["ProductName"].strip(),
            product_version=properties["ProductVersion"].strip(),
            product_code=properties["ProductCode"].strip(),
            properties=dict(properties),
        )
