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

"""msiexec command line generation.

Install commands reference the installer by file name because ConfigMgr runs
them from the downloaded content directory. A transform is likewise given
relative to the installer.

Example:
    ```python
    build_install_command("widget.msi", transform="corp.mst", extra_args="ALLUSERS=1")
    # 'msiexec /i "widget.msi" TRANSFORMS="corp.mst" ALLUSERS=1 /qn /norestart'

    build_uninstall_command("{11111111-2222-3333-4444-555555555555}")
    # 'msiexec /x {11111111-2222-3333-4444-555555555555} /qn /norestart'
    ```
"""

from __future__ import annotations

DEFAULT_MSIEXEC_ARGS = "/qn /norestart"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def build_install_command(
    installer_name: str,
    transform: str | None = None,
    extra_args: str | None = None,
    base_args: str = DEFAULT_MSIEXEC_ARGS,
) -> str:
    """Build the msiexec install command line.

    Args:
        installer_name: MSI file name (relative to the content directory).
        transform: Transform path relative to the installer. Blank means none.
        extra_args: Additional public properties or switches. Blank means none.
        base_args: Trailing msiexec switches. Default is "/qn /norestart".

    Returns:
        The complete install command line.
    """
    parts = ["msiexec", "/i", f'"{installer_name}"']
    transform = _clean(transform)
    if transform:
        parts.append(f'TRANSFORMS="{transform}"')
    extra_args = _clean(extra_args)
    if extra_args:
        parts.append(extra_args)
    base_args = _clean(base_args)
    if base_args:
        parts.append(base_args)
    return " ".join(parts)


def build_uninstall_command(
    product_code: str, base_args: str = DEFAULT_MSIEXEC_ARGS
) -> str:
    """Build the msiexec uninstall command line for a product code."""
    parts = ["msiexec", "/x", product_code.strip()]
    base_args = _clean(base_args)
    if base_args:
        parts.append(base_args)
    return " ".join(parts)
