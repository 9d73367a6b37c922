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

"""Exception hierarchy for cmpkgtool.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Input and settings errors (missing installer, missing
  distribution group, YAML parse failures)
- InstallerError: The MSI could not be read or lacks required properties
- NetworkError: AdminService transport or HTTP failures
- ApplicationNotFoundError: The application is missing after creation

All exceptions inherit from CMPKGError, allowing users to catch all
cmpkgtool errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from cmpkgtool.core import publish_application
        from cmpkgtool.exceptions import ConfigError, NetworkError

        try:
            result = publish_application(request)
        except ConfigError as e:
            print(f"Configuration error: {e}")
        except NetworkError as e:
            print(f"AdminService error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "CMPKGError",
    "ConfigError",
    "InstallerError",
    "NetworkError",
    "ApplicationNotFoundError",
]


class CMPKGError(Exception):
    """Base exception for all cmpkgtool errors."""

    pass


class ConfigError(CMPKGError):
    """Raised for input and configuration errors.

    This exception is raised when there are problems with:

    - The installer path (missing, not a file)
    - Distribution requested without a distribution point group
    - Missing site code or AdminService server
    - Settings file parsing (syntax errors, non-mapping documents)
    - A distribution point group name the site does not know
    """

    pass


class InstallerError(CMPKGError):
    """Raised when installer metadata cannot be extracted.

    This covers backend failures (msilib, PowerShell COM, msiinfo) and
    MSI files whose Property table lacks Manufacturer, ProductName,
    ProductVersion or ProductCode.
    """

    pass


class NetworkError(CMPKGError):
    """Raised for AdminService transport and HTTP errors.

    Attributes:
        status_code: HTTP status code when the server answered, else None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApplicationNotFoundError(CMPKGError):
    """Raised when the application cannot be found after it was created.

    Example:
        ```python
        try:
            publish_application(request)
        except ApplicationNotFoundError as e:
            print(f"Creation did not stick: {e}")
        ```
    """

    pass
