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


"""Deployment type building for cmpkgtool.

Public API:

- build_install_command: msiexec install command line
- build_uninstall_command: msiexec uninstall command line
- build_deployment_type: Full MSI deployment type definition
- build_application_digest: Application + deployment type as SDMPackageXML
"""

from .commands import build_install_command, build_uninstall_command
from .deployment_type import DeploymentTypeSpec, build_deployment_type
from .sdm import ApplicationDigest, build_application_digest, scope_id_from_site_id

__all__ = [
    "build_install_command",
    "build_uninstall_command",
    "build_deployment_type",
    "DeploymentTypeSpec",
    "ApplicationDigest",
    "build_application_digest",
    "scope_id_from_site_id",
]
