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

"""ConfigMgr management API access.

Public API:

- AdminServiceClient: REST client for the AdminService WMI route
- ensure_folder_path: Idempotent console folder creation
- distribute_content: Distribution with "already distributed" tolerance
"""

from .client import (
    APPLICATION_OBJECT_TYPE,
    ROOT_CONTAINER_ID,
    AdminServiceClient,
    make_session,
    odata_quote,
)
from .distribution import ALREADY_DISTRIBUTED, DISTRIBUTION_STARTED, distribute_content
from .folders import ensure_folder_path, folder_parts

__all__ = [
    "APPLICATION_OBJECT_TYPE",
    "ROOT_CONTAINER_ID",
    "AdminServiceClient",
    "make_session",
    "odata_quote",
    "ALREADY_DISTRIBUTED",
    "DISTRIBUTION_STARTED",
    "distribute_content",
    "ensure_folder_path",
    "folder_parts",
]
