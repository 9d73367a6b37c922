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

"""Content distribution to distribution point groups.

Distribution is the one step allowed to "fail" without failing the run: if
the package is already assigned to the group, the run still succeeds. This
is decided from the group's content status (SMS_DPGroupContentInfo), never
from the wording of an error message.

Outcomes:

- "started": AddPackages accepted the package
- "already_distributed": the group already holds the package, either before
  the call or after a failed call
"""

from __future__ import annotations

from typing import Any

from cmpkgtool.exceptions import ConfigError, NetworkError
from cmpkgtool.logging import get_global_logger

DISTRIBUTION_STARTED = "started"
ALREADY_DISTRIBUTED = "already_distributed"


def distribute_content(client: Any, package_id: str, group_name: str) -> str:
    """Distribute a content package to a distribution point group.

    Args:
        client: AdminServiceClient (or compatible).
        package_id: Content PackageID of the application.
        group_name: Distribution point group name.

    Returns:
        DISTRIBUTION_STARTED or ALREADY_DISTRIBUTED.

    Raises:
        ConfigError: If the group does not exist.
        NetworkError: If the distribution call fails and the group still
            does not hold the package.
    """
    logger = get_global_logger()

    group = client.get_distribution_point_group(group_name)
    if group is None:
        raise ConfigError(f"Distribution point group not found: {group_name}")
    group_id = group["GroupID"]

    if client.get_group_content(group_id, package_id):
        logger.verbose(
            "DIST", f"{package_id} is already distributed to '{group_name}', skipping"
        )
        return ALREADY_DISTRIBUTED

    try:
        client.start_distribution(group_id, package_id)
    except NetworkError as err:
        if client.get_group_content(group_id, package_id):
            logger.verbose(
                "DIST",
                f"Distribution call failed but {package_id} is already in "
                f"'{group_name}': {err}",
            )
            return ALREADY_DISTRIBUTED
        raise

    logger.verbose("DIST", f"Distribution of {package_id} to '{group_name}' started")
    return DISTRIBUTION_STARTED
