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

"""Settings loading for cmpkgtool.

Settings are layered: built-in defaults, then an optional cmpkg.yaml, then
environment overrides. Dicts merge recursively; lists and scalars are
replaced (last wins).

Public API:

- load_settings: Load and merge the effective settings
- apply_cli_overrides: Layer command-line values on top

Example:
    Basic usage:

        from pathlib import Path
        from cmpkgtool.config import load_settings

        settings = load_settings(Path("cmpkg.yaml"))
        print(settings["site"]["code"])  # "PS1"

"""

from .loader import DEFAULT_SETTINGS, apply_cli_overrides, load_settings

__all__ = ["DEFAULT_SETTINGS", "apply_cli_overrides", "load_settings"]
