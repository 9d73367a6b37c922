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

"""Command-line interface for cmpkgtool.

This module provides the main CLI entry point for the cmpkg tool.

Commands:

    publish: Create an application from an MSI and optionally distribute it
    inspect: Show what publish would create, without contacting the site
    validate: Check publish inputs without reading the MSI or contacting the site

Example:
    Publish with a transform and distribute:
        ```bash
        $ cmpkg publish \\\\fs01\\apps\\Acme\\widget.msi --transform corp.mst \\
            --site-code PS1 --distribute --dp-group "All DPs"
        ```

    Preview the generated commands:
        ```bash
        $ cmpkg inspect ./widget.msi --install-args "ALLUSERS=1"
        ```

Exit Codes:

- 0: Success
- 1: Error (invalid input, installer, or AdminService failure)

Note:
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode and dumps settings and API calls.
"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys
import traceback

from cmpkgtool.config import apply_cli_overrides, load_settings
from cmpkgtool.core import inspect_installer, publish_application
from cmpkgtool.exceptions import CMPKGError
from cmpkgtool.logging import get_logger, set_global_logger
from cmpkgtool.request import PublishRequest
from cmpkgtool.validation import validate_request


def _tool_version() -> str:
    try:
        return version("cmpkgtool")
    except PackageNotFoundError:
        from cmpkgtool import __version__

        return __version__


def _settings_from_args(args: argparse.Namespace) -> dict:
    settings = load_settings(Path(args.config) if args.config else None)
    return apply_cli_overrides(
        settings,
        site_code=getattr(args, "site_code", None),
        server=getattr(args, "server", None),
        dp_group=getattr(args, "dp_group", None),
    )


def _request_from_args(args: argparse.Namespace) -> PublishRequest:
    return PublishRequest(
        installer_path=Path(args.installer),
        transform=args.transform,
        install_args=args.install_args,
        site_code=args.site_code,
        distribute=args.distribute,
        dp_group=args.dp_group,
    )


def _report_error(err: Exception, args: argparse.Namespace) -> int:
    print(f"Error: {err}")
    if args.verbose or args.debug:
        traceback.print_exc()
    return 1


def cmd_publish(args: argparse.Namespace) -> int:
    """Handler for 'cmpkg publish' command.

    Validates inputs, reads the MSI, creates the application and deployment
    type, files it under Manufacturer/Product, confirms it and optionally
    distributes content.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    installer = Path(args.installer)
    print(f"Publishing installer: {installer}")
    print()

    try:
        settings = _settings_from_args(args)
        result = publish_application(_request_from_args(args), settings)
    except (CMPKGError, FileNotFoundError, NotImplementedError) as err:
        return _report_error(err, args)

    print()
    print("=" * 70)
    print("PUBLISH RESULTS")
    print("=" * 70)
    print(f"Application:     {result.application_name}")
    print(f"CI_ID:           {result.ci_id}")
    print(f"Product Code:    {result.product_code}")
    print(f"Folder:          {result.folder_path}")
    print(f"Install:         {result.install_command}")
    print(f"Uninstall:       {result.uninstall_command}")
    print(f"Distribution:    {result.distribution}")
    print(f"Status:          {result.status}")
    print("=" * 70)
    print()
    if result.distribution == "already_distributed":
        print("[WARNING] Content was already distributed to the group.")
    print("[SUCCESS] Application published successfully!")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Handler for 'cmpkg inspect' command.

    Reads the MSI and prints the application name, folder and command lines
    that 'publish' would use. Makes no AdminService calls.
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    try:
        settings = load_settings(Path(args.config) if args.config else None)
        result = inspect_installer(
            Path(args.installer),
            transform=args.transform,
            install_args=args.install_args,
            settings=settings,
        )
    except (CMPKGError, FileNotFoundError, NotImplementedError) as err:
        return _report_error(err, args)

    print("=" * 70)
    print("INSTALLER")
    print("=" * 70)
    print(f"Application:     {result.application_name}")
    print(f"Manufacturer:    {result.manufacturer}")
    print(f"Product:         {result.product_name}")
    print(f"Version:         {result.version}")
    print(f"Product Code:    {result.product_code}")
    print(f"Folder:          {result.folder_path}")
    print(f"Content:         {result.content_location}")
    print(f"Install:         {result.install_command}")
    print(f"Uninstall:       {result.uninstall_command}")
    print("=" * 70)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'cmpkg validate' command.

    Runs the publish pre-flight checks only.

    Returns:
        Exit code (0 for valid inputs, 1 for invalid).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    try:
        settings = _settings_from_args(args)
    except CMPKGError as err:
        return _report_error(err, args)

    result = validate_request(_request_from_args(args), settings)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Installer:   {result.installer_path}")
    print(f"Status:      {result.status.upper()}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Inputs are valid!")
        return 0
    print()
    print(f"[FAILED] Validation failed with {len(result.errors)} error(s).")
    return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "installer",
        help="Path to the MSI installer (usually a UNC share path)",
    )
    parser.add_argument(
        "--transform",
        default=None,
        help="Transform (.mst) path relative to the installer",
    )
    parser.add_argument(
        "--install-args",
        default=None,
        help="Extra arguments appended to the install command",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Settings file (default: cmpkg.yaml found from the working directory up)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _add_site_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--site-code",
        default=None,
        help="ConfigMgr site code (default: site.code from settings)",
    )
    parser.add_argument(
        "--server",
        default=None,
        help="AdminService host (default: site.server from settings)",
    )
    parser.add_argument(
        "--distribute",
        action="store_true",
        help="Distribute content to a distribution point group after creation",
    )
    parser.add_argument(
        "--dp-group",
        default=None,
        help="Distribution point group name (default: distribution.group)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmpkg",
        description="cmpkg - publish MSI applications to ConfigMgr",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cmpkg {_tool_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    parser_publish = subparsers.add_parser(
        "publish",
        help="Create an application from an MSI",
        description=(
            "Create an application and MSI deployment type, file it under "
            "Manufacturer/Product and optionally distribute its content."
        ),
    )
    _add_common_arguments(parser_publish)
    _add_site_arguments(parser_publish)
    parser_publish.set_defaults(func=cmd_publish)

    parser_inspect = subparsers.add_parser(
        "inspect",
        help="Show what publish would create (no site calls)",
        description="Read the MSI and print the derived name, folder and commands.",
    )
    _add_common_arguments(parser_inspect)
    parser_inspect.set_defaults(func=cmd_inspect)

    parser_validate = subparsers.add_parser(
        "validate",
        help="Check publish inputs (no MSI read, no site calls)",
        description="Run the publish pre-flight checks and report errors and warnings.",
    )
    _add_common_arguments(parser_validate)
    _add_site_arguments(parser_validate)
    parser_validate.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the cmpkg CLI.

    This function is registered as the 'cmpkg' console script in pyproject.toml.
    """
    args = build_parser().parse_args(argv)
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
