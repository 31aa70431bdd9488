# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""CLI entry point for workspacekit.

Every command discovers the workspace, orders it, and streams the
manifests through one stage.

Subcommands::

    workspacekit order        Print the packages in dependency order
    workspacekit install      Link siblings and npm-install dependencies
    workspacekit uninstall    Remove node_modules and linked typings
    workspacekit compile      Run tsc for every TypeScript configuration
    workspacekit test         Run Cucumber features
    workspacekit publish      Shrinkwrap, bump and npm publish
    workspacekit run SCRIPT   Run a package.json script in every package
    workspacekit explain      Explain an error code

Usage::

    # Install 'core' and everything it depends on:
    workspacekit -p core install

    # Compile only 'core', leaving its dependencies alone:
    workspacekit -p '!core' compile

    # Preview a minor-version publish:
    workspacekit --bump-version minor --dry-run publish
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from rich_argparse import RichHelpFormatter

from workspacekit import __version__
from workspacekit.config import load_config
from workspacekit.errors import WorkspaceKitError, explain, render_error
from workspacekit.logging import configure_logging, get_logger
from workspacekit.options import CommandLineOptions, resolve_options
from workspacekit.stage import StageFactory, drain, pipe
from workspacekit.stages import (
    build_typescript,
    npm_install,
    npm_publish,
    npm_script,
    npm_uninstall,
    run_cucumber,
)
from workspacekit.workspace import ordered_package_names, workspace_packages

logger = get_logger(__name__)

_STAGES: dict[str, StageFactory] = {
    'install': npm_install,
    'uninstall': npm_uninstall,
    'compile': build_typescript,
    'test': run_cucumber,
    'publish': npm_publish,
    'run': npm_script,
}


def _command_line(args: argparse.Namespace) -> CommandLineOptions:
    return CommandLineOptions(
        package=args.package,
        verbose=args.verbose,
        version_bump=args.bump_version,
        disable_external_linking=args.no_external_links,
        dry_run=args.dry_run,
    )


async def _cmd_order(args: argparse.Namespace) -> int:
    """Handle the ``order`` subcommand."""
    root = args.root.resolve()
    options = resolve_options({'root': root}, config=load_config(root), command_line=_command_line(args))
    for name in await ordered_package_names(options):
        print(name)  # noqa: T201 - CLI output
    return 0


async def _cmd_stage(args: argparse.Namespace) -> int:
    """Handle the stage subcommands (install, compile, run, ...)."""
    root = args.root.resolve()
    config = load_config(root)
    command_line = _command_line(args)
    stage_args: tuple[Any, ...] = (args.script,) if args.command == 'run' else ()

    stage = _STAGES[args.command](*stage_args, root=root, config=config, command_line=command_line)
    items = await drain(pipe(workspace_packages(root, config=config, command_line=command_line), stage))
    logger.info('command_complete', command=args.command, packages=len(items))
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='workspacekit',
        description='Dependency-ordered build orchestration for npm workspaces.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--root',
        type=Path,
        default=Path.cwd(),
        help='Workspace root directory (default: current directory).',
    )
    parser.add_argument(
        '--package',
        '-p',
        metavar='[!]NAME',
        default=None,
        help="Focus on one package and its dependencies; prefix with '!' for that package alone.",
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Log linked packages, commands and compiler options.',
    )
    parser.add_argument(
        '--quiet',
        '-q',
        action='store_true',
        help='Only log warnings and errors.',
    )
    parser.add_argument(
        '--json-log',
        action='store_true',
        help='Log one JSON object per line.',
    )
    parser.add_argument(
        '--bump-version',
        metavar='TOKEN',
        default=None,
        help='Version bump applied on publish: major, minor, patch, pre* or an explicit X.Y.Z.',
    )
    parser.add_argument(
        '--no-external-links',
        action='store_true',
        help='Do not link packages configured in external_packages.',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Preview mode: log external commands without executing them.',
    )

    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser('order', help='Print the workspace packages in dependency order.')
    subparsers.add_parser('install', help='Link workspace siblings and npm-install dependencies.')
    subparsers.add_parser('uninstall', help='Remove node_modules and linked typings.')
    subparsers.add_parser('compile', help='Compile TypeScript packages with tsc.')
    subparsers.add_parser('test', help='Run Cucumber features.')
    subparsers.add_parser('publish', help='Shrinkwrap, bump the version and npm publish.')

    run_parser = subparsers.add_parser('run', help='Run a package.json script in every package.')
    run_parser.add_argument('script', help='Name of the script in package.json.')

    explain_parser = subparsers.add_parser('explain', help='Explain an error code.')
    explain_parser.add_argument('code', help='Error code, e.g. WK-GRAPH-CYCLE-DETECTED.')

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'order':
            return asyncio.run(_cmd_order(args))
        if command in _STAGES:
            return asyncio.run(_cmd_stage(args))
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except WorkspaceKitError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]
