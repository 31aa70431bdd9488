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

"""Structured logging for workspacekit.

Events go through `structlog <https://www.structlog.org/>`_ into the
standard library root logger on stderr, so stdout stays free for
command output (``workspacekit order | xargs ...``).

Console lines carry a short clock and the package being processed::

    [14:02:11] [core:install] linked          dependency=util
    [14:02:13] [app:compile]  compiling       configurations=2

``--json-log`` keeps ``package`` and ``stage`` as ordinary keys and
stamps events with ISO timestamps instead.

Usage::

    from workspacekit.logging import configure_logging, get_logger, package_scope

    configure_logging(verbose=True)
    log = get_logger(__name__)
    with package_scope('core', 'install'):
        log.info('linked', dependency='util')
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger


def _level(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def _package_prefix(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Move ``package``/``stage`` context into a ``[package:stage]`` prefix."""
    package = event_dict.pop('package', None)
    stage = event_dict.pop('stage', None)
    if package:
        label = f'{package}:{stage}' if stage else str(package)
        event_dict['event'] = f'[{label}] {event_dict.get("event", "")}'
    return event_dict


def _processors(json_log: bool) -> tuple[list[Processor], Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_log:
        shared.append(structlog.processors.TimeStamper(fmt='iso'))
        return shared, structlog.processors.JSONRenderer()

    shared.append(structlog.processors.TimeStamper(fmt='%H:%M:%S'))
    shared.append(_package_prefix)
    return shared, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for workspacekit.

    Call once at startup; calling again replaces the configuration.

    Args:
        verbose: Debug-level output (links, commands, compiler options).
        quiet: Warnings and errors only. Wins over ``verbose``.
        json_log: One JSON object per line instead of console output.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level(verbose=verbose, quiet=quiet),
        force=True,
    )

    shared, renderer = _processors(json_log)
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'workspacekit') -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named ``name``."""
    return structlog.get_logger(name)


def package_scope(package: str, stage: str) -> AbstractContextManager[None]:
    """Bind ``package`` and ``stage`` to every log event inside the block.

    Stages wrap each package's processing in this so log lines from
    helpers (npm, symlinking, hooks) say which package they belong to.
    """
    return structlog.contextvars.bound_contextvars(package=package, stage=stage)


__all__ = [
    'configure_logging',
    'get_logger',
    'package_scope',
]
