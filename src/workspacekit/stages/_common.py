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

"""Helpers shared by the built-in stages."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from workspacekit.descriptor import PackageDescriptor
from workspacekit.errors import PluginFailure
from workspacekit.logging import get_logger
from workspacekit.options import WorkspaceOptions

logger = get_logger('workspacekit.stages')


def announce(options: WorkspaceOptions, event: str, **fields: Any) -> None:  # noqa: ANN401
    """Log a progress event unless logging is disabled for the stage."""
    if options.enable_logging:
        logger.info(event, **fields)


def detail(options: WorkspaceOptions, event: str, /, **fields: Any) -> None:  # noqa: ANN401
    """Log a detail event; promoted to info level with ``verbose_logging``."""
    if options.verbose_logging and options.enable_logging:
        logger.info(event, **fields)
    else:
        logger.debug(event, **fields)


@contextmanager
def package_failure(activity: str, descriptor: PackageDescriptor, options: WorkspaceOptions) -> Iterator[None]:
    """Report errors raised inside the block as a :class:`PluginFailure`.

    A :class:`PluginFailure` raised inside keeps its own continuation
    flag. Anything else becomes one carrying ``options.continue_on_error``.

    Usage::

        with package_failure('installing', descriptor, options):
            ...
    """
    try:
        yield
    except PluginFailure:
        raise
    except Exception as exc:  # noqa: BLE001 - hooks and actions are user code
        raise PluginFailure(
            f"Error {activity} workspace package '{descriptor.name}': {exc}",
            package=descriptor.name,
            continue_on_error=options.continue_on_error,
            details=repr(exc),
        ) from exc


__all__ = [
    'announce',
    'detail',
    'package_failure',
]
