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

"""Async file I/O helpers for workspace manifests and hook inputs.

These wrap ``aiofiles`` with consistent error handling so discovery, the
publish stage and post-install actions read and write files the same way
without blocking the event loop that drives the pipeline.
"""

from __future__ import annotations

from pathlib import Path

import aiofiles

from workspacekit.errors import E, WorkspaceKitError


async def read_bytes(path: Path) -> bytes:
    """Read a whole file asynchronously via aiofiles."""
    try:
        async with aiofiles.open(path, mode='rb') as f:
            return await f.read()
    except OSError as exc:
        raise WorkspaceKitError(
            code=E.WORKSPACE_IO_ERROR,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


async def read_text(path: Path) -> str:
    """Read a UTF-8 text file asynchronously via aiofiles."""
    return (await read_bytes(path)).decode('utf-8')


async def write_text(path: Path, content: str) -> None:
    """Write a UTF-8 text file asynchronously via aiofiles."""
    try:
        async with aiofiles.open(path, mode='w', encoding='utf-8') as f:
            await f.write(content)
    except OSError as exc:
        raise WorkspaceKitError(
            code=E.WORKSPACE_IO_ERROR,
            message=f'Failed to write {path}: {exc}',
            hint=f'Check file permissions for {path}.',
        ) from exc


__all__ = [
    'read_bytes',
    'read_text',
    'write_text',
]
