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

"""Shared test fakes for workspacekit.

Usage::

    from tests._fakes import RecordingRunner, manifest_file, source

    runner = RecordingRunner(failures={'publish': 1})
    item = manifest_file(tmp_path, 'core', 'core')
"""

from tests._fakes._runner import Call as Call, RecordingRunner as RecordingRunner
from tests._fakes._workspace import (
    manifest_file as manifest_file,
    source as source,
    write_package as write_package,
)

__all__ = [
    'Call',
    'RecordingRunner',
    'manifest_file',
    'source',
    'write_package',
]
