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

"""Built-in workspace stages.

Each name here is a stage factory built with
:func:`workspacekit.stage.package_stage`::

    npm_install       link siblings, npm-install the rest
    npm_uninstall     remove node_modules and linked typings
    build_typescript  run tsc per TypeScript configuration
    run_cucumber      run Cucumber features
    npm_publish       pre-publish hooks, shrinkwrap, bump, npm publish
    filter_packages   keep packages a predicate accepts
    npm_script        run a named package.json script
"""

from workspacekit.stages.cucumber import run_cucumber
from workspacekit.stages.filtering import filter_packages, requires_dependency
from workspacekit.stages.install import npm_install
from workspacekit.stages.publish import npm_publish
from workspacekit.stages.script import npm_script
from workspacekit.stages.typescript import build_typescript
from workspacekit.stages.uninstall import npm_uninstall

__all__ = [
    'build_typescript',
    'filter_packages',
    'npm_install',
    'npm_publish',
    'npm_script',
    'npm_uninstall',
    'requires_dependency',
    'run_cucumber',
]
