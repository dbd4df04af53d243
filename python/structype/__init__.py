# Copyright Rand Arete @ Ananke 2025
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
# ==============================================================================
"""structype: a structural type-checking core.

Checks TypeScript-like declarations (literal types, unions, intersections,
optional and index-signature object shapes, overloaded functions and typed
receivers) given as an already-parsed tree, and reports diagnostics.

Example:
    >>> from structype import check_program
    >>> result = check_program(program)
    >>> print(result.render())
"""

from .checker import CheckingPass, CheckResult, TypeBuilder, check_program, check_programs
from .config import DEFAULT_CONFIG, CheckerConfig, ParameterVariance
from .diagnostics import Diagnostic, DiagnosticCollector, DiagnosticKind, SourceSpan

__version__ = "0.1.0"

__all__ = [
    "CheckingPass",
    "CheckResult",
    "TypeBuilder",
    "check_program",
    "check_programs",
    "CheckerConfig",
    "DEFAULT_CONFIG",
    "ParameterVariance",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticKind",
    "SourceSpan",
]
