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
"""Shared fixtures for structype tests.

The contact-book shapes used throughout:

    interface HasEmail { name: string; email: string }
    interface HasPhoneNumber { name: string; phone: number }
    interface Address { houseNumber: number; streetName?: string }
"""

import pytest

from structype.diagnostics import DiagnosticCollector
from structype.types import (
    NUMBER,
    STRING,
    AssignabilityChecker,
    SymbolEnvironment,
    object_type,
)


@pytest.fixture
def diagnostics():
    return DiagnosticCollector()


@pytest.fixture
def env(diagnostics):
    return SymbolEnvironment(diagnostics)


@pytest.fixture
def checker(env):
    return AssignabilityChecker(env)


@pytest.fixture
def has_email():
    return object_type({"name": STRING, "email": STRING}, name="HasEmail")


@pytest.fixture
def has_phone():
    return object_type({"name": STRING, "phone": NUMBER}, name="HasPhoneNumber")


@pytest.fixture
def address():
    return object_type(
        {"houseNumber": NUMBER, "streetName": STRING},
        optional={"streetName"},
        name="Address",
    )


@pytest.fixture
def contact():
    """A value with every contact field: {name, phone, email}."""
    return object_type({"name": STRING, "phone": NUMBER, "email": STRING})
