# Copyright 2026 The rexiv2-python Authors. All rights reserved.
# This file is licensed to you under the Apache License,
# Version 2.0 (http://www.apache.org/licenses/LICENSE-2.0)
# or the MIT license (http://opensource.org/licenses/MIT),
# at your option.

# Unless required by applicable law or agreed to in writing,
# this software is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR REPRESENTATIONS OF ANY KIND, either express or
# implied. See the LICENSE-MIT and LICENSE-APACHE files for the
# specific language governing permissions and limitations under
# each license.

import os
import sys
import pytest

# Test modules share constants through plain imports
TESTS_DIR = os.path.dirname(__file__)
if TESTS_DIR not in sys.path:
    sys.path.insert(0, TESTS_DIR)


@pytest.fixture(scope="session", autouse=True)
def mute_gexiv2_diagnostics():
    """Keep the native engine from printing warnings during the run."""
    from rexiv2 import rexiv2 as bindings
    try:
        bindings.initialize()
    except (RuntimeError, ImportError, bindings.Rexiv2Error):
        # Engine tests are skipped when gexiv2 cannot be loaded
        available = False
    else:
        available = True

    if not available:
        yield
        return

    previous = bindings.get_log_level()
    bindings.set_log_level(bindings.LogLevel.ERROR)
    yield
    bindings.set_log_level(previous)
