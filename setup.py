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

from setuptools import setup, find_namespace_packages
import sys
import platform
import shutil
from pathlib import Path
import toml

# Read version from pyproject.toml
def get_version():
    pyproject = toml.load("pyproject.toml")
    return pyproject["project"]["version"]

VERSION = get_version()
PACKAGE_NAME = "rexiv2-python"  # Define package name as a constant

# Directory structure
ARTIFACTS_DIR = Path('artifacts')  # Optional prebuilt gexiv2/GLib libraries
PACKAGE_LIBS_DIR = Path('src/rexiv2/libs')  # Where libraries will be copied for the wheel


def get_current_platform():
    """Determine the current platform name."""
    if sys.platform == "win32":
        if platform.machine() == "ARM64":
            return "win_arm64"
        return "win_amd64"
    elif sys.platform == "darwin":
        if platform.machine() == "arm64":
            return "macosx_aarch64"
        return "macosx_x86_64"
    else:  # Linux
        if platform.machine() == "aarch64":
            return "linux_aarch64"
        return "linux_x86_64"

def get_platform_classifier(platform_name):
    """Get the appropriate classifier for a platform."""
    if platform_name.startswith('win'):
        return "Operating System :: Microsoft :: Windows"
    elif platform_name.startswith('macosx'):
        return "Operating System :: MacOS"
    elif platform_name.startswith('linux'):
        return "Operating System :: POSIX :: Linux"
    else:
        raise ValueError(f"Unknown platform: {platform_name}")

def copy_platform_libraries(platform_name):
    """Copy prebuilt libraries for a platform into the package, if any.

    gexiv2 is normally taken from the system, so a missing
    artifacts folder is not an error.

    Returns:
        True if libraries were copied
    """
    platform_dir = ARTIFACTS_DIR / platform_name
    if not platform_dir.exists():
        return False

    platform_files = [f for f in platform_dir.glob('*') if f.is_file()]
    if not platform_files:
        print(f"Warning: No files found in platform directory: {platform_dir}")
        return False

    PACKAGE_LIBS_DIR.mkdir(parents=True, exist_ok=True)
    for file in platform_files:
        shutil.copy2(file, PACKAGE_LIBS_DIR / file.name)
    return True

def read_long_description():
    readme = Path("README.md")
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""

current_platform = get_current_platform()
bundled = False
if 'bdist_wheel' in sys.argv or 'build' in sys.argv:
    bundled = copy_platform_libraries(current_platform)
    if bundled:
        print(f"Bundling prebuilt libraries for platform: {current_platform}")

try:
    setup(
        name=PACKAGE_NAME,
        version=VERSION,
        package_dir={"": "src"},
        packages=find_namespace_packages(where="src"),
        include_package_data=True,
        package_data={
            "rexiv2": ["libs/*"],  # Include all files in libs directory
        },
        classifiers=[
            "Programming Language :: Python :: 3",
            get_platform_classifier(current_platform),
        ],
        python_requires=">=3.10",
        long_description=read_long_description(),
        long_description_content_type="text/markdown",
        license="MIT OR Apache-2.0",
    )
finally:
    # Clean up
    if bundled and PACKAGE_LIBS_DIR.exists():
        shutil.rmtree(PACKAGE_LIBS_DIR)
