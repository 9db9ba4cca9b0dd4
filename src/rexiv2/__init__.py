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

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rexiv2-python")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"

from .rexiv2 import (
    GpsInfo,
    LogLevel,
    MediaType,
    Metadata,
    Orientation,
    OtherMediaType,
    PreviewImage,
    Rational,
    Rexiv2Error,
    TagType,
    Thumbnail,
    gexiv2_version,
    get_log_level,
    get_tag_description,
    get_tag_label,
    get_tag_type,
    initialize,
    is_exif_tag,
    is_iptc_tag,
    is_xmp_tag,
    register_xmp_namespace,
    set_log_level,
    unregister_all_xmp_namespaces,
    unregister_xmp_namespace,
)  # NOQA

# Re-export Rexiv2Error (its variants are reachable as attributes)
__all__ = [
    'GpsInfo',
    'LogLevel',
    'MediaType',
    'Metadata',
    'Orientation',
    'OtherMediaType',
    'PreviewImage',
    'Rational',
    'Rexiv2Error',
    'TagType',
    'Thumbnail',
    'gexiv2_version',
    'get_log_level',
    'get_tag_description',
    'get_tag_label',
    'get_tag_type',
    'initialize',
    'is_exif_tag',
    'is_iptc_tag',
    'is_xmp_tag',
    'register_xmp_namespace',
    'set_log_level',
    'unregister_all_xmp_namespaces',
    'unregister_xmp_namespace',
]
