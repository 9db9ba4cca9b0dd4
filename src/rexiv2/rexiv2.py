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

import contextlib
import ctypes
import enum
import logging
import os
import threading
import weakref
from fractions import Fraction
from typing import Any, NamedTuple, Optional, Sequence, Union
from .lib import dynamically_load_library, dynamically_load_glib

# Create a module-specific logger
logger = logging.getLogger("rexiv2")
logger.addHandler(logging.NullHandler())

PathLike = Union[str, bytes, os.PathLike]
BufferLike = Union[bytes, bytearray, memoryview]

# Define required function names
_REQUIRED_FUNCTIONS = [
    'gexiv2_initialize',
    'gexiv2_get_version',
    'gexiv2_log_get_level',
    'gexiv2_log_set_level',
    'gexiv2_metadata_new',
    'gexiv2_metadata_free',
    'gexiv2_metadata_open_path',
    'gexiv2_metadata_open_buf',
    'gexiv2_metadata_from_app1_segment',
    'gexiv2_metadata_save_file',
    'gexiv2_metadata_get_supports_exif',
    'gexiv2_metadata_get_supports_iptc',
    'gexiv2_metadata_get_supports_xmp',
    'gexiv2_metadata_get_mime_type',
    'gexiv2_metadata_get_pixel_width',
    'gexiv2_metadata_get_pixel_height',
    'gexiv2_metadata_has_tag',
    'gexiv2_metadata_clear_tag',
    'gexiv2_metadata_clear',
    'gexiv2_metadata_has_exif',
    'gexiv2_metadata_clear_exif',
    'gexiv2_metadata_get_exif_tags',
    'gexiv2_metadata_has_xmp',
    'gexiv2_metadata_clear_xmp',
    'gexiv2_metadata_get_xmp_tags',
    'gexiv2_metadata_has_iptc',
    'gexiv2_metadata_clear_iptc',
    'gexiv2_metadata_get_iptc_tags',
    'gexiv2_metadata_get_tag_string',
    'gexiv2_metadata_set_tag_string',
    'gexiv2_metadata_get_tag_interpreted_string',
    'gexiv2_metadata_get_tag_multiple',
    'gexiv2_metadata_set_tag_multiple',
    'gexiv2_metadata_get_tag_long',
    'gexiv2_metadata_set_tag_long',
    'gexiv2_metadata_get_exif_tag_rational',
    'gexiv2_metadata_set_exif_tag_rational',
    'gexiv2_metadata_get_tag_raw',
    'gexiv2_metadata_get_orientation',
    'gexiv2_metadata_set_orientation',
    'gexiv2_metadata_get_exposure_time',
    'gexiv2_metadata_get_fnumber',
    'gexiv2_metadata_get_focal_length',
    'gexiv2_metadata_get_iso_speed',
    'gexiv2_metadata_get_exif_thumbnail',
    'gexiv2_metadata_erase_exif_thumbnail',
    'gexiv2_metadata_set_exif_thumbnail_from_file',
    'gexiv2_metadata_set_exif_thumbnail_from_buffer',
    'gexiv2_metadata_get_preview_properties',
    'gexiv2_metadata_get_preview_image',
    'gexiv2_preview_properties_get_mime_type',
    'gexiv2_preview_properties_get_extension',
    'gexiv2_preview_properties_get_size',
    'gexiv2_preview_properties_get_width',
    'gexiv2_preview_properties_get_height',
    'gexiv2_preview_image_get_data',
    'gexiv2_preview_image_write_file',
    'gexiv2_preview_image_free',
    'gexiv2_metadata_get_gps_info',
    'gexiv2_metadata_set_gps_info',
    'gexiv2_metadata_delete_gps_info',
    'gexiv2_metadata_is_exif_tag',
    'gexiv2_metadata_is_iptc_tag',
    'gexiv2_metadata_is_xmp_tag',
    'gexiv2_metadata_get_tag_label',
    'gexiv2_metadata_get_tag_description',
    'gexiv2_metadata_get_tag_type',
    'gexiv2_metadata_register_xmp_namespace',
    'gexiv2_metadata_unregister_xmp_namespace',
    'gexiv2_metadata_unregister_all_xmp_namespaces',
]

# GLib allocator functions gexiv2 results must be released with
_REQUIRED_GLIB_FUNCTIONS = [
    'g_free',
    'g_strfreev',
    'g_error_free',
    'g_bytes_get_data',
    'g_bytes_unref',
]


def _validate_library_exports(lib, required_functions):
    """Validate that all required functions are present in a loaded library.

    A library missing symbols is either incomplete, corrupted, or of a
    version this wrapper does not know how to drive. Failing here, before
    any prototype is bound, keeps a partially usable engine from ever
    being handed out.

    Args:
        lib: The loaded library object
        required_functions: Names of the symbols the library must export

    Raises:
        ImportError: If any required function is missing,
                    with a detailed message listing
                    the missing functions.
    """
    missing_functions = []
    for func_name in required_functions:
        if not hasattr(lib, func_name):  # pragma: no cover
            missing_functions.append(func_name)

    if missing_functions:  # pragma: no cover
        raise ImportError(
            f"Library is missing required function symbols: "
            f"{', '.join(missing_functions)}\n"
            "This could indicate an incomplete or corrupted library "
            "installation or a version mismatch between the library "
            "and this Python wrapper."
        )


class Orientation(enum.IntEnum):
    """All the possible orientations for an image."""
    UNSPECIFIED = 0
    NORMAL = 1
    HORIZONTAL_FLIP = 2
    ROTATE_180 = 3
    VERTICAL_FLIP = 4
    ROTATE_90_HORIZONTAL_FLIP = 5
    ROTATE_90 = 6
    ROTATE_90_VERTICAL_FLIP = 7
    ROTATE_270 = 8


class LogLevel(enum.IntEnum):
    """Verbosity of the native engine's own diagnostic output."""
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    MUTE = 4


class TagType(enum.Enum):
    """The possible data types that a tag can have.

    Values are the type names the native tag dictionary reports.
    """
    # Exif BYTE type, 8-bit unsigned integer
    UNSIGNED_BYTE = "Byte"
    # Exif ASCII type, 8-bit byte
    ASCII_STRING = "Ascii"
    # Exif SHORT type, 16-bit (2-byte) unsigned integer
    UNSIGNED_SHORT = "Short"
    # Exif LONG type, 32-bit (4-byte) unsigned integer
    UNSIGNED_LONG = "Long"
    # Exif RATIONAL type, two LONGs: numerator and denominator of a fraction
    UNSIGNED_RATIONAL = "Rational"
    # Exif SBYTE type, an 8-bit signed (twos-complement) integer
    SIGNED_BYTE = "SByte"
    # Exif UNDEFINED type, an 8-bit byte that may contain anything
    UNDEFINED = "Undefined"
    # Exif SSHORT type, a 16-bit (2-byte) signed (twos-complement) integer
    SIGNED_SHORT = "SShort"
    # Exif SLONG type, a 32-bit (4-byte) signed (twos-complement) integer
    SIGNED_LONG = "SLong"
    # Exif SRATIONAL type, two SLONGs: numerator and denominator of a fraction
    SIGNED_RATIONAL = "SRational"
    # TIFF FLOAT type, single precision (4-byte) IEEE format
    TIFF_FLOAT = "Float"
    # TIFF DOUBLE type, double precision (8-byte) IEEE format
    TIFF_DOUBLE = "Double"
    # TIFF IFD type, 32-bit (4-byte) unsigned integer
    TIFF_IFD = "Ifd"
    # IPTC types
    STRING = "String"
    DATE = "Date"
    TIME = "Time"
    # Exiv2 type for the Exif user comment
    COMMENT = "Comment"
    # Exiv2 type for a CIFF directory
    DIRECTORY = "Directory"
    # XMP types
    XMP_TEXT = "XmpText"
    XMP_ALT = "XmpAlt"
    XMP_BAG = "XmpBag"
    XMP_SEQ = "XmpSeq"
    LANG_ALT = "LangAlt"
    INVALID = "Invalid"
    UNKNOWN = "Unknown"

    @classmethod
    def from_str(cls, type_name: str) -> 'TagType':
        """Map a native type name to a TagType, UNKNOWN if unrecognized."""
        try:
            return cls(type_name)
        except ValueError:
            return cls.UNKNOWN


class OtherMediaType(NamedTuple):
    """A media type the engine reported that MediaType does not list.

    The string is kept verbatim so it can be written back unchanged.
    """
    value: str

    def __str__(self) -> str:
        return self.value


class MediaType(enum.Enum):
    """Internet media types of the files the engine can load."""
    BMP = "image/x-ms-bmp"
    EXV = "image/x-exv"
    CRW = "image/x-canon-crw"
    CR2 = "image/x-canon-cr2"
    CR3 = "image/x-canon-cr3"
    GIF = "image/gif"
    JPEG = "image/jpeg"
    JPEG2000 = "image/jp2"
    MRW = "image/x-minolta-mrw"
    ORF = "image/x-olympus-orf"
    PNG = "image/png"
    PGF = "image/pgf"
    PSD = "image/x-photoshop"
    RAF = "image/x-fuji-raf"
    RW2 = "image/x-panasonic-rw2"
    TGA = "image/targa"
    TIFF = "image/tiff"
    WEBP = "image/webp"
    HEIF = "image/heif"
    AVIF = "image/avif"
    JXL = "image/jxl"

    @classmethod
    def from_str(cls, media_type: str) -> Union['MediaType', OtherMediaType]:
        """Decode a media type string.

        Known types map to a MediaType member, anything else to an
        OtherMediaType carrying the original string, so
        ``MediaType.from_str(s).value == s`` holds for every ``s``.
        """
        try:
            return cls(media_type)
        except ValueError:
            return OtherMediaType(media_type)

    def __str__(self) -> str:
        return self.value


class GpsInfo(NamedTuple):
    """Container for the three GPS coordinates."""
    longitude: float = 0.0
    latitude: float = 0.0
    altitude: float = 0.0


class Rational(NamedTuple):
    """A numerator/denominator pair exactly as stored in the metadata.

    Unlike :class:`fractions.Fraction` the pair is never reduced:
    a value written as 16/10 reads back as 16/10.
    """
    numerator: int
    denominator: int

    def as_fraction(self) -> Fraction:
        """Return the value as a (reduced) Fraction."""
        return Fraction(self.numerator, self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


class GExiv2Metadata(ctypes.Structure):
    """Opaque structure for the native metadata context."""
    _fields_ = []  # Empty as it's opaque in the C API


class GExiv2PreviewProperties(ctypes.Structure):
    """Opaque structure for preview image properties."""
    _fields_ = []  # Empty as it's opaque in the C API


class GExiv2PreviewImage(ctypes.Structure):
    """Opaque structure for a materialized preview image."""
    _fields_ = []  # Empty as it's opaque in the C API


class GBytes(ctypes.Structure):
    """Opaque structure for GLib's immutable byte buffers."""
    _fields_ = []  # Empty as it's opaque in the C API


class GError(ctypes.Structure):
    """GLib error record filled in through GError** out-parameters."""
    _fields_ = [
        ("domain", ctypes.c_uint32),
        ("code", ctypes.c_int),
        # Owned by the GError, released with it by g_error_free
        ("message", ctypes.c_void_p),
    ]


# Helper function to set function prototypes
def _setup_function(func, argtypes, restype=None):
    func.argtypes = argtypes
    func.restype = restype


def _bind_prototypes(lib, glib):
    """Declare argument and return types of every native entry point.

    gboolean is declared as c_int: it is a gint, not a C99 bool.
    Strings are returned as c_void_p so the original pointer stays
    available for the release call after its content was copied.
    """
    metadata_p = ctypes.POINTER(GExiv2Metadata)
    properties_p = ctypes.POINTER(GExiv2PreviewProperties)
    image_p = ctypes.POINTER(GExiv2PreviewImage)
    error_pp = ctypes.POINTER(ctypes.POINTER(GError))
    bytes_p = ctypes.POINTER(ctypes.c_ubyte)
    string_array = ctypes.POINTER(ctypes.c_char_p)

    # GLib allocator
    _setup_function(glib.g_free, [ctypes.c_void_p], None)
    _setup_function(glib.g_strfreev, [string_array], None)
    _setup_function(glib.g_error_free, [ctypes.POINTER(GError)], None)
    _setup_function(
        glib.g_bytes_get_data,
        [ctypes.POINTER(GBytes), ctypes.POINTER(ctypes.c_size_t)],
        ctypes.c_void_p)
    _setup_function(glib.g_bytes_unref, [ctypes.POINTER(GBytes)], None)

    # Set up function prototypes not attached to a metadata context
    _setup_function(lib.gexiv2_initialize, [], ctypes.c_int)
    _setup_function(lib.gexiv2_get_version, [], ctypes.c_int)
    _setup_function(lib.gexiv2_log_get_level, [], ctypes.c_int)
    _setup_function(lib.gexiv2_log_set_level, [ctypes.c_int], None)
    for name in ('gexiv2_metadata_is_exif_tag',
                 'gexiv2_metadata_is_iptc_tag',
                 'gexiv2_metadata_is_xmp_tag'):
        _setup_function(getattr(lib, name), [ctypes.c_char_p], ctypes.c_int)
    for name in ('gexiv2_metadata_get_tag_label',
                 'gexiv2_metadata_get_tag_description',
                 'gexiv2_metadata_get_tag_type'):
        _setup_function(
            getattr(lib, name), [ctypes.c_char_p], ctypes.c_void_p)
    _setup_function(
        lib.gexiv2_metadata_register_xmp_namespace,
        [ctypes.c_char_p, ctypes.c_char_p],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_unregister_xmp_namespace,
        [ctypes.c_char_p],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_unregister_all_xmp_namespaces, [], None)

    # Set up metadata lifecycle prototypes
    _setup_function(lib.gexiv2_metadata_new, [], metadata_p)
    _setup_function(lib.gexiv2_metadata_free, [metadata_p], None)
    _setup_function(
        lib.gexiv2_metadata_open_path,
        [metadata_p, ctypes.c_char_p, error_pp],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_open_buf,
        [metadata_p, bytes_p, ctypes.c_long, error_pp],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_from_app1_segment,
        [metadata_p, bytes_p, ctypes.c_long, error_pp],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_save_file,
        [metadata_p, ctypes.c_char_p, error_pp],
        ctypes.c_int)

    # Image information
    for name in ('gexiv2_metadata_get_supports_exif',
                 'gexiv2_metadata_get_supports_iptc',
                 'gexiv2_metadata_get_supports_xmp',
                 'gexiv2_metadata_get_pixel_width',
                 'gexiv2_metadata_get_pixel_height',
                 'gexiv2_metadata_has_exif',
                 'gexiv2_metadata_has_xmp',
                 'gexiv2_metadata_has_iptc',
                 'gexiv2_metadata_get_orientation',
                 'gexiv2_metadata_get_iso_speed'):
        _setup_function(getattr(lib, name), [metadata_p], ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_get_mime_type, [metadata_p], ctypes.c_void_p)

    # Tag management
    for name in ('gexiv2_metadata_clear',
                 'gexiv2_metadata_clear_exif',
                 'gexiv2_metadata_clear_xmp',
                 'gexiv2_metadata_clear_iptc',
                 'gexiv2_metadata_erase_exif_thumbnail',
                 'gexiv2_metadata_delete_gps_info'):
        _setup_function(getattr(lib, name), [metadata_p], None)
    for name in ('gexiv2_metadata_get_exif_tags',
                 'gexiv2_metadata_get_xmp_tags',
                 'gexiv2_metadata_get_iptc_tags'):
        _setup_function(getattr(lib, name), [metadata_p], string_array)
    _setup_function(
        lib.gexiv2_metadata_has_tag,
        [metadata_p, ctypes.c_char_p],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_clear_tag,
        [metadata_p, ctypes.c_char_p],
        ctypes.c_int)

    # Tag data getters/setters
    _setup_function(
        lib.gexiv2_metadata_get_tag_string,
        [metadata_p, ctypes.c_char_p],
        ctypes.c_void_p)
    _setup_function(
        lib.gexiv2_metadata_get_tag_interpreted_string,
        [metadata_p, ctypes.c_char_p],
        ctypes.c_void_p)
    _setup_function(
        lib.gexiv2_metadata_set_tag_string,
        [metadata_p, ctypes.c_char_p, ctypes.c_char_p],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_get_tag_multiple,
        [metadata_p, ctypes.c_char_p],
        string_array)
    _setup_function(
        lib.gexiv2_metadata_set_tag_multiple,
        [metadata_p, ctypes.c_char_p, string_array],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_get_tag_long,
        [metadata_p, ctypes.c_char_p],
        ctypes.c_long)
    _setup_function(
        lib.gexiv2_metadata_set_tag_long,
        [metadata_p, ctypes.c_char_p, ctypes.c_long],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_get_exif_tag_rational,
        [metadata_p, ctypes.c_char_p,
         ctypes.POINTER(ctypes.c_int), ctypes.POINTER(ctypes.c_int)],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_set_exif_tag_rational,
        [metadata_p, ctypes.c_char_p, ctypes.c_int, ctypes.c_int],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_get_tag_raw,
        [metadata_p, ctypes.c_char_p],
        ctypes.POINTER(GBytes))

    # Helper & convenience getters/setters
    _setup_function(
        lib.gexiv2_metadata_set_orientation, [metadata_p, ctypes.c_int], None)
    _setup_function(
        lib.gexiv2_metadata_get_exposure_time,
        [metadata_p,
         ctypes.POINTER(ctypes.c_int), ctypes.POINTER(ctypes.c_int)],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_get_fnumber, [metadata_p], ctypes.c_double)
    _setup_function(
        lib.gexiv2_metadata_get_focal_length, [metadata_p], ctypes.c_double)

    # Thumbnails
    _setup_function(
        lib.gexiv2_metadata_get_exif_thumbnail,
        [metadata_p, ctypes.POINTER(bytes_p), ctypes.POINTER(ctypes.c_int)],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_set_exif_thumbnail_from_file,
        [metadata_p, ctypes.c_char_p, error_pp],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_set_exif_thumbnail_from_buffer,
        [metadata_p, bytes_p, ctypes.c_int],
        None)

    # Preview images
    _setup_function(
        lib.gexiv2_metadata_get_preview_properties,
        [metadata_p],
        ctypes.POINTER(properties_p))
    _setup_function(
        lib.gexiv2_metadata_get_preview_image,
        [metadata_p, properties_p],
        image_p)
    for name in ('gexiv2_preview_properties_get_mime_type',
                 'gexiv2_preview_properties_get_extension'):
        _setup_function(getattr(lib, name), [properties_p], ctypes.c_void_p)
    for name in ('gexiv2_preview_properties_get_size',
                 'gexiv2_preview_properties_get_width',
                 'gexiv2_preview_properties_get_height'):
        _setup_function(getattr(lib, name), [properties_p], ctypes.c_uint32)
    _setup_function(
        lib.gexiv2_preview_image_get_data,
        [image_p, ctypes.POINTER(ctypes.c_uint32)],
        bytes_p)
    _setup_function(
        lib.gexiv2_preview_image_write_file,
        [image_p, ctypes.c_char_p],
        ctypes.c_long)
    _setup_function(lib.gexiv2_preview_image_free, [image_p], None)

    # GPS-related functions
    _setup_function(
        lib.gexiv2_metadata_get_gps_info,
        [metadata_p,
         ctypes.POINTER(ctypes.c_double),
         ctypes.POINTER(ctypes.c_double),
         ctypes.POINTER(ctypes.c_double)],
        ctypes.c_int)
    _setup_function(
        lib.gexiv2_metadata_set_gps_info,
        [metadata_p, ctypes.c_double, ctypes.c_double, ctypes.c_double],
        ctypes.c_int)


class Rexiv2Error(Exception):
    """Exception raised for errors crossing the gexiv2 boundary.

    Native failures are raised as one of three subclasses,
    reachable as attributes of this class:

    - ``Rexiv2Error.NoValue``: the requested data is absent
    - ``Rexiv2Error.DecodeFailure``: native bytes are not valid UTF-8
    - ``Rexiv2Error.Internal``: the engine rejected the operation

    The base class itself is raised for misuse on the Python side,
    such as operating on a closed Metadata.
    """

    def __init__(self, message: Optional[str] = None):
        self.message = message
        super().__init__(*([] if message is None else [message]))

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.message == other.message)

    def __hash__(self):
        return hash((type(self), self.message))


class NoValue(Rexiv2Error):
    """The requested data is absent."""

    def __init__(self):
        super().__init__(None)

    def __str__(self):
        return "No value found"


class DecodeFailure(Rexiv2Error):
    """Native bytes could not be decoded as UTF-8 text."""

    def __init__(self, details: str):
        super().__init__(details)

    @property
    def details(self) -> str:
        return self.message


class Internal(Rexiv2Error):
    """The native engine rejected the operation.

    ``message`` is only set when the engine supplied one.
    """

    def __str__(self):
        if self.message is None:
            return "Internal error in the native engine"
        return self.message


Rexiv2Error.NoValue = NoValue
Rexiv2Error.DecodeFailure = DecodeFailure
Rexiv2Error.Internal = Internal


class _FailureIdiom(enum.Enum):
    """The ways a native entry point can report failure."""
    # gboolean result plus a GError** out-parameter
    ERROR_OUT_PARAM = enum.auto()
    # 0/FALSE result with no error object
    SENTINEL = enum.auto()
    # NULL pointer result with no other signal
    NULL_RETURN = enum.auto()


def _classify_failure(idiom: _FailureIdiom,
                      message: Optional[str] = None) -> Rexiv2Error:
    """Map a native failure to the error it must surface as.

    Args:
        idiom: How the failing entry point reports failure
        message: For ERROR_OUT_PARAM, the decoded GError message, if any

    Returns:
        The exception to raise (not raised here)
    """
    if idiom is _FailureIdiom.NULL_RETURN:
        return NoValue()
    if idiom is _FailureIdiom.ERROR_OUT_PARAM:
        return Internal(message)
    return Internal(None)


class _Release(enum.Enum):
    """Who frees a pointer returned by the engine, and how.

    Every call site names one of these explicitly; picking the wrong
    one either leaks or double-frees.
    """
    # The engine keeps ownership, nothing to free
    BORROWED = enum.auto()
    # One allocation, released with g_free
    SINGLE = enum.auto()
    # A pointer array whose spine is ours but whose elements are not
    SPINE_ONLY = enum.auto()
    # A pointer array where the spine and each element are ours
    SPINE_AND_ELEMENTS = enum.auto()


# Process-wide native state, populated once by initialize()
class _NativeLibraries:

    def __init__(self):
        self.gexiv2 = None
        self.glib = None
        self.initialized = False
        self.lock = threading.Lock()


_natives = _NativeLibraries()


def initialize() -> None:
    """Load the native libraries and initialize the gexiv2 engine.

    This is idempotent and safe to call from several threads; only the
    first call does any work. Every other entry point calls it lazily,
    so calling it explicitly is only needed to surface loading problems
    early, or to initialize before spawning threads.

    Raises:
        RuntimeError: If the gexiv2 or GLib library cannot be found
        ImportError: If a library lacks a required symbol
        Rexiv2Error.Internal: If the engine refuses to initialize
    """
    if _natives.initialized:
        return

    with _natives.lock:
        if _natives.initialized:
            return

        gexiv2_lib = dynamically_load_library()
        glib = dynamically_load_glib()
        _validate_library_exports(gexiv2_lib, _REQUIRED_FUNCTIONS)
        _validate_library_exports(glib, _REQUIRED_GLIB_FUNCTIONS)
        _bind_prototypes(gexiv2_lib, glib)

        if not gexiv2_lib.gexiv2_initialize():
            raise _classify_failure(_FailureIdiom.SENTINEL)

        _natives.gexiv2 = gexiv2_lib
        _natives.glib = glib
        _natives.initialized = True
        logger.debug("gexiv2 engine initialized")


def _gexiv2():
    initialize()
    return _natives.gexiv2


def _glib():
    initialize()
    return _natives.glib


def _decode_native_bytes(raw: bytes) -> str:
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeFailure(str(e)) from e


def _convert_to_py_string(value, release: _Release) -> str:
    """Copy a native null-terminated string into a Python string.

    Args:
        value: Address of the string (int, c_void_p or None)
        release: BORROWED or SINGLE, as the entry point dictates

    Returns:
        The decoded string

    Raises:
        Rexiv2Error.NoValue: If the pointer is null
        Rexiv2Error.DecodeFailure: If the bytes are not valid UTF-8
    """
    if release not in (_Release.BORROWED, _Release.SINGLE):
        raise ValueError(f"Not a string release convention: {release}")

    if not value:
        raise _classify_failure(_FailureIdiom.NULL_RETURN)

    try:
        return _decode_native_bytes(ctypes.string_at(value))
    finally:
        # Released even when decoding failed
        if release is _Release.SINGLE:
            _glib().g_free(value)


def _release_string_array(array, release: _Release) -> None:
    if release is _Release.SPINE_AND_ELEMENTS:
        _glib().g_strfreev(array)
    elif release is _Release.SPINE_ONLY:
        _glib().g_free(ctypes.cast(array, ctypes.c_void_p))


def _convert_to_py_string_list(array, release: _Release) -> list[str]:
    """Walk a null-terminated native string array into a list.

    Either every element decodes and the full list is returned, or
    nothing is returned. The array is released according to ``release``
    in both cases.

    Args:
        array: A POINTER(c_char_p) returned by the engine
        release: BORROWED, SPINE_ONLY or SPINE_AND_ELEMENTS

    Returns:
        The decoded strings, in order

    Raises:
        Rexiv2Error.NoValue: If the array pointer is null
        Rexiv2Error.DecodeFailure: If any element is not valid UTF-8
    """
    if release is _Release.SINGLE:
        raise ValueError(f"Not an array release convention: {release}")

    if not array:
        raise _classify_failure(_FailureIdiom.NULL_RETURN)

    try:
        result = []
        index = 0
        while array[index] is not None:
            result.append(_decode_native_bytes(array[index]))
            index += 1
        return result
    finally:
        _release_string_array(array, release)


def _to_native_str(value: Union[str, bytes], what: str = "value") -> bytes:
    """Encode a string for a single native call.

    Raises:
        TypeError: If value is neither str nor bytes
        ValueError: If value cannot be encoded or contains a NUL byte
    """
    if isinstance(value, str):
        try:
            encoded = value.encode('utf-8')
        except UnicodeError as e:
            raise ValueError(
                f"Invalid UTF-8 characters in {what}: {e}") from e
    elif isinstance(value, bytes):
        encoded = value
    else:
        raise TypeError(f"{what} must be str or bytes, got {type(value)}")

    if b"\x00" in encoded:
        raise ValueError(f"{what} must not contain NUL characters")
    return encoded


def _to_native_path(path: PathLike) -> bytes:
    encoded = os.fsencode(path)
    if b"\x00" in encoded:
        raise ValueError("path must not contain NUL characters")
    return encoded


def _to_native_str_array(values: Sequence[Union[str, bytes]]):
    """Build a null-terminated char* array for a single native call.

    The returned ctypes array keeps the encoded strings alive.
    """
    if isinstance(values, (str, bytes)):
        raise TypeError("values must be a sequence of strings, not a string")
    encoded = [_to_native_str(value) for value in values]
    return (ctypes.c_char_p * (len(encoded) + 1))(*encoded, None)


def _to_native_buffer(data: BufferLike):
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"data must be bytes-like, got {type(data)}")
    data = bytes(data)
    return (ctypes.c_ubyte * len(data)).from_buffer_copy(data)


def _take_gerror_message(error) -> Optional[str]:
    """Extract the message of a GError out-parameter, then free it.

    Returns None when no GError was set or its message is not text.
    """
    if not error:
        return None
    try:
        return _convert_to_py_string(
            error.contents.message, _Release.BORROWED)
    except Rexiv2Error:
        return None
    finally:
        _glib().g_error_free(error)


def _call_with_error(func, *args) -> None:
    """Call an entry point reporting failure through a GError** param."""
    error = ctypes.POINTER(GError)()
    if not func(*args, ctypes.byref(error)):
        raise _classify_failure(
            _FailureIdiom.ERROR_OUT_PARAM, _take_gerror_message(error))


def _check_sentinel(result) -> None:
    """Raise for an entry point reporting failure as 0/FALSE."""
    if not result:
        raise _classify_failure(_FailureIdiom.SENTINEL)


def gexiv2_version() -> str:
    """Get the version of the loaded gexiv2 library as 'major.minor.micro'."""
    version = _gexiv2().gexiv2_get_version()
    return f"{version // 10000}.{version // 100 % 100}.{version % 100}"


class Thumbnail:
    """Exif thumbnail bytes allocated by the engine.

    The buffer is owned by this object, not by the Metadata it came
    from, and is released exactly once: on close(), when leaving a
    ``with`` block, or when garbage collected.

    Example:
        ```
        with metadata.get_thumbnail() as thumbnail:
            jpeg_bytes = thumbnail.data
        ```
    """

    _ERROR_MESSAGES = {
        'closed_error': "Thumbnail is closed",
        'cleanup_error': "Error during cleanup: {}",
    }

    def __init__(self, buffer_ptr, size: int):
        """Initialize a new Thumbnail instance.

        Note: This constructor is not meant to be called directly.
        Use Metadata.get_thumbnail() instead.

        Args:
            buffer_ptr: Pointer to the native thumbnail bytes
            size: Number of bytes in the buffer

        Raises:
            Rexiv2Error: If the buffer pointer is invalid
        """
        if not buffer_ptr:
            raise Rexiv2Error("Invalid thumbnail pointer: pointer is null")

        self._buffer = buffer_ptr
        self._size = max(size, 0)
        self._closed = False

    def __enter__(self):
        self._ensure_valid_state()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        self._cleanup_resources()

    def __len__(self) -> int:
        self._ensure_valid_state()
        return self._size

    def __bytes__(self) -> bytes:
        return self.data

    def _ensure_valid_state(self):
        if self._closed or not self._buffer:
            raise Rexiv2Error(Thumbnail._ERROR_MESSAGES['closed_error'])

    def _cleanup_resources(self):
        try:
            if hasattr(self, '_closed') and not self._closed:
                self._closed = True
                if self._buffer:
                    try:
                        _glib().g_free(
                            ctypes.cast(self._buffer, ctypes.c_void_p))
                    except Exception:
                        # Cleanup failure doesn't raise exceptions
                        logger.error("Failed to free native thumbnail buffer")
                    finally:
                        self._buffer = None
        except Exception:
            # Ensure we don't raise exceptions during cleanup
            pass

    def close(self):
        """Release the native thumbnail buffer.

        Multiple calls to close() are handled gracefully.
        """
        if self._closed:
            return

        try:
            self._cleanup_resources()
        except Exception as e:
            logger.error(
                Thumbnail._ERROR_MESSAGES['cleanup_error'].format(str(e)))
        finally:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def data(self) -> bytes:
        """A copy of the thumbnail bytes (typically a JPEG image)."""
        self._ensure_valid_state()
        if self._size == 0:
            return b""
        return ctypes.string_at(self._buffer, self._size)


class PreviewImage:
    """Description of one preview image embedded in a media file.

    The descriptor only keeps a weak reference to the Metadata it was
    listed from. Its properties are copied when it is created; pixel data
    is read from the engine on each get_data()/save_to_file() call, which
    needs the parent Metadata to still be open.
    """

    _ERROR_MESSAGES = {
        'parent_error': "Parent Metadata of this preview is closed",
        'image_error': "Could not materialize preview image",
    }

    def __init__(self, metadata: 'Metadata', properties_ptr):
        """Initialize a new PreviewImage descriptor.

        Note: This constructor is not meant to be called directly.
        Use Metadata.get_preview_images() instead.
        """
        if not properties_ptr:
            raise Rexiv2Error("Invalid preview pointer: pointer is null")

        lib = _gexiv2()
        self._parent = weakref.ref(metadata)
        # Owned by the parent Metadata
        self._properties = properties_ptr
        self._size = lib.gexiv2_preview_properties_get_size(properties_ptr)
        self._width = lib.gexiv2_preview_properties_get_width(properties_ptr)
        self._height = lib.gexiv2_preview_properties_get_height(
            properties_ptr)
        self._raw_media_type = self._copy_borrowed(
            lib.gexiv2_preview_properties_get_mime_type(properties_ptr))
        self._raw_extension = self._copy_borrowed(
            lib.gexiv2_preview_properties_get_extension(properties_ptr))

    @staticmethod
    def _copy_borrowed(value) -> Optional[bytes]:
        if not value:
            return None
        return ctypes.string_at(value)

    @staticmethod
    def _decode_copied(raw: Optional[bytes]) -> str:
        if raw is None:
            raise _classify_failure(_FailureIdiom.NULL_RETURN)
        return _decode_native_bytes(raw)

    def _acquire_parent(self) -> 'Metadata':
        metadata = self._parent()
        if metadata is None or metadata.closed:
            raise Rexiv2Error(PreviewImage._ERROR_MESSAGES['parent_error'])
        return metadata

    @contextlib.contextmanager
    def _native_image(self):
        metadata = self._acquire_parent()
        lib = _gexiv2()
        image = lib.gexiv2_metadata_get_preview_image(
            metadata._metadata, self._properties)
        if not image:
            raise Internal(PreviewImage._ERROR_MESSAGES['image_error'])
        try:
            yield lib, image
        finally:
            lib.gexiv2_preview_image_free(image)

    def get_size(self) -> int:
        """Size of the preview image in bytes."""
        return self._size

    def get_width(self) -> int:
        return self._width

    def get_height(self) -> int:
        return self._height

    def get_media_type(self) -> Union[MediaType, OtherMediaType]:
        """Media type of the preview image.

        Raises:
            Rexiv2Error.NoValue: If the engine reported no media type
            Rexiv2Error.DecodeFailure: If it is not valid UTF-8
        """
        return MediaType.from_str(self._decode_copied(self._raw_media_type))

    def get_extension(self) -> str:
        """File extension for the preview image, including the dot."""
        return self._decode_copied(self._raw_extension)

    def get_data(self) -> bytes:
        """Read the preview image bytes from the engine.

        Returns:
            The encoded preview image

        Raises:
            Rexiv2Error: If the parent Metadata is closed or collected
            Rexiv2Error.Internal: If the engine cannot produce the image
            Rexiv2Error.NoValue: If the image has no data
        """
        with self._native_image() as (lib, image):
            size = ctypes.c_uint32(0)
            data = lib.gexiv2_preview_image_get_data(
                image, ctypes.byref(size))
            if not data:
                raise _classify_failure(_FailureIdiom.NULL_RETURN)
            # Copy before the image (which owns the bytes) is freed
            return ctypes.string_at(data, size.value)

    def save_to_file(self, path: PathLike) -> int:
        """Write the preview image to a file.

        Args:
            path: Destination path; the extension is not added for you

        Returns:
            The number of bytes written

        Raises:
            Rexiv2Error: If the parent Metadata is closed or collected
            Rexiv2Error.Internal: If the engine could not write the file
        """
        native_path = _to_native_path(path)
        with self._native_image() as (lib, image):
            written = lib.gexiv2_preview_image_write_file(image, native_path)
            if written < 0:
                raise _classify_failure(_FailureIdiom.SENTINEL)
            return written


class Metadata:
    """High-level wrapper for one gexiv2 metadata context.

    Example:
        ```
        with Metadata.from_path("photo.jpg") as meta:
            print(meta.get_tag_string("Exif.Image.DateTime"))
        ```

    Accessors are only well-defined when the tag's actual type matches
    the accessor used; the engine does not check this.
    """

    # Class-level error messages to avoid multiple creation
    _ERROR_MESSAGES = {
        'closed_error': "Metadata is closed",
        'cleanup_error': "Error during cleanup: {}",
        'copy_error': "Metadata handles cannot be copied",
    }

    @classmethod
    def _open(cls, open_function_name: str, *args, backing_buffer=None):
        """Allocate a native context and load it, freeing it on failure."""
        lib = _gexiv2()
        metadata_ptr = lib.gexiv2_metadata_new()
        if not metadata_ptr:
            raise _classify_failure(_FailureIdiom.SENTINEL)

        try:
            _call_with_error(
                getattr(lib, open_function_name), metadata_ptr, *args)
        except Exception:
            # The context was allocated, release it before surfacing
            lib.gexiv2_metadata_free(metadata_ptr)
            raise

        return cls(metadata_ptr, backing_buffer)

    @classmethod
    def from_path(cls, path: PathLike) -> 'Metadata':
        """Load the metadata from the file found at the given path.

        Args:
            path: Path to the media file

        Returns:
            A new, open Metadata instance

        Raises:
            Rexiv2Error.Internal: If the file cannot be read or
              its format is not supported
        """
        return cls._open('gexiv2_metadata_open_path', _to_native_path(path))

    @classmethod
    def from_buffer(cls, data: BufferLike) -> 'Metadata':
        """Load the metadata from an in-memory media file.

        The engine may keep reading from the buffer it was given, so the
        copy handed to it lives as long as the returned Metadata.

        Raises:
            Rexiv2Error.Internal: If the data is not a supported format
        """
        buffer = _to_native_buffer(data)
        return cls._open(
            'gexiv2_metadata_open_buf', buffer, len(buffer),
            backing_buffer=buffer)

    @classmethod
    def from_app1_segment(cls, data: BufferLike) -> 'Metadata':
        """Load the metadata from a raw Exif APP1 segment.

        Raises:
            Rexiv2Error.Internal: If the segment cannot be parsed
        """
        buffer = _to_native_buffer(data)
        return cls._open(
            'gexiv2_metadata_from_app1_segment', buffer, len(buffer),
            backing_buffer=buffer)

    def __init__(self, metadata_ptr, backing_buffer: Optional[Any] = None):
        """Initialize a new Metadata instance.

        Note: This constructor is not meant to be called directly.
        Use from_path(), from_buffer() or from_app1_segment() instead.

        Args:
            metadata_ptr: Pointer to a loaded native metadata context
            backing_buffer: Memory the context reads from, if any

        Raises:
            Rexiv2Error: If the metadata pointer is invalid
        """
        # Initialize _closed first to prevent AttributeError
        # during garbage collection
        self._closed = False
        if not metadata_ptr:
            self._closed = True
            raise Rexiv2Error("Invalid metadata pointer: pointer is null")

        self._metadata = metadata_ptr
        self._backing_buffer = backing_buffer

    def __enter__(self):
        self._ensure_valid_state()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        """Ensure resources are cleaned up if close() wasn't called."""
        self._cleanup_resources()

    def __copy__(self):
        raise TypeError(Metadata._ERROR_MESSAGES['copy_error'])

    def __deepcopy__(self, memo):
        raise TypeError(Metadata._ERROR_MESSAGES['copy_error'])

    def _ensure_valid_state(self):
        """Ensure the metadata is open.

        Raises:
            Rexiv2Error: If the metadata is closed or invalid
        """
        if self._closed or not self._metadata:
            raise Rexiv2Error(Metadata._ERROR_MESSAGES['closed_error'])

    def _native(self):
        self._ensure_valid_state()
        return _gexiv2()

    def _cleanup_resources(self):
        """Internal cleanup method that releases native resources.

        This method can be called from both close() and __del__
        without causing double frees.
        """
        try:
            if hasattr(self, '_closed') and not self._closed:
                self._closed = True

                if hasattr(self, '_metadata') and self._metadata:
                    try:
                        _gexiv2().gexiv2_metadata_free(self._metadata)
                    except Exception:
                        # Cleanup failure doesn't raise exceptions
                        logger.error(
                            "Failed to free native Metadata resources")
                    finally:
                        self._metadata = None

                self._backing_buffer = None
        except Exception:
            # Ensure we don't raise exceptions during cleanup
            pass

    def close(self):
        """Release the native metadata context.

        Errors during cleanup are logged but not raised.
        Multiple calls to close() are handled gracefully.
        Preview images listed from this Metadata become unusable.
        """
        if self._closed:
            return

        try:
            self._cleanup_resources()
        except Exception as e:
            logger.error(
                Metadata._ERROR_MESSAGES['cleanup_error'].format(str(e)))
        finally:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def save_to_file(self, path: PathLike) -> None:
        """Save metadata to the file found at the given path,
        which must already exist.

        Raises:
            Rexiv2Error.Internal: If the engine could not write the file
        """
        lib = self._native()
        _call_with_error(
            lib.gexiv2_metadata_save_file,
            self._metadata,
            _to_native_path(path))

    #
    # Image information.
    #

    def supports_exif(self) -> bool:
        """Determine whether the type of file loaded supports Exif metadata.

        Some container formats (e.g. HEIF/AVIF) report False here even
        though Exif tags can be read from them.
        """
        return bool(
            self._native().gexiv2_metadata_get_supports_exif(self._metadata))

    def supports_iptc(self) -> bool:
        """Determine whether the type of file loaded supports IPTC metadata."""
        return bool(
            self._native().gexiv2_metadata_get_supports_iptc(self._metadata))

    def supports_xmp(self) -> bool:
        """Determine whether the type of file loaded supports XMP metadata."""
        return bool(
            self._native().gexiv2_metadata_get_supports_xmp(self._metadata))

    def get_media_type(self) -> Union[MediaType, OtherMediaType]:
        """Return the Internet media type of the loaded file.

        Raises:
            Rexiv2Error.NoValue: If the engine reports no media type
            Rexiv2Error.DecodeFailure: If it is not valid UTF-8
        """
        lib = self._native()
        # The engine keeps ownership of the returned string
        media_type = _convert_to_py_string(
            lib.gexiv2_metadata_get_mime_type(self._metadata),
            _Release.BORROWED)
        return MediaType.from_str(media_type)

    def get_pixel_width(self) -> int:
        """Get the actual un-rotated/un-oriented pixel width of the image."""
        return self._native().gexiv2_metadata_get_pixel_width(self._metadata)

    def get_pixel_height(self) -> int:
        """Get the actual un-rotated/un-oriented pixel height of the image."""
        return self._native().gexiv2_metadata_get_pixel_height(self._metadata)

    #
    # Tag management.
    #

    def has_tag(self, tag: str) -> bool:
        """Indicates whether the given tag is present in the metadata."""
        lib = self._native()
        return bool(lib.gexiv2_metadata_has_tag(
            self._metadata, _to_native_str(tag, "tag")))

    def clear_tag(self, tag: str) -> bool:
        """Removes the tag if it exists. Returns whether it was there."""
        lib = self._native()
        return bool(lib.gexiv2_metadata_clear_tag(
            self._metadata, _to_native_str(tag, "tag")))

    def clear(self) -> None:
        """Remove all tag values from the metadata."""
        self._native().gexiv2_metadata_clear(self._metadata)

    def has_exif(self) -> bool:
        return bool(self._native().gexiv2_metadata_has_exif(self._metadata))

    def clear_exif(self) -> None:
        self._native().gexiv2_metadata_clear_exif(self._metadata)

    def get_exif_tags(self) -> list[str]:
        """List all Exif tags present in the loaded metadata.

        Raises:
            Rexiv2Error.DecodeFailure: If a tag name is not valid UTF-8
        """
        lib = self._native()
        return _convert_to_py_string_list(
            lib.gexiv2_metadata_get_exif_tags(self._metadata),
            _Release.SPINE_AND_ELEMENTS)

    def has_xmp(self) -> bool:
        return bool(self._native().gexiv2_metadata_has_xmp(self._metadata))

    def clear_xmp(self) -> None:
        self._native().gexiv2_metadata_clear_xmp(self._metadata)

    def get_xmp_tags(self) -> list[str]:
        """List all XMP tags present in the loaded metadata."""
        lib = self._native()
        return _convert_to_py_string_list(
            lib.gexiv2_metadata_get_xmp_tags(self._metadata),
            _Release.SPINE_AND_ELEMENTS)

    def has_iptc(self) -> bool:
        return bool(self._native().gexiv2_metadata_has_iptc(self._metadata))

    def clear_iptc(self) -> None:
        self._native().gexiv2_metadata_clear_iptc(self._metadata)

    def get_iptc_tags(self) -> list[str]:
        """List all IPTC tags present in the loaded metadata."""
        lib = self._native()
        return _convert_to_py_string_list(
            lib.gexiv2_metadata_get_iptc_tags(self._metadata),
            _Release.SPINE_AND_ELEMENTS)

    #
    # Tag data getters/setters.
    #

    def get_tag_string(self, tag: str) -> str:
        """Get the value of a tag as a string.

        Only safe if the tag is really of a string type.

        Raises:
            Rexiv2Error.NoValue: If the tag is not set
            Rexiv2Error.DecodeFailure: If the value is not valid UTF-8
        """
        lib = self._native()
        return _convert_to_py_string(
            lib.gexiv2_metadata_get_tag_string(
                self._metadata, _to_native_str(tag, "tag")),
            _Release.SINGLE)

    def set_tag_string(self, tag: str, value: str) -> None:
        """Set the value of a tag to the given string.

        Only safe if the tag is really of a string type.

        Raises:
            Rexiv2Error.Internal: If the engine rejected the value
        """
        lib = self._native()
        _check_sentinel(lib.gexiv2_metadata_set_tag_string(
            self._metadata,
            _to_native_str(tag, "tag"),
            _to_native_str(value)))

    def get_tag_interpreted_string(self, tag: str) -> str:
        """Get the value of a tag as a string formatted for display."""
        lib = self._native()
        return _convert_to_py_string(
            lib.gexiv2_metadata_get_tag_interpreted_string(
                self._metadata, _to_native_str(tag, "tag")),
            _Release.SINGLE)

    def get_tag_multiple_strings(self, tag: str) -> list[str]:
        """Retrieve the list of string values of the given tag.

        Only safe if the tag is in fact of a string type.

        Raises:
            Rexiv2Error.NoValue: If the engine returned no list
            Rexiv2Error.DecodeFailure: If any value is not valid UTF-8
        """
        lib = self._native()
        return _convert_to_py_string_list(
            lib.gexiv2_metadata_get_tag_multiple(
                self._metadata, _to_native_str(tag, "tag")),
            _Release.SPINE_AND_ELEMENTS)

    def set_tag_multiple_strings(self,
                                 tag: str,
                                 values: Sequence[str]) -> None:
        """Store the given strings as the values of a tag."""
        lib = self._native()
        native_values = _to_native_str_array(values)
        _check_sentinel(lib.gexiv2_metadata_set_tag_multiple(
            self._metadata,
            _to_native_str(tag, "tag"),
            ctypes.cast(native_values, ctypes.POINTER(ctypes.c_char_p))))

    def get_tag_numeric(self, tag: str) -> Optional[int]:
        """Get the value of a tag as a number.

        Only safe if the tag is really of a numeric type.

        The engine reports an absent tag as 0, so a tag that really
        holds 0 is also returned as None.
        """
        lib = self._native()
        value = lib.gexiv2_metadata_get_tag_long(
            self._metadata, _to_native_str(tag, "tag"))
        if value == 0:
            return None
        return value

    def set_tag_numeric(self, tag: str, value: int) -> None:
        """Set the value of a tag to the given number.

        Raises:
            Rexiv2Error.Internal: If the engine rejected the value
        """
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"value must be int, got {type(value)}")
        lib = self._native()
        _check_sentinel(lib.gexiv2_metadata_set_tag_long(
            self._metadata, _to_native_str(tag, "tag"), value))

    def get_tag_rational(self, tag: str) -> Optional[Rational]:
        """Get the value of a tag as a Rational, exactly as stored.

        Only safe if the tag is in fact of a rational type.

        Returns:
            The unreduced numerator/denominator pair, or None when the
            engine reports failure or a 0/0 pair
        """
        lib = self._native()
        numerator = ctypes.c_int(0)
        denominator = ctypes.c_int(0)
        ok = lib.gexiv2_metadata_get_exif_tag_rational(
            self._metadata,
            _to_native_str(tag, "tag"),
            ctypes.byref(numerator),
            ctypes.byref(denominator))
        if not ok or (numerator.value == 0 and denominator.value == 0):
            return None
        return Rational(numerator.value, denominator.value)

    def set_tag_rational(self,
                         tag: str,
                         value: Union[Rational, Fraction, tuple]) -> None:
        """Set the value of a tag to a rational number.

        Args:
            tag: The tag name
            value: A Rational, a (numerator, denominator) tuple, or a
              Fraction (which is already reduced by Python)

        Raises:
            Rexiv2Error.Internal: If the engine rejected the value
        """
        if isinstance(value, Fraction):
            numerator, denominator = value.numerator, value.denominator
        else:
            numerator, denominator = value
        lib = self._native()
        _check_sentinel(lib.gexiv2_metadata_set_exif_tag_rational(
            self._metadata,
            _to_native_str(tag, "tag"),
            int(numerator),
            int(denominator)))

    def get_tag_raw(self, tag: str) -> bytes:
        """Get the raw, undecoded bytes of a tag's value.

        Raises:
            Rexiv2Error.NoValue: If the tag is not set
        """
        lib = self._native()
        raw = lib.gexiv2_metadata_get_tag_raw(
            self._metadata, _to_native_str(tag, "tag"))
        if not raw:
            raise _classify_failure(_FailureIdiom.NULL_RETURN)

        glib = _glib()
        try:
            size = ctypes.c_size_t(0)
            data = glib.g_bytes_get_data(raw, ctypes.byref(size))
            if not data or size.value == 0:
                return b""
            return ctypes.string_at(data, size.value)
        finally:
            glib.g_bytes_unref(raw)

    #
    # Helper & convenience getters/setters.
    #

    def get_orientation(self) -> Orientation:
        """Find out the orientation the image should have."""
        value = self._native().gexiv2_metadata_get_orientation(self._metadata)
        try:
            return Orientation(value)
        except ValueError:
            logger.debug(f"Unknown orientation value {value}")
            return Orientation.UNSPECIFIED

    def set_orientation(self, orientation: Orientation) -> None:
        """Set the intended orientation for the image."""
        lib = self._native()
        lib.gexiv2_metadata_set_orientation(
            self._metadata, int(Orientation(orientation)))

    def get_exposure_time(self) -> Optional[Rational]:
        """Returns the camera exposure time of the photograph."""
        lib = self._native()
        numerator = ctypes.c_int(0)
        denominator = ctypes.c_int(0)
        ok = lib.gexiv2_metadata_get_exposure_time(
            self._metadata,
            ctypes.byref(numerator),
            ctypes.byref(denominator))
        if not ok:
            return None
        return Rational(numerator.value, denominator.value)

    def get_fnumber(self) -> Optional[float]:
        """Returns the f-number used by the camera taking the photograph."""
        fnumber = self._native().gexiv2_metadata_get_fnumber(self._metadata)
        if fnumber == -1.0:
            return None
        return fnumber

    def get_focal_length(self) -> Optional[float]:
        """Returns the focal length used by the camera."""
        focal = self._native().gexiv2_metadata_get_focal_length(
            self._metadata)
        if focal == -1.0:
            return None
        return focal

    def get_iso_speed(self) -> Optional[int]:
        """Returns the ISO speed used by the camera taking the photograph."""
        speed = self._native().gexiv2_metadata_get_iso_speed(self._metadata)
        if speed == 0:
            return None
        return speed

    #
    # Thumbnails.
    #

    def get_thumbnail(self) -> Optional[Thumbnail]:
        """Get the Exif thumbnail, if the file has one.

        Returns:
            A Thumbnail owning its own copy of the native buffer,
            or None if there is no thumbnail
        """
        lib = self._native()
        buffer = ctypes.POINTER(ctypes.c_ubyte)()
        size = ctypes.c_int(0)
        if not lib.gexiv2_metadata_get_exif_thumbnail(
                self._metadata, ctypes.byref(buffer), ctypes.byref(size)):
            return None
        if not buffer:
            # Reported present but nothing was allocated
            return None
        return Thumbnail(buffer, size.value)

    def erase_thumbnail(self) -> None:
        """Remove the Exif thumbnail."""
        self._native().gexiv2_metadata_erase_exif_thumbnail(self._metadata)

    def set_thumbnail_from_file(self, path: PathLike) -> None:
        """Set the Exif thumbnail to the contents of a JPEG file.

        Raises:
            Rexiv2Error.Internal: If the file cannot be read
        """
        lib = self._native()
        _call_with_error(
            lib.gexiv2_metadata_set_exif_thumbnail_from_file,
            self._metadata,
            _to_native_path(path))

    def set_thumbnail_from_buffer(self, data: BufferLike) -> None:
        """Set the Exif thumbnail to the given JPEG bytes."""
        lib = self._native()
        buffer = _to_native_buffer(data)
        lib.gexiv2_metadata_set_exif_thumbnail_from_buffer(
            self._metadata, buffer, len(buffer))

    #
    # Preview images.
    #

    def get_preview_images(self) -> Optional[list[PreviewImage]]:
        """List the preview images embedded in the loaded file.

        The returned descriptors can only read image data while this
        Metadata is open.

        Returns:
            The previews, or None if the engine has none to report
        """
        lib = self._native()
        # The array and its elements belong to the metadata context
        properties = lib.gexiv2_metadata_get_preview_properties(
            self._metadata)
        if not properties:
            return None

        previews = []
        index = 0
        while properties[index]:
            previews.append(PreviewImage(self, properties[index]))
            index += 1
        return previews

    #
    # GPS-related methods.
    #

    def get_gps_info(self) -> Optional[GpsInfo]:
        """Retrieve the stored GPS information, None if there is none."""
        lib = self._native()
        longitude = ctypes.c_double(0.0)
        latitude = ctypes.c_double(0.0)
        altitude = ctypes.c_double(0.0)
        ok = lib.gexiv2_metadata_get_gps_info(
            self._metadata,
            ctypes.byref(longitude),
            ctypes.byref(latitude),
            ctypes.byref(altitude))
        if not ok:
            return None
        return GpsInfo(longitude.value, latitude.value, altitude.value)

    def set_gps_info(self, gps: GpsInfo) -> None:
        """Save the specified GPS values to the metadata.

        Raises:
            Rexiv2Error.Internal: If the engine rejected the values
        """
        lib = self._native()
        _check_sentinel(lib.gexiv2_metadata_set_gps_info(
            self._metadata,
            float(gps.longitude),
            float(gps.latitude),
            float(gps.altitude)))

    def delete_gps_info(self) -> None:
        """Remove all saved GPS information from the metadata."""
        self._native().gexiv2_metadata_delete_gps_info(self._metadata)


#
# Tag information.
#

def is_exif_tag(tag: str) -> bool:
    """Indicates whether the given tag is from the Exif domain."""
    return bool(_gexiv2().gexiv2_metadata_is_exif_tag(
        _to_native_str(tag, "tag")))


def is_iptc_tag(tag: str) -> bool:
    """Indicates whether the given tag is part of the IPTC domain."""
    return bool(_gexiv2().gexiv2_metadata_is_iptc_tag(
        _to_native_str(tag, "tag")))


def is_xmp_tag(tag: str) -> bool:
    """Indicates whether the given tag is from the XMP domain."""
    return bool(_gexiv2().gexiv2_metadata_is_xmp_tag(
        _to_native_str(tag, "tag")))


def get_tag_label(tag: str) -> str:
    """Get a short label for a tag.

    Raises:
        Rexiv2Error.NoValue: If the tag is unknown
    """
    return _convert_to_py_string(
        _gexiv2().gexiv2_metadata_get_tag_label(_to_native_str(tag, "tag")),
        _Release.BORROWED)


def get_tag_description(tag: str) -> str:
    """Get the long-form description of a tag.

    Raises:
        Rexiv2Error.NoValue: If the tag is unknown
    """
    return _convert_to_py_string(
        _gexiv2().gexiv2_metadata_get_tag_description(
            _to_native_str(tag, "tag")),
        _Release.BORROWED)


def get_tag_type(tag: str) -> TagType:
    """Determine the type of the given tag.

    Raises:
        Rexiv2Error.NoValue: If the tag is unknown
    """
    type_name = _convert_to_py_string(
        _gexiv2().gexiv2_metadata_get_tag_type(_to_native_str(tag, "tag")),
        _Release.BORROWED)
    return TagType.from_str(type_name)


#
# XMP namespace management.
#
# The namespace table is process-wide and not synchronized:
# callers registering from several threads must serialize themselves.
#

def register_xmp_namespace(name: str, prefix: str) -> None:
    """Add a new XMP namespace for tags to exist under.

    Raises:
        Rexiv2Error.Internal: If the prefix is already registered
    """
    _check_sentinel(_gexiv2().gexiv2_metadata_register_xmp_namespace(
        _to_native_str(name, "name"), _to_native_str(prefix, "prefix")))


def unregister_xmp_namespace(name: str) -> None:
    """Remove an XMP namespace from the set of known ones.

    Raises:
        Rexiv2Error.Internal: If the namespace was not registered
    """
    _check_sentinel(_gexiv2().gexiv2_metadata_unregister_xmp_namespace(
        _to_native_str(name, "name")))


def unregister_all_xmp_namespaces() -> None:
    """Forget all custom XMP namespaces."""
    _gexiv2().gexiv2_metadata_unregister_all_xmp_namespaces()


#
# Engine log level.
#

def get_log_level() -> LogLevel:
    """Get the verbosity of the engine's own diagnostic output."""
    return LogLevel(_gexiv2().gexiv2_log_get_level())


def set_log_level(level: LogLevel) -> None:
    """Set the verbosity of the engine's own diagnostic output.

    This is process-wide and does not affect Python logging.
    """
    _gexiv2().gexiv2_log_set_level(int(LogLevel(level)))
