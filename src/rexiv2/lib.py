"""
Library loading utilities

Takes care only on loading the needed compiled libraries
(gexiv2 and the GLib it allocates memory with).
"""

import os
import sys
import ctypes
import ctypes.util
import logging
import platform
from pathlib import Path
from typing import Optional

# Debug flag for library loading
DEBUG_LIBRARY_LOADING = False

# Create a module-specific logger with NullHandler
# to avoid interfering with global configuration
logger = logging.getLogger("rexiv2.loader")
logger.addHandler(logging.NullHandler())

# Library file names per platform, most specific first
_GEXIV2_LIBRARY_NAMES = {
    "darwin": ["libgexiv2.2.dylib", "libgexiv2.dylib"],
    "linux": ["libgexiv2.so.2", "libgexiv2.so"],
    "win32": ["libgexiv2-2.dll", "gexiv2.dll"],
}

_GLIB_LIBRARY_NAMES = {
    "darwin": ["libglib-2.0.0.dylib", "libglib-2.0.dylib"],
    "linux": ["libglib-2.0.so.0", "libglib-2.0.so"],
    "win32": ["libglib-2.0-0.dll", "glib-2.0.dll"],
}


def _get_architecture() -> str:
    """
    Get the current system architecture.

    Returns:
        The system architecture (e.g., 'arm64', 'x86_64', ...)
    """
    if sys.platform == "darwin":
        # On macOS, we need to check if we're running under Rosetta
        if platform.processor() == 'arm':
            return "arm64"
        else:
            return "x86_64"
    elif sys.platform in ("linux", "win32"):
        return platform.machine()
    else:
        raise RuntimeError(f"Unsupported platform: {sys.platform}")


def _default_library_names(table: dict) -> list[str]:
    names = table.get(sys.platform)
    if names is None:
        raise RuntimeError(f"Unsupported platform: {sys.platform}")
    return names


def _load_single_library(lib_name: str,
                         search_paths: list[Path]) -> Optional[ctypes.CDLL]:
    """
    Load a single library from the given search paths.

    Args:
        lib_name: Name of the library to load
        search_paths: List of paths to search for the library

    Returns:
        The loaded library or None if loading failed
    """
    if DEBUG_LIBRARY_LOADING:  # pragma: no cover
        logger.info(f"Searching for library '{lib_name}' in paths: {[str(p) for p in search_paths]}")
    current_arch = _get_architecture()

    for path in search_paths:
        lib_path = path / lib_name
        if lib_path.exists():
            if DEBUG_LIBRARY_LOADING:  # pragma: no cover
                logger.info(f"Found library at: {lib_path}")
            try:
                return ctypes.CDLL(str(lib_path))
            except OSError as e:
                error_msg = str(e)
                if "incompatible architecture" in error_msg or "wrong ELF class" in error_msg:
                    logger.error(f"Architecture mismatch: Library at {lib_path} is not compatible with current architecture {current_arch}")
                    logger.error(f"Error details: {error_msg}")
                else:
                    logger.error(f"Failed to load library from {lib_path}: {e}")
        else:
            logger.debug(f"Library not found at: {lib_path}")
    return None


def _load_from_system(lib_name: str, short_name: str) -> Optional[ctypes.CDLL]:
    """
    Ask the system loader for a library, first through
    ctypes.util.find_library, then by its bare file name.

    Args:
        lib_name: File name of the library (e.g. 'libgexiv2.so.2')
        short_name: Name without prefix and version (e.g. 'gexiv2')

    Returns:
        The loaded library or None if the system loader does not know it
    """
    candidates = []
    found = ctypes.util.find_library(short_name)
    if found:
        candidates.append(found)
    candidates.append(lib_name)

    for candidate in candidates:
        try:
            lib = ctypes.CDLL(candidate)
            logger.debug(f"Loaded {candidate} through the system loader")
            return lib
        except OSError:
            logger.debug(f"System loader could not load: {candidate}")
    return None


def _get_possible_search_paths() -> list[Path]:
    """
    Get a list of possible paths where the libraries might be located.

    Returns:
        List of Path objects representing possible library locations
    """
    possible_paths = [
        # Additional library directory bundled with the package
        Path(__file__).parent / "libs",
        # Package directory (usually for local dev)
        Path(__file__).parent,
        # Current directory
        Path.cwd(),
        # Libs directory at root of repo
        Path.cwd() / "libs",
    ]

    # Add library path variables
    for variable in ("LD_LIBRARY_PATH", "DYLD_LIBRARY_PATH"):
        possible_paths.extend([Path(p) for p in os.environ.get(
            variable, "").split(os.pathsep) if p])

    # Common install prefixes (Homebrew, MacPorts, distro multiarch)
    if sys.platform == "darwin":
        possible_paths.extend([
            Path("/opt/homebrew/lib"),
            Path("/usr/local/lib"),
            Path("/opt/local/lib"),
        ])
    elif sys.platform == "linux":
        arch = _get_architecture()
        possible_paths.extend([
            Path(f"/usr/lib/{arch}-linux-gnu"),
            Path("/usr/lib64"),
            Path("/usr/lib"),
            Path("/usr/local/lib"),
        ])

    return possible_paths


def _dynamically_load(env_variable: str,
                      default_names: list[str],
                      short_name: str,
                      lib_name: Optional[str] = None) -> ctypes.CDLL:
    possible_paths = _get_possible_search_paths()

    # Check for the environment variable override first
    env_lib_name = os.environ.get(env_variable)
    if env_lib_name:
        if DEBUG_LIBRARY_LOADING:  # pragma: no cover
            logger.info(f"Using library name from env var {env_variable}: {env_lib_name}")
        lib = _load_single_library(env_lib_name, possible_paths)
        if lib is None:
            lib = _load_from_system(env_lib_name, short_name)
        if lib:
            return lib
        # Continue with normal loading if the environment
        # variable library name fails
        logger.error(f"Could not find library {env_lib_name} from {env_variable}")

    if lib_name:
        # If specific library name is provided, only load that one
        lib = _load_single_library(lib_name, possible_paths)
        if lib is None:
            lib = _load_from_system(lib_name, short_name)
        if lib is None:
            logger.error(f"Could not find {lib_name} in any of the search paths: {[str(p) for p in possible_paths]}")
            raise RuntimeError(f"Could not find {lib_name} in any of the search paths (Platform: {sys.platform}, Architecture: {_get_architecture()})")
        return lib

    for name in default_names:
        lib = _load_single_library(name, possible_paths)
        if lib:
            return lib
    for name in default_names:
        lib = _load_from_system(name, short_name)
        if lib:
            return lib

    logger.error(f"Could not find any of {default_names} in the search paths: {[str(p) for p in possible_paths]}")
    raise RuntimeError(f"Could not find {short_name} library (tried: {', '.join(default_names)})")


def dynamically_load_library(
        lib_name: Optional[str] = None) -> ctypes.CDLL:
    """
    Load the gexiv2 dynamic library based on the platform.

    Args:
        lib_name: Optional specific library name to load.
          If provided, only this library will be loaded
          (the presence of required symbols will nevertheless
          be verified once the library is loaded).

    Returns:
        The loaded library

    Raises:
        RuntimeError: If the library could not be found or loaded
    """
    if DEBUG_LIBRARY_LOADING:  # pragma: no cover
        logger.info(f"Current working directory: {Path.cwd()}")
        logger.info(f"Package directory: {Path(__file__).parent}")
        logger.info(f"System architecture: {_get_architecture()}")

    return _dynamically_load(
        "REXIV2_LIBRARY_NAME",
        _default_library_names(_GEXIV2_LIBRARY_NAMES),
        "gexiv2",
        lib_name)


def dynamically_load_glib(
        lib_name: Optional[str] = None) -> ctypes.CDLL:
    """
    Load the GLib dynamic library gexiv2 allocates its results with.
    Strings, string arrays, GError and GBytes returned by gexiv2
    must be released with the GLib allocator, not the C runtime one.

    Args:
        lib_name: Optional specific library name to load.

    Returns:
        The loaded library

    Raises:
        RuntimeError: If the library could not be found or loaded
    """
    return _dynamically_load(
        "REXIV2_GLIB_LIBRARY_NAME",
        _default_library_names(_GLIB_LIBRARY_NAMES),
        "glib-2.0",
        lib_name)
