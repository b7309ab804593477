"""
ONNX Runtime shared library loader.

This module centralizes the logic for resolving and loading the ONNX Runtime
shared library via `ctypes`, including platform-specific filename conventions
and Windows DLL dependency handling.

Resolution policy
-----------------
Unless an explicit `lib_path` is provided, the loader tries, in order:

1. The path in the ``ORTBRIDGE_ORT_LIB`` environment variable
2. The platform library name next to this module
3. ``ctypes.util.find_library("onnxruntime")``

Windows-specific considerations
-------------------------------
On Windows (Python 3.8+), dependent DLL discovery is restricted by default.
The directory containing the library and the optional
``ORTBRIDGE_ORT_DLL_DIR`` directory are registered with
`os.add_dll_directory(...)`. Registration handles are retained on the loaded
library object so the directories stay registered for its lifetime.

Scope
-----
This module only locates and loads the library. Resolving the ``OrtApi``
function table lives in `ort_api_ctypes`.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ORT_LIB_ENV = "ORTBRIDGE_ORT_LIB"
ORT_DLL_DIR_ENV = "ORTBRIDGE_ORT_DLL_DIR"


def _platform_lib_name() -> str:
    """
    Return the ONNX Runtime library filename for the current OS.

    Returns
    -------
    str
        ``onnxruntime.dll`` on Windows, ``libonnxruntime.dylib`` on macOS and
        ``libonnxruntime.so`` elsewhere.
    """
    if sys.platform.startswith("win"):
        return "onnxruntime.dll"
    if sys.platform == "darwin":
        return "libonnxruntime.dylib"
    return "libonnxruntime.so"


@lru_cache(maxsize=1)
def load_onnxruntime(lib_path: Optional[str] = None) -> ctypes.CDLL:
    """
    Load the ONNX Runtime shared library via ctypes.

    Parameters
    ----------
    lib_path : Optional[str]
        Absolute or relative path to a specific library file. If provided,
        this path always wins and no search occurs.

    Returns
    -------
    ctypes.CDLL
        A loaded ctypes handle to the library.

    Raises
    ------
    FileNotFoundError
        If an explicit path (argument or ``ORTBRIDGE_ORT_LIB``) does not exist.
    OSError
        If none of the candidate libraries can be loaded.
    """
    if lib_path is not None:
        return _load_cdll_with_windows_dirs(Path(lib_path).resolve())

    env_path = os.environ.get(ORT_LIB_ENV, "")
    if env_path:
        return _load_cdll_with_windows_dirs(Path(env_path).resolve())

    errors: list[str] = []

    local = Path(__file__).resolve().parent / _platform_lib_name()
    if local.exists():
        try:
            return _load_cdll_with_windows_dirs(local)
        except OSError as e:
            errors.append(f"- {local} (failed to load: {e})")
    else:
        errors.append(f"- {local} (missing)")

    found = ctypes.util.find_library("onnxruntime")
    if found:
        logger.debug("loading ONNX Runtime found on the system path: %s", found)
        try:
            return ctypes.CDLL(found)
        except OSError as e:
            errors.append(f"- {found} (failed to load: {e})")
    else:
        errors.append("- find_library('onnxruntime') (not found)")

    raise OSError(
        "Failed to load the ONNX Runtime shared library. "
        f"Set {ORT_LIB_ENV} to its path. Tried:\n" + "\n".join(errors)
    )


def _load_cdll_with_windows_dirs(dll_path: Path) -> ctypes.CDLL:
    if not dll_path.exists():
        raise FileNotFoundError(f"ONNX Runtime library not found: {dll_path}")

    handles = []
    if sys.platform.startswith("win") and hasattr(os, "add_dll_directory"):
        for dll_dir in (str(dll_path.parent), os.environ.get(ORT_DLL_DIR_ENV, "")):
            if not dll_dir or not os.path.isdir(dll_dir):
                continue
            try:
                handles.append(os.add_dll_directory(dll_dir))
            except OSError as e:
                raise OSError(
                    f"add_dll_directory failed for dll_dir={dll_dir!r} len={len(dll_dir)} "
                    f"winerror={getattr(e, 'winerror', None)} "
                    f"strerror={getattr(e, 'strerror', None)!r}"
                ) from e

    dll_str = str(dll_path)
    logger.debug("loading ONNX Runtime from %s", dll_str)
    try:
        lib = ctypes.CDLL(dll_str)
    except OSError as e:
        raise OSError(
            f"ctypes.CDLL failed for dll={dll_str!r} "
            f"winerror={getattr(e, 'winerror', None)} errno={getattr(e, 'errno', None)} "
            f"strerror={getattr(e, 'strerror', None)!r}"
        ) from e

    setattr(lib, "_ortbridge_dll_dir_handles", handles)
    return lib
