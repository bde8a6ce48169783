# world_pipeline/native.py

"""
================================================================================
NATIVE PLATE SIMULATION ADAPTER
================================================================================
ctypes adapter over the native plate-tectonics library's C ABI. All pointer
handling for the native boundary lives in this module.

Data Contract:
---------------
- Inputs:
    - PlateSimulationParams.
    - Either an explicit library path, the PLATE_TECTONICS_LIBRARY
      environment variable, or a search root holding per-platform builds
      (<root>/<platform>/libPlateTectonics.so, PlateTectonics.dll, ...).
- Outputs:
    - SimulationResult with an owned float64 heightmap and uint32 plates map.
- Side Effects:
    - Loads a shared library on first use.
    - Each generate() call creates exactly one native simulation and
      destroys it exactly once, on every exit path.
- Errors:
    - NativeLibraryNotFound, NativeCreateFailed, MarshalSizeMismatch,
      NonConvergence.
================================================================================
"""

import ctypes
import logging
import os
import platform
import threading
import time

import numpy as np

from . import config as DEFAULTS
from .errors import MarshalSizeMismatch, NativeCreateFailed, NativeLibraryNotFound, NonConvergence
from .params import PlateSimulationParams, SimulationResult
from .plate_simulator import PlateSimulator

# C signatures of the exported functions: name -> (argtypes, restype).
_FUNCTION_SIGNATURES = {
    "platec_api_create": (
        [
            ctypes.c_int,     # seed
            ctypes.c_uint,    # width
            ctypes.c_uint,    # height
            ctypes.c_float,   # sea_level
            ctypes.c_uint,    # erosion_period
            ctypes.c_float,   # folding_ratio
            ctypes.c_uint,    # aggr_overlap_abs
            ctypes.c_float,   # aggr_overlap_rel
            ctypes.c_uint,    # cycle_count
            ctypes.c_uint,    # num_plates
        ],
        ctypes.c_void_p,
    ),
    "platec_api_step": ([ctypes.c_void_p], None),
    "platec_api_is_finished": ([ctypes.c_void_p], ctypes.c_uint),
    "platec_api_get_heightmap": ([ctypes.c_void_p], ctypes.c_void_p),
    "platec_api_get_platesmap": ([ctypes.c_void_p], ctypes.c_void_p),
    "lithosphere_getMapWidth": ([ctypes.c_void_p], ctypes.c_uint),
    "lithosphere_getMapHeight": ([ctypes.c_void_p], ctypes.c_uint),
    "platec_api_destroy": ([ctypes.c_void_p], None),
}

# Per-thread scratch buffer for copying native memory out before the handle
# is destroyed. Independent generations on separate threads never share it.
_scratch = threading.local()


def _scratch_buffer(size: int) -> np.ndarray:
    buffer = getattr(_scratch, "buffer", None)
    if buffer is None or buffer.size < size:
        buffer = np.empty(size, dtype=np.float32)
        _scratch.buffer = buffer
    return buffer[:size]


def detect_platform() -> str:
    """Returns the platform directory name, e.g. 'linux-x64' or 'macos-arm64'."""
    system = platform.system()
    machine = platform.machine().lower()
    is_x64 = machine in ("x86_64", "amd64")

    if system == "Windows":
        return "win-x64" if is_x64 else "win-x86"
    if system == "Linux":
        return "linux-x64" if is_x64 else "linux-arm64"
    if system == "Darwin":
        return "macos-x64" if is_x64 else "macos-arm64"
    raise NativeLibraryNotFound(f"Unsupported platform for the native plate simulation: {system} ({machine})")


def library_file_name(system: str = None) -> str:
    system = system or platform.system()
    if system == "Windows":
        return f"{DEFAULTS.NATIVE_LIBRARY_NAME}.dll"
    if system == "Darwin":
        return f"lib{DEFAULTS.NATIVE_LIBRARY_NAME}.dylib"
    return f"lib{DEFAULTS.NATIVE_LIBRARY_NAME}.so"


def find_library(search_root: str = None) -> str:
    """
    Resolves the native library path.

    Order: the PLATE_TECTONICS_LIBRARY environment variable, then
    <search_root>/<platform>/<file name>. The search root defaults to a
    'native' directory next to the working directory.
    """
    env_path = os.environ.get(DEFAULTS.NATIVE_LIBRARY_ENV_VAR)
    if env_path:
        if not os.path.isfile(env_path):
            raise NativeLibraryNotFound(
                f"{DEFAULTS.NATIVE_LIBRARY_ENV_VAR} points to '{env_path}', which does not exist"
            )
        return env_path

    root = search_root or os.path.abspath(DEFAULTS.NATIVE_LIBRARY_DIR)
    platform_dir = detect_platform()
    expected_path = os.path.join(root, platform_dir, library_file_name())
    if not os.path.isfile(expected_path):
        raise NativeLibraryNotFound(
            f"{DEFAULTS.NATIVE_LIBRARY_NAME} not found at '{expected_path}' (platform: {platform_dir})"
        )
    return expected_path


def bind_library(lib):
    """Declares argument and return types on every exported function."""
    for name, (argtypes, restype) in _FUNCTION_SIGNATURES.items():
        try:
            function = getattr(lib, name)
        except AttributeError:
            raise NativeLibraryNotFound(f"Native library does not export '{name}'") from None
        function.argtypes = argtypes
        function.restype = restype
    return lib


def _copy_heightmap(pointer, height: int, width: int) -> np.ndarray:
    if not pointer:
        raise MarshalSizeMismatch("Native heightmap buffer is NULL")
    count = height * width
    source = np.ctypeslib.as_array(ctypes.cast(pointer, ctypes.POINTER(ctypes.c_float)), shape=(count,))
    scratch = _scratch_buffer(count)
    np.copyto(scratch, source)
    return scratch.reshape(height, width).astype(np.float64)


def _copy_plates_map(pointer, height: int, width: int) -> np.ndarray:
    if not pointer:
        raise MarshalSizeMismatch("Native plates map buffer is NULL")
    count = height * width
    source = np.ctypeslib.as_array(ctypes.cast(pointer, ctypes.POINTER(ctypes.c_uint32)), shape=(count,))
    return np.array(source, dtype=np.uint32, copy=True).reshape(height, width)


class NativePlateSimulator(PlateSimulator):
    """
    Runs the plate simulation in the native library.

    Args:
        library_path (str, optional): Explicit path to the shared library.
        search_root (str, optional): Directory holding per-platform builds.
        lib (optional): An already-loaded library object exposing the C ABI.
            Used as-is; no signatures are declared on it.
        logger (logging.Logger, optional): Logger for runtime messages.
    """

    name = "native"

    def __init__(self, library_path: str = None, search_root: str = None, lib=None, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)
        self.library_path = library_path
        self.search_root = search_root
        self._lib = lib
        self._resolved_path = library_path
        self._load_lock = threading.Lock()

    def _load(self):
        with self._load_lock:
            if self._lib is None:
                path = self.library_path or find_library(self.search_root)
                self._resolved_path = path
                self.logger.debug(f"Loading native plate library from {path}")
                try:
                    self._lib = bind_library(ctypes.CDLL(path))
                except OSError as e:
                    raise NativeLibraryNotFound(f"Could not load native library '{path}': {e}") from e
            return self._lib

    def generate(self, params: PlateSimulationParams) -> SimulationResult:
        lib = self._load()
        size = params.map_size
        self.logger.info(
            f"Running native plate simulation: seed={params.seed}, "
            f"size={size}x{size}, plates={params.plate_count}"
        )
        start_time = time.perf_counter()

        handle = lib.platec_api_create(
            int(params.seed), size, size,
            float(params.sea_level), int(params.erosion_period),
            float(params.folding_ratio), int(params.aggr_overlap_abs),
            float(params.aggr_overlap_rel), int(params.cycle_count),
            int(params.plate_count),
        )
        if not handle:
            raise NativeCreateFailed("Native plate simulation could not be created (NULL handle)")

        try:
            # 1. Step until the simulation reports completion or the budget runs out.
            steps = 0
            while not lib.platec_api_is_finished(handle):
                if steps >= params.max_steps:
                    raise NonConvergence(
                        f"Native plate simulation did not finish within {params.max_steps} steps"
                    )
                lib.platec_api_step(handle)
                steps += 1

            # 2. The reported map size must match what was requested.
            width = int(lib.lithosphere_getMapWidth(handle))
            height = int(lib.lithosphere_getMapHeight(handle))
            if (width, height) != (size, size):
                raise MarshalSizeMismatch(
                    f"Native map is {width}x{height}, expected {size}x{size}"
                )

            # 3. Copy both buffers out before the handle goes away.
            heightmap = _copy_heightmap(lib.platec_api_get_heightmap(handle), height, width)
            plates_map = _copy_plates_map(lib.platec_api_get_platesmap(handle), height, width)
        finally:
            lib.platec_api_destroy(handle)

        duration = time.perf_counter() - start_time
        self.logger.info(f"Native plate simulation finished after {steps} steps in {duration:.2f}s")
        return SimulationResult(
            heightmap=heightmap, plates_map=plates_map, steps=steps, simulator=self.name,
            metadata={"duration_seconds": duration, "library_path": self._resolved_path},
        )
