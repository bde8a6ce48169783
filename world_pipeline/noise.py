# world_pipeline/noise.py

"""
================================================================================
FRACTAL NOISE FIELDS
================================================================================
Seeded multi-octave Perlin noise sampled over a whole map. Used for the
temperature and precipitation variation layers and for plate relief.

Data Contract:
---------------
- Inputs:
    - height, width: Map dimensions in cells.
    - seed: Drives the permutation table and the per-octave lattice offsets.
    - octaves, feature_scale, persistence, lacunarity: Standard fBm knobs.
      feature_scale is the number of base-octave features across the map.
- Outputs:
    - A (height, width) float64 array in [0, 1].
- Side Effects: None. The kernel is JIT-compiled by Numba on first use.
- Invariants: Same arguments, same field. Each cell is sampled at its centre.
================================================================================
"""

import numpy as np
from numba import njit

_TABLE_SIZE = 256

# Unit gradients on the axes and diagonals.
_DIAGONAL = 0.7071067811865476
_GRADIENTS = np.array([
    [1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0],
    [_DIAGONAL, _DIAGONAL], [-_DIAGONAL, _DIAGONAL], [_DIAGONAL, -_DIAGONAL], [-_DIAGONAL, -_DIAGONAL],
])


def build_permutation_table(seed: int) -> np.ndarray:
    """Seeded shuffle of 0..255, repeated once so lookups never wrap."""
    table = np.random.default_rng(seed).permutation(_TABLE_SIZE).astype(np.int64)
    return np.concatenate((table, table))


@njit
def _smoothstep5(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


@njit
def _corner(perm, ix, iy, dx, dy):
    h = perm[perm[ix & 255] + (iy & 255)] & 7
    return _GRADIENTS[h, 0] * dx + _GRADIENTS[h, 1] * dy


@njit
def _perlin(perm, x, y):
    x0 = np.floor(x)
    y0 = np.floor(y)
    ix = int(x0)
    iy = int(y0)
    dx = x - x0
    dy = y - y0

    n00 = _corner(perm, ix, iy, dx, dy)
    n10 = _corner(perm, ix + 1, iy, dx - 1.0, dy)
    n01 = _corner(perm, ix, iy + 1, dx, dy - 1.0)
    n11 = _corner(perm, ix + 1, iy + 1, dx - 1.0, dy - 1.0)

    u = _smoothstep5(dx)
    bottom = n00 + u * (n10 - n00)
    top = n01 + u * (n11 - n01)
    return bottom + _smoothstep5(dy) * (top - bottom)


@njit
def _fbm_field(perm, offsets, height, width, feature_scale, persistence, lacunarity):
    field = np.empty((height, width))
    step_x = feature_scale / width
    step_y = feature_scale / height
    octaves = offsets.shape[0]

    for row in range(height):
        y = (row + 0.5) * step_y
        for col in range(width):
            x = (col + 0.5) * step_x
            total = 0.0
            amplitude = 1.0
            frequency = 1.0
            for octave in range(octaves):
                total += amplitude * _perlin(
                    perm, x * frequency + offsets[octave, 0], y * frequency + offsets[octave, 1]
                )
                amplitude *= persistence
                frequency *= lacunarity
            field[row, col] = total
    return field


def fractal_noise_map(height: int, width: int, seed: int, octaves: int, feature_scale: float,
                      persistence: float = 0.5, lacunarity: float = 2.0) -> np.ndarray:
    """Multi-octave Perlin noise over a (height, width) map, normalized to [0, 1]."""
    if height <= 0 or width <= 0 or octaves <= 0:
        return np.zeros((max(height, 0), max(width, 0)))

    perm = build_permutation_table(seed)
    # Shift each octave to its own region of the lattice so octaves do not share zeros.
    offsets = np.random.default_rng(seed).uniform(0.0, float(_TABLE_SIZE), size=(octaves, 2))
    raw = _fbm_field(perm, offsets, height, width, float(feature_scale), float(persistence), float(lacunarity))

    # Divide by the amplitude sum rather than the observed extremes so the
    # scale does not depend on the particular map.
    amplitude_sum = sum(persistence ** i for i in range(octaves))
    return np.clip((raw / amplitude_sum + 1.0) / 2.0, 0.0, 1.0)
