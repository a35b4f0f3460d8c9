"""Counter-based random number generation for Taichi kernels.

Every (pixel, sample) pair owns an independent 32-bit generator state. The
state is derived by hashing the render seed together with the pixel and
sample indices, then advanced with a xorshift32 step on every draw. Random
helpers take the current state and return the updated one alongside the
value, so no generator is shared between parallel iterations and a render is
reproducible for a given seed regardless of thread scheduling.

Example:
    >>> @ti.kernel
    ... def draw(seed: ti.u32) -> ti.f64:
    ...     state = seed_state(seed, 0, 0)
    ...     x, state = random_f64(state)
    ...     return x
"""

import taichi as ti


@ti.func
def wang_hash(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Thomas Wang's integer hash)."""
    x = value
    x = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    x = x * ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x = x * ti.u32(0x27D4EB2D)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def seed_state(seed: ti.u32, pixel_index: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the generator state for one sample of one pixel.

    Args:
        seed: The render seed.
        pixel_index: Flattened pixel index (j * width + i).
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero generator state.
    """
    h = wang_hash(seed)
    h = wang_hash(h ^ ti.cast(pixel_index, ti.u32))
    h = wang_hash(h ^ ti.cast(sample_index, ti.u32))
    # xorshift has a fixed point at zero
    if h == ti.u32(0):
        h = ti.u32(1)
    return h


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 generator by one step."""
    x = state
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    return x


@ti.func
def random_f64(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Uses the top 24 bits of the advanced state.

    Returns:
        A tuple of (value, new_state).
    """
    s = next_state(state)
    value = ti.cast(ti.cast(s >> ti.u32(8), ti.i32), ti.f64) * (1.0 / 16777216.0)
    return value, s


@ti.func
def random_range(state: ti.u32, low: ti.f64, high: ti.f64):
    """Draw a uniform float in [low, high).

    Returns:
        A tuple of (value, new_state).
    """
    x, s = random_f64(state)
    return low + (high - low) * x, s
