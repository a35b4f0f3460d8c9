"""Host-side helpers shared by the per-type material registries.

Each material module keeps its parameters in fixed-size Taichi fields plus a
scalar count field. These helpers validate parameters and hand out the next
free slot.
"""

import taichi as ti


def validate_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    """Return albedo as a float triple, checking each channel is in [0, 1].

    Raises:
        ValueError: If albedo does not have three components or a channel
            lies outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    values = tuple(float(c) for c in albedo)
    for i, c in enumerate(values):
        if not 0.0 <= c <= 1.0:
            raise ValueError(f"Albedo component {i} = {c} is outside [0, 1]")
    return values


def claim_slot(count: ti.Field, capacity: int, kind: str) -> int:
    """Reserve the next slot of a registry and bump its count.

    Args:
        count: Scalar i32 field holding the number of used slots.
        capacity: Size of the registry's parameter fields.
        kind: Material name used in the error message.

    Raises:
        RuntimeError: If every slot is taken.
    """
    idx = int(count[None])
    if idx >= capacity:
        raise RuntimeError(f"Maximum number of {kind} materials ({capacity}) exceeded")
    count[None] = idx + 1
    return idx
