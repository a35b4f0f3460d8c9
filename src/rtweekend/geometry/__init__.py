"""Geometry module for shape primitives.

Spheres are the only primitive. Intersection results are returned as
HitRecord dataclasses usable inside Taichi kernels.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
    "set_face_normal",
]
