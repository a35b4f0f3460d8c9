"""Scene building on top of sphere storage and the material registries.

Every material gets a unified id when it is registered. Kernels resolve the
id to a (MaterialType, registry slot) pair through ``material_slots`` and
then read the parameters from that type's registry. Spheres store only the
unified id, so one material can be shared by many spheres.

A scene can also be described as plain data (``SceneConfig`` or a dict)
and rebuilt from it:

    {
        "materials": [{"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.0}],
        "spheres": [{"center": [1, 0, -1], "radius": 0.5, "material_id": 0}],
    }

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material((0.5, 0.5, 0.5))
    >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from rtweekend.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from rtweekend.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from rtweekend.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from rtweekend.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Surface models understood by the integrator's scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2

    @classmethod
    def from_name(cls, name: str) -> "MaterialType":
        """Look up a type by its case-insensitive name.

        Raises:
            ValueError: If no type has that name.
        """
        try:
            return cls[str(name).upper()]
        except KeyError:
            raise ValueError(f"Unknown material type: {name}") from None


MAX_MATERIALS = 1024

# Unified id -> (MaterialType, slot in that type's registry)
material_slots = ti.Vector.field(2, dtype=ti.i32, shape=MAX_MATERIALS)
material_count = ti.field(dtype=ti.i32, shape=())


def reset_material_slots() -> None:
    """Forget every unified material id."""
    material_count[None] = 0


@ti.func
def _is_valid_material(material_id: ti.i32) -> ti.i32:
    return 0 <= material_id and material_id < material_count[None]


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType value of a material, or -1 if the id is not registered."""
    result = -1
    if _is_valid_material(material_id):
        result = material_slots[material_id][0]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Slot of a material in its type's registry, or -1 if not registered.

    For example the second metal material added to a scene has slot 1,
    whatever its unified id.
    """
    result = -1
    if _is_valid_material(material_id):
        result = material_slots[material_id][1]
    return result


@dataclass
class MaterialInfo:
    """Host-side record of a registered material.

    ``params`` holds the arguments the material was created with, keyed the
    same way as in a scene description.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Host-side record of a sphere added to the scene."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Scene as plain data.

    Attributes:
        materials: One dict per material with a "type" key ("lambertian",
            "metal" or "dielectric") and that type's parameters. A
            material's position in the list is its id.
        spheres: One dict per sphere with "center", "radius" and
            "material_id" keys.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence to a float tuple."""
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds the global scene: materials first, then spheres that use them.

    Sphere and material storage lives in Taichi fields shared by the whole
    runtime, so constructing a SceneManager (or calling clear()) wipes
    whatever scene was there before.

    Attributes:
        materials: MaterialInfo per unified material id.
        spheres: SphereInfo per sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> glass = scene.add_dielectric_material(1.5)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_sphere((-1, 0, -1), -0.4, glass)  # hollow shell
        >>> scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), fuzz=0.0)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove all spheres and materials."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_slots()
        self.materials = []
        self.spheres = []

    # Materials

    def _register(self, material_type: MaterialType, type_index: int, **params: Any) -> int:
        material_id = len(self.materials)
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_slots[material_id] = [int(material_type), type_index]
        material_count[None] = material_id + 1
        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))

        logger.debug("Material %d: %s %s", material_id, material_type.name.lower(), params)
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its unified id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If a material registry is full.
        """
        type_index = add_lambertian_material(albedo)
        return self._register(MaterialType.LAMBERTIAN, type_index, albedo=tuple(albedo))

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal material and return its unified id.

        Args:
            albedo: Reflected color.
            fuzz: Radius of the random perturbation added to the mirror
                direction, in [0, 1]. 0 is a perfect mirror.

        Raises:
            ValueError: If an albedo component or fuzz is outside [0, 1].
            RuntimeError: If a material registry is full.
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register(MaterialType.METAL, type_index, albedo=tuple(albedo), fuzz=fuzz)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear refracting material and return its unified id.

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If a material registry is full.
        """
        type_index = add_dielectric_material(ior)
        return self._register(MaterialType.DIELECTRIC, type_index, ior=ior)

    def get_material_count(self) -> int:
        return int(material_count[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """The MaterialInfo for an id, or None if it is not registered."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of get_material_type(); None if unknown."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # Spheres

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere using a registered material.

        A negative radius keeps the same surface but turns its normals
        inward, which is how hollow glass shells are made.

        Returns:
            The sphere's index in scene storage.

        Raises:
            ValueError: If material_id is not registered or center is not
                a 3-vector.
            RuntimeError: If the sphere storage is full.
        """
        if self.get_material_info(material_id) is None:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center, "center")
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, center, float(radius), material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with its own diffuse material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with its own metal material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with its own dielectric material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # Plain-data description

    def to_config(self) -> SceneConfig:
        """Describe the current scene as a SceneConfig."""
        materials = [
            {"type": info.material_type.name.lower(), **info.params} for info in self.materials
        ]
        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def _add_material_from_entry(self, entry: dict[str, Any]) -> int:
        material_type = MaterialType.from_name(entry.get("type", ""))
        if material_type == MaterialType.LAMBERTIAN:
            albedo = _as_triple(entry.get("albedo", (0.5, 0.5, 0.5)), "albedo")
            return self.add_lambertian_material(albedo)
        if material_type == MaterialType.METAL:
            albedo = _as_triple(entry.get("albedo", (0.8, 0.8, 0.8)), "albedo")
            return self.add_metal_material(albedo, float(entry.get("fuzz", 0.0)))
        return self.add_dielectric_material(float(entry.get("ior", 1.5)))

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Raises:
            ValueError: On an unknown material type, invalid material
                parameters or a sphere referring to a missing material.
        """
        self.clear()

        for entry in config.materials:
            self._add_material_from_entry(entry)

        for entry in config.spheres:
            self.add_sphere(
                _as_triple(entry.get("center", (0.0, 0.0, 0.0)), "center"),
                float(entry.get("radius", 1.0)),
                int(entry.get("material_id", 0)),
            )

        logger.info(
            "Loaded scene: %d materials, %d spheres", len(self.materials), len(self.spheres)
        )

    def to_dict(self) -> dict[str, Any]:
        """Describe the current scene as a dict with "materials" and "spheres"."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the current scene with the one described by a dict."""
        config = SceneConfig(
            materials=list(data.get("materials", [])),
            spheres=list(data.get("spheres", [])),
        )
        self.from_config(config)

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
