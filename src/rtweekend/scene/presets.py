"""Stock scenes with matching cameras.

Each factory builds a scene through a fresh SceneManager and returns it
together with a Camera that frames it:

- Two spheres: a small diffuse sphere resting on a huge diffuse "ground"
  sphere. The reference scene for regression renders.
- Materials: diffuse ground and center sphere, a hollow glass sphere on the
  left and a mirror-like metal sphere on the right.
- Random spheres: the final scene of the book, a field of small randomly
  placed spheres of all three materials around three large feature spheres,
  seen through a camera with defocus blur.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.scene.presets import create_material_scene
    >>> from rtweekend.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_material_scene()
    >>> setup_camera(camera)
"""

import logging

import numpy as np

from rtweekend.camera.thin_lens import Camera
from rtweekend.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Scene Constants
# =============================================================================

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
GRAY_ALBEDO = (0.5, 0.5, 0.5)

# Material scene
MATERIAL_GROUND_ALBEDO = (0.8, 0.8, 0.0)
MATERIAL_CENTER_ALBEDO = (0.1, 0.2, 0.5)
GLASS_IOR = 1.5
GLASS_SHELL_RADIUS = -0.4
GOLD_ALBEDO = (0.8, 0.6, 0.2)

# Random spheres scene
RANDOM_SCENE_ASPECT_RATIO = 3.0 / 2.0
RANDOM_GRID_EXTENT = 11
SMALL_SPHERE_RADIUS = 0.2
FEATURE_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])


def _default_camera(aspect_ratio: float) -> Camera:
    """Camera at the origin looking down -z with a 90 degree field of view."""
    return Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )


def create_two_sphere_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the two-sphere diffuse scene.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()
    gray = scene.add_lambertian_material(GRAY_ALBEDO)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, gray)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, gray)
    return scene, _default_camera(aspect_ratio)


def create_material_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the scene showing every material side by side.

    The left sphere is a glass ball with a smaller sphere of negative radius
    inside it, which turns it into a thin hollow shell.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()
    ground = scene.add_lambertian_material(MATERIAL_GROUND_ALBEDO)
    center = scene.add_lambertian_material(MATERIAL_CENTER_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_IOR)
    gold = scene.add_metal_material(GOLD_ALBEDO, fuzz=0.0)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), GLASS_SHELL_RADIUS, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
    return scene, _default_camera(aspect_ratio)


def create_random_spheres_scene(
    seed: int = 0,
    aspect_ratio: float = RANDOM_SCENE_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the random sphere field.

    Small spheres sit on a jittered grid over [-11, 11) x [-11, 11). Each
    picks a diffuse material with probability 0.8, metal with 0.15 and glass
    otherwise. Spheres too close to the large metal sphere are skipped.

    Args:
        seed: Seed for sphere placement and material choice.
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (scene, camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(GRAY_ALBEDO)
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    # One glass material serves every small glass sphere
    glass = scene.add_dielectric_material(GLASS_IOR)

    for a in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
        for b in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_SPHERE_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - FEATURE_CLEARANCE_POINT) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                material = scene.add_lambertian_material(tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                material = scene.add_metal_material(tuple(albedo.tolist()), fuzz)
            else:
                material = glass

            scene.add_sphere(tuple(center.tolist()), SMALL_SPHERE_RADIUS, material)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, scene.add_lambertian_material((0.4, 0.2, 0.1)))
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, scene.add_metal_material((0.7, 0.6, 0.5), 0.0))

    logger.info("Random spheres scene: %d spheres", scene.get_sphere_count())

    camera = Camera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


SCENES = {
    "two-spheres": create_two_sphere_scene,
    "materials": create_material_scene,
    "random": create_random_spheres_scene,
}
