"""Taichi-based path tracer for the classic sphere scenes.

This package renders scenes of spheres with diffuse, metal and glass
materials by Monte Carlo path tracing, one Taichi parallel iteration per
pixel, and writes the result as a P3 pixel map or PNG.

Subpackages:
    core: Vector algebra, random streams, integrator and rendering loop
    geometry: Sphere primitive and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, scene manager and stock scenes
    camera: Thin-lens camera with ray generation
    output: Pixel map and PNG writers
    utils: Logging setup
"""

__version__ = "0.1.0"
