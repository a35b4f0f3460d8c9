"""Unit tests for the Lambertian material module.

Tests cover:
- Scattered direction lies around the normal
- Degenerate direction fallback to the normal
- Attenuation equals albedo
- Material registry operations and validation
"""

import pytest
import taichi as ti


class TestLambertianDirection:
    """Tests for combining the normal with the random offset."""

    def test_opposite_offset_falls_back_to_normal(self):
        """An offset cancelling the normal yields exactly the normal."""
        from rtweekend.core.ray import vec3
        from rtweekend.materials.lambertian import lambertian_direction

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            result[None] = lambertian_direction(normal, -normal)

        test_kernel()
        d = result[None]
        assert (d[0], d[1], d[2]) == (0.0, 1.0, 0.0)

    def test_direction_is_not_normalized(self):
        """normal + offset is returned as-is."""
        from rtweekend.core.ray import vec3
        from rtweekend.materials.lambertian import lambertian_direction

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = lambertian_direction(vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0))

        test_kernel()
        d = result[None]
        assert (d[0], d[1], d[2]) == (1.0, 1.0, 0.0)


class TestScatterLambertian:
    """Tests for sampled scattering."""

    def test_scatter_properties(self):
        """Directions are non-zero, never point below the surface, and
        attenuation is the albedo."""
        from rtweekend.core.ray import vec3
        from rtweekend.core.rng import seed_state
        from rtweekend.materials.lambertian import scatter_lambertian

        n = 1000
        dots = ti.field(dtype=ti.f64, shape=n)
        lengths = ti.field(dtype=ti.f64, shape=n)
        flags = ti.field(dtype=ti.i32, shape=n)
        attenuations = ti.Vector.field(3, dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                normal = vec3(0.0, 0.0, 1.0)
                albedo = vec3(0.2, 0.4, 0.6)
                direction, attenuation, did_scatter, _ = scatter_lambertian(
                    albedo, normal, seed_state(ti.u32(8), i, 0)
                )
                dots[i] = direction.dot(normal)
                lengths[i] = direction.norm()
                flags[i] = did_scatter
                attenuations[i] = attenuation

        test_kernel()
        assert (flags.to_numpy() == 1).all()
        assert (dots.to_numpy() >= 0.0).all()
        assert (lengths.to_numpy() > 0.0).all()
        assert (lengths.to_numpy() <= 2.0 + 1e-12).all()
        att = attenuations.to_numpy()
        assert (abs(att - [0.2, 0.4, 0.6]) < 1e-12).all()

    def test_scatter_is_cosine_weighted(self):
        """The mean cosine of normal + unit vector directions is 2/3."""
        from rtweekend.core.ray import normalize, vec3
        from rtweekend.core.rng import seed_state
        from rtweekend.materials.lambertian import scatter_lambertian

        n = 20000
        cosines = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                normal = vec3(0.0, 1.0, 0.0)
                direction, _, _, _ = scatter_lambertian(
                    vec3(0.5, 0.5, 0.5), normal, seed_state(ti.u32(21), i, 0)
                )
                cosines[i] = normalize(direction).dot(normal)

        test_kernel()
        assert abs(cosines.to_numpy().mean() - 2.0 / 3.0) < 0.02


class TestMaterialRegistry:
    """Tests for Lambertian material storage."""

    def test_add_and_get_material(self):
        """Stored albedos are readable inside kernels."""
        from rtweekend.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
            get_lambertian_material_count,
        )

        idx0 = add_lambertian_material((0.5, 0.5, 0.5))
        idx1 = add_lambertian_material((0.8, 0.3, 0.1))
        assert (idx0, idx1) == (0, 1)
        assert get_lambertian_material_count() == 2

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_lambertian_albedo(mat_idx)

        test_kernel(1)
        a = result[None]
        assert abs(a[0] - 0.8) < 1e-12
        assert abs(a[1] - 0.3) < 1e-12
        assert abs(a[2] - 0.1) < 1e-12

    def test_clear(self):
        """Clearing resets the count."""
        from rtweekend.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize("albedo", [(-0.1, 0.5, 0.5), (0.5, 1.1, 0.5)])
    def test_albedo_validation(self, albedo):
        """Albedo components outside [0, 1] are rejected."""
        from rtweekend.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)
