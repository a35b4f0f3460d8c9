"""Unit tests for the Dielectric material module.

Tests cover:
- Refraction ratio by face
- Index-matched material passes rays straight through
- Total internal reflection
- Reflection probability given by Schlick's approximation
- Attenuation is white
- Material registry operations and IOR validation
"""

import math

import pytest
import taichi as ti


def _direction(ior, incident, normal, front_face, sample):
    """Run dielectric_direction in a kernel and return the direction."""
    from rtweekend.core.ray import vec3
    from rtweekend.materials.dielectric import dielectric_direction

    result = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel(
        eta: ti.f64,
        ix: ti.f64, iy: ti.f64, iz: ti.f64,
        nx: ti.f64, ny: ti.f64, nz: ti.f64,
        front: ti.i32, u: ti.f64,
    ):
        result[None] = dielectric_direction(eta, vec3(ix, iy, iz), vec3(nx, ny, nz), front, u)

    test_kernel(ior, *incident, *normal, front_face, sample)
    d = result[None]
    return (d[0], d[1], d[2])


class TestRefractionRatio:
    """Tests for the ratio of refractive indices."""

    def test_ratio_by_face(self):
        """Entering uses 1/ior, leaving uses ior."""
        from rtweekend.materials.dielectric import refraction_ratio

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = refraction_ratio(1.5, 1)
            result[1] = refraction_ratio(1.5, 0)

        test_kernel()
        assert abs(result[0] - 1.0 / 1.5) < 1e-12
        assert abs(result[1] - 1.5) < 1e-12


class TestDielectricDirection:
    """Tests for the reflect-or-refract decision."""

    @pytest.mark.parametrize("sample", [0.0, 0.5, 0.999])
    def test_index_matched_passes_straight_through(self, sample):
        """With ior 1 the direction is the unit incident direction."""
        incident = (0.3, -1.0, 0.2)
        d = _direction(1.0, incident, (0.0, 1.0, 0.0), 1, sample)
        norm = math.sqrt(sum(c * c for c in incident))
        for i in range(3):
            assert abs(d[i] - incident[i] / norm) < 1e-9

    def test_total_internal_reflection(self):
        """Leaving glass at a grazing angle always reflects."""
        incident = (1.0, 0.2, 0.0)
        # Inside the sphere: normal faces the ray
        d = _direction(1.5, incident, (0.0, -1.0, 0.0), 0, 0.999)
        norm = math.sqrt(1.0 + 0.04)
        assert abs(d[0] - 1.0 / norm) < 1e-9
        assert abs(d[1] + 0.2 / norm) < 1e-9

    def test_normal_incidence_refracts_for_large_sample(self):
        """Reflectance at normal incidence is 0.04, so a draw of 0.5 refracts."""
        d = _direction(1.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1, 0.5)
        assert abs(d[0]) < 1e-12
        assert abs(d[1] + 1.0) < 1e-12

    def test_normal_incidence_reflects_for_small_sample(self):
        """A draw below the reflectance reflects."""
        d = _direction(1.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1, 0.01)
        assert abs(d[1] - 1.0) < 1e-12

    def test_refraction_bends_toward_normal(self):
        """Entering glass at 45 degrees obeys Snell's law."""
        d = _direction(1.5, (1.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1, 0.999)
        assert abs(d[0] - (1.0 / math.sqrt(2.0)) / 1.5) < 1e-9
        assert d[1] < 0.0


class TestScatterDielectric:
    """Tests for sampled dielectric scattering."""

    def test_attenuation_white_and_always_scatters(self):
        """Glass never absorbs and never tints."""
        from rtweekend.core.ray import vec3
        from rtweekend.core.rng import seed_state
        from rtweekend.materials.dielectric import scatter_dielectric

        n = 500
        flags = ti.field(dtype=ti.i32, shape=n)
        attenuations = ti.Vector.field(3, dtype=ti.f64, shape=n)
        lengths = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                direction, attenuation, did_scatter, _ = scatter_dielectric(
                    1.5, vec3(0.6, -0.8, 0.0), vec3(0.0, 1.0, 0.0), 1, seed_state(ti.u32(3), i, 0)
                )
                flags[i] = did_scatter
                attenuations[i] = attenuation
                lengths[i] = direction.norm()

        test_kernel()
        assert (flags.to_numpy() == 1).all()
        assert (attenuations.to_numpy() == 1.0).all()
        assert abs(lengths.to_numpy() - 1.0).max() < 1e-9

    def test_reflection_fraction_matches_schlick(self):
        """The fraction of reflected rays approaches the Schlick reflectance."""
        from rtweekend.core.ray import vec3
        from rtweekend.core.rng import seed_state
        from rtweekend.materials.dielectric import scatter_dielectric

        n = 20000
        reflected = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                # cos(theta) = 0.2, a strongly reflective angle
                incident = vec3(ti.sqrt(1.0 - 0.04), -0.2, 0.0)
                direction, _, _, _ = scatter_dielectric(
                    1.5, incident, vec3(0.0, 1.0, 0.0), 1, seed_state(ti.u32(10), i, 0)
                )
                reflected[i] = ti.select(direction.y > 0.0, 1, 0)

        test_kernel()
        r0 = ((1.0 - 1.0 / 1.5) / (1.0 + 1.0 / 1.5)) ** 2
        expected = r0 + (1.0 - r0) * (1.0 - 0.2) ** 5
        assert abs(reflected.to_numpy().mean() - expected) < 0.02


class TestMaterialRegistry:
    """Tests for dielectric material storage."""

    def test_add_and_get_material(self):
        """Stored IORs are readable inside kernels."""
        from rtweekend.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        add_dielectric_material()
        idx = add_dielectric_material(1.33)
        assert get_dielectric_material_count() == 2

        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_dielectric_ior(mat_idx)

        test_kernel(idx)
        assert abs(result[None] - 1.33) < 1e-12

    def test_ior_below_one_is_allowed(self):
        """Bubbles of thinner medium use an IOR below one."""
        from rtweekend.materials.dielectric import add_dielectric_material

        assert add_dielectric_material(0.75) == 0

    @pytest.mark.parametrize("ior", [0.0, -1.5])
    def test_ior_validation(self, ior):
        """Non-positive IOR is rejected."""
        from rtweekend.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="not positive"):
            add_dielectric_material(ior)
