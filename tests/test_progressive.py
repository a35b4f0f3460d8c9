"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class and RenderSettings:
- Settings validation and height derivation
- Initialization, reset and resize
- Progressive sample accumulation with callbacks and generators
- Independence of the result from the batch size
- Display encoding and file output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
"""

import numpy as np
import pytest


def _setup_simple_scene():
    """Helper to set up a simple test scene."""
    from rtweekend.camera.thin_lens import Camera, setup_camera
    from rtweekend.scene.manager import SceneManager

    scene = SceneManager()
    mat_id = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_sphere((0, 0, -2), 1.0, mat_id)

    camera = Camera(
        lookfrom=(0, 0, 0),
        lookat=(0, 0, -1),
        vup=(0, 1, 0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    setup_camera(camera)


class TestRenderSettings:
    """Test RenderSettings construction and validation."""

    def test_defaults(self):
        """Default settings describe a 400x225 image at 100 spp."""
        from rtweekend.core.progressive import RenderSettings

        settings = RenderSettings()
        assert (settings.width, settings.height) == (400, 225)
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50
        settings.validate()

    def test_from_aspect_ratio(self):
        """Height is the integer part of width / aspect_ratio."""
        from rtweekend.core.progressive import RenderSettings

        settings = RenderSettings.from_aspect_ratio(400, 16.0 / 9.0, seed=3)
        assert settings.height == 225
        assert settings.seed == 3

        assert RenderSettings.from_aspect_ratio(1200, 3.0 / 2.0).height == 800

    def test_from_aspect_ratio_rejects_non_positive(self):
        """A zero aspect ratio is rejected."""
        from rtweekend.core.progressive import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings.from_aspect_ratio(400, 0.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"height": 0},
            {"width": 2000},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"batch_size": 0},
        ],
    )
    def test_validate_rejects(self, kwargs):
        """Out-of-range settings raise ValueError."""
        from rtweekend.core.progressive import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings(**kwargs).validate()

    def test_zero_depth_is_valid(self):
        """max_depth 0 is allowed and renders black."""
        from rtweekend.core.progressive import RenderSettings

        RenderSettings(max_depth=0).validate()


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_sets_dimensions(self):
        """Test that initialization sets correct dimensions."""
        from rtweekend.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(64, 48)
        assert renderer.width == 64
        assert renderer.height == 48
        assert renderer.sample_count == 0

    def test_init_invalid_dimensions(self):
        """Test that invalid dimensions raise ValueError."""
        from rtweekend.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(0, 10)
        with pytest.raises(ValueError):
            ProgressiveRenderer(2000, 10)

    def test_from_settings(self):
        """A renderer built from settings has the settings' size."""
        from rtweekend.core.progressive import ProgressiveRenderer, RenderSettings

        renderer = ProgressiveRenderer.from_settings(RenderSettings(width=32, height=18))
        assert (renderer.width, renderer.height) == (32, 18)

    def test_repr(self):
        """Test the string representation."""
        from rtweekend.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8)
        assert repr(renderer) == "ProgressiveRenderer(width=16, height=8, samples=0)"


class TestProgressiveRendererRender:
    """Test render functionality."""

    def test_render_accumulates_samples(self):
        """Test that render accumulates samples correctly."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()

        renderer = ProgressiveRenderer(16, 16)
        assert renderer.sample_count == 0

        renderer.render(5, max_depth=5)
        assert renderer.sample_count == 5

        renderer.render(10, max_depth=5, batch_size=4)
        assert renderer.sample_count == 15
        assert renderer.pixels_completed == 16 * 16

    def test_render_zero_samples_is_noop(self):
        """Rendering zero samples leaves the renderer untouched."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(8, 8)
        renderer.render(0)
        assert renderer.sample_count == 0

    def test_callback_reports_progress(self):
        """The callback sees cumulative counts after every batch."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(8, 8)
        calls = []

        renderer.render(10, max_depth=5, batch_size=4, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(4, 10), (8, 10), (10, 10)]

        calls.clear()
        renderer.render(3, max_depth=5, batch_size=2, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(12, 13), (13, 13)]

    def test_render_progressive_generator(self):
        """The generator yields once per batch."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(8, 8)

        progress = list(renderer.render_progressive(6, max_depth=5, batch_size=3))
        assert progress == [(3, 6), (6, 6)]
        assert renderer.sample_count == 6

    def test_render_progressive_invalid_batch(self):
        """A non-positive batch size raises ValueError."""
        from rtweekend.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        with pytest.raises(ValueError):
            list(renderer.render_progressive(4, batch_size=0))

    def test_reset(self):
        """Test that reset clears the accumulator."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(8, 8)
        renderer.render(3, max_depth=5)
        renderer.reset()

        assert renderer.sample_count == 0
        assert (renderer.get_color_sum() == 0.0).all()
        assert (renderer.get_image_numpy() == 0.0).all()

    def test_resize(self):
        """Test that resize changes dimensions and resets."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(8, 8)
        renderer.render(2, max_depth=5)

        renderer.resize(12, 6)
        assert (renderer.width, renderer.height) == (12, 6)
        assert renderer.sample_count == 0
        assert renderer.get_color_sum().shape == (6, 12, 3)

    def test_render_settings(self):
        """render_settings renders the configured number of samples."""
        from rtweekend.core.progressive import ProgressiveRenderer, RenderSettings

        _setup_simple_scene()
        settings = RenderSettings(width=8, height=8, samples_per_pixel=4, max_depth=5, batch_size=3)
        renderer = ProgressiveRenderer.from_settings(settings)
        renderer.render_settings(settings)
        assert renderer.sample_count == 4

    def test_render_settings_size_mismatch(self):
        """Settings for another size are rejected."""
        from rtweekend.core.progressive import ProgressiveRenderer, RenderSettings

        renderer = ProgressiveRenderer(8, 8)
        with pytest.raises(ValueError, match="does not match"):
            renderer.render_settings(RenderSettings(width=16, height=8))


class TestBatchInvariance:
    """Test that batching does not change the image."""

    def test_batch_size_does_not_change_result(self):
        """One batch of 6 and batches of 1, 2 and 4 give the same image."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(12, 12)

        images = []
        for batch_size in (6, 1, 2, 4):
            renderer.reset()
            renderer.render(6, max_depth=10, seed=21, batch_size=batch_size)
            images.append(renderer.get_image_numpy())

        for image in images[1:]:
            assert np.allclose(images[0], image, rtol=1e-12, atol=1e-12)

    def test_split_render_calls_continue_sequence(self):
        """Two render calls of 3 match one render call of 6."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(12, 12)
        renderer.render(6, max_depth=10, seed=4, batch_size=6)
        whole = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(3, max_depth=10, seed=4, batch_size=3)
        renderer.render(3, max_depth=10, seed=4, batch_size=3)
        assert np.allclose(whole, renderer.get_image_numpy(), rtol=1e-12, atol=1e-12)

    def test_render_sample_matches_render(self):
        """render_sample equals the one-sample image at that pixel."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(10, 10)
        renderer.render(1, max_depth=10, seed=8)
        image = renderer.get_image_numpy()

        color = renderer.render_sample(4, 2, sample_index=0, max_depth=10, seed=8)
        assert color == pytest.approx(tuple(image[10 - 1 - 2, 4]), abs=1e-12)


class TestOutput:
    """Test display encoding and image output."""

    def test_get_pixels_before_render_raises(self):
        """Encoding an empty accumulator is an error."""
        from rtweekend.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        with pytest.raises(RuntimeError):
            renderer.get_pixels()

    def test_get_pixels(self):
        """Pixels are uint8 with shape (height, width, 3)."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(10, 6)
        renderer.render(2, max_depth=5)
        pixels = renderer.get_pixels()

        assert pixels.shape == (6, 10, 3)
        assert pixels.dtype == np.uint8

    def test_to_ppm_header(self):
        """The P3 text carries the renderer's size."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(10, 6)
        renderer.render(1, max_depth=5)
        text = renderer.to_ppm()

        assert text.startswith("P3\n10 6\n255\n")
        assert len(text.splitlines()) == 3 + 60

    def test_save_image_by_extension(self, tmp_path):
        """save_image picks PPM or PNG from the suffix."""
        from PIL import Image

        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(10, 6)
        renderer.render(1, max_depth=5)

        ppm_path = tmp_path / "image.ppm"
        png_path = tmp_path / "image.PNG"
        renderer.save_image(ppm_path)
        renderer.save_image(png_path)

        assert ppm_path.read_text(encoding="ascii") == renderer.to_ppm()
        with Image.open(png_path) as img:
            assert img.size == (10, 6)
            assert np.array_equal(np.asarray(img.convert("RGB")), renderer.get_pixels())

    def test_save_image_unknown_extension(self, tmp_path):
        """Unsupported suffixes are rejected."""
        from rtweekend.core.progressive import ProgressiveRenderer

        _setup_simple_scene()
        renderer = ProgressiveRenderer(4, 4)
        renderer.render(1, max_depth=5)

        with pytest.raises(ValueError, match="Unsupported image format"):
            renderer.save_image(tmp_path / "image.jpg")
