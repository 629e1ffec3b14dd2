"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and validation
- Progressive sample accumulation
- Batch rendering and batch-size independence
- Progress callbacks and generators
- Reset and resize
- 8-bit and PPM output
- Convergence as samples are added

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import io

import numpy as np
import pytest


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        """Test that initialization creates a render target with correct dimensions."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96, seed=3, max_depth=5)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.seed == 3
        assert renderer.max_depth == 5
        assert renderer.sample_count == 0

    def test_init_rejects_oversized_dimensions(self):
        """Test that initialization rejects dimensions exceeding max size."""
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    @pytest.mark.parametrize("kwargs", [{"seed": -1}, {"seed": 2**31}, {"max_depth": -1}])
    def test_init_rejects_invalid_settings(self, kwargs):
        """Test out-of-range seeds and negative depths raise ValueError."""
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(16, 16, **kwargs)


class TestProgressiveRendererRender:
    """Test sample accumulation."""

    def test_render_accumulates_samples(self, two_sphere_scene):
        """Test that render adds to the sample count."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(3)
        renderer.render(2)
        assert renderer.sample_count == 5

    def test_render_with_zero_samples_does_nothing(self, two_sphere_scene):
        """Test that non-positive sample counts are ignored."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(0)
        renderer.render(-4)
        assert renderer.sample_count == 0

    def test_render_rejects_non_positive_batch_size(self, two_sphere_scene):
        """Test batch_size <= 0 raises ValueError."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)

    def test_batch_size_does_not_change_image(self, two_sphere_scene):
        """Test the image after N samples is independent of batching."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(24, 16, seed=11)
        renderer.render(6, batch_size=6)
        single = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(6, batch_size=4)
        batched = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(2)
        renderer.render(4, batch_size=3)
        resumed = renderer.get_image_numpy()

        np.testing.assert_array_equal(single, batched)
        np.testing.assert_array_equal(single, resumed)


class TestProgressiveRendererCallbacks:
    """Test progress reporting."""

    def test_callback_receives_progress(self, two_sphere_scene):
        """Test that the callback sees each batch."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        calls = []
        renderer.render(10, batch_size=4, callback=lambda c, t: calls.append((c, t)))

        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_callback_with_existing_samples(self, two_sphere_scene):
        """Test that the target includes previously rendered samples."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        renderer.render(5)
        calls = []
        renderer.render(4, batch_size=2, callback=lambda c, t: calls.append((c, t)))

        assert calls == [(7, 9), (9, 9)]

    def test_render_progressive_yields_progress(self, two_sphere_scene):
        """Test the generator form yields after each batch."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        progress = list(renderer.render_progressive(6, batch_size=3))

        assert progress == [(3, 6), (6, 6)]

    def test_render_progressive_interruptible(self, two_sphere_scene):
        """Test stopping the generator early keeps the samples rendered so far."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        for current, _ in renderer.render_progressive(10, batch_size=2):
            if current >= 4:
                break

        assert renderer.sample_count == 4


class TestProgressiveRendererResetResize:
    """Test reset and resize."""

    def test_reset_clears_samples_and_image(self, two_sphere_scene):
        """Test that reset clears the sample count and the image."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)
        renderer.reset()

        assert renderer.sample_count == 0
        assert np.all(renderer.get_image_numpy() == 0.0)

    def test_resize_changes_dimensions(self, two_sphere_scene):
        """Test that resize updates dimensions and clears samples."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)
        renderer.resize(32, 8)

        assert (renderer.width, renderer.height) == (32, 8)
        assert renderer.sample_count == 0
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (8, 32, 3)

    def test_failed_resize_keeps_dimensions(self):
        """Test an invalid resize leaves the renderer unchanged."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        with pytest.raises(ValueError):
            renderer.resize(0, 16)
        assert (renderer.width, renderer.height) == (16, 16)


class TestProgressiveRendererOutput:
    """Test image output."""

    def test_get_pixels_type_and_shape(self, two_sphere_scene):
        """Test get_pixels returns uint8 in (height, width, 3)."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(20, 10)
        renderer.render(2)
        pixels = renderer.get_pixels()

        assert pixels.dtype == np.uint8
        assert pixels.shape == (10, 20, 3)

    def test_get_pixels_matches_export_pipeline(self, two_sphere_scene):
        """Test get_pixels is clamp, sqrt and floor(255.999 c) of the linear image."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(20, 10)
        renderer.render(4)
        linear = renderer.get_image_numpy()

        expected = np.floor(255.999 * np.sqrt(np.clip(linear, 0.0, 1.0))).astype(np.uint8)
        np.testing.assert_array_equal(renderer.get_pixels(), expected)

    def test_save_ppm_to_stream(self, two_sphere_scene):
        """Test save_ppm writes a complete P3 document."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(6, 4)
        renderer.render(1)
        stream = io.StringIO()
        renderer.save_ppm(stream)

        lines = stream.getvalue().splitlines()
        assert lines[:3] == ["P3", "6 4", "255"]
        assert len(lines) == 3 + 6 * 4

    def test_save_ppm_to_file(self, two_sphere_scene, tmp_path):
        """Test save_ppm writes to a path."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(6, 4)
        renderer.render(1)
        path = tmp_path / "out.ppm"
        renderer.save_ppm(path)

        assert path.read_text().startswith("P3\n6 4\n255\n")

    def test_repr_shows_state(self):
        """Test the repr includes size, seed and sample count."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 4, seed=2)
        assert repr(renderer) == "ProgressiveRenderer(width=8, height=4, seed=2, samples=0)"


class TestProgressiveRendererConvergence:
    """Test that noise drops as samples are added."""

    def test_more_samples_reduce_noise(self, two_sphere_scene):
        """Test independent renders agree more closely at higher sample counts."""
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.output.export import compute_rmse

        def render(seed, samples):
            renderer = ProgressiveRenderer(24, 24, seed=seed)
            renderer.render(samples, batch_size=samples)
            return renderer.get_image_numpy()

        low = compute_rmse(render(1, 2), render(2, 2))
        high = compute_rmse(render(1, 32), render(2, 32))

        assert high < low
