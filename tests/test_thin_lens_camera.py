"""Unit tests for the thin-lens camera.

Tests cover:
- Camera basis and viewport construction
- Ray generation for a pinhole (aperture 0)
- Lens sampling and focal-plane convergence with depth of field
- Parameter validation
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestCameraSetup:
    """Tests for setup_camera."""

    def test_classic_viewport(self):
        """Test a 90 degree, 2:1 camera at the origin gives the 4 x 2 viewport."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                vfov=90.0,
                aspect_ratio=2.0,
            )
        )
        info = get_camera_info()

        np.testing.assert_allclose(info["origin"], (0.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["lower_left"], (-2.0, -1.0, -1.0), atol=1e-6)
        np.testing.assert_allclose(info["horizontal"], (4.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["vertical"], (0.0, 2.0, 0.0), atol=1e-6)
        assert info["lens_radius"] == 0.0

    def test_basis_is_orthonormal(self):
        """Test u, v, w form an orthonormal basis with w facing backward."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(
            ThinLensCamera(
                lookfrom=(3.0, 3.0, 2.0),
                lookat=(0.0, 0.0, -1.0),
                vfov=20.0,
                aspect_ratio=16.0 / 9.0,
            )
        )
        info = get_camera_info()
        u = np.array(info["u"])
        v = np.array(info["v"])
        w = np.array(info["w"])

        for axis in (u, v, w):
            assert abs(np.linalg.norm(axis) - 1.0) < 1e-5
        assert abs(u @ v) < 1e-5
        assert abs(u @ w) < 1e-5
        assert abs(v @ w) < 1e-5

        expected_w = np.array([3.0, 3.0, 3.0]) / math.sqrt(27.0)
        np.testing.assert_allclose(w, expected_w, atol=1e-5)
        # v has a positive world-up component
        assert v[1] > 0.0

    def test_viewport_scales_with_focus_distance(self):
        """Test the viewport sits focus_distance in front of the camera."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                vfov=90.0,
                aspect_ratio=1.0,
                aperture=0.5,
                focus_distance=3.0,
            )
        )
        info = get_camera_info()

        np.testing.assert_allclose(info["lower_left"], (-3.0, -3.0, -3.0), atol=1e-5)
        np.testing.assert_allclose(info["horizontal"], (6.0, 0.0, 0.0), atol=1e-5)
        np.testing.assert_allclose(info["vertical"], (0.0, 6.0, 0.0), atol=1e-5)
        assert abs(info["lens_radius"] - 0.25) < 1e-6


class TestRayGeneration:
    """Tests for get_ray."""

    def test_center_ray_points_at_target(self):
        """Test (0.5, 0.5) looks straight at lookat for a pinhole camera."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_ray, setup_camera
        from pathtracer.core.sampler import init_rng

        setup_camera(ThinLensCamera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0)))

        origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray, state = get_ray(0.5, 0.5, init_rng(0, 0, 0))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        np.testing.assert_allclose(origin[None].to_numpy(), (0.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(direction[None].to_numpy(), (0.0, 0.0, -1.0), atol=1e-6)

    def test_corner_rays(self):
        """Test (0, 0) and (1, 1) reach the viewport corners."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_ray, setup_camera
        from pathtracer.core.sampler import init_rng

        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                aspect_ratio=2.0,
            )
        )

        directions = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            lower, s0 = get_ray(0.0, 0.0, init_rng(0, 0, 0))
            upper, s1 = get_ray(1.0, 1.0, init_rng(0, 1, 0))
            directions[0] = lower.direction
            directions[1] = upper.direction

        test_kernel()
        d = directions.to_numpy()
        np.testing.assert_allclose(d[0], (-2.0, -1.0, -1.0), atol=1e-6)
        np.testing.assert_allclose(d[1], (2.0, 1.0, -1.0), atol=1e-6)

    def test_depth_of_field_rays_converge_on_focal_plane(self):
        """Test lens-jittered rays for one (s, t) meet at the same focal point."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_ray, setup_camera
        from pathtracer.core.ray import ray_at
        from pathtracer.core.sampler import init_rng

        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                aperture=1.0,
                focus_distance=4.0,
            )
        )

        n = 256
        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
        focal_points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                ray, state = get_ray(0.3, 0.6, init_rng(21, i, 0))
                origins[i] = ray.origin
                focal_points[i] = ray_at(ray, 1.0)

        test_kernel()
        o = origins.to_numpy()
        p = focal_points.to_numpy()

        # Origins jitter across the lens disk of radius 0.5 in the z = 0 plane
        assert np.all(np.abs(o[:, 2]) < 1e-6)
        assert np.all(o[:, 0] ** 2 + o[:, 1] ** 2 < 0.25 + 1e-6)
        assert np.ptp(o[:, 0]) > 0.1

        # Every ray passes through the same point on the focal plane
        np.testing.assert_allclose(p, np.tile(p[0], (n, 1)), atol=1e-5)
        assert abs(p[0][2] + 4.0) < 1e-5


class TestCameraValidation:
    """Tests for ThinLensCamera.validate."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"aperture": -0.1},
            {"focus_distance": 0.0},
            {"lookat": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 1.0)},
        ],
    )
    def test_invalid_parameters_rejected(self, kwargs):
        """Test degenerate camera parameters raise ValueError."""
        from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera

        params = {"lookfrom": (0.0, 0.0, 0.0), "lookat": (0.0, 0.0, -1.0)}
        params.update(kwargs)

        with pytest.raises(ValueError):
            setup_camera(ThinLensCamera(**params))
