"""Unit tests for scene-level intersection.

Tests cover:
- SceneHitRecord contents on hit and miss
- Sphere storage (add, clear, capacity, validation)
- Nearest-hit selection independent of insertion order
- Query window bounds
"""

import math

import numpy as np
import pytest
import taichi as ti


def _query(origin, direction, t_min=0.001, t_max=1e10):
    """Run intersect_scene for a single ray and return the record as a dict."""
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.scene.intersection import intersect_scene

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, lo: ti.f32, hi: ti.f32):
        record = intersect_scene(make_ray(o, d), lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        material_id[None] = record.material_id

    test_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": point[None].to_numpy(),
        "normal": normal[None].to_numpy(),
        "material_id": material_id[None],
    }


class TestSceneHitRecordBasics:
    """Tests for SceneHitRecord contents."""

    def test_hit_carries_material_id(self):
        """Test the hit record reports the sphere's material ID."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -5.0), 1.0, material_id=7)

        record = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert record["hit"] == 1
        assert record["material_id"] == 7
        assert abs(record["t"] - 4.0) < 1e-5

    def test_miss_has_negative_material_id(self):
        """Test a miss record has material_id -1."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -5.0), 1.0, material_id=3)

        record = _query((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert record["hit"] == 0
        assert record["material_id"] == -1


class TestSceneSphereStorage:
    """Tests for adding and clearing spheres."""

    def test_add_sphere_returns_index(self):
        """Test add_sphere returns consecutive indices."""
        from pathtracer.scene.intersection import add_sphere, get_sphere_count, vec3

        assert add_sphere(vec3(0.0, 0.0, 0.0), 1.0) == 0
        assert add_sphere(vec3(1.0, 0.0, 0.0), 1.0) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        """Test clear_scene removes all spheres."""
        from pathtracer.scene.intersection import (
            add_sphere,
            clear_scene,
            get_sphere_count,
            vec3,
        )

        add_sphere(vec3(0.0, 0.0, -5.0), 1.0)
        clear_scene()
        assert get_sphere_count() == 0

        record = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert record["hit"] == 0

    def test_zero_radius_rejected(self):
        """Test a zero radius raises ValueError."""
        from pathtracer.scene.intersection import add_sphere, vec3

        with pytest.raises(ValueError, match="non-zero"):
            add_sphere(vec3(0.0, 0.0, 0.0), 0.0)

    def test_capacity_exceeded(self):
        """Test adding more than MAX_SPHERES spheres raises RuntimeError."""
        from pathtracer.scene.intersection import MAX_SPHERES, add_sphere, num_spheres, vec3

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere(vec3(0.0, 0.0, 0.0), 1.0)


class TestNearestHit:
    """Tests for closest-hit selection across multiple spheres."""

    def test_closest_of_two_spheres(self):
        """Test the nearer sphere wins when added first."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, material_id=0)
        add_sphere(vec3(0.0, 0.0, -10.0), 1.0, material_id=1)

        record = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert record["material_id"] == 0
        assert abs(record["t"] - 2.0) < 1e-5

    def test_closest_of_two_spheres_reversed_order(self):
        """Test the nearer sphere wins when added last."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -10.0), 1.0, material_id=1)
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, material_id=0)

        record = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert record["material_id"] == 0
        assert abs(record["t"] - 2.0) < 1e-5

    def test_matches_brute_force_minimum(self):
        """Test the reported hit is the minimum over all individual hits."""
        from pathtracer.scene.intersection import add_sphere, vec3

        rng = np.random.default_rng(5)
        centers = []
        radii = []
        for k in range(12):
            center = (rng.uniform(-2.0, 2.0), rng.uniform(-2.0, 2.0), -3.0 - 2.0 * k)
            radius = rng.uniform(0.5, 1.5)
            add_sphere(vec3(*center), radius, material_id=k)
            centers.append(center)
            radii.append(radius)

        for _ in range(20):
            direction = np.array([rng.uniform(-0.3, 0.3), rng.uniform(-0.3, 0.3), -1.0])

            expected_t = math.inf
            expected_id = -1
            grazing = False
            for k, (center, radius) in enumerate(zip(centers, radii)):
                oc = -np.asarray(center)
                a = direction @ direction
                b = oc @ direction
                c = oc @ oc - radius * radius
                disc = b * b - a * c
                if abs(disc) < 1e-2:
                    grazing = True
                elif disc > 0.0:
                    for t in ((-b - math.sqrt(disc)) / a, (-b + math.sqrt(disc)) / a):
                        if 0.001 < t < expected_t:
                            expected_t = t
                            expected_id = k

            # f32 and f64 may disagree on near-tangent rays
            if grazing:
                continue

            record = _query((0.0, 0.0, 0.0), tuple(direction))
            if expected_id < 0:
                assert record["hit"] == 0
            else:
                assert record["hit"] == 1
                assert record["material_id"] == expected_id
                assert abs(record["t"] - expected_t) < 1e-3

    def test_hollow_sphere_inner_surface_is_nearer(self):
        """Test a negative-radius inner sphere is hit after the outer shell."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -5.0), 1.0, material_id=0)
        add_sphere(vec3(0.0, 0.0, -5.0), -0.9, material_id=1)

        # From inside the shell wall, moving inward
        record = _query((0.0, 0.0, -4.05), (0.0, 0.0, -1.0))
        assert record["material_id"] == 1
        assert abs(record["t"] - 0.05) < 1e-4
        # Hit at z = -4.1; the inner normal faces the center at z = -5
        assert record["normal"][2] < 0.0


class TestTBounds:
    """Tests for the query window."""

    def test_hit_rejected_by_t_max(self):
        """Test spheres beyond t_max are ignored."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -5.0), 1.0)

        record = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_max=3.0)
        assert record["hit"] == 0

    def test_surface_at_origin_skipped_by_t_min(self):
        """Test a ray leaving a surface does not re-hit it at t ~ 0."""
        from pathtracer.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, 0.0), 1.0, material_id=2)

        # Start on the surface and head outward
        record = _query((0.0, 0.0, 1.0), (0.0, 0.0, 1.0))
        assert record["hit"] == 0

    def test_empty_scene(self):
        """Test an empty scene never reports a hit."""
        record = _query((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert record["hit"] == 0
        assert record["material_id"] == -1
