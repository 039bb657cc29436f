"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere, including rays pointing away
- Ray starting inside sphere (far root)
- Tangent rays and the exclusive t window
- Outward normals that are never flipped
"""

import taichi as ti


def _query_sphere(origin, direction, center, radius, t_min=0.001, t_max=1000.0):
    """Run hit_sphere once and return (hit, t, point, normal) as Python values."""
    from spheretrace.geometry.sphere import Sphere, hit_sphere

    ray = ti.Vector.field(3, dtype=ti.f32, shape=2)
    sphere_center = ti.Vector.field(3, dtype=ti.f32, shape=())
    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    ray[0] = origin
    ray[1] = direction
    sphere_center[None] = center

    @ti.kernel
    def test_kernel(radius: ti.f32, t_min: ti.f32, t_max: ti.f32):
        sphere = Sphere(center=sphere_center[None], radius=radius)
        record = hit_sphere(ray[0], ray[1], sphere, t_min, t_max)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel(radius, t_min, t_max)
    p = point[None]
    n = normal[None]
    return hit[None], t_val[None], (p[0], p[1], p[2]), (n[0], n[1], n[2])


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from spheretrace.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        hit, t, p, n = _query_sphere((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert hit == 1
        # Front of sphere at z=1, so t=4
        assert abs(t - 4.0) < 1e-5
        assert abs(p[0]) < 1e-5
        assert abs(p[1]) < 1e-5
        assert abs(p[2] - 1.0) < 1e-5
        # Outward normal (0, 0, 1)
        assert abs(n[0]) < 1e-5
        assert abs(n[1]) < 1e-5
        assert abs(n[2] - 1.0) < 1e-5

    def test_hit_sphere_miss(self):
        """Test ray passing beside the sphere."""
        hit, _, _, _ = _query_sphere((0.0, 5.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_hit_sphere_pointing_away(self):
        """Test ray from outside pointing away from the sphere misses."""
        hit, _, _, _ = _query_sphere((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_hit_through_center_normal_parallel_to_direction(self):
        """Test a ray aimed at the center gets a normal anti-parallel to it."""
        hit, t, _, n = _query_sphere((3.0, 0.0, 0.0), (-2.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0)

        assert hit == 1
        # Near hit at x=1, reached at t=1 with |direction|=2
        assert abs(t - 1.0) < 1e-5
        # Normal is parallel to the ray direction (pointing back at the ray)
        assert abs(n[0] - 1.0) < 1e-5
        assert abs(n[1]) < 1e-5
        assert abs(n[2]) < 1e-5

    def test_hit_sphere_inside_uses_far_root(self):
        """Test ray starting inside the sphere hits the far side."""
        hit, t, p, n = _query_sphere((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0)

        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert abs(p[2] - (-2.0)) < 1e-5
        # Normal stays outward even though the ray leaves the sphere
        assert abs(n[2] - (-1.0)) < 1e-5

    def test_hit_sphere_tangent_is_miss(self):
        """Test a ray with a zero discriminant is reported as a miss."""
        # oc = (0, 1, 5), a = 1, b = -5, c = 25: discriminant is exactly zero
        hit, _, _, _ = _query_sphere((0.0, 1.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_hit_sphere_t_min_exclusive(self):
        """Test a root equal to t_min is rejected for the far root instead."""
        # Origin on the surface: near root t=0, far root t=2
        hit, t, _, _ = _query_sphere(
            (0.0, 0.0, 1.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_min=0.0
        )
        assert hit == 1
        assert abs(t - 2.0) < 1e-5

    def test_hit_sphere_t_max_exclusive(self):
        """Test hits beyond t_max are rejected."""
        hit, _, _, _ = _query_sphere(
            (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=3.0
        )
        assert hit == 0

    def test_hit_sphere_behind_ray(self):
        """Test sphere entirely behind the ray origin is not hit."""
        hit, _, _, _ = _query_sphere((0.0, 0.0, -5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_hit_sphere_normal_is_unit_length(self):
        """Test oblique hits still produce unit normals."""
        hit, _, p, n = _query_sphere((0.5, 0.3, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0)

        assert hit == 1
        length = (n[0] ** 2 + n[1] ** 2 + n[2] ** 2) ** 0.5
        assert abs(length - 1.0) < 1e-5
        # normal == (point - center) / radius
        for i in range(3):
            assert abs(n[i] - p[i] / 2.0) < 1e-5

    def test_unnormalized_ray_direction(self):
        """Test t is measured in units of the given direction."""
        hit, t, p, _ = _query_sphere((0.0, 0.0, 5.0), (0.0, 0.0, -4.0), (0.0, 0.0, 0.0), 1.0)

        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert abs(p[2] - 1.0) < 1e-5

    def test_large_ground_sphere(self):
        """Test a ray down onto the radius-100 ground sphere."""
        hit, t, _, n = _query_sphere(
            (0.0, 0.0, -1.0), (0.0, -1.0, 0.0), (0.0, -100.5, -1.0), 100.0
        )

        assert hit == 1
        assert abs(t - 0.5) < 1e-3
        assert abs(n[1] - 1.0) < 1e-4
