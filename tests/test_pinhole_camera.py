"""Unit tests for the fixed pinhole camera.

Tests cover:
- Camera defaults and aspect-ratio construction
- Ray generation through image-plane coordinates
- Sub-pixel jitter bounds
- Validation of degenerate image planes
"""

import pytest
import taichi as ti


class TestCameraConfig:
    """Tests for the Camera dataclass."""

    def test_defaults(self):
        """Test the default image plane is 4 x 2 at z = -1."""
        from spheretrace.camera.pinhole import Camera

        camera = Camera()
        assert camera.origin == (0.0, 0.0, 0.0)
        assert camera.lower_left_corner == (-2.0, -1.0, -1.0)
        assert camera.horizontal == (4.0, 0.0, 0.0)
        assert camera.vertical == (0.0, 2.0, 0.0)

    def test_for_aspect_ratio(self):
        """Test the plane keeps height 2 and scales its width."""
        from spheretrace.camera.pinhole import Camera

        camera = Camera.for_aspect_ratio(1.5)
        assert camera.horizontal == (3.0, 0.0, 0.0)
        assert camera.lower_left_corner == (-1.5, -1.0, -1.0)
        assert camera.vertical == (0.0, 2.0, 0.0)

    def test_for_aspect_ratio_two_matches_defaults(self):
        """Test aspect ratio 2 reproduces the default camera."""
        from spheretrace.camera.pinhole import Camera

        assert Camera.for_aspect_ratio(2.0) == Camera()

    @pytest.mark.parametrize("aspect_ratio", [0.0, -1.0])
    def test_for_aspect_ratio_invalid(self, aspect_ratio):
        """Test a non-positive aspect ratio raises ValueError."""
        from spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError, match="Aspect ratio"):
            Camera.for_aspect_ratio(aspect_ratio)


class TestSetupCamera:
    """Tests for storing the camera in fields."""

    def test_get_camera_info(self):
        """Test the stored vectors are reported back."""
        from spheretrace.camera.pinhole import Camera, get_camera_info, setup_camera

        setup_camera(Camera(origin=(1.0, 2.0, 3.0)))
        info = get_camera_info()

        assert info["origin"] == (1.0, 2.0, 3.0)
        assert info["lower_left"] == (-2.0, -1.0, -1.0)
        assert info["horizontal"] == (4.0, 0.0, 0.0)
        assert info["vertical"] == (0.0, 2.0, 0.0)

    @pytest.mark.parametrize("field_name", ["horizontal", "vertical"])
    def test_zero_span_rejected(self, field_name):
        """Test a zero-length span raises ValueError."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        camera = Camera(**{field_name: (0.0, 0.0, 0.0)})
        with pytest.raises(ValueError, match=field_name):
            setup_camera(camera)


class TestRayGeneration:
    """Tests for get_ray and get_ray_jittered."""

    @pytest.mark.parametrize(
        "u, v, expected",
        [
            (0.0, 0.0, (-2.0, -1.0, -1.0)),
            (1.0, 1.0, (2.0, 1.0, -1.0)),
            (0.5, 0.5, (0.0, 0.0, -1.0)),
            (1.0, 0.0, (2.0, -1.0, -1.0)),
        ],
    )
    def test_camera_ray_through_plane(self, u, v, expected):
        """Test the direction reaches lower_left + u*horizontal + v*vertical."""
        from spheretrace.camera.pinhole import Camera, camera_ray, setup_camera

        setup_camera(Camera())
        origin, direction = camera_ray(u, v)

        assert origin == (0.0, 0.0, 0.0)
        for i in range(3):
            assert abs(direction[i] - expected[i]) < 1e-6

    def test_direction_is_relative_to_origin(self):
        """Test a moved origin changes the direction, not the plane point."""
        from spheretrace.camera.pinhole import Camera, camera_ray, setup_camera

        setup_camera(Camera(origin=(0.0, 0.0, 1.0)))
        origin, direction = camera_ray(0.5, 0.5)

        assert origin == (0.0, 0.0, 1.0)
        assert abs(direction[2] - (-2.0)) < 1e-6

    def test_jittered_rays_stay_inside_pixel(self):
        """Test jittered rays pass through the pixel's footprint on the plane."""
        from spheretrace.camera.pinhole import Camera, get_ray_jittered, setup_camera

        setup_camera(Camera())
        width, height = 200, 100
        pixel_i, pixel_j = 37, 81
        n = 500

        xs = ti.field(dtype=ti.f32, shape=n)
        ys = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                ray = get_ray_jittered(pixel_i, pixel_j, width, height)
                # Plane is at z = -1 and the origin at 0, so direction is the plane point
                xs[k] = ray.direction.x
                ys[k] = ray.direction.y

        test_kernel()
        x = xs.to_numpy()
        y = ys.to_numpy()

        # Pixel (37, 81) spans u in [37/200, 38/200), v in [81/100, 82/100)
        x_lo, x_hi = -2.0 + 4.0 * 37 / 200, -2.0 + 4.0 * 38 / 200
        y_lo, y_hi = -1.0 + 2.0 * 81 / 100, -1.0 + 2.0 * 82 / 100
        assert x.min() >= x_lo - 1e-5 and x.max() <= x_hi + 1e-5
        assert y.min() >= y_lo - 1e-5 and y.max() <= y_hi + 1e-5
        # Samples actually vary within the pixel
        assert x.max() - x.min() > 0.5 * (x_hi - x_lo)

    def test_get_camera_origin_in_kernel(self):
        """Test get_camera_origin reads the stored origin."""
        from spheretrace.camera.pinhole import Camera, get_camera_origin, setup_camera

        setup_camera(Camera(origin=(0.5, -0.5, 2.0)))
        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_camera_origin()

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.5) < 1e-6
        assert abs(r[1] + 0.5) < 1e-6
        assert abs(r[2] - 2.0) < 1e-6
