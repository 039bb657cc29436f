"""Unit tests for the metal material.

Tests cover:
- Mirror reflection with fuzz 0
- Absorption when the reflection does not leave the surface
- Fuzz perturbation bounds and clamping
- Material registry
"""

import pytest
import taichi as ti


def _scatter_once(albedo, fuzz, incident, normal):
    """Run scatter_metal once and return (direction, attenuation, did_scatter)."""
    from spheretrace.materials.metal import scatter_metal

    inputs = ti.Vector.field(3, dtype=ti.f32, shape=3)
    direction = ti.Vector.field(3, dtype=ti.f32, shape=())
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
    did_scatter = ti.field(dtype=ti.i32, shape=())

    inputs[0] = albedo
    inputs[1] = incident
    inputs[2] = normal

    @ti.kernel
    def test_kernel(fuzz: ti.f32):
        d, a, s = scatter_metal(inputs[0], fuzz, inputs[1], inputs[2])
        direction[None] = d
        attenuation[None] = a
        did_scatter[None] = s

    test_kernel(fuzz)
    d = direction[None]
    a = attenuation[None]
    return (d[0], d[1], d[2]), (a[0], a[1], a[2]), did_scatter[None]


class TestMetalScatter:
    """Tests for scatter_metal."""

    def test_perfect_mirror_reflection(self):
        """Test fuzz 0 reflects the normalized incident direction."""
        direction, attenuation, did_scatter = _scatter_once(
            (0.8, 0.6, 0.2), 0.0, (1.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )

        assert did_scatter == 1
        expected = 1.0 / (2.0**0.5)
        assert abs(direction[0] - expected) < 1e-5
        assert abs(direction[1] - expected) < 1e-5
        assert abs(direction[2]) < 1e-5
        assert abs(attenuation[0] - 0.8) < 1e-6
        assert abs(attenuation[1] - 0.6) < 1e-6
        assert abs(attenuation[2] - 0.2) < 1e-6

    def test_incident_length_does_not_matter(self):
        """Test the incident direction is normalized before reflection."""
        direction, _attenuation, _did_scatter = _scatter_once((1.0, 1.0, 1.0), 0.0, (0.0, -7.0, 0.0), (0.0, 1.0, 0.0))

        assert abs(direction[1] - 1.0) < 1e-5

    def test_reflection_into_surface_absorbs(self):
        """Test a fuzz-0 reflection pointing into the surface is absorbed."""
        # Incident leaving along the normal reflects back into the surface
        _direction, _attenuation, did_scatter = _scatter_once((0.8, 0.8, 0.8), 0.0, (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert did_scatter == 0

    def test_grazing_reflection_absorbs(self):
        """Test a reflection exactly along the surface (dot == 0) is absorbed."""
        _direction, _attenuation, did_scatter = _scatter_once((0.8, 0.8, 0.8), 0.0, (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert did_scatter == 0

    def test_fuzz_offset_bounded(self):
        """Test the fuzzed direction stays within fuzz of the mirror direction."""
        from spheretrace.materials.metal import scatter_metal, vec3

        max_offset_sq = ti.field(dtype=ti.f32, shape=())
        max_offset_sq[None] = 0.0

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            mirror = vec3(0.0, 1.0, 0.0)
            for _k in range(1000):
                direction, _attenuation, _did_scatter = scatter_metal(
                    vec3(0.8, 0.8, 0.8), 0.3, vec3(0.0, -1.0, 0.0), normal
                )
                offset = direction - mirror
                ti.atomic_max(max_offset_sq[None], offset.dot(offset))

        test_kernel()
        assert 0.0 < max_offset_sq[None] <= 0.09 + 1e-5

    def test_full_fuzz_absorbs_some_grazing_rays(self):
        """Test fuzz 1 sometimes pushes a shallow reflection below the surface."""
        from spheretrace.materials.metal import normalize, scatter_metal, vec3

        absorbed = ti.field(dtype=ti.i32, shape=())
        absorbed[None] = 0

        @ti.kernel
        def test_kernel():
            incident = normalize(vec3(1.0, -0.1, 0.0))
            for _k in range(1000):
                _direction, _attenuation, did_scatter = scatter_metal(
                    vec3(0.8, 0.8, 0.8), 1.0, incident, vec3(0.0, 1.0, 0.0)
                )
                if did_scatter == 0:
                    ti.atomic_add(absorbed[None], 1)

        test_kernel()
        assert 0 < absorbed[None] < 1000


class TestClampFuzz:
    """Tests for fuzz clamping."""

    @pytest.mark.parametrize(
        "fuzz, expected",
        [(0.0, 0.0), (0.3, 0.3), (1.0, 1.0), (2.5, 1.0), (-0.4, 0.0)],
    )
    def test_clamp_fuzz(self, fuzz, expected):
        """Test fuzz values are clamped into [0, 1]."""
        from spheretrace.materials.metal import clamp_fuzz

        assert clamp_fuzz(fuzz) == expected


class TestMetalRegistry:
    """Tests for the metal material registry."""

    def test_add_and_count(self):
        """Test materials get consecutive indices."""
        from spheretrace.materials.metal import add_metal_material, get_metal_material_count

        assert add_metal_material((0.8, 0.6, 0.2), fuzz=0.3) == 0
        assert add_metal_material((0.8, 0.8, 0.8), fuzz=1.0) == 1
        assert get_metal_material_count() == 2

    def test_stored_fuzz_is_clamped(self):
        """Test an out-of-range fuzz is stored clamped."""
        from spheretrace.materials.metal import add_metal_material, metal_fuzzes

        high = add_metal_material((0.8, 0.8, 0.8), fuzz=3.0)
        low = add_metal_material((0.8, 0.8, 0.8), fuzz=-1.0)
        assert abs(metal_fuzzes[high] - 1.0) < 1e-6
        assert abs(metal_fuzzes[low]) < 1e-6

    def test_negative_albedo_rejected(self):
        """Test a negative albedo component raises ValueError."""
        from spheretrace.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="negative"):
            add_metal_material((-0.5, 0.5, 0.5))

    def test_scatter_by_id_uses_registry(self):
        """Test scatter_metal_by_id reads albedo and fuzz from the registry."""
        from spheretrace.materials.metal import add_metal_material, scatter_metal_by_id, vec3

        idx = add_metal_material((0.9, 0.1, 0.1), fuzz=0.0)

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            d, a, _ = scatter_metal_by_id(
                material_idx, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            direction[None] = d
            attenuation[None] = a

        test_kernel(idx)
        assert abs(direction[None][1] - 1.0) < 1e-5
        assert abs(attenuation[None][0] - 0.9) < 1e-6

    def test_clear(self):
        """Test clearing resets the count."""
        from spheretrace.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )

        add_metal_material((0.5, 0.5, 0.5))
        clear_metal_materials()
        assert get_metal_material_count() == 0
