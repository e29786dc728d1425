"""
Unit tests for the shadow falloff model and tile renderer.

Covers the edge ramp, the radial corner falloff, the side/corner passes and
the RGBA tile encoding.

Run with: pytest tests/test_falloff.py -v
"""

import pytest
import torch

from shadowgen.falloff import (
    edge_falloff,
    corner_falloff,
    encode_alpha,
    SideShadow,
    CornerShadow,
    ShadowTileRenderer,
)
from shadowgen.buffer import PixelBuffer, Origin
from shadowgen.neighbors import NeighborSet


SIZE = 128
SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN = 24, 16, 32


@pytest.fixture(scope="module")
def renderer():
    return ShadowTileRenderer(SIZE, SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN)


def alpha_of(renderer, **flags):
    return renderer.render(NeighborSet(**flags)).pixels[..., 3]


# ============================================================
# Edge falloff
# ============================================================

class TestEdgeFalloff:
    """Linear ramp away from one edge."""

    def test_full_shadow_at_edge(self):
        assert edge_falloff(0, 24).item() == 1.0

    def test_zero_at_and_beyond_spread(self):
        d = torch.arange(24, 200)
        assert (edge_falloff(d, 24) == 0).all()

    def test_midpoint(self):
        assert edge_falloff(12, 24).item() == pytest.approx(0.5)

    def test_monotone_non_increasing(self):
        values = edge_falloff(torch.arange(0, 64), 32)
        diffs = values[1:] - values[:-1]
        assert (diffs <= 0).all(), "Edge falloff increased with distance"

    def test_range(self):
        values = edge_falloff(torch.arange(0, 64, dtype=torch.float32) * 0.5, 16)
        assert values.min() >= 0.0 and values.max() <= 1.0


# ============================================================
# Corner falloff
# ============================================================

class TestCornerFalloff:
    """Radial falloff away from one corner."""

    def test_full_shadow_at_corner(self):
        assert corner_falloff(0, 0, 16, 24).item() == 1.0

    def test_zero_outside_either_spread(self):
        assert corner_falloff(25, 0, 16, 24).item() == 0.0
        assert corner_falloff(0, 17, 16, 24).item() == 0.0

    def test_zero_on_spread_boundary(self):
        assert corner_falloff(24, 0, 16, 24).item() == 0.0
        assert corner_falloff(0, 16, 16, 24).item() == 0.0

    def test_symmetric_under_axis_swap(self):
        """Swapping (x, spread_x) with (y, spread_y) gives the same value."""
        coords = torch.arange(40, dtype=torch.float32)
        yy, xx = torch.meshgrid(coords, coords, indexing="ij")

        a = corner_falloff(xx, yy, 16, 24)
        b = corner_falloff(yy, xx, 24, 16)
        assert torch.allclose(a, b)

    def test_radial_not_product(self):
        """Along the diagonal the value follows 1 - sqrt(2) * t, not (1 - t)^2."""
        value = corner_falloff(4, 4, 16, 16).item()
        t = 4 / 16
        assert value == pytest.approx(1 - (2 * t * t) ** 0.5, abs=1e-6)
        assert value != pytest.approx((1 - t) ** 2)


# ============================================================
# Passes
# ============================================================

class TestPasses:
    """Side and corner passes on a full tile."""

    def test_no_flags_no_shadow(self):
        sides = SideShadow(SIZE, SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN)
        corners = CornerShadow(SIZE, SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN)
        assert (sides(False, False, False, False) == 0).all()
        assert (corners(False, False, False, False) == 0).all()

    def test_north_edge_uses_up_spread(self):
        sides = SideShadow(SIZE, SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN)
        shadow = sides(True, False, False, False)

        assert torch.allclose(shadow[0], torch.ones(SIZE))
        assert shadow[4, 50].item() == pytest.approx(0.75)
        assert (shadow[SPREAD_UP:] == 0).all()

    def test_south_edge_uses_down_spread(self):
        sides = SideShadow(SIZE, SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN)
        shadow = sides(False, False, True, False)

        assert torch.allclose(shadow[SIZE - 1], torch.ones(SIZE))
        assert shadow[SIZE - 1 - 16, 50].item() == pytest.approx(0.5)
        assert (shadow[:SIZE - SPREAD_DOWN] == 0).all()

    def test_two_edges_compound(self):
        """Where two open edges meet, the shadow is darker than either alone."""
        sides = SideShadow(SIZE, SPREAD_SIDE, SPREAD_UP, SPREAD_DOWN)
        north = sides(True, False, False, False)
        west = sides(False, False, False, True)
        both = sides(True, False, False, True)

        y, x = 8, 12
        assert both[y, x] > north[y, x]
        assert both[y, x] > west[y, x]
        assert both.max() <= 1.0

    def test_corners_do_not_compound(self):
        """Overlapping corner shadows combine by maximum."""
        corners = CornerShadow(16, 12, 12, 12)
        nw = corners(True, False, False, False)
        ne = corners(False, True, False, False)
        both = corners(True, True, False, False)
        assert torch.equal(both, torch.maximum(nw, ne))


# ============================================================
# Tile rendering
# ============================================================

class TestTileRenderer:
    """RGBA tiles for full neighbor configurations."""

    def test_rgb_fixed_alpha_varies(self, renderer):
        tile = renderer.render(NeighborSet(n=True))
        assert (tile.pixels[..., :3] == 255).all()
        assert tile.pixels[0, 10, 3].item() == 255
        assert tile.pixels[4, 10, 3].item() == 191
        assert tile.pixels[SIZE // 2, 10, 3].item() == 0

    def test_all_edges_full_at_corner_clear_at_centre(self, renderer):
        alpha = alpha_of(renderer, n=True, e=True, s=True, w=True)
        assert alpha[0, 0].item() == 255
        assert alpha[SIZE // 2, SIZE // 2].item() == 0

    def test_nw_and_ne_are_mirrors(self, renderer):
        nw = alpha_of(renderer, nw=True)
        ne = alpha_of(renderer, ne=True)
        assert torch.equal(nw, torch.flip(ne, dims=[1]))
        assert not torch.equal(nw, ne)

    def test_sides_and_corners_merge_by_max(self, renderer):
        neighbors = NeighborSet(e=True, s=True, nw=True)
        side = renderer.sides(*neighbors.edges)
        corner = renderer.corners(*neighbors.corners)

        alpha = renderer.render(neighbors).pixels[..., 3]
        assert torch.equal(alpha, encode_alpha(torch.maximum(side, corner)))
        assert (alpha >= encode_alpha(side)).all()
        assert (alpha >= encode_alpha(corner)).all()

    def test_reuses_and_clears_buffer(self, renderer):
        tile = PixelBuffer.zeros(SIZE, SIZE)
        renderer.render(NeighborSet(n=True, e=True, s=True, w=True), out=tile)
        again = renderer.render(NeighborSet(nw=True), out=tile)

        assert again is tile
        assert tile.pixels[SIZE - 1, SIZE - 1, 3].item() == 0

    def test_rejects_bottom_up_buffer(self, renderer):
        tile = PixelBuffer.zeros(SIZE, SIZE, Origin.BOTTOM_LEFT)
        with pytest.raises(ValueError):
            renderer.render(NeighborSet(n=True), out=tile)

    def test_custom_color(self):
        renderer = ShadowTileRenderer(8, 4, 4, 4, color=(10, 20, 30))
        tile = renderer.render(NeighborSet(w=True))
        assert tile.pixels[3, 3, :3].tolist() == [10, 20, 30]


def test_encode_alpha_rounds():
    shadow = torch.tensor([0.0, 0.5, 0.75, 1.0, 1.5])
    assert encode_alpha(shadow).tolist() == [0, 128, 191, 255, 255]
