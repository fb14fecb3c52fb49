"""
Tests for the planar geometry predicates.
"""

import geometry_operation as geo


def test_get_polygon_needs_three_points():
    assert geo.get_polygon([(0, 0), (1, 1)]) is None
    assert geo.get_polygon([(0, 0), (1, 0), (0, 1)]).area == 0.5


def test_predicates_on_rectangles_and_points():
    polygon = geo.get_polygon([(0, 0), (4, 0), (4, 4), (0, 4)])
    inner = [(1, 3), (3, 3), (3, 1), (1, 1)]
    touching = [(4, 1), (5, 1), (5, 0), (4, 0)]
    far = [(6, 6), (7, 6), (7, 5), (6, 5)]

    assert geo.contains(polygon, inner)
    assert geo.contains(polygon, [(0, 4), (4, 4), (4, 0), (0, 0)])
    assert not geo.contains(polygon, touching)
    assert not geo.disjoint(polygon, touching)
    assert geo.intersects(polygon, touching)
    assert geo.disjoint(polygon, far)

    assert not geo.disjoint(polygon, (2, 2))
    assert not geo.disjoint(polygon, (4, 2))
    assert geo.disjoint(polygon, (5, 2))


def test_envelope_and_bounds():
    polygon = geo.get_polygon([(1, 1), (5, 2), (3, 6)])
    assert geo.get_bounds(polygon) == (1, 1, 5, 6)
    assert geo.get_envelope(polygon).area == 20
