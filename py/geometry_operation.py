# geometry_operation.py
# created by:
#   @author: vlv-squid
#   @date: 2025-08-04
#

from shapely.geometry import Point, Polygon


def get_polygon(vertexes):
    """由顶点列表构造多边形, 首尾自动闭合, 少于3个点返回 None"""
    if len(vertexes) < 3:
        return None
    return Polygon([(float(x), float(y)) for x, y in vertexes])


def get_point(point):
    x, y = point
    return Point(float(x), float(y))


def get_envelope(geom):
    """外接矩形"""
    return geom.envelope


def get_bounds(geom):
    """外接矩形的坐标范围, 返回 (min_x, min_y, max_x, max_y)"""
    return geom.bounds


def _as_geometry(shape):
    # 多边形对象直接使用, 二元组视为点, 其余视为顶点列表
    if hasattr(shape, "geom_type"):
        return shape
    if len(shape) == 2 and not hasattr(shape[0], "__len__"):
        return get_point(shape)
    return get_polygon(shape)


def disjoint(geom_a, shape_b):
    """相离: A 与 B 没有任何公共点"""
    return geom_a.disjoint(_as_geometry(shape_b))


def contains(geom_a, shape_b):
    """包含: B 的所有点都在 A 内(A=B 也算包含)"""
    return geom_a.contains(_as_geometry(shape_b))


def intersects(geom_a, shape_b):
    return geom_a.intersects(_as_geometry(shape_b))
