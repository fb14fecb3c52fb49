# quad_tree.py
# created by:
#   @author: vlv-squid
#   @date: 2025-08-04
#

import math

import geometry_operation as geo
from range_util import combine_range, sort_range


def create_hash_id(row, column, cut_level):
    """由栅格行列号计算 z-order(Morton) 编码, 行号第i位放在 2i+1 位, 列号第i位放在 2i 位"""
    index = 0
    for i in range(cut_level + 1):
        x = (row >> i) & 1  # 取第i位
        y = (column >> i) & 1
        index = index | (x << (2 * i + 1)) | (y << (2 * i))
    return index


def decode_hash_id(hash_id, cut_level):
    """create_hash_id 的逆运算, 返回 (row, column)"""
    row = 0
    column = 0
    for i in range(cut_level + 1):
        row |= ((hash_id >> (2 * i + 1)) & 1) << i
        column |= ((hash_id >> (2 * i)) & 1) << i
    return row, column


class QuadRect:
    """节点表示的经纬度矩形区域"""

    def __init__(self, left, bottom, right, top):
        self.left = left
        self.bottom = bottom
        self.right = right
        self.top = top

    def outside_box(self, polygon_rect):
        """给定区域的外接矩形超出当前区域则认为在区域以外"""
        return (polygon_rect.left < self.left or polygon_rect.right > self.right
                or polygon_rect.top > self.top
                or polygon_rect.bottom < self.bottom)

    def get_polygon_point_list(self):
        # 左上, 右上, 右下, 左下
        return [(self.left, self.top), (self.right, self.top),
                (self.right, self.bottom), (self.left, self.bottom)]

    def get_middle_point(self):
        x = self.left + (self.right - self.left) / 2
        y = self.bottom + (self.top - self.bottom) / 2
        return x, y

    def get_split_rect(self):
        """按中心点切成四个子区域, 返回 (左上, 右上, 左下, 右下)"""
        mid_x, mid_y = self.get_middle_point()
        top_left = QuadRect(self.left, mid_y, mid_x, self.top)
        top_right = QuadRect(mid_x, mid_y, self.right, self.top)
        bottom_left = QuadRect(self.left, self.bottom, mid_x, mid_y)
        bottom_right = QuadRect(mid_x, self.bottom, self.right, mid_y)
        return top_left, top_right, bottom_left, bottom_right

    def __repr__(self):
        return (f"QuadRect(left={self.left}, bottom={self.bottom}, "
                f"right={self.right}, top={self.top})")


class GridData:
    """节点对应的栅格行列范围及其 hashID 范围, 行列均为左闭右开"""

    STATUS_PARTIAL = 0  # 部分子节点在多边形内
    STATUS_FULL = 1  # 整个区域都在多边形内
    STATUS_DISJOINT = 2  # 与多边形相离

    def __init__(self, start_row, end_row, start_column, end_column, max_depth):
        self.start_row = start_row
        self.end_row = end_row
        self.start_column = start_column
        self.end_column = end_column
        self.max_depth = max_depth
        self.status = GridData.STATUS_DISJOINT
        self.start_hash = create_hash_id(start_row, start_column, max_depth)
        self.end_hash = create_hash_id(end_row - 1, end_column - 1, max_depth)

    def get_hash_id_range(self):
        return [self.start_hash, self.end_hash]


class QuadNode:
    """
    四叉树节点, 区域的象限划分:

        TL(northWest) | TR(northEast)
        --------------|--------------
        BL(southWest) | BR(southEast)

    行号随经度向右递增, 列号随纬度向上递增
    """

    def __init__(self, rect, grid, current_depth, max_depth):
        self.rect = rect
        self.grid = grid
        self.current_depth = current_depth  # 深度从1开始
        self.max_depth = max_depth
        self.north_west = None
        self.north_east = None
        self.south_west = None
        self.south_east = None

    def insert(self, query_polygon):
        """向节点插入多边形, 进入这里的多边形都与节点区域不相离"""
        if self.is_max_depth():
            # 最小栅格: 判断中心点是否在多边形内(含边界)
            if not geo.disjoint(query_polygon, self.rect.get_middle_point()):
                self.grid.status = GridData.STATUS_FULL
            else:
                self.grid.status = GridData.STATUS_DISJOINT
            return

        if geo.contains(query_polygon, self.rect.get_polygon_point_list()):
            # 整个区域被包含, 不再向下切分
            self.grid.status = GridData.STATUS_FULL
            return

        self.grid.status = GridData.STATUS_PARTIAL
        query_rect = geo.get_envelope(query_polygon)
        top_left, top_right, bottom_left, bottom_right = self.rect.get_split_rect()
        grid = self.grid
        row_middle = grid.start_row + (grid.end_row - grid.start_row) // 2
        column_middle = grid.start_column + (grid.end_column -
                                             grid.start_column) // 2

        if self._touches(query_rect, query_polygon, top_left):
            self.north_west = self._insert_into_child(
                top_left,
                GridData(grid.start_row, row_middle, column_middle,
                         grid.end_column, self.max_depth), query_polygon)
        if self._touches(query_rect, query_polygon, top_right):
            self.north_east = self._insert_into_child(
                top_right,
                GridData(row_middle, grid.end_row, column_middle,
                         grid.end_column, self.max_depth), query_polygon)
        if self._touches(query_rect, query_polygon, bottom_left):
            self.south_west = self._insert_into_child(
                bottom_left,
                GridData(grid.start_row, row_middle, grid.start_column,
                         column_middle, self.max_depth), query_polygon)
        if self._touches(query_rect, query_polygon, bottom_right):
            self.south_east = self._insert_into_child(
                bottom_right,
                GridData(row_middle, grid.end_row, grid.start_column,
                         column_middle, self.max_depth), query_polygon)

        # 四个孩子都全选中则合并, 否则清理相离的孩子
        if not self.combine_child():
            self.check_and_set_disjoint()

    @staticmethod
    def _touches(query_rect, query_polygon, rect):
        points = rect.get_polygon_point_list()
        return (not geo.disjoint(query_rect, points)
                and not geo.disjoint(query_polygon, points))

    def _insert_into_child(self, rect, grid, query_polygon):
        child = QuadNode(rect, grid, self.current_depth + 1, self.max_depth)
        child.insert(query_polygon)
        return child

    def children(self):
        return [self.north_west, self.north_east, self.south_west, self.south_east]

    def combine_child(self):
        if all(child is not None and child.status == GridData.STATUS_FULL
               for child in self.children()):
            self.grid.status = GridData.STATUS_FULL
            self.clean_children()
            return True
        return False

    def check_and_set_disjoint(self):
        for name in ("north_west", "north_east", "south_west", "south_east"):
            child = getattr(self, name)
            if child is not None and child.status == GridData.STATUS_DISJOINT:
                child.clean()
                setattr(self, name, None)
        if self.children_is_null():
            self.grid.status = GridData.STATUS_DISJOINT

    @property
    def status(self):
        return self.grid.status

    def is_max_depth(self):
        return self.current_depth > self.max_depth

    def children_is_null(self):
        return all(child is None for child in self.children())

    def get_child(self, child_type):
        return getattr(self, child_type)

    def clean_children(self):
        for name in ("north_west", "north_east", "south_west", "south_east"):
            child = getattr(self, name)
            if child is not None:
                child.clean()
                setattr(self, name, None)

    def clean(self):
        self.clean_children()
        self.rect = None


class QuadTree:
    """四叉树, 根节点覆盖整个补齐后的 2^depth * 2^depth 栅格区域"""

    # 取区间的孩子顺序: 左下, 左上, 右上, 右下
    RANGE_ORDER = ("south_west", "north_west", "north_east", "south_east")

    def __init__(self, left, bottom, right, top, depth):
        rect = QuadRect(left, bottom, right, top)
        max_column = 2**depth
        grid = GridData(0, max_column, 0, max_column, depth)
        self.root = QuadNode(rect, grid, 1, depth)

    def insert(self, vertexes):
        """插入查询多边形, 与整个区域相离返回 False"""
        vertexes = check_vertexes(vertexes)
        polygon = geo.get_polygon(vertexes)
        outer_rect = QuadRect(*geo.get_bounds(polygon))
        # 外接矩形超出根节点区域则直接退出
        if self.root.rect.outside_box(outer_rect):
            return False
        if geo.disjoint(polygon, self.root.rect.get_polygon_point_list()):
            return False
        self.root.insert(polygon)
        return True

    def get_nodes_data(self):
        """获取树中所有选中节点的 hashID 范围, 已排序并合并"""
        result = []
        if self.root is not None:
            self._get_node_grid_range(self.root, result)
        sort_range(result)
        combine_range(result)
        return result

    def _get_node_grid_range(self, node, result):
        if node.status == GridData.STATUS_FULL:
            result.append(node.grid.get_hash_id_range())
        elif node.status == GridData.STATUS_PARTIAL:
            for child_type in QuadTree.RANGE_ORDER:
                child = node.get_child(child_type)
                if child is not None:
                    self._get_node_grid_range(child, result)

    def node_count(self):
        """当前树中的节点个数"""
        if self.root is None:
            return 0
        count = 0
        stack = [self.root]
        while stack:
            node = stack.pop()
            count += 1
            stack.extend(c for c in node.children() if c is not None)
        return count

    def clean(self):
        if self.root is not None:
            self.root.clean()
            self.root = None


def check_vertexes(vertexes):
    """校验多边形顶点, 返回 [(lon, lat), ...]"""
    points = []
    for vertex in vertexes:
        if isinstance(vertex, (str, bytes)) or not hasattr(vertex, "__len__") \
                or len(vertex) != 2:
            raise ValueError(f"坐标点必须包含经度和纬度两个数值: {vertex!r}")
        try:
            x, y = float(vertex[0]), float(vertex[1])
        except (TypeError, ValueError) as e:
            raise ValueError(f"坐标点不是数值: {vertex!r}") from e
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"坐标点不是有限数值: {vertex!r}")
        points.append((x, y))
    if len(set(points)) < 3:
        raise ValueError("查询多边形至少需要3个不同的坐标点")
    return points
