# geohash_index.py
# created by:
#   @author: vlv-squid
#   @date: 2025-07-23
#

import math
import os
import pickle
import time

from index_base import (INDEX_HANDLER, CustomIndex, MalformedIndexPropertyError,
                        register_handler)
from quad_tree import QuadTree, create_hash_id

CONVERT_FACTOR = 180.0  # 角度转弧度的转换因子
EARTH_RADIUS = 6371004.0  # 地球半径, 单位米
MAX_CUT_LEVEL = 24  # 四叉树深度上限

GEOHASH = "geohash"


def parse_polygon(polygon):
    """解析 "lon,lat;lon,lat;..." 格式的多边形, 末尾与首点相同的闭合点会被去掉"""
    if not isinstance(polygon, str) or not polygon.strip():
        raise ValueError("查询多边形不能为空")
    points = []
    for text in polygon.strip().strip(";").split(";"):
        values = [v.strip() for v in text.split(",")]
        if len(values) != 2:
            raise ValueError(f"坐标点必须包含经度和纬度两个数值: '{text.strip()}'")
        try:
            point = (float(values[0]), float(values[1]))
        except ValueError as e:
            raise ValueError(f"坐标点不是数值: '{text.strip()}'") from e
        if not (math.isfinite(point[0]) and math.isfinite(point[1])):
            raise ValueError(f"坐标点不是有限数值: '{text.strip()}'")
        points.append(point)
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    if len(set(points)) < 3:
        raise ValueError("查询多边形至少需要3个不同的坐标点")
    return points


@register_handler(GEOHASH)
class GeoHashIndex(CustomIndex):
    """
    GeoHash 栅格索引处理器

    把用户给定的经纬度区域按 grid_size 米切分成栅格, 并向右上补齐成
    2^cut_level * 2^cut_level 的正方形区域. 行号沿经度向东递增, 列号沿纬度
    向北递增, 原点是区域的西南角. 入库时 generate 把经纬度转为行列号的
    z-order 编码, 查询时 query 用四叉树把多边形转成连续的编码区间.
    """

    def __init__(self, index_file=None):
        self.index_file = index_file
        self.origin_latitude = None
        self.min_longitude = None
        self.max_longitude = None
        self.min_latitude = None
        self.max_latitude = None
        self.grid_size = None  # 栅格边长, 单位米
        self.conversion_ratio = 1  # 系数, 用于将浮点经纬度转换为整数计算
        self.m_cos = None  # 原点纬度的余弦值
        self.delta_x = None  # 每个栅格对应的经度跨度
        self.delta_y = None  # 每个栅格对应的纬度跨度
        self.delta_x_by_ratio = None
        self.delta_y_by_ratio = None
        self.cut_level = None  # 切分的刀数, 也就是四叉树的深度
        self.calc_max_longitude = None  # 补齐后区域的最大经度
        self.calc_max_latitude = None  # 补齐后区域的最大纬度
        self.total_row_number = 0
        self.total_column_number = 0
        self.lon0_by_ratio = None  # 栅格原点经度 * 系数
        self.lat0_by_ratio = None  # 栅格原点纬度 * 系数

        if index_file and os.path.exists(index_file):
            print("加载已有的 GeoHash 索引配置...")
            self.load_index()

    def validate_option(self, properties):
        """校验建表时的索引属性, 并补齐 type 与 datatype"""
        column = properties.get(INDEX_HANDLER)
        if not column:
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid.")
        common_key = f"{INDEX_HANDLER}.{column}."

        type_key = common_key + "type"
        handler_type = properties.get(type_key)
        if handler_type is not None and handler_type.lower() != GEOHASH:
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid. "
                f"{type_key} property must be {GEOHASH} for this class.")
        properties[type_key] = GEOHASH

        source_columns_key = common_key + "sourcecolumns"
        source_columns = properties.get(source_columns_key)
        if source_columns is None:
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid. "
                f"{source_columns_key} property is not specified.")
        if len([c for c in source_columns.split(",") if c.strip()]) != 2:
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid. "
                f"{source_columns_key} property must have 2 columns.")

        source_types_key = common_key + "sourcecolumntypes"
        source_types = properties.get(source_types_key)
        if source_types is None:
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid. "
                f"{source_types_key} property is not specified.")
        types = [t.strip() for t in source_types.split(",")]
        if len(types) != 2 or any(t.lower() != "bigint" for t in types):
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid. "
                f"{source_types_key} datatypes must be bigint.")

        datatype_key = common_key + "datatype"
        datatype = properties.get(datatype_key)
        if datatype is not None and datatype.lower() != "long":
            raise MalformedIndexPropertyError(
                f"{INDEX_HANDLER} property is invalid. "
                f"{datatype_key} property must be long for this class.")
        # 生成列的类型固定为 long
        properties[datatype_key] = "long"

    def init(self, properties):
        self.validate_option(properties)
        common_key = f"{INDEX_HANDLER}.{properties[INDEX_HANDLER]}."

        def number(key, cast=float):
            value = properties.get(common_key + key)
            if value is None:
                raise MalformedIndexPropertyError(
                    f"{INDEX_HANDLER} property is invalid. "
                    f"Must specify {common_key + key} property.")
            try:
                return cast(str(value).strip())
            except ValueError as e:
                raise MalformedIndexPropertyError(
                    f"{INDEX_HANDLER} property is invalid. "
                    f"{common_key + key} must be a number, got '{value}'."
                ) from e

        self.configure(number("originlatitude"), number("minlongitude"),
                       number("maxlongitude"), number("minlatitude"),
                       number("maxlatitude"), number("gridsize"),
                       number("conversionratio", int))

    def configure(self, origin_latitude, min_longitude, max_longitude,
                  min_latitude, max_latitude, grid_size, conversion_ratio):
        """校验数值参数并计算栅格坐标系"""
        values = {
            "originlatitude": origin_latitude,
            "minlongitude": min_longitude,
            "maxlongitude": max_longitude,
            "minlatitude": min_latitude,
            "maxlatitude": max_latitude,
            "gridsize": grid_size,
            "conversionratio": conversion_ratio,
        }
        for key, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) \
                    or not math.isfinite(value):
                raise MalformedIndexPropertyError(
                    f"{key} must be a finite number, got {value!r}.")
        if grid_size <= 0:
            raise MalformedIndexPropertyError(
                f"gridsize must be greater than 0, got {grid_size}.")
        if not isinstance(conversion_ratio, int) or conversion_ratio <= 0:
            raise MalformedIndexPropertyError(
                f"conversionratio must be a positive integer, got {conversion_ratio}.")
        if not -90 < origin_latitude < 90:
            raise MalformedIndexPropertyError(
                f"originlatitude must be in (-90, 90), got {origin_latitude}.")
        if not -180 <= min_longitude < max_longitude <= 180:
            raise MalformedIndexPropertyError(
                f"longitude range is invalid: [{min_longitude}, {max_longitude}].")
        if not -90 <= min_latitude < max_latitude <= 90:
            raise MalformedIndexPropertyError(
                f"latitude range is invalid: [{min_latitude}, {max_latitude}].")

        # δx = L*360/(2πR*cos(lat)), δy = L*360/(2πR)
        m_cos = math.cos(origin_latitude * math.pi / CONVERT_FACTOR)
        delta_x = (grid_size * 360) / (2 * math.pi * EARTH_RADIUS * m_cos)
        delta_y = (grid_size * 360) / (2 * math.pi * EARTH_RADIUS)
        cut_level = self.calculate_cut_level(max_longitude - min_longitude,
                                             max_latitude - min_latitude,
                                             delta_x, delta_y)
        if cut_level > MAX_CUT_LEVEL:
            raise MalformedIndexPropertyError(
                f"gridsize {grid_size} is too small for the given area: "
                f"cut level {cut_level} exceeds {MAX_CUT_LEVEL}.")

        self.origin_latitude = origin_latitude
        self.min_longitude = min_longitude
        self.max_longitude = max_longitude
        self.min_latitude = min_latitude
        self.max_latitude = max_latitude
        self.grid_size = grid_size
        self.conversion_ratio = conversion_ratio
        self.m_cos = m_cos
        self.delta_x = delta_x
        self.delta_y = delta_y
        self.delta_x_by_ratio = delta_x * conversion_ratio
        self.delta_y_by_ratio = delta_y * conversion_ratio
        self.cut_level = cut_level
        # Xmax = x0 + 2^n*δx, Ymax = y0 + 2^n*δy
        self.calc_max_longitude = min_longitude + 2**cut_level * delta_x
        self.calc_max_latitude = min_latitude + 2**cut_level * delta_y
        self.total_row_number = 2**cut_level
        self.total_column_number = 2**cut_level
        self.lon0_by_ratio = min_longitude * conversion_ratio
        self.lat0_by_ratio = min_latitude * conversion_ratio

        print(f"GeoHash 栅格配置完成: cut_level={cut_level}, "
              f"栅格数={self.total_row_number}x{self.total_column_number}, "
              f"补齐区域=({min_longitude}, {min_latitude}, "
              f"{self.calc_max_longitude:.6f}, {self.calc_max_latitude:.6f})")

    @staticmethod
    def calculate_cut_level(width, height, delta_x, delta_y):
        """n = log2(max((Xmax-X0)/δx, (Ymax-Y0)/δy)), 不是整数时取下一个整数"""
        xn = math.log2(width / delta_x)
        yn = math.log2(height / delta_y)
        level = max(xn, yn)
        if level <= 0:
            return 0
        return int(level) if level % 1 == 0 else int(level) + 1

    def is_configured(self):
        return self.cut_level is not None

    def _check_configured(self):
        if not self.is_configured():
            raise RuntimeError("GeoHash 索引尚未初始化, 请先调用 init() 或 configure()")

    def calculate_id(self, longitude, latitude):
        """经纬度(已乘系数的整数)转为栅格行列号"""
        if not self.delta_x_by_ratio or not self.delta_y_by_ratio:
            raise ZeroDivisionError("栅格的经纬度跨度为0, 无法计算行列号")
        row = math.floor((longitude - self.lon0_by_ratio) / self.delta_x_by_ratio)
        column = math.floor((latitude - self.lat0_by_ratio) / self.delta_y_by_ratio)
        return row, column

    def generate(self, sources):
        """
        由经纬度源列生成 hashID

        sources 为 [longitude, latitude], 均为乘过 conversion_ratio 的整数.
        hashID 从0开始, 点在原点的西侧或南侧时返回 -1, 由调用方作为坏数据处理.
        """
        self._check_configured()
        if len(sources) != 2:
            raise ValueError("Source columns list must be of size 2.")
        for value in sources:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError("Source columns must be of integer type.")
        row, column = self.calculate_id(sources[0], sources[1])
        if row < 0 or column < 0:
            return -1
        return create_hash_id(row, column, self.cut_level)

    def grid_parameters(self):
        self._check_configured()
        return (self.min_longitude, self.min_latitude, self.calc_max_longitude,
                self.calc_max_latitude, self.cut_level)

    def query(self, polygon):
        """把多边形字符串转换为 hashID 区间列表 [[start, end], ...]"""
        self._check_configured()
        start_time = time.time()
        points = parse_polygon(polygon)
        left, bottom, right, top, depth = self.grid_parameters()
        tree = QuadTree(left, bottom, right, top, depth)
        try:
            tree.insert(points)
            ranges = tree.get_nodes_data()
        finally:
            tree.clean()
        duration = (time.time() - start_time) * 1000
        print(f"查询完成! 耗时: {duration:.2f}ms, 区间数: {len(ranges)}")
        return ranges

    def load_index(self):
        """从pickle文件加载栅格配置"""
        with open(self.index_file, 'rb') as f:
            loaded_data = pickle.load(f)
        if not isinstance(loaded_data, dict):
            raise ValueError("加载的GeoHash索引格式不正确")
        self.configure(**loaded_data)
        print("GeoHash索引配置加载完成")

    def save_index(self):
        """将栅格配置保存为pickle文件, 只保存配置参数"""
        self._check_configured()
        directory = os.path.dirname(self.index_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.index_file, 'wb') as f:
            pickle.dump(
                {
                    'origin_latitude': self.origin_latitude,
                    'min_longitude': self.min_longitude,
                    'max_longitude': self.max_longitude,
                    'min_latitude': self.min_latitude,
                    'max_latitude': self.max_latitude,
                    'grid_size': self.grid_size,
                    'conversion_ratio': self.conversion_ratio,
                }, f)

        print("GeoHash索引配置保存完成")
