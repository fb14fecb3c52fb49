# index_tester.py
# created by:
#   @author: vlv-squid
#   @date: 2025-07-23
#

import time

import geometry_operation as geo
from geohash_index import parse_polygon
from quad_tree import decode_hash_id
from range_util import binary_search
from visualization import Visualizer


class IndexTester:
    """用一批样本点验证 query 得到的 hashID 区间过滤结果"""

    def __init__(self, handler, points):
        self.handler = handler
        self.points = list(points)
        ratio = handler.conversion_ratio
        # 入库: 每个点按系数转为整数后生成 hashID
        self.hash_ids = [
            handler.generate([int(round(lon * ratio)),
                              int(round(lat * ratio))])
            for lon, lat in self.points
        ]

    def cell_center(self, hash_id):
        row, column = decode_hash_id(hash_id, self.handler.cut_level)
        lon = self.handler.min_longitude + (row + 0.5) * self.handler.delta_x
        lat = self.handler.min_latitude + (column + 0.5) * self.handler.delta_y
        return lon, lat

    def filter_by_ranges(self, ranges):
        """返回 hashID 落在区间内的样本点下标"""
        return [
            i for i, hash_id in enumerate(self.hash_ids)
            if hash_id >= 0 and binary_search(ranges, hash_id)[0] >= 0
        ]

    def run_query(self, polygon_text):
        start_time = time.time()
        ranges = self.handler.query(polygon_text)
        candidates = self.filter_by_ranges(ranges)
        duration = (time.time() - start_time) * 1000

        polygon = geo.get_polygon(parse_polygon(polygon_text))
        # 候选点所在栅格的中心点必须在多边形内, 反之亦然
        expected = [
            i for i, hash_id in enumerate(self.hash_ids)
            if hash_id >= 0 and not geo.disjoint(polygon, self.cell_center(hash_id))
        ]
        results = [
            i for i in candidates if not geo.disjoint(polygon, self.points[i])
        ]
        mismatches = len(set(candidates) ^ set(expected))
        print(f"总耗时: {duration:.2f}ms, 区间数: {len(ranges)}, "
              f"候选点: {len(candidates)}, 结果点: {len(results)}, "
              f"不一致: {mismatches}")
        return {
            "ranges": ranges,
            "candidates": candidates,
            "results": results,
            "mismatches": mismatches,
            "duration_ms": duration,
        }

    def run_performance_test(self, polygons, visualize=False, output_dir="./png"):
        print("\n===== 性能测试开始 =====")
        report = {}
        for name, polygon_text in polygons.items():
            print(f"\n[测试] {name}:")
            report[name] = self.run_query(polygon_text)
            if visualize:
                Visualizer.visualize_ranges(self.handler, polygon_text,
                                            report[name]["ranges"], name,
                                            output_dir)
        print("===== 性能测试结束 =====")
        return report
