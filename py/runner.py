# runner.py
# created by:
#   @author: vlv-squid
#   @date: 2025-07-23
#

import random

import matplotlib

matplotlib.use("Agg")

from index_base import get_custom_instance, get_custom_string, get_index_handler
from index_tester import IndexTester

if __name__ == "__main__":
    properties = {
        "index_handler": "mygeohash",
        "index_handler.mygeohash.type": "geohash",
        "index_handler.mygeohash.sourcecolumns": "longitude,latitude",
        "index_handler.mygeohash.sourcecolumntypes": "bigint,bigint",
        "index_handler.mygeohash.originlatitude": "26.0",
        "index_handler.mygeohash.minlongitude": "103.20",
        "index_handler.mygeohash.maxlongitude": "103.35",
        "index_handler.mygeohash.minlatitude": "26.40",
        "index_handler.mygeohash.maxlatitude": "26.50",
        "index_handler.mygeohash.gridsize": "50",
        "index_handler.mygeohash.conversionratio": "1000000",
    }

    handler = get_index_handler(properties["index_handler.mygeohash.type"])
    handler.init(properties)
    # 模拟分发到工作节点
    handler = get_custom_instance(get_custom_string(handler))

    random.seed(7)
    sample_points = [(random.uniform(103.20, 103.35),
                      random.uniform(26.40, 26.50)) for _ in range(20000)]

    polygons = {
        "triangle": "103.22,26.41;103.33,26.42;103.27,26.49",
        "bbox": "103.2504,26.4297;103.3028,26.4297;103.3028,26.4747;103.2504,26.4747",
    }

    tester = IndexTester(handler, sample_points)
    tester.run_performance_test(polygons, visualize=True)
