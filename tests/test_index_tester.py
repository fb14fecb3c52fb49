"""
Tests for range filtering over sample points and the query visualizer.
"""

import importlib
import os

import matplotlib

import index_tester
import visualization
from index_tester import IndexTester
from visualization import Visualizer, range_to_blocks


def test_run_query_agrees_with_cell_centers(handler, grid_points):
    tester = IndexTester(handler, grid_points)
    report = tester.run_query("0.05,0.05;0.95,0.2;0.6,0.97;0.1,0.7")
    assert report["ranges"]
    assert report["candidates"]
    assert report["mismatches"] == 0
    assert set(report["results"]) <= set(report["candidates"])


def test_run_query_outside_area(handler, grid_points):
    tester = IndexTester(handler, grid_points)
    report = tester.run_query("3,3;4,3;4,4")
    assert report["ranges"] == []
    assert report["candidates"] == []


def test_run_performance_test(handler, grid_points, tmp_path):
    tester = IndexTester(handler, grid_points)
    polygons = {
        "triangle": "0.1,0.1;0.9,0.15;0.5,0.9",
        "bbox": "0.2,0.2;0.7,0.2;0.7,0.6;0.2,0.6",
    }
    report = tester.run_performance_test(polygons, visualize=True,
                                         output_dir=str(tmp_path))
    assert set(report) == {"triangle", "bbox"}
    assert os.path.exists(tmp_path / "triangle.png")
    assert os.path.exists(tmp_path / "bbox.png")


def test_range_to_blocks():
    assert range_to_blocks(0, 15, 2) == [(0, 0, 4)]
    assert range_to_blocks(4, 9, 2) == [(0, 2, 2), (2, 0, 1), (2, 1, 1)]


def test_visualize_ranges(handler, tmp_path):
    polygon = "0.05,0.05;0.95,0.2;0.6,0.97"
    ranges = handler.query(polygon)
    outpath = Visualizer.visualize_ranges(handler, polygon, ranges, "query",
                                          str(tmp_path / "png"))
    assert outpath == os.path.join(str(tmp_path / "png"), "query.png")
    assert os.path.getsize(outpath) > 0


def test_import_keeps_matplotlib_backend():
    matplotlib.use("svg")
    try:
        importlib.reload(visualization)
        importlib.reload(index_tester)
        assert matplotlib.get_backend() == "svg"
    finally:
        matplotlib.use("Agg")
        importlib.reload(visualization)
        importlib.reload(index_tester)
