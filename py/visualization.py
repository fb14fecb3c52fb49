# visualization.py
# created by:
#   @author: vlv-squid
#   @date: 2025-07-23
#

import os

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from geohash_index import parse_polygon
from quad_tree import decode_hash_id


def range_to_blocks(start, end, cut_level):
    """把一个 hashID 区间拆成若干对齐的正方形栅格块 (row, column, size)"""
    blocks = []
    while start <= end:
        k = 0
        # 4^k 对齐且不超出区间时继续放大
        while k < cut_level and start % (4**(k + 1)) == 0 \
                and start + 4**(k + 1) - 1 <= end:
            k += 1
        row, column = decode_hash_id(start, cut_level)
        blocks.append((row, column, 2**k))
        start += 4**k
    return blocks


class Visualizer:

    @staticmethod
    def visualize_ranges(handler, polygon_text, ranges, query_name,
                         output_dir="./png"):
        """可视化查询多边形与选中的栅格"""
        fig, ax = plt.subplots(figsize=(12, 8))

        # 绘制补齐后的区域和用户区域
        left, bottom, right, top, cut_level = handler.grid_parameters()
        ax.add_patch(
            Rectangle((left, bottom),
                      right - left,
                      top - bottom,
                      fill=False,
                      color='gray',
                      linestyle='--',
                      linewidth=1))
        ax.add_patch(
            Rectangle((handler.min_longitude, handler.min_latitude),
                      handler.max_longitude - handler.min_longitude,
                      handler.max_latitude - handler.min_latitude,
                      fill=False,
                      color='blue',
                      linewidth=1))

        # 高亮显示选中的栅格
        cell_count = 0
        for start, end in ranges:
            for row, column, size in range_to_blocks(start, end, cut_level):
                ax.add_patch(
                    Rectangle((left + row * handler.delta_x,
                               bottom + column * handler.delta_y),
                              size * handler.delta_x,
                              size * handler.delta_y,
                              color='red',
                              alpha=0.4))
                cell_count += size * size

        points = parse_polygon(polygon_text)
        xs, ys = zip(*(points + points[:1]))
        ax.plot(xs, ys, 'k-', linewidth=2)

        ax.set_xlim(left, right)
        ax.set_ylim(bottom, top)
        ax.set_title(
            f"GeoHash Query Ranges ({len(ranges)} ranges, {cell_count} cells)")
        ax.set_xlabel('Longitude')
        ax.set_ylabel('Latitude')
        ax.grid(True)
        plt.tight_layout()
        os.makedirs(output_dir, exist_ok=True)
        outpath = os.path.join(output_dir, query_name + ".png")
        plt.savefig(outpath)
        plt.close(fig)
        print("可视化结果已保存为" + outpath)
        return outpath
