# range_util.py
# created by:
#   @author: vlv-squid
#   @date: 2025-08-04
#


def sort_range(range_list):
    """按区间起点排序(稳定排序), 四叉树产生的区间互不重叠, 只比较起点即可"""
    range_list.sort(key=lambda r: r[0])
    return range_list


def combine_range(range_list):
    """合并已排序的区间列表中首尾相接的区间, 结果中任意相邻两段都不再连续"""
    if len(range_list) < 2:
        return range_list
    combined = [list(range_list[0])]
    for start, end in range_list[1:]:
        previous = combined[-1]
        if previous[1] + 1 == start:
            previous[1] = end
        else:
            combined.append([start, end])
    range_list[:] = combined
    return range_list


def compare_range(hash_range, des):
    """0 表示 des 落在区间内, 1 表示在区间右侧, -1 表示在区间左侧"""
    start, end = hash_range
    if start <= des <= end:
        return 0
    return 1 if des > end else -1


def binary_search(range_list, des):
    """
    在有序且互不相交的区间列表中二分查找 des

    返回 (index, (low, high)): 找到时 index 为区间下标;
    未找到时 index 为 -1, (low, high) 满足 high + 1 == low, des 应插入在 low 处
    """
    low = 0
    high = len(range_list) - 1
    while low <= high:
        middle = (low + high) // 2
        result = compare_range(range_list[middle], des)
        if result == 0:
            return middle, (low, high)
        elif result < 0:
            high = middle - 1
        else:
            low = middle + 1
    return -1, (low, high)
