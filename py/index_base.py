# index_base.py
# created by:
#   @author: vlv-squid
#   @date: 2025-07-23
#

import base64
import pickle
from abc import ABC, abstractmethod

INDEX_HANDLER = "index_handler"

_HANDLERS = {}


class MalformedIndexPropertyError(ValueError):
    """索引属性配置错误，建表时直接拒绝"""


class CustomIndex(ABC):
    """自定义索引处理器: 由源列生成索引列数值, 并把查询条件转换为索引值范围"""

    @abstractmethod
    def validate_option(self, properties):
        pass

    @abstractmethod
    def init(self, properties):
        pass

    @abstractmethod
    def generate(self, sources):
        pass

    @abstractmethod
    def query(self, polygon):
        pass


def register_handler(name):
    """注册索引处理器类, name 不区分大小写"""

    def wrapper(cls):
        _HANDLERS[name.lower()] = cls
        return cls

    return wrapper


def get_index_handler(name):
    cls = _HANDLERS.get(str(name).lower())
    if cls is None:
        raise MalformedIndexPropertyError(
            f"{INDEX_HANDLER} property is invalid. unknown handler type: {name}")
    return cls()


def get_custom_string(handler):
    """将配置好的处理器序列化为字符串, 用于分发到各个工作节点"""
    return base64.b64encode(pickle.dumps(handler)).decode("ascii")


def get_custom_instance(text):
    handler = pickle.loads(base64.b64decode(text))
    if not isinstance(handler, CustomIndex):
        raise ValueError("反序列化得到的对象不是索引处理器")
    return handler
