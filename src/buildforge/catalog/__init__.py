"""Catalog 模块：配件目录适配器"""

from .repository import CatalogAdapter, JsonCatalog, MergedCatalog, StaticCatalog

__all__ = [
    "CatalogAdapter",
    "JsonCatalog",
    "MergedCatalog",
    "StaticCatalog",
]
