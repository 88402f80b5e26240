"""
Query template storage.

TemplateStore is the contract; InMemoryTemplateStore and KeyValueTemplateStore
implement it.
"""

from data_explorer.store.base import TemplateStore, find_template
from data_explorer.store.key_value import KeyValueTemplateStore
from data_explorer.store.memory import InMemoryTemplateStore

__all__ = [
    "InMemoryTemplateStore",
    "KeyValueTemplateStore",
    "TemplateStore",
    "find_template",
]
