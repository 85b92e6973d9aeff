"""
Todo domain module.

This module contains the Todo model, its repositories, and the cache-aside
service that reads todos through the adaptive-TTL cache.
"""

from .model import Todo
from .repository import TodoRepository
from .memory_repository import MemoryTodoRepository
from .service import TodoService

__all__ = [
    'Todo',
    'TodoRepository',
    'MemoryTodoRepository',
    'TodoService',
]
