"""
Memory Todo Repository Module

This module provides an in-memory implementation of the TodoRepository
interface for development and testing purposes.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from .model import Todo
from .repository import TodoRepository

# Setup logging
logger = logging.getLogger(__name__)


class MemoryTodoRepository(TodoRepository):
    """
    In-memory implementation of the TodoRepository.

    IDs are assigned from a counter kept above every stored ID. Stored todos
    are copies, so callers mutating a returned Todo do not change the
    repository.
    """

    def __init__(self, initial_data: Optional[List[Todo]] = None):
        """
        Initialize the repository with optional initial data.

        Args:
            initial_data: Optional list of Todo entities to initialize with
        """
        self._todos: Dict[int, Todo] = {}
        self._next_id = 1
        self._lock = threading.Lock()

        for todo in initial_data or []:
            self.save(todo)

    def find_by_id(self, todo_id: int) -> Optional[Todo]:
        todo = self._todos.get(todo_id)
        return replace(todo) if todo is not None else None

    def save(self, todo: Todo) -> Todo:
        with self._lock:
            if todo.id is None:
                todo.id = self._next_id
            self._next_id = max(self._next_id, todo.id + 1)
            self._todos[todo.id] = replace(todo)
        return todo

    def delete_by_id(self, todo_id: int) -> bool:
        with self._lock:
            return self._todos.pop(todo_id, None) is not None

    def find_all(self) -> List[Todo]:
        return [replace(todo) for todo in self._todos.values()]

    def clear(self) -> None:
        """Remove all todos (not part of the TodoRepository interface)."""
        with self._lock:
            self._todos.clear()
