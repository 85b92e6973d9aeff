"""
Todo Service Module

Cache-aside access to todos. Reads go through the adaptive-TTL cache under
``todo::<id>``; every read re-caches the todo, so frequently read todos keep
their entries longer.
"""

import logging
from typing import List, Optional

from adaptive_cache.common.cache import DynamicTTLCacheService, KeyBuilder, Priority, get_cache_service
from adaptive_cache.common.exceptions import NotFoundError

from .model import Todo
from .repository import TodoRepository

# Setup logging
logger = logging.getLogger(__name__)

ENTITY_TYPE = "todo"


class TodoService:
    """Todo operations backed by a repository and the adaptive-TTL cache."""

    def __init__(
        self,
        repository: TodoRepository,
        cache_service: Optional[DynamicTTLCacheService] = None,
        priority: Priority = Priority.MEDIUM
    ):
        """
        Initialize the todo service.

        Args:
            repository: Repository holding the todos
            cache_service: Cache service to use, or None to use the default
            priority: Priority todos are cached with
        """
        self.repository = repository
        self.cache = cache_service or get_cache_service()
        self.priority = priority

    @staticmethod
    def cache_key(todo_id: int) -> str:
        return KeyBuilder.entity_key(ENTITY_TYPE, todo_id)

    def get_all_todos(self) -> List[Todo]:
        """Get all todos straight from the repository."""
        return self.repository.find_all()

    def get_todo(self, todo_id: int) -> Todo:
        """
        Get a todo, reading through the cache.

        A cache hit adapts the entry's TTL; a miss loads the todo from the
        repository and caches it.

        Args:
            todo_id: The ID of the todo

        Returns:
            The Todo

        Raises:
            NotFoundError: If the todo does not exist
            ContentionError: If the cache entry is being adapted concurrently
        """
        key = self.cache_key(todo_id)

        cached = self.cache.get_value(key)
        if cached is not None:
            logger.debug(f"Cache hit for todo {todo_id}")
            todo = Todo.from_dict(cached)
        else:
            logger.debug(f"Cache miss for todo {todo_id}")
            todo = self.repository.find_by_id(todo_id)
            if todo is None:
                raise NotFoundError("Todo", todo_id)

        self.cache.cache(key, todo.to_dict(), self.priority)
        return todo

    def create_todo(self, todo: Todo) -> Todo:
        """
        Save a new todo.

        Args:
            todo: The todo to create (its ID is assigned by the repository)

        Returns:
            The saved Todo
        """
        todo.id = None
        return self.repository.save(todo)

    def update_todo(self, todo_id: int, title: Optional[str] = None,
                    description: Optional[str] = None) -> Todo:
        """
        Update a todo and refresh its cache entry.

        The cached entry is dropped before re-caching, since caching an
        existing key only adapts its TTL and keeps the stale payload.

        Args:
            todo_id: The ID of the todo
            title: The new title (optional)
            description: The new description (optional)

        Returns:
            The updated Todo

        Raises:
            NotFoundError: If the todo does not exist
        """
        todo = self.repository.find_by_id(todo_id)
        if todo is None:
            raise NotFoundError("Todo", todo_id)

        todo.update(title=title, description=description)
        updated = self.repository.save(todo)

        key = self.cache_key(todo_id)
        self.cache.delete_value(key)
        self.cache.cache(key, updated.to_dict(), self.priority)
        return updated

    def delete_todo(self, todo_id: int) -> None:
        """
        Delete a todo and its cache entry.

        Args:
            todo_id: The ID of the todo

        Raises:
            NotFoundError: If the todo does not exist
        """
        if self.repository.find_by_id(todo_id) is None:
            raise NotFoundError("Todo", todo_id)

        self.cache.delete_value(self.cache_key(todo_id))
        self.repository.delete_by_id(todo_id)
        logger.info(f"Deleted todo {todo_id}")
