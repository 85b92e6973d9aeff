"""
Todo Repository Module

This module defines the repository interface for storing Todo entities.
"""

import abc
from typing import List, Optional

from .model import Todo


class TodoRepository(abc.ABC):
    """
    Abstract base class for todo repositories.

    This interface defines the contract for accessing and storing Todo entities.
    """

    @abc.abstractmethod
    def find_by_id(self, todo_id: int) -> Optional[Todo]:
        """
        Get a todo by its ID.

        Args:
            todo_id: The ID of the todo to retrieve

        Returns:
            The Todo entity if found, None otherwise
        """
        pass

    @abc.abstractmethod
    def save(self, todo: Todo) -> Todo:
        """
        Save a todo.

        A todo without an ID is created and gets one assigned; a todo with
        an ID replaces the stored one.

        Args:
            todo: The Todo entity to save

        Returns:
            The saved Todo entity
        """
        pass

    @abc.abstractmethod
    def delete_by_id(self, todo_id: int) -> bool:
        """
        Delete a todo by its ID.

        Args:
            todo_id: The ID of the todo to delete

        Returns:
            True if the todo was deleted, False otherwise
        """
        pass

    @abc.abstractmethod
    def find_all(self) -> List[Todo]:
        """Get all todos."""
        pass
