"""
Todo Domain Model Module

This module defines the Todo entity served through the cache.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Todo:
    """
    A todo item.

    Attributes:
        id: Identifier assigned by the repository (None until saved)
        title: Short title
        description: Free-form description
    """
    id: Optional[int] = None
    title: str = ""
    description: str = ""

    def update(self, title: Optional[str] = None, description: Optional[str] = None) -> None:
        """
        Update the todo's attributes.

        Args:
            title: The new title (optional)
            description: The new description (optional)
        """
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Todo':
        """
        Create a Todo from a dictionary.

        Args:
            data: Dictionary containing todo data

        Returns:
            A Todo instance
        """
        todo_id = data.get('id')
        return cls(
            id=int(todo_id) if todo_id is not None else None,
            title=data.get('title', ''),
            description=data.get('description', '')
        )
