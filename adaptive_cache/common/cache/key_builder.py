"""
Cache key construction.

Entity keys use the ``<type>::<id>`` shape (``todo::42``); the adaptation
lock for a key lives beside it at ``<key>:lock``.
"""

import hashlib
import json
from typing import Any, Optional, Union

LOCK_SUFFIX = "lock"


def _render_part(part: Any) -> str:
    if part is None:
        return "null"
    if isinstance(part, (str, int, float, bool)):
        return str(part)
    if isinstance(part, (dict, list, tuple)):
        # Order-independent digest so equal filters share a key
        encoded = json.dumps(part, sort_keys=True, default=str).encode()
        return hashlib.md5(encoded).hexdigest()[:10]
    return f"{type(part).__name__}:{part}"


class KeyBuilder:
    """Static helpers for cache and lock keys."""

    @staticmethod
    def build(*parts: Any, namespace: Optional[str] = None, separator: str = ":") -> str:
        """
        Join ``parts`` into a key, prefixed by ``namespace`` when given.

        None becomes ``null``; dicts, lists and tuples are replaced by a
        short digest of their JSON form.
        """
        rendered = [str(namespace)] if namespace else []
        rendered.extend(_render_part(part) for part in parts)
        return separator.join(rendered)

    @staticmethod
    def entity_key(entity_type: str, entity_id: Union[str, int],
                   namespace: Optional[str] = None) -> str:
        key = f"{entity_type}::{_render_part(entity_id)}"
        return f"{namespace}:{key}" if namespace else key

    @staticmethod
    def lock_key(key: str) -> str:
        return f"{key}:{LOCK_SUFFIX}"
