"""
Adaptive-TTL Cache

A cache whose entry lifetimes adapt to how often each key is re-cached and to
a declared priority, backed by Redis (or an in-memory store), with a
background eviction scheduler that keeps memory usage under a threshold.

Main packages:
1. common.cache - Cache engine, TTL policy, stores and expiration index
2. common.tasks - Eviction cycle and its Celery scheduling
3. domain.todos - Cache-aside todo service built on the engine
"""

__version__ = "0.1.0"
