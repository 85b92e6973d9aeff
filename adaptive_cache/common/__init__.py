"""
Common Components

This package contains the infrastructure shared by the cache engine and the
services built on it.

Key components:
1. Cache - Adaptive-TTL cache engine with memory and Redis backends
2. Tasks - Background eviction and its scheduling
3. Configuration - Layered settings from defaults, files and environment
4. Logging - Centralized logging configuration
5. Exceptions - Error types raised across the package
"""
