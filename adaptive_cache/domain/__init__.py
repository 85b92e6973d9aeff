"""Domain services built on the adaptive-TTL cache."""
