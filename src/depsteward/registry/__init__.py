"""Registry-backed version sources."""
