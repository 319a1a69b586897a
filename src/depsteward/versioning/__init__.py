"""Version model, sources, resolution and migration detection."""
