"""Dashboard HTTP routes (Flask blueprint)."""
