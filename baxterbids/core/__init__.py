"""Shared configuration, paths, and startup helpers."""
