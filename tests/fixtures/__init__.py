"""Shared test fixtures (importable helpers, not pytest fixtures)."""
