"""Test helper utilities for the campus help matcher tests."""

from .factories import FIXED_NOW, SEED_PATH, later, make_request, make_user, seeded_store

__all__ = ["FIXED_NOW", "SEED_PATH", "later", "make_request", "make_user", "seeded_store"]
