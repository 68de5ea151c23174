"""Tests for core infrastructure (soft delete, service results, error handling, health)."""
