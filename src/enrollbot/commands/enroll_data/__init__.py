"""Enrollment data commands."""
