"""Data services backing the enrollment commands."""
