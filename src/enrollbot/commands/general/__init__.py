"""General-purpose commands."""
