"""Discord-facing runtime pieces: the command dispatcher and the cogs."""
