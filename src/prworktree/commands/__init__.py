"""Command implementations invoked by the prworktree CLI."""
