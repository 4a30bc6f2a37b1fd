"""Command implementations for the tasksync CLI."""
