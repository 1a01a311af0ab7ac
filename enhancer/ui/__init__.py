"""Desktop UI for the enhancer."""
