"""Core pipeline: remote client, operation polling, sessions and wiring."""
