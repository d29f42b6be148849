"""BuildTrack CLI commands."""
