"""Rich rendering helpers for the BuildTrack CLI."""
