"""BuildTrack CLI utilities."""
