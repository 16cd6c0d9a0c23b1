"""Input schemas."""
