"""Services orchestrating remote release work."""
