"""Infrastructure layer: database wiring and repositories."""
