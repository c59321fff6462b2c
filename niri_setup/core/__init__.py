"""Core setup logic: configuration, bootstrap, actions and UI state."""
