"""Command line and terminal UI front-end for niri-setup."""
