"""Shared helpers for niri-setup."""
