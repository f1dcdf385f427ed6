"""Shared helpers for the prepare and check_prereqs commands."""
