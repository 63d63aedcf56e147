"""Tripzi account wipe service."""
