"""Notifications from the board layer to the UI collaborator."""
