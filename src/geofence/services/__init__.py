"""Geofencing services."""
