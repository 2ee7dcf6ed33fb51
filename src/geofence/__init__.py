"""Delivery geofencing: city and delivery-zone resolution for customer locations."""

__version__ = "0.1.0"
