"""Appointment scheduling, pricing and cancellation policy for a tattoo studio."""

__version__ = "0.1.0"
