"""
Hospital Booking

A FastAPI-based service for booking appointments on doctors' daily calendars,
with token authentication and per-role calendar views.
"""

__version__ = "1.0.0"
