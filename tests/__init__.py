"""
Test suite for Hospital Booking.

Contains unit tests for tokens and the calendar engine, and API tests.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
