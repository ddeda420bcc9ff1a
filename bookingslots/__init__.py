"""
bookingslots - availability and booking-slot computation engine.
"""

__version__ = "0.1.0"
