"""
tactical-compass: heading and position display core.

Turns platform orientation events into a calibrated, continuously animatable
heading and formats position fixes as decimal degrees, Maidenhead locator,
ETRS-TM35FIN or approximate UTM, streamed to rendering clients over TCP.
"""

__version__ = "0.1.0"
