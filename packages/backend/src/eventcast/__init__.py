"""eventcast — real-time event fan-out over Server-Sent Events.

Clients POST events; every connected stream receives them as they
arrive, in submission order. Everything lives in process memory.
"""

__version__ = "0.1.0"
