"""
One-Time Pad Exchange Services

Encryption and decryption services for short alphabetic messages, the
clients that talk to them over a length-prefixed TCP protocol, and a key
generator for the pad material.
"""

__version__ = "1.0.0"
__description__ = "One-time pad encryption and decryption services and clients"
