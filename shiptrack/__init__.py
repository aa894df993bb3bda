"""
ShipTrack - Shipment sign-off, training and manufacturing records
"""
__version__ = "1.0.0"
