"""
ChargeBand - keeps a battery within a target charge band by toggling
the smart switch that powers its charger.
"""

__version__ = "1.0.0"
