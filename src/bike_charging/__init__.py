"""
Bike Charging Service: battery fleet CRUD, charging station catalogue
and background charging control over HTTP.
"""

__version__ = "1.0.0"
