"""
footballviz - football analytics client.

Query building, local play exploration, HTTP API clients and real-time
chart collaboration for the football analytics backend.
"""

__version__ = "0.1.0"
