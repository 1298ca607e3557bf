# dpfo/__init__.py
"""Slovak personal income tax return (DPFO typ B) engine."""

__version__ = "0.1.0"
