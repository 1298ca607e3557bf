# dpfo/domain/__init__.py
"""Input form sections and calculation results."""
