# dpfo/xmlform/__init__.py
"""Export to and import from the DPFO typ B XML e-form."""
