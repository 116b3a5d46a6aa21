"""
properties package

Property panel for the document and the selected section.
"""

from properties.dock import PropertyPanel, PropertyDock

__all__ = ["PropertyPanel", "PropertyDock"]
