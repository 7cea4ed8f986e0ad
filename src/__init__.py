# CropGrowthSim - Source Package
"""
CropGrowthSim: procedural crop growth and weather simulation GUI application.

This package provides a PySide6-based GUI for:
- Field polygon scaling and plant placement
- Seasonal and location-aware synthetic weather
- Weather-modulated crop growth timelines
- Day-by-day timeline playback
"""

__version__ = "0.1.0"
