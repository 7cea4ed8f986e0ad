# CropGrowthSim GUI Components
"""
Reusable GUI components for CropGrowthSim.

Components:
- FieldCanvas: PyQtGraph top-down field renderer
- TimelineBar: Playback controls and day slider
- WeatherPanel: Current day weather readout
- BaseInterface: Shared page base with themed QSS
"""
