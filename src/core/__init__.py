# CropGrowthSim Core Module
"""
Core simulation engine for CropGrowthSim.

Contains:
- Field geometry (area, hectare scaling, triangulation, point sampling)
- Crop catalog and plant placement
- Synthetic weather generation
- Growth timeline construction
- Timeline playback controller
- Field simulation builder
"""
