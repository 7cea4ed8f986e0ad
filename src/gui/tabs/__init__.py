# CropGrowthSim Tab Modules
"""
Tab modules for the CropGrowthSim main window.

Tabs:
- SimulationTab: Configure a field, run and play back the growth timeline
- SettingsTab: Theme, language, simulation and weather options
"""
