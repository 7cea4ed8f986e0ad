#!/usr/bin/env python
"""
CropGrowthSim - procedural crop growth and weather simulation GUI.

Main entry point for the application.

Usage
-----
    uv run python main.py

or:
    python main.py
"""

import sys


def main() -> int:
    """
    Main entry point for CropGrowthSim application.

    Returns
    -------
    int
        Exit code (0 for success, non-zero for error).
    """
    from loguru import logger
    from PySide6.QtWidgets import QApplication
    import pyqtgraph as pg

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        level="DEBUG"
    )

    logger.info("Starting CropGrowthSim...")

    pg.setConfigOptions(antialias=True)

    app = QApplication(sys.argv)
    app.setApplicationName("CropGrowthSim")
    app.setApplicationVersion("0.1.0")

    app.setStyle("Fusion")

    # Import and create main window
    from src.gui.main_window import MainWindow

    window = MainWindow()
    window.show()

    logger.info("Application started successfully")

    exit_code = app.exec()

    logger.info(f"Application exited with code: {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
