"""
Base classes for tool pages.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import QGroupBox, QHBoxLayout, QVBoxLayout, QWidget
from qfluentwidgets import Theme

from src.gui.config import cfg


class PageGroup(QGroupBox):
    """
    A group of controls within a tool page.
    """

    def __init__(self, title: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(title, parent)
        self.setObjectName("PageGroup")

        self._layout = QHBoxLayout(self)
        self._layout.setContentsMargins(8, 16, 8, 8)
        self._layout.setSpacing(8)

    def add_widget(self, widget: QWidget) -> None:
        self._layout.addWidget(widget)


class BaseInterface(QWidget):
    """
    Tool page with a tool bar of ``PageGroup`` rows over a content area.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self._main_layout = QVBoxLayout(self)
        self._main_layout.setContentsMargins(0, 0, 0, 0)
        self._main_layout.setSpacing(0)

        self.tool_bar = QWidget()
        self.tool_bar.setObjectName("ToolBar")
        self.tool_bar.setMinimumHeight(80)
        self.tool_bar.setMaximumHeight(120)

        self._tool_layout = QHBoxLayout(self.tool_bar)
        self._tool_layout.setContentsMargins(4, 4, 4, 4)
        self._tool_layout.setSpacing(8)

        self._main_layout.addWidget(self.tool_bar)

        self.setQss()
        cfg.themeChanged.connect(self.setQss)

        self.content_area = QWidget()
        self.content_area.setObjectName("ContentArea")
        self._content_layout = QVBoxLayout(self.content_area)
        self._content_layout.setContentsMargins(0, 0, 0, 0)
        self._content_layout.setSpacing(0)

        self._main_layout.addWidget(self.content_area, 1)

    def add_group(self, group: PageGroup) -> None:
        self._tool_layout.addWidget(group)

    def add_stretch(self) -> None:
        self._tool_layout.addStretch()

    def setQss(self):
        """Apply QSS."""
        theme = cfg.themeMode.value
        if theme == Theme.AUTO:
            import darkdetect
            theme_name = "dark" if darkdetect.isDark() else "light"
        else:
            theme_name = theme.value.lower()

        qss_path = Path(__file__).parent.parent / "resource" / "qss" / theme_name / "base_interface.qss"
        if qss_path.exists():
            with open(qss_path, encoding='utf-8') as f:
                self.setStyleSheet(f.read())
