from pathlib import Path

from PySide6.QtCore import QDate, Qt
from PySide6.QtWidgets import QLabel, QWidget
from qfluentwidgets import (
    CalendarPicker,
    ExpandLayout,
    InfoBar,
    InfoBarPosition,
    OptionsSettingCard,
    PasswordLineEdit,
    RangeSettingCard,
    ScrollArea,
    SettingCard,
    SettingCardGroup,
    SwitchSettingCard,
    Theme,
    setTheme,
)
from qfluentwidgets import FluentIcon as FIF

from src.gui.config import Language, cfg, tr, translator


class ApiKeySettingCard(SettingCard):
    """Setting card editing the OpenWeatherMap API key."""

    def __init__(self, parent=None):
        super().__init__(
            FIF.CLOUD, tr("settings.label.api_key"), tr("settings.desc.api_key"), parent
        )
        self.lineEdit = PasswordLineEdit(self)
        self.lineEdit.setFixedWidth(260)
        self.lineEdit.setText(cfg.get(cfg.openWeatherApiKey))
        self.hBoxLayout.addWidget(self.lineEdit, 0, Qt.AlignmentFlag.AlignRight)
        self.hBoxLayout.addSpacing(16)
        self.lineEdit.editingFinished.connect(self._on_editing_finished)

    def _on_editing_finished(self):
        cfg.set(cfg.openWeatherApiKey, self.lineEdit.text().strip())


class StartDateSettingCard(SettingCard):
    """Setting card picking the simulation start date."""

    def __init__(self, parent=None):
        super().__init__(
            FIF.CALENDAR, tr("settings.label.start_date"), tr("settings.desc.start_date"), parent
        )
        self.picker = CalendarPicker(self)
        start = cfg.start_date()
        self.picker.setDate(QDate(start.year, start.month, start.day))
        self.hBoxLayout.addWidget(self.picker, 0, Qt.AlignmentFlag.AlignRight)
        self.hBoxLayout.addSpacing(16)
        self.picker.dateChanged.connect(self._on_date_changed)

    def _on_date_changed(self, date: QDate):
        cfg.set(cfg.startDate, date.toString("yyyy-MM-dd"))


class SettingsTab(ScrollArea):
    """
    Settings Interface.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self.scrollWidget = QWidget()
        self.expandLayout = ExpandLayout(self.scrollWidget)

        self.setWidget(self.scrollWidget)
        self.setWidgetResizable(True)
        self.setObjectName("settingsInterface")

        self._init_ui()
        self._connect_signals()

    def _init_ui(self):
        """Initialize UI controls."""
        self.setViewportMargins(0, 80, 0, 20)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        self.settingLabel = QLabel(tr("nav.settings"), self)
        self.settingLabel.setObjectName("settingLabel")
        self.settingLabel.move(36, 30)

        # --- General Group ---
        self.generalGroup = SettingCardGroup(
            tr("settings.group.general"), self.scrollWidget
        )

        self.themeCard = OptionsSettingCard(
            cfg.themeMode,
            FIF.BRUSH,
            tr("settings.label.theme"),
            tr("settings.desc.theme"),
            texts=[
                tr("settings.theme.light"),
                tr("settings.theme.dark"),
                tr("settings.theme.auto"),
            ],
            parent=self.generalGroup,
        )

        self.languageCard = OptionsSettingCard(
            cfg.language,
            FIF.LANGUAGE,
            tr("settings.label.language"),
            tr("settings.desc.language"),
            texts=[
                tr("settings.lang.auto"),
                tr("settings.lang.en"),
                tr("settings.lang.zh"),
                tr("settings.lang.ja"),
            ],
            parent=self.generalGroup,
        )

        self.generalGroup.addSettingCard(self.themeCard)
        self.generalGroup.addSettingCard(self.languageCard)

        # --- Simulation Group ---
        self.simulationGroup = SettingCardGroup(
            tr("settings.group.simulation"), self.scrollWidget
        )

        self.daysCard = RangeSettingCard(
            cfg.simulationDays,
            FIF.HISTORY,
            tr("settings.label.days"),
            tr("settings.desc.days"),
            self.simulationGroup,
        )
        self.startDateCard = StartDateSettingCard(self.simulationGroup)
        self.intervalCard = RangeSettingCard(
            cfg.playbackInterval,
            FIF.SPEED_HIGH,
            tr("settings.label.interval"),
            tr("settings.desc.interval"),
            self.simulationGroup,
        )

        self.simulationGroup.addSettingCard(self.daysCard)
        self.simulationGroup.addSettingCard(self.startDateCard)
        self.simulationGroup.addSettingCard(self.intervalCard)

        # --- Weather Group ---
        self.weatherGroup = SettingCardGroup(
            tr("settings.group.weather"), self.scrollWidget
        )

        self.realWeatherCard = SwitchSettingCard(
            FIF.CLOUD,
            tr("settings.label.real_weather"),
            tr("settings.desc.real_weather"),
            configItem=cfg.useRealWeather,
            parent=self.weatherGroup,
        )
        self.apiKeyCard = ApiKeySettingCard(self.weatherGroup)

        self.weatherGroup.addSettingCard(self.realWeatherCard)
        self.weatherGroup.addSettingCard(self.apiKeyCard)

        # --- Add Groups to Layout ---
        self.expandLayout.setSpacing(28)
        self.expandLayout.setContentsMargins(36, 10, 36, 0)
        self.expandLayout.addWidget(self.generalGroup)
        self.expandLayout.addWidget(self.simulationGroup)
        self.expandLayout.addWidget(self.weatherGroup)

        self.scrollWidget.setObjectName("scrollWidget")
        self.setQss()

    def _connect_signals(self):
        """Connect signals."""
        cfg.themeChanged.connect(self.setQss)
        cfg.themeChanged.connect(setTheme)
        cfg.language.valueChanged.connect(self.setLanguage)

    def _on_restart_needed(self):
        """Show restart warning."""
        InfoBar.warning(
            title=tr("settings.msg.restart_title"),
            content=tr("settings.msg.restart"),
            orient=Qt.Orientation.Horizontal,
            isClosable=True,
            position=InfoBarPosition.TOP_RIGHT,
            duration=5000,
            parent=self,
        )

    def setQss(self):
        """Apply QSS."""
        theme = cfg.themeMode.value
        if theme == Theme.AUTO:
            import darkdetect

            theme_name = "dark" if darkdetect.isDark() else "light"
        else:
            theme_name = theme.value.lower()

        qss_path = (
            Path(__file__).parent.parent
            / "resource"
            / "qss"
            / theme_name
            / "setting_interface.qss"
        )
        if qss_path.exists():
            with open(qss_path, encoding="utf-8") as f:
                self.setStyleSheet(f.read())

    def setLanguage(self, language: Language):
        """Set language."""
        translator.set_language(language)
        self._on_restart_needed()
