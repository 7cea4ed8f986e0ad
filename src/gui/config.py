from enum import Enum
from PySide6.QtCore import QLocale, QObject
from qfluentwidgets import (
    QConfig,
    qconfig,
    ConfigItem,
    ConfigValidator,
    OptionsConfigItem,
    OptionsValidator,
    RangeConfigItem,
    RangeValidator,
    BoolValidator,
    EnumSerializer,
    Theme
)

from loguru import logger
from pathlib import Path
from typing import Dict
import datetime as dt
import json

from src import __version__

class Language(Enum):
    """Language enumeration."""
    AUTO = "Auto"
    ENGLISH = "en_US"
    CHINESE = "zh_CN"
    JAPANESE = "ja_JP"


DEFAULT_START_DATE = "2025-03-20"


class DateValidator(ConfigValidator):
    """Validate ISO ``YYYY-MM-DD`` date strings."""

    def validate(self, value):
        try:
            dt.date.fromisoformat(str(value))
        except ValueError:
            return False
        return True

    def correct(self, value):
        return value if self.validate(value) else DEFAULT_START_DATE


class Config(QConfig):
    """
    Configuration for the application.
    """

    # Theme Mode: Light, Dark, Auto
    themeMode = OptionsConfigItem(
        "General", "ThemeMode", Theme.AUTO, OptionsValidator(Theme), EnumSerializer(Theme), restart=False
    )

    # Language: Auto, English, Chinese, Japanese
    language = OptionsConfigItem(
        "General", "Language", Language.AUTO, OptionsValidator(Language), EnumSerializer(Language), restart=True
    )

    # Simulation
    simulationDays = RangeConfigItem(
        "Simulation", "Days", 90, RangeValidator(1, 365)
    )
    startDate = ConfigItem(
        "Simulation", "StartDate", DEFAULT_START_DATE, DateValidator()
    )
    playbackInterval = RangeConfigItem(
        "Simulation", "PlaybackIntervalMs", 1000, RangeValidator(100, 5000)
    )

    # Weather service
    useRealWeather = ConfigItem(
        "Weather", "UseRealWeather", True, BoolValidator()
    )
    openWeatherApiKey = ConfigItem(
        "Weather", "OpenWeatherApiKey", ""
    )

    def start_date(self) -> dt.date:
        """Configured simulation start date."""
        return dt.date.fromisoformat(self.get(self.startDate))


class Translator(QObject):
    """
    Manages application translations.
    """

    def __init__(self):
        super().__init__()
        logger.debug(f"Requested language from config: {cfg.get(cfg.language)}")
        self._current_language = self.get_language(cfg.get(cfg.language))
        logger.info(f"Current language from config: {self._current_language}")
        self._translations: Dict[Language, Dict[str, str]] = {}
        self._load_translations()

    def _load_translations(self):
        """Load all translation files from locales directory."""
        locales_dir = Path(__file__).parent / "resource" / "i18n"
        if not locales_dir.exists():
            logger.error(f"Locales directory not found: {locales_dir}")
            return

        for file_path in locales_dir.glob("*.json"):
            try:
                lang = Language(file_path.stem)
                with open(file_path, "r", encoding="utf-8") as f:
                    self._translations[lang] = json.load(f)
                logger.debug(f"Loaded translations for: {lang.name}")
            except (ValueError, OSError) as e:
                logger.error(f"Failed to load translation {file_path}: {e}")

    def get_language(self, language: Language) -> Language:
        """Resolve ``Language.AUTO`` against the system locale."""
        if language == Language.AUTO:
            locale = QLocale.system().name()  # e.g., en_US, zh_CN, ja_JP
            if locale.startswith("zh"):
                return Language.CHINESE
            if locale.startswith("ja"):
                return Language.JAPANESE
            return Language.ENGLISH
        return language

    def set_language(self, language: Language):
        """
        Set the current language.

        Parameters
        ----------
        language : Language
            Target language; ``Language.AUTO`` follows the system locale.
        """
        language = self.get_language(language)
        if language == self._current_language:
            return

        self._current_language = language
        logger.info(f"Language switched to: {language}")

    def tr(self, key: str) -> str:
        """
        Get translated string for the given key.

        If translation is missing for current language, falls back to English,
        then to the key itself.
        """
        lang_dict = self._translations.get(self._current_language, {})

        result = lang_dict.get(key)
        if result is not None:
            return result

        if self._current_language != Language.ENGLISH:
            en_dict = self._translations.get(Language.ENGLISH, {})
            result = en_dict.get(key)
            if result is not None:
                return result

        return key

YEAR = 2025
VERSION = __version__

cfg = Config()
qconfig.load('config.json', cfg)

# Global instance
translator = Translator()

def tr(key: str) -> str:
    """Helper function to translate a key using the global translator."""
    return translator.tr(key)
