from typing import Optional

from PySide6.QtWidgets import QFrame, QVBoxLayout, QWidget
from qfluentwidgets import BodyLabel, CaptionLabel, ProgressBar, StrongBodyLabel

from src.core.simulation import FieldLocation
from src.core.timeline import TimelineDay
from src.gui.config import tr
from src.utils.location_service import CurrentWeather


class WeatherPanel(QFrame):
    """
    Side panel with the location and the selected day's conditions.
    """

    def __init__(self, parent: QWidget = None):
        super().__init__(parent)
        self._init_ui()
        self.clear()

    def _init_ui(self):
        self.setObjectName("weatherPanel")
        self.setFixedWidth(240)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(6)

        self.location_title = StrongBodyLabel(tr("panel.location"))
        self.location_label = BodyLabel()
        self.coord_label = CaptionLabel()

        self.date_title = StrongBodyLabel(tr("panel.day"))
        self.date_label = BodyLabel()
        self.weather_label = BodyLabel()
        self.temperature_label = BodyLabel()
        self.humidity_label = BodyLabel()
        self.wind_label = BodyLabel()

        self.growth_title = StrongBodyLabel(tr("panel.growth"))
        self.stage_label = BodyLabel()
        self.growth_bar = ProgressBar(self)
        self.growth_bar.setRange(0, 100)

        self.current_title = StrongBodyLabel(tr("panel.current"))
        self.current_label = BodyLabel()

        for widget in (
            self.location_title,
            self.location_label,
            self.coord_label,
            self.date_title,
            self.date_label,
            self.weather_label,
            self.temperature_label,
            self.humidity_label,
            self.wind_label,
            self.growth_title,
            self.stage_label,
            self.growth_bar,
            self.current_title,
            self.current_label,
        ):
            layout.addWidget(widget)
        layout.addStretch()

    def clear(self) -> None:
        self.location_label.setText(tr("panel.no_location"))
        self.coord_label.setText("")
        for label in (
            self.date_label,
            self.weather_label,
            self.temperature_label,
            self.humidity_label,
            self.wind_label,
            self.stage_label,
        ):
            label.setText("-")
        self.growth_bar.setValue(0)
        self.set_current_conditions(None)

    def set_location(self, location: Optional[FieldLocation]) -> None:
        if location is None:
            self.location_label.setText(tr("panel.no_location"))
            self.coord_label.setText("")
            return
        self.location_label.setText(location.name or tr("panel.unnamed_location"))
        self.coord_label.setText(
            f"Lat: {location.latitude:.4f}, Lon: {location.longitude:.4f}"
        )

    def update_day(self, index: int, day: TimelineDay) -> None:
        self.date_label.setText(
            tr("panel.date").format(day=day.day_index, date=day.date.strftime("%b %d, %Y"))
        )
        self.weather_label.setText(day.weather_kind.label)
        self.temperature_label.setText(f"{day.temperature_c:.1f} °C")
        self.humidity_label.setText(tr("panel.humidity").format(value=day.humidity_pct))
        if day.wind_speed is None:
            self.wind_label.setText("-")
        else:
            self.wind_label.setText(tr("panel.wind").format(value=day.wind_speed))
        self.stage_label.setText(day.growth_stage.value.capitalize())
        self.growth_bar.setValue(int(round(day.growth_percent * 100)))

    def set_current_conditions(self, conditions: Optional[CurrentWeather]) -> None:
        """Show live conditions at the field location; ``None`` resets."""
        if conditions is None:
            self.current_label.setText("-")
            return
        self.current_label.setText(
            tr("panel.current_value").format(
                weather=conditions.weather_kind.label,
                temperature=conditions.temperature_c,
                humidity=conditions.humidity_pct,
            )
        )
