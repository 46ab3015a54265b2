"""Weather sources and the escalation pipeline that reconciles them."""

from .base import WeatherSource
from .internal import InternalServiceSource
from .mock import MockWeatherGenerator
from .open_meteo import OpenMeteoSource
from .pipeline import ForecastResolution, StageAttempt, WeatherResolution, WeatherResolver

__all__ = [
    "ForecastResolution",
    "InternalServiceSource",
    "MockWeatherGenerator",
    "OpenMeteoSource",
    "StageAttempt",
    "WeatherResolution",
    "WeatherResolver",
    "WeatherSource",
]
