import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import requests
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from config import Config
from errors import UpstreamError

logger = logging.getLogger(__name__)

FAVORABLE_TEMPERATURE_RANGE = (15, 30)  # Celsius, inclusive
FAVORABLE_MIN_HUMIDITY = 40  # percent

class WeatherData(BaseModel):
    location: str
    temperature: int
    humidity: float
    rainfall: float
    wind_speed: int  # km/h
    description: str
    icon: Optional[str] = None
    date: datetime
    is_favorable: bool

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class WeatherForecast(BaseModel):
    daily: List[WeatherData]
    hourly: List[WeatherData]

def is_favorable(temperature: float, humidity: float) -> bool:
    low, high = FAVORABLE_TEMPERATURE_RANGE
    return low <= temperature <= high and humidity >= FAVORABLE_MIN_HUMIDITY

def transform_weather(payload: Dict) -> WeatherData:
    """Convert an OpenWeatherMap current-weather payload (metric units)"""
    try:
        main = payload["main"]
        temperature = main["temp"]
        humidity = main["humidity"]
        rain = payload.get("rain") or {}
        return WeatherData(
            location=payload.get("name", ""),
            temperature=round(temperature),
            humidity=humidity,
            rainfall=rain.get("1h", 0),
            wind_speed=round(payload["wind"]["speed"] * 3.6),  # m/s -> km/h
            description=payload["weather"][0]["description"],
            icon=payload["weather"][0].get("icon"),
            date=datetime.now(timezone.utc),
            is_favorable=is_favorable(temperature, humidity)
        )
    except (KeyError, IndexError, TypeError) as e:
        logger.error(f"Unexpected weather payload: {e}")
        raise UpstreamError("Failed to fetch weather data")

class WeatherService:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key or Config.OPENWEATHER_API_KEY
        self.base_url = base_url or Config.OPENWEATHER_URL
        self.timeout = timeout or Config.EXTERNAL_TIMEOUT_SECONDS

    def current_weather(self, location: Optional[str] = None) -> WeatherData:
        location = location or Config.DEFAULT_LOCATION
        if not self.api_key:
            raise UpstreamError("Weather provider is not configured")

        try:
            response = requests.get(
                self.base_url,
                params={"q": location, "appid": self.api_key, "units": "metric"},
                timeout=self.timeout
            )
        except requests.Timeout:
            logger.error(f"Weather request for {location} timed out after {self.timeout}s")
            raise UpstreamError("Weather provider timed out")
        except requests.RequestException as e:
            logger.error(f"Weather request for {location} failed: {e}")
            raise UpstreamError("Failed to fetch weather data")

        if not response.ok:
            logger.error(f"Weather provider returned {response.status_code} for {location}")
            raise UpstreamError("Failed to fetch weather data")

        return transform_weather(response.json())

    def forecast(self, location: Optional[str] = None) -> WeatherForecast:
        """Daily and hourly outlook projected from the current reading"""
        current = self.current_weather(location)

        daily = [
            current.model_copy(update={"date": current.date + timedelta(days=i)})
            for i in range(5)
        ]
        hourly = [
            current.model_copy(update={"date": current.date + timedelta(hours=i)})
            for i in range(24)
        ]
        return WeatherForecast(daily=daily, hourly=hourly)

weather_service = WeatherService()
