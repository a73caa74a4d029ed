import logging
from enum import Enum
from typing import Dict, List

from .board import BodyTemperature
from .effects import Effect, EffectType, Modifier
from . import rng


class WeatherType(str, Enum):
    CLEAR = "CLEAR"
    SUNNY = "SUNNY"
    CLOUDY = "CLOUDY"
    RAINY = "RAINY"
    STORMY = "STORMY"
    SNOWY = "SNOWY"


# weather → attribute → multiplier. Missing entries mean no change.
WEATHER_MODIFIERS: Dict[str, Dict[str, float]] = {
    "RAINY": {"growth": 1.3, "movement": 0.8, "health_regen": 1.0, "damage": 1.0, "health": 1.0, "defense": 1.0},
    "SUNNY": {"growth": 1.0, "movement": 1.0, "health_regen": 1.2, "damage": 1.1, "health": 1.0, "defense": 1.0},
    "CLOUDY": {"growth": 1.0, "movement": 1.0, "health_regen": 1.0, "damage": 1.0, "health": 1.0, "defense": 1.0},
    "STORMY": {"growth": 0.7, "movement": 0.5, "health_regen": 0.6, "damage": 0.9, "health": 0.6, "defense": 1.1},
    "SNOWY": {"growth": 0.5, "movement": 0.9, "health_regen": 0.7, "damage": 0.95, "health": 1.0, "defense": 1.4},
}

# Possible next weather and relative odds
WEATHER_TRANSITIONS: Dict[str, Dict[str, float]] = {
    "CLEAR": {"CLEAR": 4, "SUNNY": 3, "CLOUDY": 3},
    "SUNNY": {"SUNNY": 4, "CLEAR": 3, "CLOUDY": 2},
    "CLOUDY": {"CLOUDY": 3, "RAINY": 3, "CLEAR": 2, "SNOWY": 1},
    "RAINY": {"RAINY": 3, "CLOUDY": 3, "STORMY": 2},
    "STORMY": {"RAINY": 4, "STORMY": 2, "CLOUDY": 2},
    "SNOWY": {"SNOWY": 3, "CLOUDY": 3, "CLEAR": 1},
}

# Ambient temperature shift applied on top of the chunk temperature
WEATHER_CHILL: Dict[str, float] = {
    "CLEAR": 0, "SUNNY": 4, "CLOUDY": -1, "RAINY": -3, "STORMY": -6, "SNOWY": -10,
}


def _weather_key(weather) -> str:
    return weather.value if isinstance(weather, WeatherType) else str(weather).upper()


# --- RULES ---

def get_growth_score(moisture: float, temperature: float) -> float:
    """
    Plant growth rate for the given conditions, 0-2.

    Moisture peaks at 70 (x1.2) and is fatal below 20 or at 90+.
    Temperature peaks at 25 (x1.0) and is fatal below 5 or at 35+.
    """
    m = max(0, moisture)
    t = max(-10, temperature)

    if m < 20:
        moisture_mod = 0
    elif m < 40:
        moisture_mod = 0.2 + ((m - 20) / 20) * 0.6
    elif m <= 70:
        moisture_mod = 0.8 + ((m - 40) / 30) * 0.4
    elif m < 90:
        moisture_mod = 1.2 - ((m - 70) / 20) * 0.6
    else:
        moisture_mod = 0

    if t < 5:
        temp_mod = 0
    elif t < 25:
        temp_mod = 0.1 + ((t - 5) / 20) * 0.9
    elif t < 35:
        temp_mod = 1.0 - ((t - 25) / 10) * 0.5
    else:
        temp_mod = 0

    score = 0.5 * moisture_mod * temp_mod
    return max(0, min(2.0, score))


def apply_weather_modifier(base_value: float, weather, attribute: str) -> float:
    """Scales a value by the weather matrix. Negative inputs are treated as 0."""
    value = max(0, base_value)
    modifier = WEATHER_MODIFIERS.get(_weather_key(weather), {}).get(attribute, 1.0)
    return max(0, value * modifier)


def get_water_need(temperature: float, moisture: float) -> float:
    """Water units a plant needs per tick, 0-20."""
    t = max(0, temperature)
    m = max(0, min(100, moisture))

    if t < 10:
        temp_mult = 0.5
    elif t < 20:
        temp_mult = 0.5 + ((t - 10) / 10) * 0.5
    elif t <= 30:
        temp_mult = 1.0 + ((t - 20) / 10) * 1.0
    else:
        temp_mult = 2.0

    if m < 30:
        moisture_mult = 1.5
    elif m <= 70:
        moisture_mult = 1.5 - ((m - 30) / 40) * 1.0
    else:
        moisture_mult = 0.5

    return max(0, min(20, 5 * temp_mult * moisture_mult))


def calculate_humidity(base_humidity: float, rainfall: float, temperature: float) -> float:
    """Next humidity: rainfall adds up to 30, heat evaporates 5-20."""
    humidity = max(0, min(100, base_humidity))
    rain = max(0, rainfall)
    t = max(-10, temperature)

    if t < 10:
        evaporation = 0.5
    elif t < 25:
        evaporation = 0.5 + ((t - 10) / 15) * 0.5
    else:
        evaporation = 1.0 + ((min(t, 40) - 25) / 15) * 1.0

    result = humidity + min(30, rain) - 10 * evaporation
    return max(0, min(100, result))


# --- ENGINE ---

class WeatherEngine:
    """
    Tracks the current weather and turns it into effects on the player.
    Effects are returned, never applied here; the effect processor owns that.
    """

    def __init__(self, effect_engine=None, weather=WeatherType.CLEAR, seed: int = 1):
        self.effect_engine = effect_engine
        self.weather = WeatherType(_weather_key(weather))
        self.seed = seed

    def set_weather(self, weather):
        self.weather = WeatherType(_weather_key(weather))

    def advance(self) -> WeatherType:
        """Rolls the next weather from the transition table (seeded)."""
        options = WEATHER_TRANSITIONS[self.weather.value]
        choice, self.seed = rng.weighted_random(self.seed, list(options.keys()), list(options.values()))
        if choice != self.weather.value:
            logging.info(f"Weather: {self.weather.value} -> {choice}")
        self.weather = WeatherType(choice)
        return self.weather

    def weather_at(self, chunk) -> WeatherType:
        """Local weather. Rain falls as snow on freezing ground."""
        if (
            self.weather == WeatherType.RAINY
            and chunk is not None
            and chunk.temperature is not None
            and chunk.temperature <= 0
        ):
            return WeatherType.SNOWY
        return self.weather

    def ambient_temperature(self, chunk) -> float:
        base = chunk.temperature if chunk.temperature is not None else 20
        return base + WEATHER_CHILL.get(self.weather_at(chunk).value, 0)

    def estimate_body_temperature(self, chunk, stats) -> float:
        """One tick of body temperature drift toward the surroundings."""
        body = stats.body_temperature
        ambient = self.ambient_temperature(chunk)
        if ambient < 5:
            return body - 1.0
        if ambient > 35:
            return body + 1.0
        # Comfortable: recover toward normal
        if body < BodyTemperature.NORMAL:
            return min(BodyTemperature.NORMAL, body + 0.5)
        return max(BodyTemperature.NORMAL, body - 0.5)

    def effects_for(self, chunk, stats) -> List[Effect]:
        """Effects the current weather imposes on a player standing in `chunk`."""
        effects: List[Effect] = []
        body = stats.body_temperature
        new_body = self.estimate_body_temperature(chunk, stats)
        if new_body != body:
            effects.append(Effect(
                id="weather_temperature",
                type=EffectType.TEMPERATURE,
                value=round(new_body - body, 2),
            ))

        if new_body < BodyTemperature.HYPOTHERMIA_BELOW:
            effects.append(Effect(
                id="hypothermia",
                type=EffectType.HYPOTHERMIA,
                value=BodyTemperature.HYPOTHERMIA_DAMAGE,
                duration=BodyTemperature.STATUS_DURATION,
            ))
        elif new_body > BodyTemperature.HEATSTROKE_ABOVE:
            effects.append(Effect(
                id="heatstroke",
                type=EffectType.HEATSTROKE,
                value=BodyTemperature.HEATSTROKE_DAMAGE,
                duration=BodyTemperature.STATUS_DURATION,
            ))

        if self.weather_at(chunk) == WeatherType.STORMY:
            effects.append(Effect(
                id="storm_fatigue",
                type=EffectType.DEBUFF,
                target="stamina",
                modifier=Modifier(type="flat", value=-2),
            ))
        return effects
