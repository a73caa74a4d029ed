import pytest
from cartridges.wildlands import weather
from cartridges.wildlands.weather import WeatherEngine, WeatherType, WEATHER_TRANSITIONS
from cartridges.wildlands.effects import EffectType
from cartridges.wildlands.models import Chunk, PlayerStatus

def test_growth_score():
    assert weather.get_growth_score(70, 25) == pytest.approx(0.6)
    assert weather.get_growth_score(10, 25) == 0
    assert weather.get_growth_score(70, 40) == 0
    assert 0 < weather.get_growth_score(30, 15) < 0.6

def test_weather_modifier():
    assert weather.apply_weather_modifier(10, "RAINY", "movement") == pytest.approx(8)
    assert weather.apply_weather_modifier(10, WeatherType.SNOWY, "defense") == pytest.approx(14)
    assert weather.apply_weather_modifier(10, "CLEAR", "growth") == 10
    assert weather.apply_weather_modifier(-5, "SUNNY", "damage") == 0

def test_water_need_and_humidity():
    assert weather.get_water_need(25, 50) == pytest.approx(7.5)
    assert weather.get_water_need(50, 0) == 15
    assert weather.calculate_humidity(50, 40, 5) == pytest.approx(75)
    assert weather.calculate_humidity(100, 100, 0) == 100

def test_advance_follows_transition_table():
    engine = WeatherEngine(weather="CLEAR", seed=17)
    for _ in range(30):
        previous = engine.weather.value
        seed = engine.seed
        current = engine.advance()
        assert current.value in WEATHER_TRANSITIONS[previous]
        assert engine.seed != seed

def test_advance_is_deterministic():
    a = WeatherEngine(weather="RAINY", seed=99)
    b = WeatherEngine(weather="RAINY", seed=99)
    assert [a.advance() for _ in range(10)] == [b.advance() for _ in range(10)]

def test_rain_freezes_into_snow():
    engine = WeatherEngine(weather="rainy")
    assert engine.weather_at(Chunk(temperature=-2)) == WeatherType.SNOWY
    assert engine.weather_at(Chunk(temperature=3)) == WeatherType.RAINY
    assert engine.weather_at(Chunk(temperature=None)) == WeatherType.RAINY

def test_ambient_temperature():
    engine = WeatherEngine(weather="STORMY")
    assert engine.ambient_temperature(Chunk(temperature=10)) == 4
    assert engine.ambient_temperature(Chunk(temperature=None)) == 14

def test_cold_lowers_body_temperature():
    engine = WeatherEngine(weather="SNOWY")
    effects = engine.effects_for(Chunk(temperature=-20), PlayerStatus())
    assert [e.type for e in effects] == [EffectType.TEMPERATURE]
    assert effects[0].value == -1.0

def test_hypothermia_once_body_drops_below_threshold():
    engine = WeatherEngine(weather="SNOWY")
    effects = engine.effects_for(Chunk(temperature=-20), PlayerStatus(body_temperature=35.5))
    types = [e.type for e in effects]
    assert EffectType.HYPOTHERMIA in types
    hypothermia = effects[types.index(EffectType.HYPOTHERMIA)]
    assert hypothermia.duration == 30

def test_heat_drives_heatstroke():
    engine = WeatherEngine(weather="SUNNY")
    effects = engine.effects_for(Chunk(temperature=45), PlayerStatus(body_temperature=39.5))
    assert EffectType.HEATSTROKE in [e.type for e in effects]

def test_body_recovers_toward_normal():
    engine = WeatherEngine(weather="CLEAR")
    assert engine.estimate_body_temperature(Chunk(temperature=20), PlayerStatus(body_temperature=35)) == 35.5
    assert engine.estimate_body_temperature(Chunk(temperature=20), PlayerStatus(body_temperature=37.2)) == 37.0

def test_storm_drains_stamina():
    engine = WeatherEngine(weather="STORMY")
    effects = engine.effects_for(Chunk(temperature=20), PlayerStatus())
    assert len(effects) == 1
    assert effects[0].type == EffectType.DEBUFF
    assert effects[0].target == "stamina"
    assert effects[0].modifier.value == -2
