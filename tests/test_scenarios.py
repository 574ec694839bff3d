"""Tests for scenario loading and selection."""

import random
from pathlib import Path

import pytest

from config import BotConfig
from errors import ScenarioError
from events import ClickEvent, SearchEvent
from scenarios import Scenario, choose_scenario, scenarios_from_config

EXAMPLE_CONFIG = Path(__file__).resolve().parents[1] / 'bot_configs' / 'example.json'


class TestScenario:
    def test_from_dict(self):
        scenario = Scenario.from_dict({
            'name': 'search and click',
            'weight': 2,
            'events': [
                {'type': 'Search', 'arguments': {'queryText': 'shoes'}},
                {'type': 'Click', 'arguments': {'rank': 0}},
            ],
        })
        assert scenario.name == 'search and click'
        assert scenario.weight == 2.0
        assert scenario.events == (SearchEvent(query_text='shoes'), ClickEvent(rank=0))

    def test_bad_event_names_scenario(self):
        with pytest.raises(ScenarioError) as exc:
            Scenario.from_dict({'name': 'broken', 'events': [{'type': 'Teleport'}]})
        assert 'broken' in str(exc.value)

    def test_negative_weight(self):
        with pytest.raises(ScenarioError):
            Scenario.from_dict({'name': 'x', 'weight': -1, 'events': []})

    def test_example_config_loads(self):
        config = BotConfig.from_file(str(EXAMPLE_CONFIG), seed=1)
        scenarios = scenarios_from_config(config)
        assert len(scenarios) == 3
        assert all(s.events for s in scenarios)


class TestChooseScenario:
    def test_respects_weights(self):
        scenarios = [
            Scenario(name='never', events=(), weight=0),
            Scenario(name='always', events=(), weight=1),
        ]
        rng = random.Random(1)
        assert {choose_scenario(scenarios, rng).name for _ in range(50)} == {'always'}

    def test_empty(self):
        with pytest.raises(ScenarioError):
            choose_scenario([])

    def test_all_zero_weights(self):
        with pytest.raises(ScenarioError):
            choose_scenario([Scenario(name='x', events=(), weight=0)])
