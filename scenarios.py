import random
from dataclasses import dataclass

from errors import ScenarioError
from events import parse_event


@dataclass(frozen=True)
class Scenario:
    """An ordered list of events making up one visit"""

    name: str
    events: tuple
    weight: float = 1.0

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ScenarioError(f"Invalid scenario: {data!r}")
        name = data.get('name') or 'unnamed scenario'
        descriptors = data.get('events', [])
        if not isinstance(descriptors, list):
            raise ScenarioError(f"Events of scenario '{name}' must be a list")

        weight = data.get('weight', 1)
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
            raise ScenarioError(f"Weight of scenario '{name}' must be a positive number")

        try:
            events = tuple(parse_event(d) for d in descriptors)
        except ScenarioError as e:
            raise ScenarioError(f"Scenario '{name}': {e}")
        return cls(name=name, events=events, weight=float(weight))


def scenarios_from_config(bot_config):
    return [Scenario.from_dict(s) for s in bot_config.scenarios]


def choose_scenario(scenarios, rng=None):
    """Pick a scenario according to the configured weights"""
    if not scenarios:
        raise ScenarioError("No scenario to choose from")
    rng = rng or random
    weights = [s.weight for s in scenarios]
    if sum(weights) <= 0:
        raise ScenarioError("At least one scenario needs a positive weight")
    return rng.choices(scenarios, weights=weights)[0]
