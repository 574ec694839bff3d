"""
One simulated visit to the search page.

A visit owns its session state and its own pair of service clients, and runs
the events of a scenario strictly in order. After every event the visitor
"thinks" for a few seconds. The first error aborts the visit and is raised to
the caller unchanged; a visit never retries an event and cannot be resumed.
"""

import enum
import logging
import random
import time

from analytics_client import AnalyticsClient
from config import BotConfig, Config
from errors import ScenarioError, ValidationError
from events import PauseEvent
from search_client import SearchClient
from session_state import SessionState

logger = logging.getLogger(__name__)


class VisitStatus(enum.Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ABORTED = 'aborted'
    COMPLETED = 'completed'


def pick_random(pool, rng):
    if not pool:
        raise ScenarioError("Cannot pick a value from an empty pool")
    return pool[rng.randrange(len(pool))]


def build_username(bot_config, rng):
    """first.last followed by an email suffix, e.g. jane.doe@example.com"""
    return (
        f"{pick_random(bot_config.first_names, rng)}."
        f"{pick_random(bot_config.last_names, rng)}"
        f"{pick_random(bot_config.email_suffixes, rng)}"
    )


def think_time(rng, floor=None, extra=None):
    """Seconds a visitor waits between two actions"""
    floor = Config.MIN_WAIT if floor is None else floor
    extra = Config.MAX_EXTRA_WAIT if extra is None else extra
    return floor + rng.randint(0, extra)


def no_wait(event):
    return 0


class Visit:
    def __init__(self, state, search_client, analytics_client, config=None,
                 delay=None, sleep=time.sleep, rng=None):
        self.state = state
        self.search_client = search_client
        self.analytics_client = analytics_client
        self.config = config or BotConfig()
        self.rng = rng or random.Random()
        # delay(event) -> seconds to wait after that event
        self.delay = delay or (lambda event: think_time(self.rng))
        self.sleep = sleep
        self.status = VisitStatus.IDLE
        self.events_executed = 0

    def wait(self, seconds=None, event=None):
        if seconds is None:
            seconds = self.delay(event)
        if seconds > 0:
            self.sleep(seconds)

    def execute_scenario(self, scenario):
        if self.status != VisitStatus.IDLE:
            raise ValidationError(f"Visit is {self.status.value} and cannot run another scenario")

        logger.info(f"Executing scenario named: {scenario.name} for {self.state.username}")
        self.status = VisitStatus.RUNNING
        for event in scenario.events:
            try:
                event.execute(self)
            except Exception as e:
                self.status = VisitStatus.ABORTED
                logger.error(f"Visit of {self.state.username} aborted on {type(event).__name__}: {e}")
                raise
            self.events_executed += 1

            # A pause is the wait for its own boundary
            if not isinstance(event, PauseEvent):
                self.wait(event=event)

        self.status = VisitStatus.COMPLETED
        logger.info(
            f"Visit of {self.state.username} completed: {self.events_executed} events "
            f"in {self.state.get_session_duration():.1f}s"
        )


def new_visit(bot_config, search_token, ua_token, user_agent=None, rng=None,
              delay=None, sleep=time.sleep):
    """Create a visitor with a synthetic identity and its own service clients"""
    rng = rng or random.Random()
    username = build_username(bot_config, rng)
    if user_agent is None:
        user_agent = pick_random(bot_config.user_agents, rng)
    ip = pick_random(bot_config.random_ips, rng)

    logger.info(f"New visit from {username} on device {user_agent}")

    search_client = SearchClient(
        search_token, bot_config.get_search_endpoint(),
        user_agent=user_agent, timeout=Config.REQUEST_TIMEOUT,
    )
    analytics_client = AnalyticsClient(
        ua_token, bot_config.get_analytics_endpoint(),
        user_agent=user_agent, ip=ip, timeout=Config.REQUEST_TIMEOUT,
    )

    state = SessionState(username)
    state.setup_origin(
        bot_config.default_origin_level1,
        bot_config.default_origin_level2,
        number_of_results=bot_config.default_number_of_results,
    )
    return Visit(state, search_client, analytics_client, config=bot_config,
                 delay=delay, sleep=sleep, rng=rng)
