import os
import json
from dataclasses import dataclass, field
from faker import Faker

from errors import ScenarioError


class Config:
    """Configuration for the simulator and the local stub services"""

    # Local stub services
    API_PORT = int(os.environ.get('API_PORT', 3000))

    # Remote services
    SEARCH_ENDPOINT = os.environ.get('SEARCH_ENDPOINT', '')
    ANALYTICS_ENDPOINT = os.environ.get('ANALYTICS_ENDPOINT', '')
    SEARCH_TOKEN = os.environ.get('SEARCH_TOKEN', 'local-search-token')
    UA_TOKEN = os.environ.get('UA_TOKEN', 'local-ua-token')
    REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', 0)) or None

    # Time between actions inside a visit: MIN_WAIT + randint(0, MAX_EXTRA_WAIT)
    MIN_WAIT = int(os.environ.get('MIN_WAIT', 3))
    MAX_EXTRA_WAIT = int(os.environ.get('MAX_EXTRA_WAIT', 4))

    # Version marker attached to every analytics record
    JSUI_VERSION = os.environ.get('JSUI_VERSION', '0.0.0.0;0.0.0.0')

    @classmethod
    def get_search_endpoint(cls):
        if cls.SEARCH_ENDPOINT:
            return cls.SEARCH_ENDPOINT
        return f'http://localhost:{cls.API_PORT}'

    @classmethod
    def get_analytics_endpoint(cls):
        if cls.ANALYTICS_ENDPOINT:
            return cls.ANALYTICS_ENDPOINT
        return f'http://localhost:{cls.API_PORT}'


def _pool(data, key):
    pool = data.get(key, [])
    if not isinstance(pool, list) or not all(isinstance(v, str) for v in pool):
        raise ScenarioError(f"'{key}' must be a list of strings")
    return list(pool)


@dataclass
class BotConfig:
    """Visitor pools, defaults and scenarios read from a JSON bot configuration"""

    first_names: list = field(default_factory=list)
    last_names: list = field(default_factory=list)
    email_suffixes: list = field(default_factory=list)
    random_ips: list = field(default_factory=list)
    user_agents: list = field(default_factory=list)
    search_endpoint: str = ''
    analytics_endpoint: str = ''
    default_origin_level1: str = 'ALL'
    default_origin_level2: str = 'ALL'
    default_number_of_results: int = 20
    global_filter: str = ''
    pipeline: str = ''
    tabs: dict = field(default_factory=dict)
    scenarios: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data, seed=None):
        if not isinstance(data, dict):
            raise ScenarioError("Bot configuration must be a JSON object")

        tabs = data.get('tabs', {})
        if not isinstance(tabs, dict):
            raise ScenarioError("'tabs' must map a tab name to a constant expression")

        scenarios = data.get('scenarios', [])
        if not isinstance(scenarios, list):
            raise ScenarioError("'scenarios' must be a list")

        try:
            number_of_results = int(data.get('defaultNumberOfResults', 20))
        except (TypeError, ValueError):
            raise ScenarioError("'defaultNumberOfResults' must be an integer")

        config = cls(
            first_names=_pool(data, 'firstNames'),
            last_names=_pool(data, 'lastNames'),
            email_suffixes=_pool(data, 'emailSuffixes'),
            random_ips=_pool(data, 'randomIPs'),
            user_agents=_pool(data, 'useragents'),
            search_endpoint=data.get('searchEndpoint', ''),
            analytics_endpoint=data.get('analyticsEndpoint', ''),
            default_origin_level1=data.get('defaultOriginLevel1', 'ALL'),
            default_origin_level2=data.get('defaultOriginLevel2', 'ALL'),
            default_number_of_results=number_of_results,
            global_filter=data.get('globalFilter', ''),
            pipeline=data.get('pipeline', ''),
            tabs=dict(tabs),
            scenarios=scenarios,
        )
        config.fill_missing_pools(seed=seed)
        return config

    @classmethod
    def from_file(cls, path, seed=None):
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ScenarioError(f"Invalid JSON in {path}: {e}")
        except OSError as e:
            raise ScenarioError(f"Cannot read bot configuration {path}: {e}")
        return cls.from_dict(data, seed=seed)

    def fill_missing_pools(self, seed=None, size=20):
        """Generate realistic values for any visitor pool left empty"""
        fake = Faker()
        if seed is not None:
            fake.seed_instance(seed)

        if not self.first_names:
            self.first_names = [fake.first_name().lower() for _ in range(size)]
        if not self.last_names:
            self.last_names = [fake.last_name().lower() for _ in range(size)]
        if not self.email_suffixes:
            self.email_suffixes = [f"@{fake.free_email_domain()}" for _ in range(5)]
        if not self.random_ips:
            self.random_ips = [fake.ipv4_public() for _ in range(size)]
        if not self.user_agents:
            self.user_agents = [fake.user_agent() for _ in range(5)]

    def get_search_endpoint(self):
        return self.search_endpoint or Config.get_search_endpoint()

    def get_analytics_endpoint(self):
        return self.analytics_endpoint or Config.get_analytics_endpoint()
