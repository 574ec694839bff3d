"""
Scenario steps a simulated visitor can take.

Each event is an immutable value built once from the scenario definition and
executed against a visit with execute(visit). Executing an event either
succeeds, sending at most one analytics record, or raises the first error.
"""

import logging
from dataclasses import dataclass, field

import analytics_builder
from errors import ScenarioError

logger = logging.getLogger(__name__)


def _join_expressions(*expressions):
    parts = [e for e in expressions if e]
    if len(parts) > 1:
        return ' '.join(f'({e})' for e in parts)
    return parts[0] if parts else ''


@dataclass(frozen=True)
class SearchEvent:
    query_text: str = ''
    log_event: bool = True
    number_of_results: int = None
    first_result: int = None
    advanced_query: str = ''

    def build_query(self, visit):
        state = visit.state
        config = visit.config
        tab = state.last_tab or state.base_query.tab
        number_of_results = self.number_of_results
        if number_of_results is None:
            number_of_results = config.default_number_of_results
        return state.base_query.with_changes(
            q=self.query_text,
            aq=_join_expressions(config.global_filter, state.base_query.aq, self.advanced_query),
            cq=config.tabs.get(tab, ''),
            tab=tab,
            number_of_results=number_of_results,
            first_result=self.first_result or 0,
            pipeline=config.pipeline,
        )

    def execute(self, visit):
        logger.info(f"Searching for {self.query_text!r} as {visit.state.username}")
        query = self.build_query(visit)
        response = visit.search_client.send(query)
        visit.state.record_search(query, response)
        if not self.log_event:
            return
        record = analytics_builder.build_search_event(visit.state, self.query_text)
        visit.analytics_client.send_search(record)


@dataclass(frozen=True)
class ClickEvent:
    rank: int = 0
    title: str = None
    quickview: bool = False

    def resolve_rank(self, visit):
        if self.title is not None:
            return visit.state.find_result_rank_by_title(self.title)
        return self.rank

    def execute(self, visit):
        rank = self.resolve_rank(visit)
        logger.info(f"Clicking result at rank {rank} (quickview={self.quickview})")
        record = analytics_builder.build_click_event(visit.state, rank, self.quickview)
        visit.analytics_client.send_click(record)


@dataclass(frozen=True)
class ViewEvent:
    page_title: str = ''
    page_referrer: str = ''
    page_uri: str = ''

    def execute(self, visit):
        logger.info(f"Viewing page {self.page_uri}")
        record = analytics_builder.build_view_event(
            visit.state, self.page_title, self.page_referrer, self.page_uri
        )
        visit.analytics_client.send_view(record)


@dataclass(frozen=True)
class CustomEvent:
    event_type: str
    event_value: str
    custom_data: dict = field(default_factory=dict)

    def execute(self, visit):
        logger.info(f"Sending custom event type={self.event_type} value={self.event_value}")
        record = analytics_builder.build_custom_event(
            visit.state, self.event_type, self.event_value, self.custom_data
        )
        visit.analytics_client.send_custom(record)


@dataclass(frozen=True)
class InterfaceChangeEvent:
    action_cause: str = 'interfaceChange'
    action_type: str = 'interface'
    custom_data: dict = field(default_factory=dict)

    def execute(self, visit):
        logger.info(f"Interface change {self.action_cause}/{self.action_type}")
        record = analytics_builder.build_interface_change_event(
            visit.state, self.action_cause, self.action_type, self.custom_data
        )
        visit.analytics_client.send_search(record)


@dataclass(frozen=True)
class TabChangeEvent:
    tab_name: str

    def execute(self, visit):
        state = visit.state
        query = state.require_query()
        state.require_response()

        logger.info(f"Changing tab to {self.tab_name}")
        tab_query = query.with_changes(
            tab=self.tab_name,
            cq=visit.config.tabs.get(self.tab_name, ''),
            first_result=0,
        )
        response = visit.search_client.send(tab_query)
        state.set_tab(self.tab_name)
        state.set_origin(state.origin_level1, self.tab_name)
        state.record_search(tab_query, response)

        record = analytics_builder.build_interface_change_event(
            state, 'interfaceChange', 'interface', {'interfaceChangeTo': self.tab_name}
        )
        visit.analytics_client.send_search(record)


@dataclass(frozen=True)
class SetOriginEvent:
    origin_level1: str
    origin_level2: str = None

    def execute(self, visit):
        visit.state.set_origin(self.origin_level1, self.origin_level2)


@dataclass(frozen=True)
class PauseEvent:
    seconds: float = None

    def execute(self, visit):
        visit.wait(self.seconds, event=self)


def _argument(arguments, name, kind, default=None, required=False):
    if name not in arguments:
        if required:
            raise ScenarioError(f"Missing argument '{name}'")
        return default
    value = arguments[name]
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ScenarioError(f"Argument '{name}' must be of type {kind.__name__}")
    return value


def parse_event(descriptor):
    """Build an event from a {"type": ..., "arguments": {...}} descriptor"""
    if not isinstance(descriptor, dict) or 'type' not in descriptor:
        raise ScenarioError(f"Invalid event descriptor: {descriptor!r}")

    event_type = str(descriptor['type']).lower()
    args = descriptor.get('arguments') or {}
    if not isinstance(args, dict):
        raise ScenarioError(f"Arguments of {event_type} event must be an object")

    if event_type == 'search':
        return SearchEvent(
            query_text=_argument(args, 'queryText', str, ''),
            log_event=_argument(args, 'logEvent', bool, True),
            number_of_results=_argument(args, 'numberOfResults', int),
            first_result=_argument(args, 'firstResult', int),
            advanced_query=_argument(args, 'advancedQuery', str, ''),
        )
    elif event_type == 'click':
        return ClickEvent(
            rank=_argument(args, 'rank', int, 0),
            title=_argument(args, 'title', str),
            quickview=_argument(args, 'quickview', bool, False),
        )
    elif event_type == 'view':
        return ViewEvent(
            page_title=_argument(args, 'pageTitle', str, ''),
            page_referrer=_argument(args, 'pageReferrer', str, ''),
            page_uri=_argument(args, 'pageUri', str, required=True),
        )
    elif event_type == 'custom':
        return CustomEvent(
            event_type=_argument(args, 'eventType', str, required=True),
            event_value=_argument(args, 'eventValue', str, required=True),
            custom_data=_argument(args, 'customData', dict, {}),
        )
    elif event_type == 'interfacechange':
        return InterfaceChangeEvent(
            action_cause=_argument(args, 'actionCause', str, 'interfaceChange'),
            action_type=_argument(args, 'actionType', str, 'interface'),
            custom_data=_argument(args, 'customData', dict, {}),
        )
    elif event_type == 'tabchange':
        return TabChangeEvent(tab_name=_argument(args, 'tabName', str, required=True))
    elif event_type == 'setorigin':
        return SetOriginEvent(
            origin_level1=_argument(args, 'originLevel1', str, required=True),
            origin_level2=_argument(args, 'originLevel2', str),
        )
    elif event_type == 'pause':
        return PauseEvent(seconds=_argument(args, 'seconds', float))

    raise ScenarioError(f"Unknown event type: {descriptor['type']}")
