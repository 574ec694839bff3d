"""Tests for the visit execution engine."""

import random

import pytest

from config import BotConfig
from errors import (
    DataContractError,
    RankOutOfRangeError,
    ScenarioError,
    TransportError,
    ValidationError,
    VisitConstructionError,
)
from events import ClickEvent, PauseEvent, SearchEvent, ViewEvent
from scenarios import Scenario
from stubs import MISSING, make_response
from visit import VisitStatus, build_username, new_visit, no_wait, pick_random, think_time


def scenario(*events):
    return Scenario(name='test scenario', events=tuple(events))


class TestExecuteScenario:
    def test_search_click_pause_completes(self, make_visit, sleeps):
        rng = random.Random(3)
        visit = make_visit(delay=lambda event: think_time(rng, 3, 4))
        assert visit.status == VisitStatus.IDLE

        visit.execute_scenario(scenario(SearchEvent('shoes'), ClickEvent(rank=0), PauseEvent()))

        searches = visit.analytics_client.of_kind('search')
        clicks = visit.analytics_client.of_kind('click')
        assert len(searches) == 1
        assert searches[0].number_of_results == 3
        assert len(clicks) == 1
        assert clicks[0].document_position == 1
        assert [kind for kind, _ in visit.analytics_client.sent] == ['search', 'click']

        # one think time after the search, one after the click, the pause itself
        assert len(sleeps) == 3
        assert all(3 <= s <= 7 for s in sleeps)
        assert visit.status == VisitStatus.COMPLETED
        assert visit.events_executed == 3

    def test_out_of_range_click_aborts(self, make_visit):
        visit = make_visit(responses=[make_response(2)])

        with pytest.raises(RankOutOfRangeError):
            visit.execute_scenario(scenario(SearchEvent(''), ClickEvent(rank=5)))

        assert len(visit.analytics_client.of_kind('search')) == 1
        assert visit.analytics_client.of_kind('click') == []
        assert visit.status == VisitStatus.ABORTED

    def test_missing_collection_aborts_with_named_field(self, make_visit):
        visit = make_visit(responses=[make_response(2, syscollection=MISSING)])

        with pytest.raises(DataContractError) as exc:
            visit.execute_scenario(scenario(SearchEvent('shoes'), ClickEvent(rank=1)))

        assert exc.value.field == 'syscollection'
        assert 'syscollection' in str(exc.value)
        assert visit.analytics_client.of_kind('click') == []
        assert visit.status == VisitStatus.ABORTED

    def test_stops_at_first_error(self, make_visit):
        visit = make_visit(fail_on='click')

        with pytest.raises(TransportError):
            visit.execute_scenario(scenario(
                SearchEvent('shoes'), ClickEvent(rank=0), ViewEvent(page_uri='https://example.com/'),
            ))

        assert visit.analytics_client.of_kind('view') == []
        assert visit.events_executed == 1
        assert visit.status == VisitStatus.ABORTED

    def test_no_pacing_after_failed_event(self, make_visit, sleeps):
        visit = make_visit(delay=lambda event: 1)
        with pytest.raises(RankOutOfRangeError):
            visit.execute_scenario(scenario(SearchEvent('shoes'), ClickEvent(rank=9)))
        assert sleeps == [1]

    def test_visit_cannot_be_resumed(self, make_visit):
        visit = make_visit(responses=[make_response(1)])
        with pytest.raises(RankOutOfRangeError):
            visit.execute_scenario(scenario(SearchEvent('shoes'), ClickEvent(rank=3)))

        with pytest.raises(ValidationError):
            visit.execute_scenario(scenario(ViewEvent(page_uri='https://example.com/')))
        assert visit.status == VisitStatus.ABORTED

    def test_completed_visit_cannot_run_again(self, make_visit):
        visit = make_visit()
        visit.execute_scenario(scenario(SearchEvent('shoes')))
        with pytest.raises(ValidationError):
            visit.execute_scenario(scenario(SearchEvent('shoes')))

    def test_empty_scenario_completes(self, make_visit):
        visit = make_visit()
        visit.execute_scenario(scenario())
        assert visit.status == VisitStatus.COMPLETED

    def test_query_and_response_set_together(self, make_visit):
        visit = make_visit()
        visit.execute_scenario(scenario(ViewEvent(page_uri='https://example.com/')))
        assert visit.state.last_query is None and visit.state.last_response is None

        visit = make_visit()
        visit.execute_scenario(scenario(SearchEvent('shoes')))
        assert visit.state.last_query is not None and visit.state.last_response is not None

    def test_unexpected_error_aborts(self, make_visit):
        visit = make_visit(search_error=KeyError('totalCount'))

        with pytest.raises(KeyError):
            visit.execute_scenario(scenario(SearchEvent('shoes'), ClickEvent(rank=0)))

        assert visit.status == VisitStatus.ABORTED
        assert visit.events_executed == 0
        assert visit.analytics_client.sent == []


class TestRandomPools:
    def test_pick_random_is_deterministic_with_seed(self):
        pool = ['a', 'b', 'c', 'd']
        first = [pick_random(pool, random.Random(11)) for _ in range(3)]
        second = [pick_random(pool, random.Random(11)) for _ in range(3)]
        assert first == second
        assert set(first) <= set(pool)

    def test_pick_random_empty_pool(self):
        with pytest.raises(ScenarioError):
            pick_random([], random.Random(1))

    def test_build_username(self):
        config = BotConfig(first_names=['jane'], last_names=['doe'], email_suffixes=['@example.com'])
        assert build_username(config, random.Random(1)) == 'jane.doe@example.com'

    def test_think_time_window(self):
        rng = random.Random(5)
        values = {think_time(rng, 3, 4) for _ in range(200)}
        assert values <= {3, 4, 5, 6, 7}
        assert min(values) == 3 and max(values) == 7

    def test_no_wait(self):
        assert no_wait(PauseEvent()) == 0


def _bot_config(**overrides):
    values = dict(
        first_names=['jane'],
        last_names=['doe'],
        email_suffixes=['@example.com'],
        random_ips=['203.0.113.10'],
        user_agents=['Mozilla/5.0 (X11; Linux x86_64)'],
        search_endpoint='http://search.example.com',
        analytics_endpoint='http://analytics.example.com',
        default_origin_level1='communitySearch',
    )
    values.update(overrides)
    return BotConfig(**values)


class TestNewVisit:
    def test_builds_identity_and_clients(self):
        visit = new_visit(_bot_config(), 'search-token', 'ua-token', rng=random.Random(1))
        assert visit.state.username == 'jane.doe@example.com'
        assert visit.state.origin_level1 == 'communitySearch'
        assert visit.state.last_query is None
        assert visit.analytics_client.ip == '203.0.113.10'
        assert visit.search_client.session.headers['User-Agent'] == 'Mozilla/5.0 (X11; Linux x86_64)'
        assert visit.status == VisitStatus.IDLE

    def test_missing_token(self):
        with pytest.raises(VisitConstructionError):
            new_visit(_bot_config(), '', 'ua-token', rng=random.Random(1))

    def test_bad_analytics_endpoint(self):
        with pytest.raises(VisitConstructionError):
            new_visit(_bot_config(analytics_endpoint='not a url'), 'search-token', 'ua-token')
