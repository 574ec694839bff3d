import logging
from dataclasses import dataclass, field, replace
from urllib.parse import urlparse

import requests

from errors import DataContractError, TransportError, VisitConstructionError

logger = logging.getLogger(__name__)

SEARCH_PATH = '/rest/search/v2'

# Raw result values are limited to JSON scalars
RAW_SCALARS = (str, int, float, bool, type(None))


def expect_string(raw, key, context=None):
    """Return raw[key] when it is a string, raise DataContractError otherwise"""
    value = raw.get(key)
    if not isinstance(value, str):
        raise DataContractError(key, context)
    return value


def clean_raw(raw):
    """Keep only the scalar values of a raw field mapping"""
    if not isinstance(raw, dict):
        return {}
    return {str(k): v for k, v in raw.items() if isinstance(v, RAW_SCALARS)}


def _string_field(data, key, context):
    """data[key] as a string, missing or null becomes an empty string"""
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise DataContractError(key, context)
    return value


def _int_field(data, key, context):
    value = data.get(key, 0)
    if isinstance(value, bool):
        raise DataContractError(key, context, expected='integer')
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise DataContractError(key, context, expected='integer')


@dataclass(frozen=True)
class Query:
    q: str = ''
    aq: str = ''
    cq: str = ''
    number_of_results: int = 20
    first_result: int = 0
    tab: str = 'All'
    pipeline: str = ''
    group_by_requests: tuple = ()

    def with_changes(self, **changes):
        return replace(self, **changes)

    def to_payload(self):
        payload = {
            'q': self.q,
            'aq': self.aq,
            'cq': self.cq,
            'numberOfResults': self.number_of_results,
            'firstResult': self.first_result,
            'tab': self.tab,
        }
        if self.pipeline:
            payload['pipeline'] = self.pipeline
        if self.group_by_requests:
            payload['groupBy'] = [dict(g) for g in self.group_by_requests]
        return payload


@dataclass(frozen=True)
class SearchResult:
    title: str
    uri: str
    printable_uri: str = ''
    click_uri: str = ''
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_json(cls, data):
        context = 'search result'
        if not isinstance(data, dict):
            raise DataContractError('result', context, expected='object')
        return cls(
            title=_string_field(data, 'title', context),
            uri=_string_field(data, 'uri', context),
            printable_uri=_string_field(data, 'printableUri', context),
            click_uri=_string_field(data, 'clickUri', context),
            raw=clean_raw(data.get('raw')),
        )


@dataclass(frozen=True)
class SearchResponse:
    total_count: int
    duration: int
    search_uid: str
    pipeline: str = ''
    results: tuple = ()

    @classmethod
    def from_json(cls, data):
        context = 'search response'
        if not isinstance(data, dict):
            raise DataContractError('response', context, expected='object')
        results = data.get('results')
        if results is None:
            results = []
        if not isinstance(results, list):
            raise DataContractError('results', context, expected='list')
        return cls(
            total_count=_int_field(data, 'totalCount', context),
            duration=_int_field(data, 'duration', context),
            search_uid=_string_field(data, 'searchUid', context),
            pipeline=_string_field(data, 'pipeline', context),
            results=tuple(SearchResult.from_json(r) for r in results),
        )


class SearchClient:
    """Sends queries to the search service"""

    def __init__(self, token, endpoint, user_agent='', timeout=None):
        if not token:
            raise VisitConstructionError("A search token is required")
        parsed = urlparse(endpoint or '')
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise VisitConstructionError(f"Invalid search endpoint: {endpoint!r}")

        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json',
        })
        if user_agent:
            self.session.headers['User-Agent'] = user_agent

    def send(self, query):
        url = self.endpoint + SEARCH_PATH
        try:
            response = self.session.post(url, json=query.to_payload(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Search request failed: {e}")

        if response.status_code >= 400:
            raise TransportError(
                f"Search request failed with {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Search response is not JSON: {e}", status_code=response.status_code)

        result = SearchResponse.from_json(data)
        logger.info(f"Search for {query.q!r} returned {result.total_count} results in {result.duration}ms")
        return result
