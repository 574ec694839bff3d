import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import urlparse

import requests

from errors import TransportError, VisitConstructionError

logger = logging.getLogger(__name__)

ANALYTICS_PATH = '/rest/v15/analytics'


def _freeze_custom_data(record):
    """Records are write-once, including their custom data"""
    object.__setattr__(record, 'custom_data', MappingProxyType(dict(record.custom_data)))


@dataclass(frozen=True)
class ResultHash:
    document_uri: str
    document_uri_hash: str

    def to_payload(self):
        return {'documentUri': self.document_uri, 'documentUriHash': self.document_uri_hash}


@dataclass(frozen=True)
class SearchRecord:
    username: str
    origin_level1: str
    origin_level2: str
    search_query_uid: str
    query_text: str
    advanced_query: str
    action_cause: str
    number_of_results: int
    response_time: int
    action_type: str = ''
    query_pipeline: str = ''
    results: tuple = ()
    custom_data: dict = field(default_factory=dict)
    language: str = 'en'
    anonymous: bool = False

    def __post_init__(self):
        _freeze_custom_data(self)

    def to_payload(self):
        return {
            'username': self.username,
            'anonymous': self.anonymous,
            'language': self.language,
            'originLevel1': self.origin_level1,
            'originLevel2': self.origin_level2,
            'searchQueryUid': self.search_query_uid,
            'queryText': self.query_text,
            'advancedQuery': self.advanced_query,
            'actionCause': self.action_cause,
            'actionType': self.action_type,
            'numberOfResults': self.number_of_results,
            'responseTime': self.response_time,
            'queryPipeline': self.query_pipeline,
            'results': [r.to_payload() for r in self.results],
            'customData': dict(self.custom_data),
        }


@dataclass(frozen=True)
class ClickRecord:
    username: str
    origin_level1: str
    origin_level2: str
    search_query_uid: str
    document_uri: str
    document_uri_hash: str
    document_url: str
    document_title: str
    document_position: int
    collection_name: str
    source_name: str
    action_cause: str
    view_method: str = ''
    query_pipeline: str = ''
    custom_data: dict = field(default_factory=dict)
    language: str = 'en'
    anonymous: bool = False

    def __post_init__(self):
        _freeze_custom_data(self)

    def to_payload(self):
        payload = {
            'username': self.username,
            'anonymous': self.anonymous,
            'language': self.language,
            'originLevel1': self.origin_level1,
            'originLevel2': self.origin_level2,
            'searchQueryUid': self.search_query_uid,
            'documentUri': self.document_uri,
            'documentUriHash': self.document_uri_hash,
            'documentUrl': self.document_url,
            'documentTitle': self.document_title,
            'documentPosition': self.document_position,
            'collectionName': self.collection_name,
            'sourceName': self.source_name,
            'actionCause': self.action_cause,
            'queryPipeline': self.query_pipeline,
            'customData': dict(self.custom_data),
        }
        if self.view_method:
            payload['viewMethod'] = self.view_method
        return payload


@dataclass(frozen=True)
class ViewRecord:
    username: str
    origin_level1: str
    origin_level2: str
    page_title: str
    page_referrer: str
    page_uri: str
    custom_data: dict = field(default_factory=dict)
    language: str = 'en'
    anonymous: bool = False

    def __post_init__(self):
        _freeze_custom_data(self)

    def to_payload(self):
        return {
            'username': self.username,
            'anonymous': self.anonymous,
            'language': self.language,
            'originLevel1': self.origin_level1,
            'originLevel2': self.origin_level2,
            'title': self.page_title,
            'referrer': self.page_referrer,
            'location': self.page_uri,
            'customData': dict(self.custom_data),
        }


@dataclass(frozen=True)
class CustomRecord:
    username: str
    origin_level1: str
    origin_level2: str
    event_type: str
    event_value: str
    last_search_query_uid: str = ''
    custom_data: dict = field(default_factory=dict)
    language: str = 'en'
    anonymous: bool = False

    def __post_init__(self):
        _freeze_custom_data(self)

    def to_payload(self):
        return {
            'username': self.username,
            'anonymous': self.anonymous,
            'language': self.language,
            'originLevel1': self.origin_level1,
            'originLevel2': self.origin_level2,
            'eventType': self.event_type,
            'eventValue': self.event_value,
            'lastSearchQueryUid': self.last_search_query_uid,
            'customData': dict(self.custom_data),
        }


class AnalyticsClient:
    """Sends usage analytics records, one HTTP call per record"""

    def __init__(self, token, endpoint, user_agent='', ip='', timeout=None):
        if not token:
            raise VisitConstructionError("An analytics token is required")
        parsed = urlparse(endpoint or '')
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise VisitConstructionError(f"Invalid analytics endpoint: {endpoint!r}")

        self.endpoint = endpoint.rstrip('/')
        self.ip = ip
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json',
        })
        if user_agent:
            self.session.headers['User-Agent'] = user_agent
        if ip:
            self.session.headers['X-Forwarded-For'] = ip

    def _post(self, kind, record):
        url = f"{self.endpoint}{ANALYTICS_PATH}/{kind}"
        try:
            response = self.session.post(url, json=record.to_payload(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Sending {kind} event failed: {e}")

        if response.status_code >= 400:
            raise TransportError(
                f"Sending {kind} event failed with {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        logger.debug(f"Sent {kind} event for {record.username}")

    def send_search(self, record):
        self._post('search', record)

    def send_click(self, record):
        self._post('click', record)

    def send_view(self, record):
        self._post('view', record)

    def send_custom(self, record):
        self._post('custom', record)
