"""
Derives usage analytics records from the state of a visit.

Every record built here is consistent with the last search response the
visitor received: result counts, response time, search uid and result hashes
all come from the same response. Nothing in this module talks to the network;
a record either comes out fully populated or a SimulatorError is raised.
"""

from analytics_client import ClickRecord, CustomRecord, ResultHash, SearchRecord, ViewRecord
from config import Config
from errors import RankOutOfRangeError
from search_client import expect_string

URI_HASH_FIELD = 'sysurihash'
COLLECTION_FIELD = 'syscollection'
SOURCE_FIELD = 'syssource'


def build_custom_data(custom_data=None, version=None):
    """Caller values first, the version marker is always written last"""
    merged = dict(custom_data or {})
    merged['JSUIVersion'] = version or Config.JSUI_VERSION
    return merged


def _result_hashes(response, context):
    if not response.results:
        return ()
    first = response.results[0]
    uri_hash = expect_string(first.raw, URI_HASH_FIELD, context)
    return (ResultHash(document_uri=first.uri, document_uri_hash=uri_hash),)


def _search_shaped(state, query_text, action_cause, action_type, custom_data, context):
    query = state.require_query()
    response = state.require_response()
    return SearchRecord(
        username=state.username,
        origin_level1=state.origin_level1,
        origin_level2=state.origin_level2,
        search_query_uid=response.search_uid,
        query_text=query_text,
        advanced_query=query.aq,
        action_cause=action_cause,
        action_type=action_type,
        number_of_results=response.total_count,
        response_time=response.duration,
        query_pipeline=response.pipeline,
        results=_result_hashes(response, context),
        custom_data=build_custom_data(custom_data),
    )


def build_search_event(state, query_text=None, action_cause='searchboxSubmit', custom_data=None):
    """Search record for the query that produced the last response"""
    if query_text is None:
        query_text = state.require_query().q
    return _search_shaped(state, query_text, action_cause, '', custom_data, 'search event')


def build_interface_change_event(state, action_cause, action_type, custom_data=None):
    query = state.require_query()
    return _search_shaped(
        state, query.q, action_cause, action_type, custom_data, 'interfaceChange event'
    )


def build_click_event(state, rank, quickview=False, custom_data=None):
    response = state.require_response()
    if rank < 0 or rank >= len(response.results):
        raise RankOutOfRangeError(rank, len(response.results))

    result = response.results[rank]
    uri_hash = expect_string(result.raw, URI_HASH_FIELD, 'click event')
    collection = expect_string(result.raw, COLLECTION_FIELD, 'click event')
    source = expect_string(result.raw, SOURCE_FIELD, 'click event')

    if quickview:
        action_cause = 'documentQuickview'
        view_method = 'documentQuickview'
    else:
        action_cause = 'documentOpen'
        view_method = ''

    return ClickRecord(
        username=state.username,
        origin_level1=state.origin_level1,
        origin_level2=state.origin_level2,
        search_query_uid=response.search_uid,
        document_uri=result.uri,
        document_uri_hash=uri_hash,
        document_url=result.click_uri,
        document_title=result.title,
        document_position=rank + 1,
        collection_name=collection,
        source_name=source,
        action_cause=action_cause,
        view_method=view_method,
        query_pipeline=response.pipeline,
        custom_data=build_custom_data(custom_data),
    )


def build_view_event(state, page_title, page_referrer, page_uri, custom_data=None):
    return ViewRecord(
        username=state.username,
        origin_level1=state.origin_level1,
        origin_level2=state.origin_level2,
        page_title=page_title,
        page_referrer=page_referrer,
        page_uri=page_uri,
        custom_data=build_custom_data(custom_data),
    )


def build_custom_event(state, event_type, event_value, custom_data=None):
    last_uid = state.last_response.search_uid if state.last_response is not None else ''
    return CustomRecord(
        username=state.username,
        origin_level1=state.origin_level1,
        origin_level2=state.origin_level2,
        event_type=event_type,
        event_value=event_value,
        last_search_query_uid=last_uid,
        custom_data=build_custom_data(custom_data),
    )
