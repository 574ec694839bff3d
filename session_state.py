from datetime import datetime

from errors import MissingStateError
from search_client import Query


class SessionState:
    """Where a simulated visitor currently is on the search page"""

    def __init__(self, username, origin_level1='ALL', origin_level2='ALL'):
        self._username = username
        self.origin_level1 = origin_level1
        self.origin_level2 = origin_level2
        self.last_tab = ''
        self.last_query = None
        self.last_response = None
        # Query the visitor starts from before the first search
        self.base_query = Query()
        self.start_time = datetime.utcnow()

    @property
    def username(self):
        return self._username

    def record_search(self, query, response):
        """Replace the last query and response together once a search completed"""
        if query is None or response is None:
            raise MissingStateError("A search needs both its query and its response")
        self.last_query = query
        self.last_response = response

    def set_origin(self, level1, level2=None):
        self.origin_level1 = level1
        if level2 is not None:
            self.origin_level2 = level2

    def set_tab(self, tab):
        self.last_tab = tab

    def require_query(self):
        if self.last_query is None:
            raise MissingStateError("No query was sent yet in this visit")
        return self.last_query

    def require_response(self):
        if self.last_response is None:
            raise MissingStateError("No search response was received yet in this visit")
        return self.last_response

    def find_result_rank_by_title(self, to_find):
        """Lowest rank whose title contains to_find (case-insensitive), -1 if none"""
        if self.last_response is None:
            return -1
        needle = to_find.lower()
        for rank, result in enumerate(self.last_response.results):
            if needle in result.title.lower():
                return rank
        return -1

    def setup_origin(self, level1, level2, advanced_query='', number_of_results=20):
        """Seed the default query a visitor lands on before searching"""
        self.base_query = Query(aq=advanced_query, number_of_results=number_of_results)
        self.origin_level1 = level1
        self.origin_level2 = level2

    def setup_general(self):
        self.setup_origin('ALL', 'ALL')

    def get_session_duration(self):
        return (datetime.utcnow() - self.start_time).total_seconds()
