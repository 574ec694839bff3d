class SimulatorError(Exception):
    """Base class for everything a visit can fail with"""


class VisitConstructionError(SimulatorError):
    """A remote service client could not be created, the visit never starts"""


class TransportError(SimulatorError):
    """A call to the search or analytics service failed"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class DataContractError(SimulatorError):
    """A service response or raw result field does not have the expected shape"""

    def __init__(self, field, context=None, expected='string'):
        message = f"Cannot convert {field} to {expected}"
        if context:
            message += f" in {context}"
        super().__init__(message)
        self.field = field


class ValidationError(SimulatorError):
    pass


class RankOutOfRangeError(ValidationError):
    def __init__(self, rank, result_count):
        super().__init__(f"Rank {rank} is out of range for {result_count} results")
        self.rank = rank
        self.result_count = result_count


class MissingStateError(ValidationError):
    """An event needs a previous query or response that the visit does not have"""


class ScenarioError(SimulatorError):
    """Bad scenario or bot configuration input"""
