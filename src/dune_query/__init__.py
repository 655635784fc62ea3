"""Typed client for the Dune Analytics query execution API.

Execute queries, poll for completion, and decode results into your own types::

    from pydantic import BaseModel

    from dune_query import DuneClient


    class Row(BaseModel):
        symbol: str
        max_price: float


    with DuneClient.from_env() as client:
        result = client.refresh(971694, row_type=Row)
        print(result.get_rows())
"""

from dune_query.errors import DuneAPIError, DuneError, DuneRequestError, DuneTransportError
from dune_query.models import (
    CancellationResponse,
    ExecutionResponse,
    ExecutionStatus,
    GetResultResponse,
    GetStatusResponse,
    Performance,
)
from dune_query.query.client import DuneClient
from dune_query.query.parameters import Parameter, ParameterType

__version__ = "0.1.0"

__all__ = [
    "CancellationResponse",
    "DuneAPIError",
    "DuneClient",
    "DuneError",
    "DuneRequestError",
    "DuneTransportError",
    "ExecutionResponse",
    "ExecutionStatus",
    "GetResultResponse",
    "GetStatusResponse",
    "Parameter",
    "ParameterType",
    "Performance",
    "__version__",
]
