"""API Dependencies — request-scoped access to the process DataStore.

Invariants:
    - The DataStore lives on app.state, created by the lifespan
    - Routes obtain it only through get_store (overridable in tests)
    - A repeated single-valued query parameter is a 400, not last-one-wins
"""

from fastapi import Request

from tzserver.core.errors import InvalidRequestError
from tzserver.services.data_store import DataStore


def get_store(request: Request) -> DataStore:
    """FastAPI dependency for the DataStore."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("DataStore not initialized")
    return store


def single_query_param(name: str):
    """Dependency rejecting a query parameter that appears more than once."""

    def check(request: Request) -> None:
        if len(request.query_params.getlist(name)) > 1:
            raise InvalidRequestError(
                name, f"The '{name}' parameter appears more than once",
            )

    return check
