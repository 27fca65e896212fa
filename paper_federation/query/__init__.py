"""Client-side query controller."""

from .controller import QueryController, QueryState

__all__ = ["QueryController", "QueryState"]
