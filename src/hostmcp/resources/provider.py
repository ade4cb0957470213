"""ResourceProvider protocol — the collaborator behind the resource methods.

The router delegates ``resources/list`` and ``resources/read`` to any
object satisfying this protocol, so a host can expose its own assets
without touching the protocol layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hostmcp.protocol.models import Resource, ResourceContent


@runtime_checkable
class ResourceProvider(Protocol):
    """Lists and reads host resources addressed by URI."""

    def list_resources(self) -> list[Resource]:
        """Return the resources currently available."""
        ...

    def read_resource(self, uri: str) -> list[ResourceContent]:
        """Return the contents behind *uri*.

        Raises:
            InvalidParamsError: If *uri* is malformed or cannot be resolved.
        """
        ...
