"""Resource providers behind ``resources/list`` and ``resources/read``."""

from hostmcp.resources.files import FileResourceProvider
from hostmcp.resources.provider import ResourceProvider

__all__ = ["FileResourceProvider", "ResourceProvider"]
