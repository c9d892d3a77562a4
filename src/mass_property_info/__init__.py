"""Package initializer for `mass_property_info`."""

from .schema import PropertyQuery, PropertyRecord
from .session import PropertyInfoService

__all__ = ["PropertyInfoService", "PropertyQuery", "PropertyRecord"]
