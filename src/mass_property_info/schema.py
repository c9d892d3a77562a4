from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mass_property_info.errors import ValidationError


REQUIRED_FIELDS_MESSAGE = "City, street name, and address number are required"


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class PropertyQuery:
    region: str
    street_name: str
    address_number: str

    @classmethod
    def from_payload(cls, payload: Any) -> "PropertyQuery":
        """Build a query from the inbound JSON body.

        The body names the region field `city`; `region` is accepted as well.
        Anything other than a JSON object is rejected like a missing field.
        """

        payload = payload or {}
        if not isinstance(payload, Mapping):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        region = _clean(payload.get("city")) or _clean(payload.get("region"))
        street = _clean(payload.get("streetName"))
        number = _clean(payload.get("addressNumber"))
        if not region or not street or not number:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        return cls(region=region, street_name=street, address_number=number)


@dataclass(frozen=True)
class SelectOption:
    value: str
    label: str


@dataclass(frozen=True)
class ControlDescriptor:
    identifier: str
    name: str
    ordinal_position: int
    options: Tuple[SelectOption, ...] = field(default_factory=tuple)

    @property
    def selector(self) -> str:
        if self.identifier:
            return f"#{self.identifier}"
        if self.name:
            return f'select[name="{self.name}"]'
        return f"select >> nth={self.ordinal_position}"

    @classmethod
    def from_dom(cls, raw: Mapping[str, Any], position: int) -> "ControlDescriptor":
        return cls(
            identifier=_clean(raw.get("id")),
            name=_clean(raw.get("name")),
            ordinal_position=int(raw.get("index", position)),
            options=options_from_dom(raw.get("options")),
        )


def options_from_dom(raw_options) -> Tuple[SelectOption, ...]:
    return tuple(
        SelectOption(value=_clean(o.get("value")), label=_clean(o.get("text")))
        for o in (raw_options or [])
    )


class PropertyRecord(BaseModel):
    """Assessor record recovered from the results page.

    Every field is optional; the source page has no guaranteed schema.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    owner: Optional[str] = None
    owner_address: Optional[str] = None
    building_value: Optional[str] = None
    land_value: Optional[str] = None
    other_value: Optional[str] = None
    total_value: Optional[str] = None
    assessment_year: Optional[str] = None
    lot_size: Optional[str] = None
    last_sale_price: Optional[str] = None
    last_sale_date: Optional[str] = None
    use_code: Optional[str] = None
    year_built: Optional[str] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
