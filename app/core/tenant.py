# app/core/tenant.py
"""Explicit tenant scope passed into every resolver and state-machine call"""
from dataclasses import dataclass
from typing import Union
from uuid import UUID

from app.core.exceptions import InvalidInput


@dataclass(frozen=True)
class TenantContext:
    business_id: UUID

    @classmethod
    def from_value(cls, value: Union[str, UUID, None]) -> "TenantContext":
        if value is None or value == "":
            raise InvalidInput("Business ID required")
        if isinstance(value, UUID):
            return cls(business_id=value)
        try:
            return cls(business_id=UUID(str(value)))
        except ValueError:
            raise InvalidInput("Invalid business ID")
