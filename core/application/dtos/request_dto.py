"""DTO for customer support requests."""

import re
from typing import Optional

from pydantic import Field, field_validator

from core.application.dtos.base import ApiModel


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SupportRequestDTO(ApiModel):
    """Question submitted from the storefront contact form."""

    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=254)
    phone: Optional[str] = Field(None, max_length=32)
    question: str = Field(..., min_length=1, max_length=4000)

    model_config = {"frozen": True, "str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Некорректный email")
        return value
