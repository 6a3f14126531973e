from typing import Any

from pydantic import BaseModel, Field, field_validator

from nexmoapi.models.sms_model import ResponseCode, compact_payload, lookup_response_code


class VerifyMessageRequest(BaseModel):
    number: str = ""
    brand: str = ""
    sender_id: str = ""
    country: str = ""
    lg: str = ""
    code_length: int | None = None
    pin_expiry: int | None = None
    next_event_wait: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return compact_payload(self.model_dump(exclude_none=True))


class StatusResponse(BaseModel):
    status: int

    @field_validator("status", mode="before")
    @classmethod
    def _status_from_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return int(value)
        return value

    @property
    def response_code(self) -> ResponseCode | None:
        return lookup_response_code(self.status)


class VerifyMessageResponse(StatusResponse):
    request_id: str = ""
    error_text: str = ""


class VerifyCheckRequest(BaseModel):
    request_id: str = ""
    code: str = ""
    ip_address: str = ""

    def to_payload(self) -> dict[str, Any]:
        return compact_payload(self.model_dump())


class VerifyCheckResponse(StatusResponse):
    event_id: str = ""
    price: str = ""
    currency: str = ""
    error_text: str = ""


class VerifySearchRequest(BaseModel):
    request_id: str = ""

    def to_payload(self) -> dict[str, Any]:
        return compact_payload(self.model_dump())


class VerifyCheck(BaseModel):
    date_received: str = ""
    code: str = ""
    status: str = ""
    ip_address: str = ""


class VerifySearchResponse(BaseModel):
    request_id: str = ""
    account_id: str = ""
    number: str = ""
    sender_id: str = ""
    date_submitted: str = ""
    date_finalized: str = ""
    first_event_date: str = ""
    last_event_date: str = ""
    status: str = ""
    checks: list[VerifyCheck] = Field(default_factory=list)
    price: str = ""
    currency: str = ""
    error_text: str = ""
