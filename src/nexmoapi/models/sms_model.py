from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from typing_extensions import Annotated

TEXT = "text"
BINARY = "binary"
WAPPUSH = "wappush"
UNICODE = "unicode"
VCAL = "vcal"
VCARD = "vcard"

SMSType = Literal["text", "binary", "wappush", "unicode", "vcal", "vcard"]

MAX_CLIENT_REF_LENGTH = 40


class MessageClass(IntEnum):
    # Shown on screen without being stored, unless the user saves it.
    FLASH = 0
    # Stored in device memory or on the SIM card.
    STANDARD = 1
    # Carries SIM card data; must reach the SIM before acknowledgment.
    SIM_DATA = 2
    # Forwarded to an external device; acknowledged regardless of forwarding.
    FORWARD = 3

    def __str__(self) -> str:
        if self is MessageClass.FLASH:
            return "flash"
        if self is MessageClass.STANDARD:
            return "standard"
        if self is MessageClass.SIM_DATA:
            return "SIM data"
        return "forward"


class ResponseCode(IntEnum):
    SUCCESS = 0
    THROTTLED = 1
    MISSING_PARAMS = 2
    INVALID_PARAMS = 3
    INVALID_CREDENTIALS = 4
    INTERNAL_ERROR = 5
    INVALID_MESSAGE = 6
    NUMBER_BARRED = 7
    PARTNER_ACCT_BARRED = 8
    PARTNER_QUOTA_EXCEEDED = 9
    UNUSED = 10  # reserved by the provider
    REST_NOT_ENABLED = 11
    MESSAGE_TOO_LONG = 12
    COMMUNICATION_FAILED = 13
    INVALID_SIGNATURE = 14
    INVALID_SENDER_ADDRESS = 15
    INVALID_TTL = 16
    FACILITY_NOT_ALLOWED = 17
    INVALID_MESSAGE_CLASS = 18

    @property
    def description(self) -> str:
        return _RESPONSE_DESCRIPTIONS[self]

    def __str__(self) -> str:
        return self.description


_RESPONSE_DESCRIPTIONS = {
    ResponseCode.SUCCESS: "Success",
    ResponseCode.THROTTLED: "Throttled",
    ResponseCode.MISSING_PARAMS: "Missing params",
    ResponseCode.INVALID_PARAMS: "Invalid params",
    ResponseCode.INVALID_CREDENTIALS: "Invalid credentials",
    ResponseCode.INTERNAL_ERROR: "Internal error",
    ResponseCode.INVALID_MESSAGE: "Invalid message",
    ResponseCode.NUMBER_BARRED: "Number barred",
    ResponseCode.PARTNER_ACCT_BARRED: "Partner account barred",
    ResponseCode.PARTNER_QUOTA_EXCEEDED: "Partner quota exceeded",
    ResponseCode.UNUSED: "Unused",
    ResponseCode.REST_NOT_ENABLED: "Account not enabled for REST",
    ResponseCode.MESSAGE_TOO_LONG: "Message too long",
    ResponseCode.COMMUNICATION_FAILED: "Communication failed",
    ResponseCode.INVALID_SIGNATURE: "Invalid signature",
    ResponseCode.INVALID_SENDER_ADDRESS: "Invalid sender address",
    ResponseCode.INVALID_TTL: "Invalid TTL",
    ResponseCode.FACILITY_NOT_ALLOWED: "Facility not allowed",
    ResponseCode.INVALID_MESSAGE_CLASS: "Invalid message class",
}


def lookup_response_code(status: int) -> ResponseCode | None:
    try:
        return ResponseCode(status)
    except ValueError:
        return None


def compact_payload(data: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional fields: None, empty strings and False flags."""
    return {
        key: value
        for key, value in data.items()
        if value is not None and value != "" and value is not False
    }


class SMSMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    from_: Annotated[str, Field(alias="from")] = ""
    to: str = ""
    type: SMSType = TEXT
    text: str = ""
    status_report_required: Annotated[bool, Field(alias="status-report-req")] = False
    client_ref: Annotated[
        str, Field(alias="client-ref", max_length=MAX_CLIENT_REF_LENGTH)
    ] = ""
    network_code: Annotated[str, Field(alias="network-code")] = ""
    vcard: str = ""
    vcal: str = ""
    ttl: int | None = None
    message_class: Annotated[MessageClass | None, Field(alias="message-class")] = None
    callback: str = ""
    body: bytes | None = None  # binary only
    udh: bytes | None = None  # binary only

    # wappush only
    title: str = ""
    url: str = ""
    validity: int | None = None  # milliseconds

    @field_serializer("status_report_required")
    def _serialize_status_report(self, value: bool) -> int | None:
        return 1 if value else None

    @field_serializer("body", "udh")
    def _serialize_binary(self, value: bytes | None) -> str | None:
        return value.hex() if value is not None else None

    def to_payload(self) -> dict[str, Any]:
        return compact_payload(
            self.model_dump(mode="json", by_alias=True, exclude_none=True)
        )


class MessageReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: int
    message_id: Annotated[str, Field(alias="message-id")] = ""
    to: str = ""
    client_ref: Annotated[str, Field(alias="client-ref")] = ""
    remaining_balance: Annotated[str, Field(alias="remaining-balance")] = ""
    message_price: Annotated[str, Field(alias="message-price")] = ""
    network: str = ""
    error_text: Annotated[str, Field(alias="error-text")] = ""

    @field_validator("status", mode="before")
    @classmethod
    def _status_from_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return int(value)
        return value

    @property
    def response_code(self) -> ResponseCode | None:
        return lookup_response_code(self.status)


class MessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_count: Annotated[int, Field(alias="message-count")]
    messages: list[MessageReport] = Field(default_factory=list)
