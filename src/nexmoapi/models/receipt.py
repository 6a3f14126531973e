from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated


class RawDeliveryReceipt(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    to: str = ""
    network_code: Annotated[str, Field(alias="network-code")] = ""
    message_id: Annotated[str, Field(alias="messageId")] = ""
    msisdn: str = ""
    status: str = ""
    error_code: Annotated[str, Field(alias="err-code")] = ""
    price: str = ""
    scts: str = ""
    timestamp: Annotated[str, Field(alias="message-timestamp")] = ""
    client_ref: Annotated[str, Field(alias="client-ref")] = ""


class DeliveryReceipt(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to: str = ""
    network_code: Annotated[str, Field(alias="network-code")] = ""
    message_id: Annotated[str, Field(alias="messageId")] = ""
    msisdn: str = ""
    status: str = ""
    error_code: Annotated[str, Field(alias="err-code")] = ""
    price: str = ""
    scts: datetime
    timestamp: Annotated[datetime, Field(alias="message-timestamp")]
    client_ref: Annotated[str, Field(alias="client-ref")] = ""

    def to_string(self) -> str:
        return self.model_dump_json(by_alias=True)
