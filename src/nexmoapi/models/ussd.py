from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated

from nexmoapi.models.sms_model import MAX_CLIENT_REF_LENGTH, compact_payload


class USSDMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    from_: Annotated[str, Field(alias="from")] = ""
    to: str = ""
    text: str = ""
    status_report_required: bool = False
    client_ref: Annotated[str, Field(max_length=MAX_CLIENT_REF_LENGTH)] = ""
    network_code: str = ""
    # Prompt messages need a callback URL and a long virtual number as sender.
    prompt: bool = False

    def to_form(self) -> dict[str, Any]:
        return compact_payload(
            {
                "from": self.from_,
                "to": self.to,
                "text": self.text,
                "status-report-req": "1" if self.status_report_required else None,
                "client-ref": self.client_ref,
                "network-code": self.network_code,
            }
        )
