from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel


class MessageType(IntEnum):
    UNDEFINED = 0
    TEXT = 1
    UNICODE = 2
    BINARY = 3

    @classmethod
    def from_wire(cls, value: str) -> "MessageType":
        if value == "text":
            return cls.TEXT
        if value == "unicode":
            return cls.UNICODE
        if value == "binary":
            return cls.BINARY
        return cls.UNDEFINED

    def __str__(self) -> str:
        if self is MessageType.TEXT:
            return "text"
        if self is MessageType.UNICODE:
            return "unicode"
        if self is MessageType.BINARY:
            return "binary"
        return "undefined"


class ConcatInfo(BaseModel):
    # Shared by every part of the same concatenated message.
    reference: str = ""
    total: int
    part: int  # 1-based


class ReceivedMessage(BaseModel):
    type: MessageType = MessageType.UNDEFINED
    to: str = ""  # your long virtual number
    msisdn: str = ""  # sender
    network_code: str = ""  # MCCMNC, optional
    id: str = ""
    timestamp: datetime

    concatenated: bool = False
    concat: ConcatInfo | None = None

    # text and unicode messages
    text: str = ""
    # First word of the body, used with short codes
    keyword: str = ""

    # binary messages
    data: bytes = b""
    udh: bytes = b""
