from nexmoapi.config import NexmoSettings, get_settings
from nexmoapi.errors import (
    ConfigurationError,
    InvalidFieldError,
    InvalidResponseError,
    MissingContentTypeError,
    MessageValidationError,
    NexmoError,
    SendConnectionError,
    TimestampFormatError,
    UnrecognizedMessageTypeError,
    UnsupportedContentTypeError,
    WebhookDecodeError,
)
from nexmoapi.ip import is_trusted_ip
from nexmoapi.models.inbound import ConcatInfo, MessageType, ReceivedMessage
from nexmoapi.models.receipt import DeliveryReceipt, RawDeliveryReceipt
from nexmoapi.models.sms_model import (
    MessageClass,
    MessageReport,
    MessageResponse,
    ResponseCode,
    SMSMessage,
)
from nexmoapi.models.ussd import USSDMessage
from nexmoapi.models.verify import (
    VerifyCheckRequest,
    VerifyCheckResponse,
    VerifyMessageRequest,
    VerifyMessageResponse,
    VerifySearchRequest,
    VerifySearchResponse,
)
from nexmoapi.nexmo import Nexmo
from nexmoapi.timestamps import ZERO_TIME, parse_message_timestamp, parse_scts
from nexmoapi.webhook import (
    decode_request,
    new_delivery_handler,
    new_message_handler,
    parse_delivery_receipt,
    parse_received_message,
    webhook_router,
)
