"""Decoding of Nexmo callbacks: delivery receipts and inbound messages.

Nexmo calls back either with form values (in the query string or a
url-encoded body) or with a flat JSON object. ``decode_request`` reduces
both to a ``dict[str, str]``. The ``parse_*`` functions turn that into typed
records, and the handler factories wire everything into FastAPI endpoints
that push each decoded record onto a caller-owned ``queue.Queue``.

A request with neither a query string nor a body is Nexmo checking that the
endpoint is alive. It is answered with 200 and nothing is queued.
"""
import json
import logging
import queue
from datetime import datetime
from typing import Any, Awaitable, Callable
from urllib.parse import parse_qsl

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from nexmoapi.config import get_settings
from nexmoapi.errors import (
    InvalidFieldError,
    MissingContentTypeError,
    TimestampFormatError,
    UnrecognizedMessageTypeError,
    UnsupportedContentTypeError,
    WebhookDecodeError,
)
from nexmoapi.ip import is_trusted_ip
from nexmoapi.models.inbound import ConcatInfo, MessageType, ReceivedMessage
from nexmoapi.models.receipt import DeliveryReceipt, RawDeliveryReceipt
from nexmoapi.timestamps import (
    parse_inbound_timestamp,
    parse_message_timestamp,
    parse_scts,
    query_unescape,
    query_unescape_bytes,
)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

logger = logging.getLogger("nexmoapi.webhook")

Handler = Callable[[Request], Awaitable[Response]]


def _json_field(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value)


def decode_request(
    query_string: str, content_type: str | None, body: bytes
) -> dict[str, str] | None:
    """Flatten a callback request into its fields.

    Returns None for a health-check ping. Body fields take precedence over
    query-string fields of the same name.
    """
    if not query_string and not body:
        return None

    media_type = (content_type or "").split(";")[0].strip().lower()
    fields: dict[str, str] = {}

    if media_type == JSON_CONTENT_TYPE:
        try:
            document = json.loads(body) if body else {}
        except ValueError as e:
            raise WebhookDecodeError(f"Failed to parse request body: {e}") from e
        if not isinstance(document, dict):
            raise WebhookDecodeError("Request body is not a JSON object")
        fields.update({key: _json_field(value) for key, value in document.items()})
    elif media_type == FORM_CONTENT_TYPE:
        try:
            form = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise WebhookDecodeError(f"Form body is not valid UTF-8: {e}") from e
        for key, value in parse_qsl(form, keep_blank_values=True):
            fields.setdefault(key, value)
    elif media_type:
        raise UnsupportedContentTypeError(content_type or "")
    elif body:
        # Only legacy query-string callbacks may omit the Content-Type.
        raise MissingContentTypeError()

    for key, value in parse_qsl(query_string, keep_blank_values=True):
        fields.setdefault(key, value)
    return fields


def parse_received_message(raw: dict[str, str]) -> ReceivedMessage:
    wire_type = raw.get("type", "")
    message_type = MessageType.from_wire(wire_type)

    text = ""
    data = b""
    udh = b""
    if message_type in (MessageType.TEXT, MessageType.UNICODE):
        text = raw.get("text", "")
    elif message_type is MessageType.BINARY:
        # A binary message without payload is rejected rather than queued empty.
        for field in ("data", "udh"):
            if not raw.get(field):
                raise InvalidFieldError(field, "", "missing on binary message")
        data = query_unescape_bytes(raw["data"], "data")
        udh = query_unescape_bytes(raw["udh"], "udh")
    else:
        raise UnrecognizedMessageTypeError(wire_type)

    timestamp = _parse_escaped(
        raw.get("message-timestamp", ""), "message-timestamp", parse_inbound_timestamp
    )

    concat = None
    concatenated = raw.get("concat") == "true"
    if concatenated:
        concat = ConcatInfo(
            reference=raw.get("concat-ref", ""),
            total=_parse_int(raw, "concat-total"),
            part=_parse_int(raw, "concat-part"),
        )

    return ReceivedMessage(
        type=message_type,
        to=raw.get("to", ""),
        msisdn=raw.get("msisdn", ""),
        network_code=raw.get("network-code", ""),
        id=raw.get("messageId", ""),
        timestamp=timestamp,
        concatenated=concatenated,
        concat=concat,
        text=text,
        keyword=raw.get("keyword", ""),
        data=data,
        udh=udh,
    )


def _parse_escaped(
    value: str, field: str, parse: Callable[[str], datetime]
) -> datetime:
    # Some callbacks escape timestamps twice. Unescaping a clean value turns
    # "+hhmm" into " hhmm", so the value is tried as received first.
    try:
        return parse(value)
    except TimestampFormatError:
        return parse(query_unescape(value, field))


def _parse_int(raw: dict[str, str], field: str) -> int:
    value = raw.get(field, "")
    try:
        return int(value)
    except ValueError:
        raise InvalidFieldError(field, value, "not an integer") from None


def parse_delivery_receipt(raw: dict[str, str]) -> DeliveryReceipt:
    receipt = RawDeliveryReceipt.model_validate(raw)
    return DeliveryReceipt(
        to=receipt.to,
        network_code=receipt.network_code,
        message_id=receipt.message_id,
        msisdn=receipt.msisdn,
        status=receipt.status,
        error_code=receipt.error_code,
        price=receipt.price,
        client_ref=receipt.client_ref,
        scts=_parse_escaped(receipt.scts, "scts", parse_scts),
        timestamp=_parse_escaped(
            receipt.timestamp, "message-timestamp", parse_message_timestamp
        ),
    )


async def _handle(
    request: Request,
    out: queue.Queue,
    verify_ips: bool,
    parse: Callable[[dict[str, str]], Any],
) -> Response:
    if verify_ips:
        host = request.client.host if request.client else ""
        if not is_trusted_ip(host):
            logger.warning(f"Rejected callback from untrusted address {host!r}")
            return Response(status_code=500)

    body = await request.body()
    try:
        raw = decode_request(
            request.url.query, request.headers.get("content-type"), body
        )
        if raw is None:
            return Response(status_code=200)
        record = parse(raw)
    except UnsupportedContentTypeError as e:
        logger.warning(str(e))
        return PlainTextResponse(str(e), status_code=400)
    except WebhookDecodeError as e:
        logger.warning(f"Failed to decode callback with {parse.__name__}: {e}")
        return Response(status_code=500)

    # A bounded queue may block; keep that off the event loop.
    await run_in_threadpool(out.put, record)
    return Response(status_code=200)


def new_delivery_handler(out: queue.Queue, verify_ips: bool = False) -> Handler:
    async def delivery_receipt(request: Request) -> Response:
        return await _handle(request, out, verify_ips, parse_delivery_receipt)

    return delivery_receipt


def new_message_handler(out: queue.Queue, verify_ips: bool = False) -> Handler:
    async def inbound_message(request: Request) -> Response:
        return await _handle(request, out, verify_ips, parse_received_message)

    return inbound_message


def webhook_router(
    receipts: queue.Queue | None = None,
    messages: queue.Queue | None = None,
    *,
    verify_ips: bool | None = None,
    receipt_path: str = "/delivery-receipt",
    message_path: str = "/inbound",
) -> APIRouter:
    if verify_ips is None:
        verify_ips = get_settings().verify_ips
    router = APIRouter()
    if receipts is not None:
        router.add_api_route(
            receipt_path,
            new_delivery_handler(receipts, verify_ips),
            methods=["GET", "POST"],
        )
    if messages is not None:
        router.add_api_route(
            message_path,
            new_message_handler(messages, verify_ips),
            methods=["GET", "POST"],
        )
    return router
