import json
import queue
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from nexmoapi.config import get_settings
from nexmoapi.errors import (
    InvalidFieldError,
    MissingContentTypeError,
    TimestampFormatError,
    UnrecognizedMessageTypeError,
    UnsupportedContentTypeError,
    WebhookDecodeError,
)
from nexmoapi.models.inbound import MessageType
from nexmoapi.timestamps import ZERO_TIME
from nexmoapi.webhook import (
    decode_request,
    parse_delivery_receipt,
    parse_received_message,
    webhook_router,
)

RECEIPT = {
    "to": "Acme",
    "network-code": "23410",
    "messageId": "0A0000001234567B",
    "msisdn": "447700900000",
    "status": "delivered",
    "err-code": "0",
    "price": "0.03330000",
    "scts": "2205051605",
    "message-timestamp": "2022-05-05 16:05:13 +0000",
    "client-ref": "order-42",
}


def make_client(**kwargs):
    kwargs.setdefault("verify_ips", False)
    receipts = queue.Queue()
    messages = queue.Queue()
    app = FastAPI()
    app.include_router(webhook_router(receipts, messages, **kwargs))
    return TestClient(app), receipts, messages


# decode_request


def test_decode_health_check():
    assert decode_request("", None, b"") is None
    assert decode_request("", "application/json", b"") is None


def test_decode_query_without_content_type():
    raw = decode_request("type=text&text=Hello+there", None, b"")
    assert raw == {"type": "text", "text": "Hello there"}


def test_decode_form_body_wins_over_query():
    raw = decode_request(
        "status=queued&msisdn=1",
        "application/x-www-form-urlencoded; charset=utf-8",
        b"status=delivered",
    )
    assert raw == {"status": "delivered", "msisdn": "1"}


def test_decode_json_stringifies_scalars():
    body = json.dumps({"concat": True, "concat-total": 3, "price": None}).encode()
    raw = decode_request("", "application/json", body)
    assert raw == {"concat": "true", "concat-total": "3", "price": ""}


def test_decode_json_must_be_object():
    with pytest.raises(WebhookDecodeError):
        decode_request("", "application/json", b"[1, 2]")
    with pytest.raises(WebhookDecodeError):
        decode_request("", "application/json", b"{not json")


def test_decode_unsupported_content_type():
    with pytest.raises(UnsupportedContentTypeError) as excinfo:
        decode_request("", "text/xml", b"<x/>")
    assert excinfo.value.content_type == "text/xml"


# parse_received_message


def test_text_message():
    m = parse_received_message(
        {"type": "text", "text": "Hello", "message-timestamp": "2020-01-01 10:00:00"}
    )
    assert m.type is MessageType.TEXT
    assert m.text == "Hello"
    assert m.timestamp == datetime(2020, 1, 1, 10, tzinfo=timezone.utc)
    assert m.timestamp != ZERO_TIME
    assert m.concatenated is False
    assert m.concat is None


def test_unicode_message_keeps_keyword():
    m = parse_received_message(
        {
            "type": "unicode",
            "text": "STOP ☃",
            "keyword": "STOP",
            "to": "447700900001",
            "msisdn": "447700900000",
            "messageId": "abc",
            "network-code": "23410",
            "message-timestamp": "2020-01-01 10:00:00",
        }
    )
    assert m.type is MessageType.UNICODE
    assert m.keyword == "STOP"
    assert (m.to, m.msisdn, m.id, m.network_code) == (
        "447700900001",
        "447700900000",
        "abc",
        "23410",
    )


def test_binary_message():
    m = parse_received_message(
        {
            "type": "binary",
            "data": "%01%02",
            "udh": "%05%00",
            "message-timestamp": "2020-01-01 10:00:00",
        }
    )
    assert m.type is MessageType.BINARY
    assert m.data == b"\x01\x02"
    assert m.udh == b"\x05\x00"
    assert m.text == ""


@pytest.mark.parametrize("missing", ["data", "udh"])
def test_binary_message_without_payload_is_rejected(missing):
    raw = {
        "type": "binary",
        "data": "%01",
        "udh": "%05",
        "message-timestamp": "2020-01-01 10:00:00",
    }
    del raw[missing]
    with pytest.raises(InvalidFieldError) as excinfo:
        parse_received_message(raw)
    assert excinfo.value.field == missing


@pytest.mark.parametrize("value", ["", "wappush"])
def test_unknown_message_type(value):
    raw = {"message-timestamp": "2020-01-01 10:00:00"}
    if value:
        raw["type"] = value
    with pytest.raises(UnrecognizedMessageTypeError) as excinfo:
        parse_received_message(raw)
    assert excinfo.value.value == value


def test_message_timestamp_required():
    with pytest.raises(TimestampFormatError):
        parse_received_message({"type": "text", "text": "Hi"})


def test_concatenated_message():
    m = parse_received_message(
        {
            "type": "text",
            "text": "part one",
            "message-timestamp": "2020-01-01 10:00:00",
            "concat": "true",
            "concat-ref": "108",
            "concat-total": "3",
            "concat-part": "1",
        }
    )
    assert m.concatenated is True
    assert m.concat.reference == "108"
    assert m.concat.total == 3
    assert m.concat.part == 1


def test_concatenated_message_with_bad_total():
    with pytest.raises(InvalidFieldError) as excinfo:
        parse_received_message(
            {
                "type": "text",
                "text": "x",
                "message-timestamp": "2020-01-01 10:00:00",
                "concat": "true",
                "concat-total": "abc",
                "concat-part": "1",
            }
        )
    assert excinfo.value.field == "concat-total"


# parse_delivery_receipt


def test_delivery_receipt():
    dlr = parse_delivery_receipt(RECEIPT)
    assert dlr.message_id == "0A0000001234567B"
    assert dlr.error_code == "0"
    assert dlr.client_ref == "order-42"
    assert dlr.scts == datetime(2022, 5, 5, 16, 5, tzinfo=timezone.utc)
    assert dlr.timestamp == datetime(2022, 5, 5, 16, 5, 13, tzinfo=timezone.utc)


def test_delivery_receipt_empty_timestamps_are_zero():
    raw = dict(RECEIPT, scts="")
    del raw["message-timestamp"]
    dlr = parse_delivery_receipt(raw)
    assert dlr.scts == ZERO_TIME
    assert dlr.timestamp == ZERO_TIME


def test_delivery_receipt_double_escaped_timestamp():
    raw = decode_request(
        "",
        "application/x-www-form-urlencoded",
        b"messageId=1&scts=2205051605&message-timestamp=2022-05-05%2B14%253A35%253A48",
    )
    dlr = parse_delivery_receipt(raw)
    assert dlr.timestamp == datetime(2022, 5, 5, 14, 35, 48, tzinfo=timezone.utc)


def test_delivery_receipt_bad_scts_is_terminal():
    with pytest.raises(TimestampFormatError):
        parse_delivery_receipt(dict(RECEIPT, scts="not-a-date"))


def test_delivery_receipt_to_string_uses_wire_names():
    data = json.loads(parse_delivery_receipt(RECEIPT).to_string())
    assert data["messageId"] == "0A0000001234567B"
    assert data["err-code"] == "0"
    assert data["message-timestamp"].startswith("2022-05-05T16:05:13")


# handlers


def test_health_check_enqueues_nothing():
    client, receipts, messages = make_client()
    assert client.post("/delivery-receipt").status_code == 200
    assert client.get("/inbound").status_code == 200
    assert receipts.empty()
    assert messages.empty()


def test_delivery_receipt_json_is_queued():
    client, receipts, _ = make_client()
    resp = client.post("/delivery-receipt", json=RECEIPT)
    assert resp.status_code == 200
    dlr = receipts.get_nowait()
    assert dlr.status == "delivered"
    assert dlr.timestamp == datetime(2022, 5, 5, 16, 5, 13, tzinfo=timezone.utc)


def test_delivery_receipt_form_is_queued():
    client, receipts, _ = make_client()
    resp = client.post("/delivery-receipt", data=RECEIPT)
    assert resp.status_code == 200
    assert receipts.get_nowait().msisdn == "447700900000"


def test_inbound_message_from_query_string():
    client, _, messages = make_client()
    resp = client.get(
        "/inbound",
        params={
            "type": "text",
            "text": "Hello",
            "msisdn": "447700900000",
            "message-timestamp": "2020-01-01 10:00:00",
        },
    )
    assert resp.status_code == 200
    m = messages.get_nowait()
    assert m.text == "Hello"
    assert m.msisdn == "447700900000"


def test_decode_failure_is_500_without_body():
    client, _, messages = make_client()
    resp = client.get(
        "/inbound",
        params={
            "type": "text",
            "text": "x",
            "message-timestamp": "2020-01-01 10:00:00",
            "concat": "true",
            "concat-total": "abc",
            "concat-part": "1",
        },
    )
    assert resp.status_code == 500
    assert resp.content == b""
    assert messages.empty()


def test_unsupported_content_type_is_400():
    client, receipts, _ = make_client()
    resp = client.post(
        "/delivery-receipt", content=b"<x/>", headers={"Content-Type": "text/xml"}
    )
    assert resp.status_code == 400
    assert "text/xml" in resp.text
    assert receipts.empty()


def test_untrusted_source_is_rejected():
    client, receipts, _ = make_client(verify_ips=True)
    resp = client.post("/delivery-receipt", json=RECEIPT)
    assert resp.status_code == 500
    assert receipts.empty()


def test_trusted_source_is_accepted(monkeypatch):
    monkeypatch.setattr("nexmoapi.webhook.is_trusted_ip", lambda ip: True)
    client, receipts, _ = make_client(verify_ips=True)
    assert client.post("/delivery-receipt", json=RECEIPT).status_code == 200
    assert not receipts.empty()


def test_delivery_receipt_json_keeps_signed_offset():
    dlr = parse_delivery_receipt(
        dict(RECEIPT, **{"message-timestamp": "2022-05-05 18:05:13 +0200"})
    )
    assert dlr.timestamp == datetime(2022, 5, 5, 16, 5, 13, tzinfo=timezone.utc)


def test_decode_body_without_content_type():
    with pytest.raises(MissingContentTypeError):
        decode_request("", None, b"msisdn=447700900000")


def test_decode_form_body_must_be_utf8():
    with pytest.raises(WebhookDecodeError):
        decode_request("", "application/x-www-form-urlencoded", b"msisdn=\xff\xfe")


def test_invalid_utf8_form_is_500_without_body():
    client, receipts, _ = make_client()
    resp = client.post(
        "/delivery-receipt",
        content=b"msisdn=\xff\xfe&status=delivered",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 500
    assert resp.content == b""
    assert receipts.empty()


def test_body_without_content_type_is_400():
    client, receipts, _ = make_client()
    resp = client.post(
        "/delivery-receipt", content=b"msisdn=447700900000&status=delivered"
    )
    assert resp.status_code == 400
    assert "Content-Type not set" in resp.text
    assert receipts.empty()


def test_verify_ips_defaults_to_settings(monkeypatch):
    monkeypatch.setenv("NEXMO_VERIFY_IPS", "true")
    get_settings.cache_clear()
    try:
        receipts = queue.Queue()
        app = FastAPI()
        app.include_router(webhook_router(receipts))
    finally:
        get_settings.cache_clear()
    resp = TestClient(app).post("/delivery-receipt", json=RECEIPT)
    assert resp.status_code == 500
    assert receipts.empty()
