import logging
from typing import Any, TypeVar
from urllib.parse import urljoin, urlsplit

import requests
from pydantic import BaseModel, ValidationError

from nexmoapi.config import NexmoSettings, get_settings
from nexmoapi.errors import (
    ConfigurationError,
    InvalidResponseError,
    MessageValidationError,
    SendConnectionError,
)
from nexmoapi.models.balance import AccountBalance
from nexmoapi.models.sms_model import (
    BINARY,
    MAX_CLIENT_REF_LENGTH,
    UNICODE,
    WAPPUSH,
    MessageClass,
    MessageResponse,
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
from nexmoapi.nexmo_api import NexmoAPI

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("nexmoapi")

USER_AGENT = "nexmoapi-python"

M = TypeVar("M", bound=BaseModel)


def _describe_failure(host: str, e: requests.exceptions.RequestException) -> str:
    # SSLError and ConnectTimeout are both ConnectionErrors; test them first.
    if isinstance(e, requests.exceptions.SSLError):
        return f"TLS handshake error ({e})"
    if isinstance(e, requests.exceptions.ConnectTimeout):
        return f"Timed out connecting to {host} ({e})"
    if isinstance(e, requests.exceptions.ReadTimeout):
        return f"Timed out reading response from {host} ({e})"
    if isinstance(e, requests.exceptions.ConnectionError):
        if "resolve" in str(e).lower() or "name or service" in str(e).lower():
            return f"Error resolving DNS for {host} ({e})"
        return f"Error connecting to {host} ({e})"
    return f"Error while writing http request ({e})"


class Nexmo(NexmoAPI):
    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        use_oauth: bool = False,
        default_from: str = "",
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        super().__init__()
        if not api_key:
            raise ConfigurationError("api_key can not be empty")
        if not api_secret:
            raise ConfigurationError("api_secret can not be empty")

        self._api_key = api_key
        self._api_secret = api_secret
        self._use_oauth = use_oauth
        self._default_from = default_from
        self._session = session or requests.Session()
        self._timeout = timeout
        self.update_headers({"User-Agent": USER_AGENT})

    @classmethod
    def from_settings(cls, settings: NexmoSettings | None = None) -> "Nexmo":
        settings = settings or get_settings()
        return cls(
            settings.api_key,
            settings.api_secret,
            use_oauth=settings.use_oauth,
            default_from=settings.from_number,
            timeout=settings.timeout,
        )

    def _credentials(self) -> dict[str, str]:
        # With OAuth the session is already authorized; never leak the secret.
        if self._use_oauth:
            return {}
        return {"api_key": self._api_key, "api_secret": self._api_secret}

    def _redact(self, text: str) -> str:
        # The balance endpoint carries the credentials in its path.
        return text.replace(self._api_secret, "***").replace(self._api_key, "***")

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        host = urlsplit(url).netloc
        debug = [f"Initiating connecting to {host}"]
        try:
            res = self._session.request(
                method, url, headers=self.headers, timeout=self._timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            debug.append(self._redact(_describe_failure(host, e)))
            logger.error(self._redact(f"Network error: {e}"))
            body = b""
            if e.response is not None:
                body = e.response.content or b""
            raise SendConnectionError(
                "nexmo http send failed", err=e, body=body, debug=debug
            ) from e
        path = urlsplit(url).path
        logger.debug(self._redact(f"{method} {path} -> {res.status_code}"))
        return res

    def post_request(self, url: str, **kwargs: Any) -> requests.Response:
        return self._request("POST", url, **kwargs)

    def get_request(self, url: str) -> requests.Response:
        return self._request("GET", url)

    def _build(self, model: type[M], **fields: Any) -> M:
        try:
            return model(**fields)
        except ValidationError as e:
            logger.error(f"Validation error: {e.errors()}")
            raise MessageValidationError(
                str(e.errors(include_url=False, include_input=False))
            ) from e

    def _check_addresses(self, payload: dict[str, Any], client_ref: str) -> None:
        if not payload.get("from"):
            if not self._default_from:
                raise MessageValidationError("Invalid From field specified")
            payload["from"] = self._default_from
        if not payload.get("to"):
            raise MessageValidationError("Invalid To field specified")
        if len(client_ref) > MAX_CLIENT_REF_LENGTH:
            raise MessageValidationError("Client reference too long")

    def send_sms(self, message: SMSMessage) -> MessageResponse:
        payload = message.to_payload()
        self._check_addresses(payload, message.client_ref)

        if message.type == UNICODE and not message.text:
            raise MessageValidationError("Invalid message text")
        if message.type == BINARY and (not message.udh or not message.body):
            raise MessageValidationError("Invalid binary message")
        if message.type == WAPPUSH and (not message.url or not message.title):
            raise MessageValidationError("Invalid WAP Push parameters")

        payload.update(self._credentials())
        res = self.post_request(urljoin(self.base_url, "/sms/json"), json=payload)
        return self._handle_response(res, MessageResponse)

    def send_text_message(
        self,
        from_: str,
        to: str,
        text: str,
        client_ref: str = "",
        status_report_required: bool = False,
    ) -> MessageResponse:
        message = self._build(
            SMSMessage,
            from_=from_,
            to=to,
            text=text,
            client_ref=client_ref,
            status_report_required=status_report_required,
        )
        return self.send_sms(message)

    def send_flash_message(
        self,
        from_: str,
        to: str,
        text: str,
        client_ref: str = "",
        status_report_required: bool = False,
    ) -> MessageResponse:
        message = self._build(
            SMSMessage,
            from_=from_,
            to=to,
            text=text,
            client_ref=client_ref,
            status_report_required=status_report_required,
            message_class=MessageClass.FLASH,
        )
        return self.send_sms(message)

    def send_ussd(self, message: USSDMessage) -> MessageResponse:
        payload = message.to_form()
        self._check_addresses(payload, message.client_ref)
        if not message.text:
            raise MessageValidationError("Invalid message text")

        payload.update(self._credentials())
        endpoint = "/ussd-prompt/json" if message.prompt else "/ussd/json"
        res = self.post_request(urljoin(self.base_url, endpoint), data=payload)
        return self._handle_response(res, MessageResponse)

    def send_ussd_push(
        self,
        from_: str,
        to: str,
        text: str,
        client_ref: str = "",
        status_report_required: bool = False,
    ) -> MessageResponse:
        message = self._build(
            USSDMessage,
            from_=from_,
            to=to,
            text=text,
            client_ref=client_ref,
            status_report_required=status_report_required,
        )
        return self.send_ussd(message)

    def send_ussd_prompt(
        self,
        from_: str,
        to: str,
        text: str,
        client_ref: str = "",
        status_report_required: bool = False,
    ) -> MessageResponse:
        message = self._build(
            USSDMessage,
            from_=from_,
            to=to,
            text=text,
            client_ref=client_ref,
            status_report_required=status_report_required,
            prompt=True,
        )
        return self.send_ussd(message)

    def verify(self, request: VerifyMessageRequest) -> VerifyMessageResponse:
        if not request.number:
            raise MessageValidationError("Invalid Number field specified")
        if not request.brand:
            raise MessageValidationError("Invalid Brand field specified")

        payload = request.to_payload()
        payload.update(self._credentials())
        res = self.post_request(urljoin(self.api_url, "/verify/json"), json=payload)
        return self._handle_response(res, VerifyMessageResponse)

    def verify_check(self, request: VerifyCheckRequest) -> VerifyCheckResponse:
        if not request.request_id:
            raise MessageValidationError("Invalid RequestID field specified")
        if not request.code:
            raise MessageValidationError("Invalid Code field specified")

        payload = request.to_payload()
        payload.update(self._credentials())
        res = self.post_request(
            urljoin(self.api_url, "/verify/check/json"), json=payload
        )
        return self._handle_response(res, VerifyCheckResponse)

    def verify_search(self, request: VerifySearchRequest) -> VerifySearchResponse:
        payload = request.to_payload()
        payload.update(self._credentials())
        res = self.post_request(
            urljoin(self.api_url, "/verify/search/json"), json=payload
        )
        return self._handle_response(res, VerifySearchResponse)

    def balance(self) -> float:
        """Current account balance, in euros."""
        endpoint = f"/account/get-balance/{self._api_key}/{self._api_secret}"
        res = self.get_request(urljoin(self.base_url, endpoint))
        return self._handle_response(res, AccountBalance).value

    def _handle_response(self, res: requests.Response, model: type[M]) -> M:
        if not res.ok:
            logger.error(f"Error from server: {res.status_code} {res.text}")

        body = res.content
        try:
            data = res.json()
        except ValueError as e:
            logger.error(f"Invalid response from server: {res.text}")
            raise InvalidResponseError(
                "failed to unmarshal response from Nexmo", err=e, body=body
            ) from e

        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Validation error: {e.errors()}")
            raise InvalidResponseError(
                "unexpected response from Nexmo", err=e, body=body
            ) from e
