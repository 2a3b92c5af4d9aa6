"""
Daraja Client — M-Pesa OAuth token + Lipa Na M-Pesa Online (STK push).
One attempt per call with an explicit timeout; failures propagate to the caller.
"""
import base64
import logging
from datetime import datetime, timezone
from typing import Optional

import requests
from requests.auth import HTTPBasicAuth

from members_api.config import Settings
from members_api.errors import GatewayTokenError, GatewayRequestError
from members_api.utils.phone import mask_phone

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/v1/generate?grant_type=client_credentials"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"


def generate_timestamp(now: Optional[datetime] = None) -> str:
    """YYYYMMDDHHMMSS in UTC."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y%m%d%H%M%S")


def generate_password(shortcode: str, passkey: str, timestamp: str) -> str:
    """Password = Base64(Shortcode + Passkey + Timestamp)."""
    return base64.b64encode(f"{shortcode}{passkey}{timestamp}".encode()).decode("utf-8")


class DarajaClient:
    """Thin wrapper around the two Daraja calls needed for an STK push."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = settings.mpesa_base_url
        self.consumer_key = settings.MPESA_CONSUMER_KEY
        self.consumer_secret = settings.MPESA_CONSUMER_SECRET
        self.shortcode = settings.MPESA_SHORTCODE
        self.passkey = settings.MPESA_PASSKEY
        self.callback_url = settings.MPESA_CALLBACK_URL
        self.account_reference = settings.MPESA_ACCOUNT_REFERENCE
        self.transaction_desc = settings.MPESA_TRANSACTION_DESC
        self.timeout = settings.GATEWAY_TIMEOUT_SECONDS
        self.http = session or requests.Session()

    def get_access_token(self) -> str:
        """Exchange the consumer key/secret for a bearer token.

        Raises:
            GatewayTokenError: on transport failure, non-2xx status, or a
                response without an access_token.
        """
        try:
            response = self.http.get(
                self.base_url + TOKEN_PATH,
                auth=HTTPBasicAuth(self.consumer_key, self.consumer_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Access token request failed: %s", e)
            raise GatewayTokenError(str(e)) from e

        if not response.ok:
            logger.error("Access token rejected: HTTP %s", response.status_code)
            raise GatewayTokenError(_response_detail(response))

        token = _json_or_empty(response).get("access_token")
        if not token:
            raise GatewayTokenError("No access_token in provider response")
        return token

    def stk_push(
        self,
        phone: str,
        amount: int,
        account_reference: Optional[str] = None,
        description: Optional[str] = None,
    ) -> dict:
        """Send an STK push prompt to `phone` and return the provider response as-is.

        A successful response carries CheckoutRequestID; error responses
        (errorCode/errorMessage) are returned unchanged for the caller to judge.
        """
        access_token = self.get_access_token()
        timestamp = generate_timestamp()

        payload = {
            "BusinessShortCode": self.shortcode,
            "Password": generate_password(self.shortcode, self.passkey, timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": int(amount),
            "PartyA": phone,
            "PartyB": self.shortcode,
            "PhoneNumber": phone,
            "CallBackURL": self.callback_url,
            "AccountReference": account_reference or self.account_reference,
            "TransactionDesc": description or self.transaction_desc,
        }
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        logger.info("STK push: phone=%s amount=%s ref=%s", mask_phone(phone), amount, payload["AccountReference"])
        try:
            response = self.http.post(
                self.base_url + STK_PUSH_PATH,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("STK push request failed: %s", e)
            raise GatewayRequestError(str(e)) from e

        body = _json_or_empty(response)
        if not body:
            raise GatewayRequestError(_response_detail(response))
        if not response.ok:
            logger.warning("STK push rejected: HTTP %s %s", response.status_code, body)
        return body


def _json_or_empty(response: requests.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _response_detail(response: requests.Response) -> str:
    return f"HTTP {response.status_code}: {response.text[:500]}"
