"""
Surat Kargo SOAP Client

Implements the three carrier operations the fulfillment pipeline needs:
- CreateShipment (GonderiyiKargoyaGonderYeniSiparisBarkodOlustur)
- TrackShipment (KargoTakipHareketDetayli)
- ListReturns (IadeKargolar)

Every failure (network, TLS, HTTP, carrier-reported) surfaces as CarrierError.
"""
import logging
import ssl
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple, Union
from xml.sax.saxutils import escape

import httpx

from app.core.config import settings
from app.core.exceptions import CarrierError
from app.services.encryption import decrypt_credential, sanitize_for_logging
from app.services.shipment_scenarios import ShipmentRequest
from app.services.surat_response import CarrierResponse, extract_fault, extract_result

logger = logging.getLogger(__name__)

# SOAP actions
ACTION_CREATE_SHIPMENT = "GonderiyiKargoyaGonderYeniSiparisBarkodOlustur"
ACTION_TRACK_SHIPMENT = "KargoTakipHareketDetayli"
ACTION_LIST_RETURNS = "IadeKargolar"

SOAP_NAMESPACE = "http://tempuri.org/"

SOAP_ENVELOPE = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<soap:Envelope xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema" '
    'xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
    "<soap:Body>{body}</soap:Body>"
    "</soap:Envelope>"
)

# AliciAdresi is truncated by the carrier beyond this length
MAX_ADDRESS_LENGTH = 200

Field = Tuple[str, Union[str, Sequence["Field"]]]


@dataclass
class SuratCredentials:
    """Surat Kargo web service credentials."""
    username: str
    password: str
    service_url: str = settings.SURAT_SERVICE_URL
    soap_action_base: str = settings.SURAT_SOAP_ACTION_BASE
    timeout: float = settings.SURAT_TIMEOUT_SECONDS
    # The carrier endpoint serves an outdated certificate chain. Only this
    # client's connection pool is affected.
    allow_legacy_tls: bool = settings.SURAT_ALLOW_LEGACY_TLS


@dataclass
class SuratShipmentResult:
    """Result of CreateShipment."""
    tracking_number: str
    message: str
    raw_response: str = ""


def build_legacy_ssl_context() -> ssl.SSLContext:
    """TLS context for the carrier endpoint: no certificate verification, legacy renegotiation."""
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.options |= getattr(ssl, "OP_LEGACY_SERVER_CONNECT", 0x4)
    try:
        context.set_ciphers("DEFAULT:@SECLEVEL=1")
    except ssl.SSLError:
        logger.warning("Could not lower TLS security level for Surat Kargo endpoint")
    return context


def _render_fields(fields: Sequence[Field]) -> str:
    parts = []
    for tag, value in fields:
        if isinstance(value, (list, tuple)):
            parts.append(f"<{tag}>{_render_fields(value)}</{tag}>")
        else:
            parts.append(f"<{tag}>{escape(value or '')}</{tag}>")
    return "".join(parts)


def build_envelope(action: str, fields: Sequence[Field]) -> str:
    """SOAP 1.1 envelope for an action; values are XML-escaped."""
    body = f'<{action} xmlns="{SOAP_NAMESPACE}">{_render_fields(fields)}</{action}>'
    return SOAP_ENVELOPE.format(body=body)


class SuratKargoClient:
    """
    Surat Kargo web service client.

    Holds credentials and a lazily created HTTP client; no other state.
    """

    def __init__(self, credentials: SuratCredentials):
        self.credentials = credentials
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            verify: Union[bool, ssl.SSLContext] = True
            if self.credentials.allow_legacy_tls:
                verify = build_legacy_ssl_context()
            self._http_client = httpx.AsyncClient(
                timeout=self.credentials.timeout,
                verify=verify,
            )
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _post(self, action: str, fields: List[Field], order_reference: Optional[str] = None) -> httpx.Response:
        """POST a SOAP action and return the raw HTTP response."""
        client = await self._get_http_client()
        envelope = build_envelope(action, fields)

        try:
            response = await client.post(
                self.credentials.service_url,
                content=envelope.encode("utf-8"),
                headers={
                    "Content-Type": "text/xml; charset=utf-8",
                    "SOAPAction": f"{self.credentials.soap_action_base}{action}",
                },
            )
        except httpx.TimeoutException as e:
            logger.error(f"Surat Kargo {action} timed out: {e}")
            raise CarrierError(
                message=f"Carrier service timed out: {e}",
                code="CARRIER_NETWORK_ERROR",
                action=action,
                order_reference=order_reference,
            )
        except httpx.RequestError as e:
            logger.error(f"Surat Kargo {action} request failed: {e}")
            raise CarrierError(
                message=f"Could not reach carrier service: {e}",
                code="CARRIER_NETWORK_ERROR",
                action=action,
                order_reference=order_reference,
            )

        logger.debug(
            f"Surat Kargo {action} -> {response.status_code}: "
            f"{sanitize_for_logging(response.text, max_length=200)}"
        )
        return response

    def _auth_fields(self) -> List[Field]:
        return [
            ("KullaniciAdi", self.credentials.username),
            ("Sifre", self.credentials.password),
        ]

    # ==================== Shipment Creation ====================

    async def create_shipment(self, request: ShipmentRequest) -> SuratShipmentResult:
        """
        Register a shipment with the carrier and obtain its tracking barcode.

        Raises:
            CarrierError: network failure, HTTP failure or carrier-reported error
        """
        wire_fields = request.to_wire_fields()
        wire_fields = [
            (tag, value[:MAX_ADDRESS_LENGTH] if tag == "AliciAdresi" else value)
            for tag, value in wire_fields
        ]
        fields = self._auth_fields() + [("Gonderi", wire_fields)]

        response = await self._post(ACTION_CREATE_SHIPMENT, fields, request.order_reference)
        parsed = CarrierResponse.parse(response.text)

        if parsed.is_error:
            logger.error(
                f"Surat Kargo rejected shipment {request.order_reference}: {parsed.message} "
                f"(HTTP {response.status_code})"
            )
            raise CarrierError(
                message=f"Surat Kargo error: {parsed.message}",
                action=ACTION_CREATE_SHIPMENT,
                order_reference=request.order_reference,
            )

        if not parsed.barcode:
            raise CarrierError(
                message="Surat Kargo accepted the shipment but returned no barcode",
                action=ACTION_CREATE_SHIPMENT,
                order_reference=request.order_reference,
            )

        logger.info(f"Surat Kargo shipment created for {request.order_reference}")
        return SuratShipmentResult(
            tracking_number=parsed.barcode,
            message=parsed.message,
            raw_response=parsed.raw,
        )

    # ==================== Tracking ====================

    async def track_shipment(self, order_reference: str) -> str:
        """
        Movement history of a shipment, looked up by the caller's order reference.

        Returns:
            The raw status document as sent by the carrier
        """
        fields: List[Field] = [
            ("CariKodu", self.credentials.username),
            ("Sifre", self.credentials.password),
            ("WebSiparisKodu", order_reference),
        ]
        response = await self._post(ACTION_TRACK_SHIPMENT, fields, order_reference)

        result = extract_result(response.text, ACTION_TRACK_SHIPMENT)
        if result is None:
            reason = extract_fault(response.text) or f"no tracking result (HTTP {response.status_code})"
            raise CarrierError(
                message=f"Surat Kargo tracking failed: {reason}",
                action=ACTION_TRACK_SHIPMENT,
                order_reference=order_reference,
            )
        return result

    # ==================== Returns ====================

    async def list_returns(self, start_date: date, end_date: date) -> str:
        """
        Return shipments registered between two dates (inclusive).

        Returns:
            The raw response document
        """
        fields: List[Field] = [
            ("GondericiCariKodu", self.credentials.username),
            ("WebPassword", self.credentials.password),
            ("BasTar", start_date.strftime("%Y%m%d")),
            ("BitTar", end_date.strftime("%Y%m%d")),
            ("WebSiparisKodu", ""),
        ]
        response = await self._post(ACTION_LIST_RETURNS, fields)

        fault = extract_fault(response.text)
        if fault is not None or response.status_code >= 400:
            raise CarrierError(
                message=f"Surat Kargo returns query failed: {fault or f'HTTP {response.status_code}'}",
                action=ACTION_LIST_RETURNS,
            )
        return response.text


def create_surat_client_from_connection(connection) -> SuratKargoClient:
    """Create a client from a CargoConnection row."""
    credentials = SuratCredentials(
        username=connection.username,
        password=decrypt_credential(connection.password_encrypted) if connection.password_encrypted else "",
    )
    return SuratKargoClient(credentials)
