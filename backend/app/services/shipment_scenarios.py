"""
Shipment scenarios for Surat Kargo

Maps a business scenario (marketplace sale, buyer pays carrier, cash/card on
delivery) onto the carrier's payment and collection codes. No I/O happens here.
"""
import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from app.core.exceptions import ShipmentValidationError


class ShipmentScenario(str, enum.Enum):
    """
    Business scenario of a shipment.

    Values are the scenario names the carrier integration has always been called
    with; MARKETPLACE_SALE keeps the historical "MARKKETPLACE" spelling.
    """
    MARKETPLACE_SALE = "MARKKETPLACE"
    BUYER_PAYS_CARRIER = "BUYER_PAYS"
    COD_CASH = "COD_CASH"
    COD_CARD = "COD_CREDIT"


class PayerCode(int, enum.Enum):
    """OdemeTipi"""
    SENDER = 1
    RECIPIENT = 2


class CollectionType(int, enum.Enum):
    """KapidanOdemeTahsilatTipi"""
    NONE = 0
    CASH = 1
    CARD = 2


class ParcelType(int, enum.Enum):
    """KargoTuru"""
    DOCUMENT = 1
    PACKAGE = 2
    BOX = 3


# TasimaSekli / TeslimSekli
TRANSPORT_STANDARD = 1
DELIVERY_TO_ADDRESS = 1

COD_SCENARIOS = (ShipmentScenario.COD_CASH, ShipmentScenario.COD_CARD)


@dataclass
class ShipmentDraft:
    """Caller-supplied part of a shipment; anything left None gets a default."""
    recipient_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    phone: Optional[str] = None
    recipient_code: Optional[str] = None
    order_reference: Optional[str] = None
    parcel_type: Optional[ParcelType] = None
    quantity: Optional[int] = None
    unit_desi: Optional[str] = None
    unit_weight: Optional[str] = None
    collection_amount: Optional[str] = None
    transport_style: Optional[int] = None
    delivery_style: Optional[int] = None
    is_return: Optional[bool] = None


@dataclass
class ShipmentRequest:
    """Fully populated CreateShipment request."""
    recipient_name: str
    address: str
    city: str
    district: str
    phone: str
    recipient_code: str
    parcel_type: ParcelType
    payer: PayerCode
    order_reference: str
    quantity: int
    unit_desi: str
    unit_weight: str
    collection_type: CollectionType
    collection_amount: str
    transport_style: int
    delivery_style: int
    is_marketplace: bool
    is_return: bool

    def to_wire_fields(self) -> List[Tuple[str, str]]:
        """Gonderi fields in the order the carrier expects them."""
        return [
            ("KisiKurum", self.recipient_name),
            ("AliciAdresi", self.address),
            ("Il", self.city),
            ("Ilce", self.district),
            ("TelefonCep", self.phone),
            ("AliciKodu", self.recipient_code),
            ("KargoTuru", str(self.parcel_type.value)),
            ("OdemeTipi", str(self.payer.value)),
            ("OzelKargoTakipNo", self.order_reference),
            ("Adet", str(self.quantity)),
            ("BirimDesi", self.unit_desi),
            ("BirimKg", self.unit_weight),
            ("KapidanOdemeTahsilatTipi", str(self.collection_type.value)),
            ("KapidanOdemeTutari", self.collection_amount or "0"),
            ("TasimaSekli", str(self.transport_style)),
            ("TeslimSekli", str(self.delivery_style)),
            ("Pazaryerimi", "1" if self.is_marketplace else "0"),
            ("Iademi", "true" if self.is_return else "false"),
        ]


# scenario -> (payer, collection type, marketplace flag)
SCENARIO_CODES = {
    ShipmentScenario.MARKETPLACE_SALE: (PayerCode.SENDER, CollectionType.NONE, True),
    ShipmentScenario.BUYER_PAYS_CARRIER: (PayerCode.RECIPIENT, CollectionType.NONE, False),
    ShipmentScenario.COD_CASH: (PayerCode.SENDER, CollectionType.CASH, False),
    ShipmentScenario.COD_CARD: (PayerCode.SENDER, CollectionType.CARD, False),
}


def _has_amount(value: Optional[str]) -> bool:
    if value in (None, ""):
        return False
    try:
        return Decimal(str(value).replace(",", ".")) > 0
    except InvalidOperation:
        return False


def parse_scenario(value) -> ShipmentScenario:
    """Accept either the wire value ("MARKKETPLACE") or the member name."""
    if isinstance(value, ShipmentScenario):
        return value
    try:
        return ShipmentScenario(value)
    except ValueError:
        pass
    try:
        return ShipmentScenario[str(value).upper()]
    except KeyError:
        raise ShipmentValidationError(f"Unknown shipment scenario: {value}", field="scenario")


def resolve_shipment(draft: ShipmentDraft, scenario) -> ShipmentRequest:
    """
    Build the carrier request for a scenario.

    Raises:
        ShipmentValidationError: cash/card on delivery without a collection amount
    """
    scenario = parse_scenario(scenario)
    payer, collection_type, is_marketplace = SCENARIO_CODES[scenario]

    if scenario in COD_SCENARIOS and not _has_amount(draft.collection_amount):
        raise ShipmentValidationError(
            "Collection amount is required for cash/card on delivery shipments",
            field="collection_amount",
        )

    return ShipmentRequest(
        recipient_name=draft.recipient_name or "",
        address=draft.address or "",
        city=draft.city or "",
        district=draft.district or "",
        phone=draft.phone or "",
        recipient_code=draft.recipient_code or "",
        parcel_type=draft.parcel_type or ParcelType.PACKAGE,
        payer=payer,
        order_reference=draft.order_reference or "",
        quantity=draft.quantity or 1,
        unit_desi=draft.unit_desi or "1",
        unit_weight=draft.unit_weight or "1",
        collection_type=collection_type,
        collection_amount=draft.collection_amount or "0",
        transport_style=draft.transport_style or TRANSPORT_STANDARD,
        delivery_style=draft.delivery_style or DELIVERY_TO_ADDRESS,
        is_marketplace=is_marketplace,
        is_return=bool(draft.is_return),
    )
