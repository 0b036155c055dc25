"""
Surat Kargo response parsing

The carrier's SOAP contract is loosely specified and its responses drift
(namespace prefixes, extra wrapper elements, HTML-escaped inner documents).
Fields are therefore located by their tag boundaries instead of a schema.
All of that tolerance lives in this module.
"""
import html
import re
from dataclasses import dataclass
from typing import Optional

UNKNOWN_ERROR_MESSAGE = "Unknown carrier error"


def extract_tag(text: str, tag: str) -> Optional[str]:
    """
    Inner text of the first <tag>...</tag> (optionally namespace-prefixed).

    Returns None when the tag is missing, "" for an empty or self-closing tag.
    """
    if not text:
        return None

    pattern = re.compile(
        rf"<(?:[\w.-]+:)?{re.escape(tag)}(?:\s[^>]*)?>(.*?)</(?:[\w.-]+:)?{re.escape(tag)}\s*>",
        re.DOTALL,
    )
    match = pattern.search(text)
    if match:
        return match.group(1).strip()

    empty = re.compile(rf"<(?:[\w.-]+:)?{re.escape(tag)}(?:\s[^>]*)?/>")
    if empty.search(text):
        return ""
    return None


def extract_fault(text: str) -> Optional[str]:
    """faultstring of a SOAP Fault, if the response is one."""
    if not text or not re.search(r"<(?:[\w.-]+:)?Fault[\s>]", text):
        return None
    return extract_tag(text, "faultstring") or "SOAP fault"


@dataclass
class CarrierResponse:
    """Parsed CreateShipment response."""
    is_error: bool
    message: str
    barcode: Optional[str] = None
    raw: str = ""

    @classmethod
    def parse(cls, text: str) -> "CarrierResponse":
        """
        Parse a CreateShipment response.

        The response counts as an error unless isError is present and reads
        "false"; a missing or unreadable flag is an error.
        """
        fault = extract_fault(text)
        if fault is not None:
            return cls(is_error=True, message=html.unescape(fault), raw=text or "")

        flag = extract_tag(text, "isError")
        message = extract_tag(text, "Message")
        barcode = extract_tag(text, "Barcode")

        is_error = flag is None or flag.strip().lower() != "false"

        return cls(
            is_error=is_error,
            message=html.unescape(message) if message else UNKNOWN_ERROR_MESSAGE,
            barcode=barcode or None,
            raw=text or "",
        )


def extract_result(text: str, action: str) -> Optional[str]:
    """
    Inner blob of <{action}Result>, unescaped.

    Tracking results arrive as an XML document escaped inside the Result element.
    """
    inner = extract_tag(text, f"{action}Result")
    if inner is None:
        return None
    return html.unescape(inner)
