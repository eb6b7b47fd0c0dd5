"""
Barcode symbology tags and the set the scanner accepts.
"""

from __future__ import annotations

import enum
from typing import Dict, FrozenSet


class Symbology(str, enum.Enum):
    """Classification tag attached to a decoded code."""

    QR = "qr"
    CODE128 = "code128"
    CODE39 = "code39"
    CODE93 = "code93"
    UPCE = "upce"
    PDF417 = "pdf417"
    EAN13 = "ean13"
    AZTEC = "aztec"
    EAN8 = "ean8"
    UPCA = "upca"
    I25 = "i25"
    CODABAR = "codabar"
    DATABAR = "databar"
    DATABAR_EXP = "databar_exp"
    ISBN10 = "isbn10"
    ISBN13 = "isbn13"
    UNKNOWN = "unknown"

    @classmethod
    def from_zbar(cls, type_name: str) -> "Symbology":
        """
        Map a zbar type name (as reported by pyzbar) to a Symbology.

        Unrecognised names map to UNKNOWN.
        """
        return _ZBAR_TYPES.get((type_name or "").upper(), cls.UNKNOWN)

    @property
    def is_supported(self) -> bool:
        return self in SUPPORTED_SYMBOLOGIES


SUPPORTED_SYMBOLOGIES: FrozenSet[Symbology] = frozenset({
    Symbology.QR,
    Symbology.CODE128,
    Symbology.CODE39,
    Symbology.CODE93,
    Symbology.UPCE,
    Symbology.PDF417,
    Symbology.EAN13,
    Symbology.AZTEC,
})


_ZBAR_TYPES: Dict[str, Symbology] = {
    "QRCODE": Symbology.QR,
    "CODE128": Symbology.CODE128,
    "CODE39": Symbology.CODE39,
    "CODE93": Symbology.CODE93,
    "UPCE": Symbology.UPCE,
    "PDF417": Symbology.PDF417,
    "EAN13": Symbology.EAN13,
    "AZTEC": Symbology.AZTEC,
    "EAN8": Symbology.EAN8,
    "UPCA": Symbology.UPCA,
    "I25": Symbology.I25,
    "CODABAR": Symbology.CODABAR,
    "DATABAR": Symbology.DATABAR,
    "DATABAR_EXP": Symbology.DATABAR_EXP,
    "ISBN10": Symbology.ISBN10,
    "ISBN13": Symbology.ISBN13,
}
