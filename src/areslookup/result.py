"""Structured result of an ARES lookup."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, TypedDict

HOME_COUNTRY = "CZ"

_ICO_PATTERN = re.compile(r"[0-9]{8}")
_PHYSICAL_PERSON_FORMS = range(100, 110)


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    value_str = str(value).strip()
    if value_str.isascii() and value_str.isdigit():
        return int(value_str)
    return None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class CompanyRecord(TypedDict):
    """Flat view of a registry subject, e.g. for filling forms or API responses."""

    ico: str
    dic: Optional[str]
    company: str
    street: str
    city: str
    zip: str
    country: str
    text_address: Optional[str]
    legal_form: Optional[str]
    is_physical_person: bool


@dataclass(frozen=True)
class RegistryResult:
    """One economic subject as returned by ARES.

    Instances are only built from API payloads via :meth:`from_api` and are
    never modified afterwards. Dates are kept exactly as ARES returns them.
    """

    ico: str
    dic: str | None
    name: str
    legal_form: str | None
    street_name: str | None
    house_number: int | None
    orientation_number: int | None
    orientation_letter: str | None
    municipality: str | None
    district: str | None
    postal_code: int | None
    country_code: str | None
    text_address: str | None
    founded_on: str | None
    dissolved_on: str | None

    def __post_init__(self) -> None:
        if not isinstance(self.ico, str) or not _ICO_PATTERN.fullmatch(self.ico):
            raise ValueError(f"IČO must be exactly 8 digits, got {self.ico!r}")

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> RegistryResult:
        """Create a result from one ARES subject payload.

        A payload without ``ico`` breaks the ARES contract and raises
        ``KeyError``; every other field is optional.
        """

        sidlo = data.get("sidlo")
        if not isinstance(sidlo, Mapping):
            sidlo = {}

        return cls(
            ico=str(data["ico"]),
            dic=_optional_str(data.get("dic")),
            name=str(data.get("obchodniJmeno") or ""),
            legal_form=_optional_str(data.get("pravniForma")),
            street_name=_optional_str(sidlo.get("nazevUlice")),
            house_number=_optional_int(sidlo.get("cisloDomovni")),
            orientation_number=_optional_int(sidlo.get("cisloOrientacni")),
            orientation_letter=_optional_str(sidlo.get("cisloOrientacniPismeno")),
            municipality=_optional_str(sidlo.get("nazevObce")),
            district=_optional_str(sidlo.get("nazevCastiObce")),
            postal_code=_optional_int(sidlo.get("psc")),
            country_code=_optional_str(sidlo.get("kodStatu")),
            text_address=_optional_str(sidlo.get("textovaAdresa")),
            founded_on=_optional_str(data.get("datumVzniku")),
            dissolved_on=_optional_str(data.get("datumZaniku")),
        )

    @property
    def street(self) -> str:
        """Street with house number, e.g. ``"Budějovická 778/3a"``."""

        if self.street_name is None:
            return ""

        street = self.street_name
        if self.house_number is not None:
            street += f" {self.house_number}"
            if self.orientation_number is not None:
                street += f"/{self.orientation_number}"
                if self.orientation_letter is not None:
                    street += self.orientation_letter
        return street

    @property
    def formatted_postal_code(self) -> str:
        """Postal code grouped as ``"140 00"``."""

        if self.postal_code is None:
            return ""
        psc = str(self.postal_code)
        return f"{psc[:3]} {psc[3:]}"

    @property
    def city(self) -> str:
        """Municipality with its district when they differ, e.g. ``"Praha - Michle"``."""

        city = self.municipality or ""
        if self.district is not None and self.district != self.municipality:
            city += f" - {self.district}"
        return city

    @property
    def is_physical_person(self) -> bool:
        # Legal form codes 100-109 are natural persons, everything else an entity.
        if self.legal_form is None:
            return False
        try:
            code = int(self.legal_form)
        except ValueError:
            return False
        return code in _PHYSICAL_PERSON_FORMS

    @property
    def is_active(self) -> bool:
        return self.dissolved_on is None

    def to_dict(self) -> CompanyRecord:
        """Return the flat mapping used when serialising results."""

        return CompanyRecord(
            ico=self.ico,
            dic=self.dic,
            company=self.name,
            street=self.street,
            city=self.city,
            zip=self.formatted_postal_code,
            country=self.country_code or HOME_COUNTRY,
            text_address=self.text_address,
            legal_form=self.legal_form,
            is_physical_person=self.is_physical_person,
        )


__all__ = ["HOME_COUNTRY", "CompanyRecord", "RegistryResult"]
