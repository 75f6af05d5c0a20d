import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .errors import InvalidRecordError

logger = logging.getLogger(__name__)

DEFAULT_SALUTATION = "Valued Customer"

# Accepted header spellings for each field.
_FIELD_ALIASES: Dict[str, tuple] = {
    "name": ("Name",),
    "email": ("Email", "E-mail"),
    "contact_name": ("ContactName", "Contact Name"),
    "logo_url": ("Logo URL", "LogoURL", "Logo Url"),
}


@dataclass(frozen=True)
class ClientRecord:
    name: str
    logo_url: str
    email: Optional[str] = None
    contact_name: Optional[str] = None

    @property
    def salutation_name(self) -> str:
        return self.contact_name or DEFAULT_SALUTATION

    @classmethod
    def from_row(cls, row: Mapping[str, Optional[str]]) -> "ClientRecord":
        values = {
            field_name: _first_value(row, aliases)
            for field_name, aliases in _FIELD_ALIASES.items()
        }
        if not values["name"]:
            raise InvalidRecordError("Client row has an empty Name")
        if not values["logo_url"]:
            raise InvalidRecordError(f"Client {values['name']!r} has no Logo URL")

        return cls(
            name=values["name"],
            logo_url=values["logo_url"],
            email=values["email"],
            contact_name=values["contact_name"],
        )


def _first_value(row: Mapping[str, Optional[str]], aliases: tuple) -> Optional[str]:
    for alias in aliases:
        value = (row.get(alias) or "").strip()
        if value:
            return value
    return None


def load_clients(path: Path) -> List[ClientRecord]:
    """
    Read client rows from a CSV file with a header line.

    Rows that cannot form a valid record are logged and skipped.
    """
    clients: List[ClientRecord] = []
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f, skipinitialspace=True)
        if reader.fieldnames:
            reader.fieldnames = [name.strip() for name in reader.fieldnames]
        for row in reader:
            try:
                clients.append(ClientRecord.from_row(row))
            except InvalidRecordError as exc:
                logger.error("Skipping %s line %d: %s", path.name, reader.line_num, exc)

    logger.info("📁 Loaded %d client(s) from %s", len(clients), path)
    return clients
