"""Fixed upstream sources for the ISO reference data files."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class DownloadTarget:
    """One upstream file and where it lands locally."""
    label: str
    url: str
    filename: str


LANGUAGE_TABLE = DownloadTarget(
    label="language table",
    url="https://iso639-3.sil.org/sites/iso639-3/files/downloads/iso-639-3.tab",
    filename="language.tab",
)

COUNTRY_JSON = DownloadTarget(
    label="country json",
    url="https://raw.githubusercontent.com/lukes/ISO-3166-Countries-with-Regional-Codes/master/all/all.json",
    filename="country.json",
)

# Order matters: a failure stops the run before later targets.
TARGETS: Tuple[DownloadTarget, ...] = (LANGUAGE_TABLE, COUNTRY_JSON)
