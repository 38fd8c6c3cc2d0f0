"""
Static reference catalogs.

Warehouses (with their storage locations) and trading partners are seeded
once at start and treated as read-only for the life of the process.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Warehouse:
    """A warehouse and the storage locations it owns."""
    code: str
    name: str
    locations: tuple[str, ...]

    def has_location(self, location: str) -> bool:
        return location in self.locations


WAREHOUSES: dict[str, Warehouse] = {
    "ICN1": Warehouse("ICN1", "인천 풀필먼트 센터", ("A-01", "A-02", "B-01", "B-02")),
    "PUS1": Warehouse("PUS1", "부산 허브", ("P-01", "P-02", "P-03")),
    "DJN1": Warehouse("DJN1", "대전 물류센터", ("D-01", "D-02")),
}

PARTNERS: frozenset[str] = frozenset({
    "SUP-0001",
    "SUP-0002",
    "CUS-0001",
    "CUS-0002",
})
