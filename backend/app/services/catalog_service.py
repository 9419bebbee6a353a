from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from app.schemas.catalog import CatalogAsset, CatalogCity


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the catalog used for one valuation pass."""
    assets: Dict[str, CatalogAsset] = field(default_factory=dict)
    cities: Dict[str, CatalogCity] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        assets: Iterable[CatalogAsset],
        cities: Iterable[CatalogCity],
    ) -> "CatalogSnapshot":
        return cls(
            assets={a.ticker.upper(): a for a in assets},
            cities={c.city_key.upper(): c for c in cities},
        )

    def get_asset(self, ticker: Optional[str]) -> Optional[CatalogAsset]:
        if not ticker:
            return None
        return self.assets.get(ticker.strip().upper())

    def get_city(self, city_key: Optional[str]) -> Optional[CatalogCity]:
        if not city_key:
            return None
        return self.cities.get(city_key.strip().upper())

    def assets_in(
        self,
        category: Optional[str] = None,
        country: Optional[str] = None,
    ) -> List[CatalogAsset]:
        return [
            a for a in self.assets.values()
            if (category is None or a.category == category)
            and (country is None or a.country == country)
        ]
