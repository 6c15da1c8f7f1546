"""Size-weighted heatmap data for store maps."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Tuple

import h3
import pandas as pd

if TYPE_CHECKING:
    from src.stores.classifier import StoreRecord

SIZE_WEIGHTS = {
    "small": 0.4,
    "medium": 0.7,
    "large": 1.0,
}
DEFAULT_WEIGHT = 0.5
DEFAULT_H3_RES = 9  # city-block scale

HEX_COLUMNS = ["hex", "lat", "lng", "store_count", "weight_sum", "large_share"]


def size_weight(tier) -> float:
    """Heat weight for a size tier (enum or plain string)."""
    return SIZE_WEIGHTS.get(getattr(tier, "value", tier), DEFAULT_WEIGHT)


def heat_points(records: Iterable["StoreRecord"]) -> List[Tuple[float, float, float]]:
    """Return ``(lat, lng, weight)`` triples, one per store."""
    return [(r.location.lat, r.location.lng, size_weight(r.size_tier)) for r in records]


def hex_density(records: Iterable["StoreRecord"], *, res: int = DEFAULT_H3_RES) -> pd.DataFrame:
    """
    Bin stores into H3 cells and sum their size weights.

    Returns:
        DataFrame with columns hex, lat, lng (cell centre), store_count,
        weight_sum and large_share, sorted by weight_sum descending then hex
    """
    rows = [
        {
            "hex": h3.latlng_to_cell(r.location.lat, r.location.lng, res),
            "weight": size_weight(r.size_tier),
            "is_large": getattr(r.size_tier, "value", r.size_tier) == "large",
        }
        for r in records
    ]
    if not rows:
        df = pd.DataFrame(columns=HEX_COLUMNS)
        df.attrs["h3_res"] = res
        return df

    grouped = (
        pd.DataFrame(rows)
        .groupby("hex", sort=True)
        .agg(store_count=("weight", "size"), weight_sum=("weight", "sum"), large_share=("is_large", "mean"))
        .reset_index()
    )
    centers = grouped["hex"].map(h3.cell_to_latlng)
    grouped["lat"] = centers.map(lambda c: c[0])
    grouped["lng"] = centers.map(lambda c: c[1])

    df = grouped[HEX_COLUMNS].sort_values(["weight_sum", "hex"], ascending=[False, True]).reset_index(drop=True)
    df.attrs["h3_res"] = res
    return df
