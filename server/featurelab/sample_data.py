"""Synthetic e-commerce dataset for demos."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

import numpy as np

from .dataclass import Row

DESCRIPTIONS = [
    "Premium eco-friendly product with extended warranty.",
    "Compact size gadget suitable for frequent travelers.",
    "Handcrafted item made with sustainable materials.",
    "Limited edition model with signature finish and packaging.",
    "Budget-friendly alternative with essential features.",
]
CATEGORIES = [
    "Standard", "Premium", "Deluxe", "Wholesale", "Limited", "Eco",
    "Student", "Enterprise", "Basic", "Classic", "Holiday", "Exclusive",
]
REGIONS = ["North America", "Europe", "Asia Pacific", "Latin America", "Middle East", "Africa"]
SEGMENTS = ["B2C", "B2B", "Marketplace"]
CITIES = [f"City-{idx + 1}" for idx in range(50)]

DUPLICATE_SHARE = 0.05


def generate_sample(rows: int = 1000, seed: Optional[int] = None, today: Optional[date] = None) -> List[Row]:
    """
    デモ用のECデータを生成

    価格の約5%にスパイク、スコアの約10%に欠損を入れ、
    末尾に先頭5%の行の完全コピーを重複として追加する。
    """
    rng = np.random.default_rng(seed)
    today = today or date.today()
    data: List[Row] = []

    for i in range(rows):
        base_price = 50 + rng.random() * 200
        price = base_price + (rng.random() * 800 if rng.random() < 0.05 else 0)
        quantity = max(1, int(round(abs(5 + (rng.random() - 0.5) * 10))))
        total = round(price * quantity, 2)
        discount = round(rng.random() * 0.4, 2) if rng.random() < 0.2 else ""
        if rng.random() < 0.1:
            score = None
        else:
            score = round(55 + rng.random() * 40 + (30 if rng.random() < 0.05 else 0), 2)

        signup = today - timedelta(days=int(rng.random() * 365))
        last_purchase = signup + timedelta(days=int(rng.random() * 180))
        description = DESCRIPTIONS[int(rng.integers(len(DESCRIPTIONS)))]
        if rng.random() < 0.4:
            description += " Includes complimentary support package."

        data.append(
            {
                "id": i + 1,
                "price": price,
                "quantity": quantity,
                "total_price": total,
                "discount": discount,
                "score": score,
                "category": CATEGORIES[int(rng.integers(len(CATEGORIES)))],
                "region": REGIONS[int(rng.integers(len(REGIONS)))],
                "segment": SEGMENTS[int(rng.integers(len(SEGMENTS)))],
                "product_id": f"PID-{1000 + int(rng.integers(9000))}",
                "city": CITIES[int(rng.integers(len(CITIES)))],
                "product_description": description,
                "signup_date": signup.isoformat(),
                "last_purchase_date": last_purchase.isoformat(),
                "height_cm": round(140 + rng.random() * 50, 1),
                "weight_kg": round(40 + rng.random() * 60, 1),
                "revenue": round(total - float(discount or 0) * total, 2),
                "customer_tenure_days": (today - signup).days,
            }
        )

    for i in range(int(rows * DUPLICATE_SHARE)):
        data.append(dict(data[i]))

    return data
