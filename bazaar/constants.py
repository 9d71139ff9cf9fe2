from __future__ import annotations

# Фиксированный набор категорий: id -> подпись для фронта
CATEGORIES: dict[str, str] = {
    "electronics": "Electronics",
    "clothing": "Clothing",
    "furniture": "Furniture",
    "books": "Books",
    "toys": "Toys",
    "sports": "Sports",
    "tools": "Tools",
    "home": "Home & Garden",
    "automotive": "Automotive",
    "other": "Other",
}

CATEGORY_IDS = frozenset(CATEGORIES)
