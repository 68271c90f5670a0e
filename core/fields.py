from __future__ import annotations

import re
import unicodedata
from typing import Mapping, Optional, Sequence


DATE_CANDIDATES = ["data", "dia", "date"]
CHANNEL_CANDIDATES = ["canal", "channel", "origem", "fonte"]
ORDER_COUNT_CANDIDATES = ["pedidos", "orders", "qtd_pedidos", "qtd pedidos"]
REVENUE_CANDIDATES = ["faturamento", "receita", "revenue", "vendas", "valor"]
SPEND_CANDIDATES = [
    "investimento_total",
    "investimento total",
    "investimento",
    "midia",
    "gasto",
    "spend",
]
NEW_CUSTOMER_CANDIDATES = [
    "clientes_novos",
    "clientes novos",
    "novos_clientes",
    "new_customers",
    "clientes",
]


def normalize_key(value: object) -> str:
    """Canonical column name: ``" Faturamento Líquido "`` -> ``"faturamento_liquido"``."""
    s = "" if value is None else str(value)
    s = unicodedata.normalize("NFD", s.strip().lower())
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = re.sub(r"\s+", "_", s)
    s = re.sub(r"[^\w]", "_", s)
    return re.sub(r"_+", "_", s)


def pick_column(row: Mapping[str, Optional[str]], candidates: Sequence[str]) -> Optional[str]:
    """Return the value of the first column matching a candidate name.

    Exact matches on the normalized name win over substring matches. Within
    each pass the candidate order takes priority over the column order.
    """
    if not row:
        return None
    keys = [(normalize_key(k), k) for k in row.keys()]
    wanted = [normalize_key(c) for c in candidates]

    for cand in wanted:
        for norm, key in keys:
            if norm == cand:
                return row[key]

    for cand in wanted:
        for norm, key in keys:
            if cand in norm:
                return row[key]
    return None
