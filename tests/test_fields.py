"""Tests for column-name resolution."""

from core.fields import (
    DATE_CANDIDATES,
    NEW_CUSTOMER_CANDIDATES,
    REVENUE_CANDIDATES,
    SPEND_CANDIDATES,
    normalize_key,
    pick_column,
)


# ---------------------------------------------------------------------------
# normalize_key
# ---------------------------------------------------------------------------

class TestNormalizeKey:
    def test_trailing_space_and_case(self):
        assert normalize_key("Data ") == "data"

    def test_spaces_become_underscores(self):
        assert normalize_key("Investimento Total") == "investimento_total"

    def test_accents_stripped(self):
        assert normalize_key("Mídia") == "midia"

    def test_punctuation_runs_collapse(self):
        assert normalize_key("Qtd. Pedidos") == "qtd_pedidos"

    def test_none(self):
        assert normalize_key(None) == ""


# ---------------------------------------------------------------------------
# pick_column
# ---------------------------------------------------------------------------

class TestPickColumn:
    def test_exact_match_after_normalization(self):
        row = {"Data ": "19/11/2025", "Canal": "Site"}
        assert pick_column(row, DATE_CANDIDATES) == "19/11/2025"

    def test_candidate_order_beats_column_order(self):
        row = {"Receita": "1", "Faturamento": "2"}
        assert pick_column(row, REVENUE_CANDIDATES) == "2"

    def test_exact_match_beats_substring_match(self):
        row = {"Valor Total": "9", "valor": "5"}
        assert pick_column(row, ["valor"]) == "5"

    def test_substring_fallback(self):
        row = {"Faturamento Bruto (R$)": "10"}
        assert pick_column(row, REVENUE_CANDIDATES) == "10"

    def test_spend_alias_with_space(self):
        row = {"Data": "2025-11-11", "Investimento Total": "30"}
        assert pick_column(row, SPEND_CANDIDATES) == "30"

    def test_new_customers_accented_header(self):
        row = {"Novos Clientes": "4"}
        assert pick_column(row, NEW_CUSTOMER_CANDIDATES) == "4"

    def test_no_match(self):
        assert pick_column({"Canal": "Site"}, DATE_CANDIDATES) is None

    def test_empty_row(self):
        assert pick_column({}, DATE_CANDIDATES) is None
