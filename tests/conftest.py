from datetime import date

import pytest
import requests

from core.settings import Settings

SALES_URL = "http://feeds.test/consolidado.csv"
INVESTMENT_URL = "http://feeds.test/investimento.csv"

SALES_CSV = (
    "Data,Canal,Pedidos,Faturamento\n"
    "11/11/2025,Site,2,\"100,00\"\n"
    "11/11/2025,Social,1,\"50,00\"\n"
    "\n"
    "sem data,Site,5,\"999,00\"\n"
)

INVESTMENT_CSV = (
    "Data,Investimento Total,Clientes Novos\n"
    "2025-11-11,\"R$ 30,00\",1\n"
)


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code
        self.encoding = "utf-8"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for ``requests.Session``: serves canned CSV bodies by URL."""

    def __init__(self, bodies: dict, failing=None):
        self.bodies = dict(bodies)
        self.failing = set(failing or ())
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if url in self.failing:
            raise requests.ConnectionError(f"connection refused: {url}")
        if url not in self.bodies:
            return FakeResponse("", status_code=404)
        return FakeResponse(self.bodies[url])


@pytest.fixture()
def settings():
    return Settings(
        sales_csv_url=SALES_URL,
        investment_csv_url=INVESTMENT_URL,
        fetch_timeout=5.0,
        default_start=date(2025, 11, 11),
        default_end=date(2025, 11, 19),
    )


@pytest.fixture()
def session():
    return FakeSession({SALES_URL: SALES_CSV, INVESTMENT_URL: INVESTMENT_CSV})


@pytest.fixture()
def sales_rows():
    return [
        {"Data ": "11/11/2025", "Canal": "Site", "Pedidos": "2", "Faturamento": "100,00"},
        {"Data ": "11/11/2025", "Canal": "Social", "Pedidos": "1", "Faturamento": "50,00"},
    ]


@pytest.fixture()
def investment_rows():
    return [{"Data": "2025-11-11", "Investimento Total": "30", "Clientes Novos": "1"}]
