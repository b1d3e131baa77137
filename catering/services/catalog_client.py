# catering/services/catalog_client.py
import requests

from catering.utils.retry import http_retry
from catering.utils.settings import CATALOG_SERVICE_URL
from catering.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """
    Odczyt menu i listy dzieci z zewnetrznego serwisu katalogu.
    Uzywane tylko przy tworzeniu zamowienia (snapshot ceny i danych dziecka).
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_menu_item(self, menu_item_id: str) -> dict:
        url = f"{self.base_url}/menu-items/{menu_item_id}"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def fetch_child(self, child_id: str) -> dict:
        url = f"{self.base_url}/children/{child_id}"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
