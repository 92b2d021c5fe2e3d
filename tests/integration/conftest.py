import os

import httpx
import pytest
from dotenv import find_dotenv, load_dotenv

# Cargar .env lo más temprano posible (antes de pytest_collection_modifyitems)
load_dotenv(find_dotenv(usecwd=True))

ENV_TEST_URL = "EVENTSOURCE_TEST_URL"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    test_url = os.getenv(ENV_TEST_URL)
    for item in items:
        if "integration" in item.keywords and not test_url:
            item.add_marker(pytest.mark.skip(reason=f"Falta {ENV_TEST_URL} en entorno/.env"))


@pytest.fixture(scope="session")
def stream_url() -> tuple[str, str]:
    """
    Devuelve (base_url, path) a partir de EVENTSOURCE_TEST_URL.
    Ej: https://sse.example.com/stream -> ("https://sse.example.com", "/stream")
    """
    url = httpx.URL(os.environ[ENV_TEST_URL])
    base_url = str(url.copy_with(path="/", query=None, fragment=None)).rstrip("/")
    path = url.raw_path.decode("ascii") or "/"
    return base_url, path
