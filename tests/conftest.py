"""
Fixtures compartilhadas entre todos os testes.
"""

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.errors import FetchError


# ---------------------------------------------------------------------------
# Chave VAPID gerada em memória, sem dependência de arquivos em disco
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def vapid_private_key():
    """Par de chaves P-256 gerado uma única vez por sessão de testes."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def vapid_private_key_pem(vapid_private_key) -> str:
    return vapid_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


# ---------------------------------------------------------------------------
# Configuração Dynaconf isolada para testes
# Usa monkeypatch para sobrescrever os atributos sem tocar em arquivos .toml
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch, vapid_private_key_pem):
    """
    Sobrescreve as settings do Dynaconf com valores de teste.
    `autouse=True` garante que nenhum teste dependa de configuração real
    nem inicie o worker periódico.
    """
    from app import config

    monkeypatch.setattr(config.settings, "fetch_timeout", 5)
    monkeypatch.setattr(config.settings, "fetch_retries", 0)
    monkeypatch.setattr(config.settings, "min_html_length", 20)
    monkeypatch.setattr(config.settings, "refresh_concurrency", 2)
    monkeypatch.setattr(config.settings, "refresh_interval_minutes", 0)
    monkeypatch.setattr(config.settings, "vapid_private_key", vapid_private_key_pem)
    monkeypatch.setattr(config.settings, "vapid_private_key_path", "")
    monkeypatch.setattr(config.settings, "vapid_public_key", "")
    monkeypatch.setattr(config.settings, "vapid_subject", "mailto:test@tracker.test")
    monkeypatch.setattr(config.settings, "push_ttl", 86400)
    monkeypatch.setattr(config.settings, "push_encrypt", False)
    monkeypatch.setattr(config.settings, "notify_on_change", False)


# ---------------------------------------------------------------------------
# Banco em memória isolado por teste
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    from app.database import Base
    import app.models  # noqa: F401

    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


# ---------------------------------------------------------------------------
# Fetcher falso: mapeia URL → HTML ou exceção
# ---------------------------------------------------------------------------


class FakeFetcher:
    def __init__(self, pages: dict):
        self.pages = pages
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError("Failed to fetch page: HTTP 404", status_code=404)
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def make_page():
    """Factory de HTML com og:title e og:description opcionais."""

    def _make(title: str = "Canal", description: str | None = None, body: str = "") -> str:
        meta = f'<meta property="og:title" content="{title}" />'
        if description is not None:
            meta += f'<meta property="og:description" content="{description}" />'
        return f"<html><head>{meta}</head><body>{body}</body></html>"

    return _make
