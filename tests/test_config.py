import pytest

from iudx.catalogue.app import build_store
from iudx.catalogue.config import CatalogueSettings
from iudx.catalogue.repository.memory import InMemoryDocumentStore


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("CATALOGUE_STORE_BACKEND", "memory")
    monkeypatch.setenv("CATALOGUE_TRUST_CLASSES", "4, 5")
    monkeypatch.setenv("CATALOGUE_VALIDATOR_URL", "")
    monkeypatch.setenv("DB_DSN", "postgresql://catalogue@db/catalogue")
    monkeypatch.setenv("CATALOGUE_TRUSTED_PROXIES", "10.0.0.5, 10.0.0.6")

    settings = CatalogueSettings()

    assert settings.store_backend == "memory"
    assert settings.trust_classes == (4, 5)
    assert settings.validator_url is None
    assert settings.database_url == "postgresql://catalogue@db/catalogue"
    assert settings.trusted_proxies == ("10.0.0.5", "10.0.0.6")


def test_build_store_selects_backend():
    assert isinstance(build_store(CatalogueSettings(store_backend="memory")), InMemoryDocumentStore)
    with pytest.raises(ValueError):
        build_store(CatalogueSettings(store_backend="cassandra"))
