# tests/test_settings.py
"""
Tests for environment configuration defaults.
"""

import importlib

import pytest

from storefront.utils import settings


@pytest.fixture
def reload_settings(monkeypatch):
    yield lambda: importlib.reload(settings)
    monkeypatch.undo()
    importlib.reload(settings)


def test_celery_falls_back_to_redis_url(monkeypatch, reload_settings):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/3")
    monkeypatch.delenv("CELERY_BROKER_URL", raising=False)
    monkeypatch.delenv("CELERY_RESULT_BACKEND", raising=False)

    reloaded = reload_settings()

    assert reloaded.CELERY_BROKER_URL == "redis://cache:6379/3"
    assert reloaded.CELERY_RESULT_BACKEND == "redis://cache:6379/3"


def test_explicit_broker_wins(monkeypatch, reload_settings):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/3")
    monkeypatch.setenv("CELERY_BROKER_URL", "redis://broker:6379/1")

    assert reload_settings().CELERY_BROKER_URL == "redis://broker:6379/1"
