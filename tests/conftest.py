import pytest

from luminous.config.config import AppSettings
from luminous.config.services import DedupSettings, SyncSettings
from luminous.config.storage import KVSettings
from luminous.server.app_factory import create_app
from luminous.storage.kv.inmem_kv import InMemoryKV


@pytest.fixture
def kv():
    return InMemoryKV()


@pytest.fixture
def cfg():
    return AppSettings(
        kv=KVSettings(backend="inmem"),
        dedup=DedupSettings(enabled=False),
        sync=SyncSettings(debounce_s=0.01),
    )


@pytest.fixture
def app(cfg, kv):
    return create_app(cfg=cfg, kv=kv, log_level="warning")


@pytest.fixture
def unconfigured_app():
    cfg = AppSettings(kv=KVSettings(backend="none"), dedup=DedupSettings(enabled=False))
    return create_app(cfg=cfg, log_level="warning")
