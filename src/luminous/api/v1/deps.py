# dependency accessors for services installed on app.state.container

import logging

from fastapi import Request

from luminous.services.container.default_container import DefaultContainer
from luminous.services.memory.dedup import MemoryDedupService
from luminous.services.memory.library import MemoryLibrary
from luminous.services.shopify.proxy import ShopifyProxy
from luminous.services.sync.coordinator import SnapshotSyncCoordinator


def get_container(request: Request) -> DefaultContainer:
    return request.app.state.container


def get_sync(request: Request) -> SnapshotSyncCoordinator:
    return get_container(request).sync


def get_dedup(request: Request) -> MemoryDedupService:
    return get_container(request).dedup


def get_library(request: Request) -> MemoryLibrary:
    return get_container(request).library


def get_shopify(request: Request) -> ShopifyProxy:
    return get_container(request).shopify


def get_api_logger(request: Request) -> logging.Logger:
    return get_container(request).logger.for_api()
