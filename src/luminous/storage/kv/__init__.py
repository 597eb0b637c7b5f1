from .inmem_kv import InMemoryKV
from .upstash_kv import UpstashKV

__all__ = ["InMemoryKV", "UpstashKV"]
