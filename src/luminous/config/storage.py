from typing import Literal

from pydantic import BaseModel, SecretStr

# --- Remote key-value store ---


class KVSettings(BaseModel):
    # which backend to use for the state record and memory library
    #   - "upstash": Redis-compatible REST endpoint (url + bearer token)
    #   - "inmem":   process-local store (tests/dev)
    #   - "none":    persistence disabled; degrades to defaults/no-ops
    backend: Literal["upstash", "inmem", "none"] = "upstash"

    url: str | None = None  # e.g. https://<db>.upstash.io
    token: SecretStr | None = None
    timeout_s: float = 10.0

    # Key layout
    state_key: str = "luminous:state"
    memory_prefix: str = "luminous:memory:file:"
    status_key: str = "luminous:memory:autonomous_status"

    @property
    def configured(self) -> bool:
        if self.backend == "inmem":
            return True
        if self.backend == "upstash":
            return bool(self.url and self.token and self.token.get_secret_value())
        return False
