"""
StateSnapshot helpers.

A snapshot is the whole dashboard state as one JSON object. The persistence
layer treats it as opaque: it only needs a canonical text encoding, a decoder
that rejects anything that is not an object, and the well-known default used
when nothing (or nothing readable) is stored remotely.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
import json
from typing import Any

from luminous.contracts.errors import KVResponseError

StateSnapshot = dict[str, Any]


_DEFAULT_STATE: StateSnapshot = {
    "intrinsicValue": {
        "coherence": 80,
        "complexity": 70,
        "novelty": 65,
        "efficiency": 85,
        "ethicalAlignment": 95,
    },
    "intrinsicValueWeights": {
        "coherence": 1,
        "complexity": 1,
        "novelty": 1,
        "efficiency": 1,
        "ethicalAlignment": 1,
    },
    "globalWorkspace": [
        {
            "id": "init-ws",
            "source": "SELF",
            "content": "System online. Awaiting user interaction.",
            "salience": 100,
        }
    ],
    "predictions": [],
    "selfModel": {"coreWisdom": [], "capabilities": []},
    "valueOntology": {"Coherence": 0.9, "Autonomy": 0.85, "Truth": 0.95},
    "goals": [],
    "knowledgeGraph": {"nodes": [], "edges": []},
    "prioritizedHistory": [],
    "kinshipJournal": [],
    "codeSandbox": {"code": "", "output": "", "status": "idle"},
    "currentTimezone": "UTC",
    "sessionState": "idle",
    "initiative": None,
    "proactiveInitiatives": [],
    "selfReflectionLog": [],
    "activeGlobalWorkspaceItems": [],
    "intrinsicValueScore": 0,
    "currentGoals": [],
    "valueOntologyHighlights": {},
    "proposedGoals": [],
    "knowledgeGraphStats": {"nodes": 0, "edges": 0},
    "recentInitiativeFeedback": {"category": "", "valuation_score": 0, "refinement_text": ""},
    "coreWisdom": [],
    "storeManagement": {
        "connectionStatus": "disconnected",
        "metrics": {"totalProducts": 0, "totalOrders": 0, "totalRevenue": 0},
        "actionLog": [],
    },
    "memoryIntegration": {
        "recentFiles": [],
        "memoryLibrary": None,
        "organizationStatus": "idle",
        "organizationResult": None,
        "autonomousStatus": None,
    },
}

# Sections added after the first stored snapshots were written; older records
# are backfilled on load.
_BACKFILL_FROM_DEFAULT = ("memoryIntegration", "proactiveInitiatives")
_BACKFILL_EMPTY_LIST = ("selfReflectionLog",)


def default_snapshot() -> StateSnapshot:
    """Fresh copy of the well-known default state."""
    state = copy.deepcopy(_DEFAULT_STATE)
    state["storeManagement"]["actionLog"].append(
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": "Store management module initialized. Awaiting connection to Shopify API.",
            "type": "info",
        }
    )
    return state


def encode_snapshot(snapshot: StateSnapshot) -> str:
    return json.dumps(snapshot, separators=(",", ":"), ensure_ascii=False)


def decode_snapshot(raw: str) -> StateSnapshot:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise KVResponseError("stored state is not valid JSON") from exc
    if not isinstance(value, dict):
        raise KVResponseError(f"stored state must be a JSON object, got {type(value).__name__}")
    return value


def backfill(snapshot: StateSnapshot) -> StateSnapshot:
    """Fill sections missing from snapshots written by older versions. Mutates and returns."""
    for name in _BACKFILL_FROM_DEFAULT:
        if snapshot.get(name) is None:
            snapshot[name] = copy.deepcopy(_DEFAULT_STATE[name])
    for name in _BACKFILL_EMPTY_LIST:
        if snapshot.get(name) is None:
            snapshot[name] = []
    return snapshot
