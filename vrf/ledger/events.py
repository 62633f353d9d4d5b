from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..errors import VrfError

# Basic bounds
MAX_EVENT_NAME_LEN = 64
MAX_KEY_LEN = 64
MAX_INT_BITS = 256

_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Event:
    """
    A committed log entry.

    name         — event name, e.g. "RandomFullfilled"
    args         — validated argument mapping (ints, bools, bytes, address strings)
    block_height — height of the block that included the transaction
    tx_hash      — emitting transaction
    log_index    — position within the whole log
    """

    name: str
    args: Dict[str, Any]
    block_height: int
    tx_hash: bytes
    log_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "args": {k: ("0x" + v.hex() if isinstance(v, bytes) else v) for k, v in self.args.items()},
            "block_height": self.block_height,
            "tx_hash": "0x" + self.tx_hash.hex(),
            "log_index": self.log_index,
        }


@dataclass
class PendingEvent:
    name: str
    args: Dict[str, Any]


def _event_error(message: str, **context: Any) -> VrfError:
    return VrfError(message, code="event_invalid", context=context)


def validate_event(name: Any, args: Mapping[Any, Any]) -> PendingEvent:
    if not isinstance(name, str) or not name:
        raise _event_error("event name must be a non-empty str", where="name_type")
    if len(name) > MAX_EVENT_NAME_LEN or not _NAME_RE.match(name):
        raise _event_error("event name invalid", where="name_grammar", name=name)
    if not isinstance(args, Mapping):
        raise _event_error("event args must be a mapping", where="args_type")

    out: Dict[str, Any] = {}
    for k, v in args.items():
        if not isinstance(k, str) or not _KEY_RE.match(k) or len(k) > MAX_KEY_LEN:
            raise _event_error("event key invalid", where="key_grammar", key=k)
        if isinstance(v, (bytes, bytearray)):
            v = bytes(v)
        elif isinstance(v, bool):
            pass
        elif isinstance(v, int):
            if v < 0 or v.bit_length() > MAX_INT_BITS:
                raise _event_error("event int arg out of range", where="value_int_bits", key=k)
        elif isinstance(v, str):
            pass
        else:
            raise _event_error(
                "unsupported event arg type", where="value_type", py_type=type(v).__name__
            )
        out[k] = v
    return PendingEvent(name=name, args=out)


@dataclass
class EventLog:
    """Append-only log of committed events."""

    _events: List[Event] = field(default_factory=list)

    def commit(self, pending: List[PendingEvent], *, block_height: int, tx_hash: bytes) -> List[Event]:
        committed: List[Event] = []
        for p in pending:
            ev = Event(
                name=p.name,
                args=dict(p.args),
                block_height=block_height,
                tx_hash=tx_hash,
                log_index=len(self._events),
            )
            self._events.append(ev)
            committed.append(ev)
        return committed

    def filter(self, name: Optional[str] = None, **match: Any) -> List[Event]:
        """Events with the given name whose args contain all `match` items."""
        out = []
        for ev in self._events:
            if name is not None and ev.name != name:
                continue
            if any(ev.args.get(k) != v for k, v in match.items()):
                continue
            out.append(ev)
        return out

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["Event", "PendingEvent", "EventLog", "validate_event"]
