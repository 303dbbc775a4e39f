"""
ln_escrow.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a keyed base mapping. It
supports nested checkpoints via a stack of overlays. Writes go to the top
overlay; reads consult overlays from top → base. `commit()` merges the top
overlay into the next layer (or the base mapping if it is the last layer).
`revert()` discards the top overlay.

Both the record store and the in-memory token ledger sit on a Journal, which
is what makes a request all-or-nothing: the executor opens one checkpoint per
participant before dispatch and either commits or reverts all of them.

Key properties
--------------
- Pure Python, no I/O.
- Copy-on-write: values are copied into the top overlay before mutation, so a
  revert never has to undo in-place edits.
- Nested checkpoints (begin/commit/revert) with O(changes) merge cost.

Intended usage
--------------
    j = Journal(base, copy=Account.copy)
    j.begin()
    acc = j.get_for_write(addr)
    acc.debit(10)
    j.put(other, Account(lamports=10))
    j.commit()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (Callable, Dict, Generic, Hashable, Iterator, List,
                    MutableMapping, Optional, Set, Tuple, TypeVar)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _Overlay(Generic[K, V]):
    """A single journal layer: values created or modified in this layer."""

    values: Dict[K, V] = field(default_factory=dict)


class Journal(Generic[K, V]):
    """
    A copy-on-write write journal with nested checkpoints.

    Parameters
    ----------
    base : MutableMapping[K, V]
        The persisted mapping. It is only written on a root-level commit.
    copy : Callable[[V], V]
        Returns an independent copy of a value (promoted on first write).
    """

    def __init__(self, base: MutableMapping[K, V], *, copy: Callable[[V], V]) -> None:
        self._base = base
        self._copy = copy
        # Start with a single empty overlay for convenience.
        self._layers: List[_Overlay[K, V]] = [_Overlay()]

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent, or into the base mapping when
        only the root layer remains.
        """
        top = self._layers.pop()
        if self._layers:
            self._layers[-1].values.update(top.values)
            return
        self._apply_to_base(top)
        self._layers.append(_Overlay())

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    def flush(self) -> None:
        """Commit every open layer down to the base mapping."""
        self.commit_to(1)
        self.commit()

    # --------------------------------------------------------------------- #
    # Read / write
    # --------------------------------------------------------------------- #

    def get(self, key: K) -> Optional[V]:
        """Readonly lookup (do not mutate the returned value)."""
        for layer in reversed(self._layers):
            if key in layer.values:
                return layer.values[key]
        return self._base.get(key)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def get_for_write(self, key: K) -> Optional[V]:
        """
        Fetch a value suitable for mutation in the top layer. A value found in a
        lower layer or the base is copied up first. Returns None if absent.
        """
        top = self._layers[-1]
        if key in top.values:
            return top.values[key]
        current = self.get(key)
        if current is None:
            return None
        promoted = self._copy(current)
        top.values[key] = promoted
        return promoted

    def put(self, key: K, value: V) -> None:
        """Stage `value` at `key` in the top layer (insert or overwrite)."""
        self._layers[-1].values[key] = value

    def items(self) -> Iterator[Tuple[K, V]]:
        """Visible (key, value) pairs with overlay precedence."""
        seen: Set[K] = set()
        for layer in reversed(self._layers):
            for k, v in layer.values.items():
                if k not in seen:
                    seen.add(k)
                    yield k, v
        for k, v in self._base.items():
            if k not in seen:
                yield k, v

    # --------------------------------------------------------------------- #
    # Internal
    # --------------------------------------------------------------------- #

    def _apply_to_base(self, layer: _Overlay[K, V]) -> None:
        for k, v in layer.values.items():
            self._base[k] = self._copy(v)

    def pending_keys(self) -> Set[K]:
        """Keys with staged changes in any layer."""
        s: Set[K] = set()
        for layer in self._layers:
            s.update(layer.values.keys())
        return s


__all__ = ["Journal"]
