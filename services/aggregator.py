"""Materialization of a board's dial references."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List

from models.errors import OperationCancelled
from models.records import Dial


@dataclass(frozen=True)
class SkippedDial:
    """A reference that could not be resolved, and why."""

    dial_id: str
    reason: Exception


@dataclass
class BoardMaterialization:
    """Resolved dials in reference order, plus the references that were skipped."""

    resolved: List[Dial] = field(default_factory=list)
    skipped: List[SkippedDial] = field(default_factory=list)


class BoardAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def materialize(
        self,
        dial_refs: Iterable[str],
        resolve: Callable[[str], Dial],
    ) -> BoardMaterialization:
        """Resolve each reference in order, folding failures into ``skipped``.

        Any failure skips the dial. Cancellation is not a per-dial failure and
        propagates to the caller.
        """
        materialization = BoardMaterialization()

        for dial_id in dial_refs:
            try:
                dial = resolve(dial_id)
            except OperationCancelled:
                raise
            except Exception as exc:
                materialization.skipped.append(SkippedDial(dial_id=dial_id, reason=exc))
                continue
            materialization.resolved.append(dial)

        return materialization
