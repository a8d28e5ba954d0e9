from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Tuple

logger = logging.getLogger(__name__)

Validator = Callable[[str], Any]


@dataclass(frozen=True)
class Step:
    key: str
    prompt: str
    validator: Validator


class Flow:
    """Ordered, immutable list of steps driven by a ConversationEngine."""

    def __init__(self, name: str, steps: Sequence[Step]):
        if not steps:
            raise ValueError(f"flow '{name}' has no steps")
        self.name = name
        self._steps: Tuple[Step, ...] = tuple(steps)

        seen: set[str] = set()
        for step in self._steps:
            if step.key in seen:
                # answers are stored by key, so the later step overwrites the earlier one
                logger.warning("Flow %s: duplicate step key %r, last answer wins", name, step.key)
            seen.add(step.key)

    def __getitem__(self, index: int) -> Step:
        return self._steps[index]

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def keys(self) -> list[str]:
        return [s.key for s in self._steps]
