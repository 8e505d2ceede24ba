"""Migration registry: the fixed, ordered catalog of migration steps."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Iterator

from proxyconf.document import ConfigDocument
from proxyconf.migrations import m_027_custom_features
from proxyconf.migrations.step import MigrationStep


class MigrationRegistry:
    """Immutable sequence of steps in strictly ascending target-version order.

    Iteration is restartable, so the same registry serves a dry-run
    applicability check and the real run.
    """

    def __init__(self, steps: Iterable[MigrationStep] = ()) -> None:
        self._steps: tuple[MigrationStep, ...] = tuple(steps)
        for prev, step in zip(self._steps, self._steps[1:]):
            if step.target_version <= prev.target_version:
                raise ValueError(
                    f"Migration steps must have strictly increasing target versions: "
                    f"{step.name} follows {prev.name}"
                )

    def __iter__(self) -> Iterator[MigrationStep]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def latest_version(self) -> Decimal:
        return self._steps[-1].target_version if self._steps else Decimal(0)

    def pending(self, document: ConfigDocument) -> list[MigrationStep]:
        """Steps a run would apply, evaluated on a scratch copy of `document`."""
        scratch = document.copy()
        pending: list[MigrationStep] = []
        for step in self._steps:
            if step.is_applicable(scratch):
                step.run(scratch)
                pending.append(step)
        return pending


def default_registry() -> MigrationRegistry:
    """Registry of every migration shipped with proxyconf."""
    return MigrationRegistry([
        m_027_custom_features.STEP,
    ])
