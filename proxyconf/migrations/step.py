"""Migration step: one version-gated upgrade of the configuration document."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Sequence

from proxyconf.document import ConfigDocument, format_version
from proxyconf.exceptions import MigrationError

StepApply = Callable[[ConfigDocument], None]
StepPredicate = Callable[[ConfigDocument], bool]


@dataclass(frozen=True)
class ConfigOption:
    """A newly introduced option: where it lives, its default, its documentation."""

    path: str
    default: Any
    comment: str


@dataclass(frozen=True)
class MigrationStep:
    """Brings a document up to `target_version`.

    `apply` performs the key introductions; the marker is advanced by
    `run` once `apply` returns. Without an explicit `predicate` the step
    applies to any document below its target version.
    """

    target_version: Decimal
    apply: StepApply
    description: str = ""
    predicate: StepPredicate | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_version", Decimal(self.target_version))

    @property
    def name(self) -> str:
        return format_version(self.target_version)

    def is_applicable(self, document: ConfigDocument) -> bool:
        if self.predicate is not None:
            return self.predicate(document)
        return document.get_version() < self.target_version

    def run(self, document: ConfigDocument) -> None:
        """Apply the step and advance the version marker."""
        try:
            self.apply(document)
            document.set_version(self.target_version)
        except MigrationError as e:
            if e.target_version is None:
                e.target_version = self.target_version
            raise
        except Exception as e:
            raise MigrationError(
                f"Migration to {self.name} failed: {type(e).__name__}: {e}",
                target_version=self.target_version,
            ) from e


def introduce_options(document: ConfigDocument, options: Sequence[ConfigOption]) -> None:
    """Write each option's default and comment.

    Unconditional overwrites: an introduced key cannot predate the version
    that introduces it.
    """
    for option in options:
        document.set(option.path, option.default)
        document.set_comment(option.path, option.comment)


def feature_step(
    target_version: Decimal | str,
    options: Sequence[ConfigOption],
    description: str = "",
) -> MigrationStep:
    """Build a step that introduces `options` with their defaults and comments."""
    options = tuple(options)

    def _apply(document: ConfigDocument) -> None:
        introduce_options(document, options)

    return MigrationStep(
        target_version=Decimal(target_version),
        apply=_apply,
        description=description,
    )
