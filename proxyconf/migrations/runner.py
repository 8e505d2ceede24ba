"""Migration runner: applies pending migrations on startup.

The runner mutates an in-memory document only. `migrate_file` wraps it
into the startup phase: load, migrate, then persist with one atomic write
once every step has succeeded. Any error leaves the file on disk as it was.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from proxyconf.document import ConfigDocument, format_version
from proxyconf.exceptions import MigrationError
from proxyconf.migrations.registry import MigrationRegistry, default_registry

logger = structlog.get_logger()


class MigrationResult(BaseModel):
    path: Path
    from_version: Decimal
    to_version: Decimal
    applied: list[Decimal] = Field(default_factory=list)
    saved: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class MigrationRunner:
    """Drives a registry against a single document."""

    def __init__(self, registry: MigrationRegistry | None = None) -> None:
        self._registry = registry if registry is not None else default_registry()

    @property
    def registry(self) -> MigrationRegistry:
        return self._registry

    def run(self, document: ConfigDocument) -> list[Decimal]:
        """Apply all pending steps. Returns the applied target versions."""
        # Fails with VersionReadError before any step touches the document
        start = document.get_version()
        logger.info("migration.start", version=format_version(start))

        applied: list[Decimal] = []
        for step in self._registry:
            # Re-checked per step: earlier steps in this run advance the version
            if not step.is_applicable(document):
                continue
            try:
                step.run(document)
            except MigrationError as e:
                logger.error(
                    "migration.step_failed",
                    target_version=step.name,
                    error=str(e),
                )
                raise
            applied.append(step.target_version)
            logger.info(
                "migration.step_applied",
                target_version=step.name,
                description=step.description,
            )

        if applied:
            logger.info(
                "migration.complete",
                from_version=format_version(start),
                to_version=format_version(document.get_version()),
                applied=len(applied),
            )
        else:
            logger.info("migration.up_to_date", version=format_version(start))
        return applied


def migrate_file(
    path: Path | str,
    registry: MigrationRegistry | None = None,
    dry_run: bool = False,
) -> MigrationResult:
    """Load, migrate and persist a configuration file.

    With `dry_run` the migration runs in memory and nothing is written.
    """
    path = Path(path)
    document = ConfigDocument.load(path)
    from_version = document.get_version()

    applied = MigrationRunner(registry).run(document)

    saved = False
    if applied and not dry_run:
        document.save(path)
        saved = True

    return MigrationResult(
        path=path,
        from_version=from_version,
        to_version=document.get_version(),
        applied=applied,
        saved=saved,
    )
