"""Run a project's own declaration when no explicit command is given.

A declaration may ask for packages to be installed (``packs``) and for the
project to be published (``alias``). Installs always run before the
publish.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ipack.declaration import ConfigDeclaration
from ipack.errors import IpackError
from ipack.workflows.consume import BatchInstallResult, install_many
from ipack.workflows.context import IpackContext
from ipack.workflows.publish import PublishResult, publish

logger = logging.getLogger(__name__)

CONSUME = "consume"
PUBLISH = "publish"

DECLARED_INTENT_ORDER = (CONSUME, PUBLISH)


@dataclass
class DeclaredRunResult:
    steps: list[str] = field(default_factory=list)
    installs: Optional[BatchInstallResult] = None
    published: Optional[PublishResult] = None
    publish_error: Optional[IpackError] = None

    @property
    def ok(self) -> bool:
        installs_ok = self.installs is None or self.installs.ok
        return installs_ok and self.publish_error is None


def run_declared(ctx: IpackContext, declaration: ConfigDeclaration) -> DeclaredRunResult:
    """Carry out every intent in *declaration*, in ``DECLARED_INTENT_ORDER``.

    A failing install does not prevent the publish step.
    """
    result = DeclaredRunResult()
    for intent in DECLARED_INTENT_ORDER:
        if intent == CONSUME and declaration.has_consume_intent:
            result.steps.append(CONSUME)
            result.installs = install_many(ctx, declaration.packs)
        elif intent == PUBLISH and declaration.has_publish_intent:
            result.steps.append(PUBLISH)
            try:
                result.published = publish(ctx, declaration.alias, declaration.directory)
            except IpackError as e:
                result.publish_error = e
    if not result.steps:
        logger.info("%s declares nothing to do", declaration.path)
    return result
