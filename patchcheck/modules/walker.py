# walker.py
"""
Percorre as releases de uma dependência para um patch.

Para cada tag da família: checkout no clone descartável, probe do patch,
emite TagReport(tag, resultado). Ao sair (fim, erro ou gerador fechado),
o clone volta para a revisão em que estava.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Union

from patchcheck.modules import log, probe, tags
from patchcheck.modules.dependency import Dependency, PatchDescriptor
from patchcheck.modules.vcs import GitClone, VersionControlError

logger = log.get_logger("walker")


@dataclass(frozen=True)
class TagReport:
    tag: str
    result: probe.ProbeResult


@dataclass(frozen=True)
class SkipAdvisory:
    package: str
    message: str


WalkRecord = Union[TagReport, SkipAdvisory]


def skip_message(package: str) -> str:
    return f"Skipping patch for {package}, package not found. Maybe the patch should be removed."


def walk_releases(dependency: Dependency, patch: PatchDescriptor,
                  clone_factory: Callable[[str], object] = GitClone,
                  max_level: int | None = None) -> Iterator[WalkRecord]:
    """
    Gerador de registros para (dependency, patch).
    Pacote sem clone no disco: um SkipAdvisory e nenhuma operação de tag.
    Falha de checkout é fatal (VersionControlError).
    """
    if not dependency.exists():
        msg = skip_message(dependency.name)
        logger.warning(msg)
        yield SkipAdvisory(dependency.name, msg)
        return

    clone = clone_factory(dependency.path)
    if not dependency.version:
        dependency = dependency.with_version(tags.installed_version(clone))
    logger.info("    Installed version: %s", dependency.version or "(desconhecida)")

    release_tags = tags.resolve(dependency, clone)
    logger.info("    Patch description: %s", patch.description)
    if not release_tags:
        logger.info("    Nenhuma tag da família de %s, nada a verificar", dependency.name)
        return

    original = clone.head()
    completed = False
    try:
        for tag in release_tags:
            try:
                clone.checkout(tag)
            except VersionControlError:
                logger.error("Checkout de %s falhou em %s", tag, dependency.path)
                raise
            result = probe.probe(patch.patch_file, clone, max_level=max_level)
            yield TagReport(tag, result)
        completed = True
    finally:
        _restore(clone, original, dependency, reraise=completed)


def _restore(clone, original: str, dependency: Dependency, reraise: bool = True) -> None:
    """Volta o clone para a revisão original. Com reraise=False apenas loga,
    para não esconder a exceção que interrompeu o walk."""
    try:
        clone.checkout(original)
    except VersionControlError as e:
        logger.error("Não foi possível restaurar %s para %s: %s", dependency.name, original, e)
        if reraise:
            raise
