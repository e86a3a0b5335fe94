# check.py
"""
Orquestrador da verificação de patches.

Percorre os pacotes em ordem lexicográfica e, para cada patch declarado,
roda o walker de releases e produz uma linha de status por tag.
Os resultados são informativos: só erros fatais (VersionControlError,
ProbeError) interrompem a execução.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterator, Tuple

from patchcheck.modules import log, probe
from patchcheck.modules.dependency import PackagePatches
from patchcheck.modules.vcs import GitClone
from patchcheck.modules.walker import SkipAdvisory, TagReport, walk_releases

logger = log.get_logger("check")

SKIPPED = "skipped"


def _render(record) -> str:
    if isinstance(record, TagReport):
        return probe.describe(record.result, record.tag)
    if isinstance(record, SkipAdvisory):
        return record.message
    raise ValueError(f"Registro desconhecido: {record!r}")


def walk(patch_set: Dict[str, PackagePatches], clone_factory=GitClone,
         max_level: int | None = None) -> Iterator[Tuple[str, object]]:
    """Gera (pacote, registro) para todo o conjunto de patches."""
    for package in sorted(patch_set):
        entry = patch_set[package]
        logger.info("Checking patches for package %s...", package)
        dependency = entry.dependency(package)
        for patch in entry.patches:
            for record in walk_releases(dependency, patch, clone_factory=clone_factory,
                                        max_level=max_level):
                yield package, record


def run(patch_set: Dict[str, PackagePatches], clone_factory=GitClone,
        max_level: int | None = None) -> Iterator[str]:
    """Linhas de status legíveis, uma por (pacote, patch, tag)."""
    for _, record in walk(patch_set, clone_factory=clone_factory, max_level=max_level):
        yield _render(record)


def run_and_report(patch_set: Dict[str, PackagePatches], clone_factory=GitClone,
                   max_level: int | None = None, out=print) -> Counter:
    """
    Roda a verificação imprimindo cada linha com `out` e devolve um Counter
    com o total por resultado (e SKIPPED para pacotes ausentes).
    """
    totals: Counter = Counter()
    logger.info("List of patched packages and patch files:")
    for _, record in walk(patch_set, clone_factory=clone_factory, max_level=max_level):
        if isinstance(record, TagReport):
            out("    - " + _render(record))
            totals[record.result] += 1
        else:
            out(_render(record))
            totals[SKIPPED] += 1
    logger.info(
        "Resumo: %d já aplicados, %d aplicáveis, %d não aplicáveis, %d ignorados",
        totals[probe.ProbeResult.ALREADY_APPLIED],
        totals[probe.ProbeResult.APPLICABLE],
        totals[probe.ProbeResult.NOT_APPLICABLE],
        totals[SKIPPED],
    )
    return totals
