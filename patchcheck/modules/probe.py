# probe.py
"""
Verificação de aplicabilidade de um patch contra uma árvore de fontes.

Para cada nível de strip (-p0 .. -p4):
  1. dry-run reverso: se passa, o patch já está aplicado na árvore
  2. dry-run normal: se passa, o patch pode ser aplicado
O primeiro nível em que alguma das tentativas passa decide o resultado.

Nada é escrito em disco: sempre --dry-run, sem backup, sem fuzz
(configurável via `fuzz`) e com --force para que o patch nunca "adivinhe"
que um patch está invertido.
"""

from __future__ import annotations

import enum
import os

from patchcheck.modules import config, log, utils

logger = log.get_logger("probe")

MAX_STRIP_LEVEL = 4


class ProbeError(Exception):
    pass


class ProbeResult(enum.Enum):
    ALREADY_APPLIED = "already_applied"
    APPLICABLE = "applicable"
    NOT_APPLICABLE = "not_applicable"


# Frases literais do relatório, uma por resultado
STATUS_LINES = {
    ProbeResult.ALREADY_APPLIED: "Patch has been applied to tag: {tag}",
    ProbeResult.APPLICABLE: "Patch is applicable for tag: {tag}",
    ProbeResult.NOT_APPLICABLE: "Patch is not applicable for tag: {tag}",
}


def describe(result: ProbeResult, tag: str) -> str:
    """Linha de status para um resultado"""
    if not isinstance(result, ProbeResult):
        raise ValueError(f"Resultado desconhecido: {result!r}")
    return STATUS_LINES[result].format(tag=tag)


def patch_command(patch_file: str, level: int, reverse: bool = False) -> list[str]:
    cmd = [config.get("patch_bin"), f"-p{level}"]
    if reverse:
        cmd.append("-R")
    cmd += [
        "--dry-run",
        "--no-backup-if-mismatch",
        "--force",
        "--silent",
        f"--fuzz={int(config.get('fuzz'))}",
        f"--input={os.path.abspath(patch_file)}",
    ]
    return cmd


def dry_run_apply(root: str, patch_file: str, level: int, reverse: bool = False) -> bool:
    """
    Executa `patch --dry-run` em root. True se todas as hunks aplicariam.
    Código de saída diferente de zero é apenas "não aplica".
    """
    cmd = patch_command(patch_file, level, reverse=reverse)
    try:
        rc, _, _ = utils.run(cmd, cwd=root, check=False, quiet=True)
    except OSError as e:
        raise ProbeError(f"Não foi possível executar {cmd[0]}: {e}") from e
    return rc == 0


def probe(patch_file: str, tree, max_level: int | None = None) -> ProbeResult:
    """
    Classifica patch_file contra tree.
    tree precisa expor try_apply(patch_file, level, reverse) -> bool
    (GitClone, ou um fake em memória nos testes).
    """
    if max_level is None:
        max_level = config.get("max_strip_level", MAX_STRIP_LEVEL)
    for level in range(0, int(max_level) + 1):
        if tree.try_apply(patch_file, level, reverse=True):
            logger.debug("%s: já aplicado com -p%d", patch_file, level)
            return ProbeResult.ALREADY_APPLIED
        if tree.try_apply(patch_file, level, reverse=False):
            logger.debug("%s: aplicável com -p%d", patch_file, level)
            return ProbeResult.APPLICABLE
    return ProbeResult.NOT_APPLICABLE


__all__ = ["ProbeError", "ProbeResult", "STATUS_LINES", "describe",
           "patch_command", "dry_run_apply", "probe"]
