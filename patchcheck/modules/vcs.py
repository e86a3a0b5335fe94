import os

from patchcheck.modules import config, log, utils
from patchcheck.modules import probe

logger = log.get_logger("vcs")


class VersionControlError(Exception):
    pass


class GitClone:
    """
    Clone git descartável de uma dependência.
    Todos os comandos usam `git -C <root>`; o diretório de trabalho do
    processo nunca é alterado.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def __repr__(self):
        return f"GitClone({self.root!r})"

    def _git(self, *args: str, quiet: bool = False) -> str:
        cmd = [config.get("git_bin"), "-C", self.root, *args]
        try:
            rc, out, err = utils.run(cmd, check=False, quiet=quiet)
        except OSError as e:
            raise VersionControlError(f"Falha ao executar git em {self.root}: {e}") from e
        if rc != 0:
            raise VersionControlError(f"'git {' '.join(args)}' falhou em {self.root}: {err.strip()}")
        return out

    def list_tags(self) -> list[str]:
        """Tags do repositório, da mais antiga para a mais nova (creatordate)"""
        out = self._git("tag", "--sort=creatordate")
        return [line.strip() for line in out.splitlines() if line.strip()]

    def tags_at_head(self) -> list[str]:
        out = self._git("tag", "--points-at", "HEAD")
        return [line.strip() for line in out.splitlines() if line.strip()]

    def head(self) -> str:
        """Branch atual, ou hash do commit quando em detached HEAD"""
        try:
            branch = self._git("symbolic-ref", "-q", "--short", "HEAD", quiet=True).strip()
        except VersionControlError:
            branch = ""
        if branch:
            return branch
        return self._git("rev-parse", "HEAD").strip()

    def checkout(self, ref: str) -> None:
        logger.debug("Checkout %s em %s", ref, self.root)
        self._git("checkout", "--quiet", ref)

    def try_apply(self, patch_file: str, level: int, reverse: bool = False) -> bool:
        return probe.dry_run_apply(self.root, patch_file, level, reverse=reverse)
