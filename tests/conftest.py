"""
Fixtures compartilhadas: config isolada, clone fake em memória e
repositórios git reais em tmp_path.
"""

import os
import shutil
import subprocess

import pytest

from patchcheck.modules import config
from patchcheck.modules.vcs import VersionControlError

HAS_GIT = shutil.which("git") is not None
HAS_PATCH = shutil.which("patch") is not None

requires_tools = pytest.mark.skipif(
    not (HAS_GIT and HAS_PATCH), reason="git e patch são necessários"
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Cada teste lê a config de arquivos temporários (inexistentes)."""
    monkeypatch.delenv("PATCHCHECK_CONFIG", raising=False)
    monkeypatch.setattr(config, "USER_CONFIG", str(tmp_path / "cfg" / "user.yml"))
    monkeypatch.setattr(config, "SYSTEM_CONFIG", str(tmp_path / "cfg" / "system.yml"))
    config.load_config()
    yield
    config.load_config()


class FakeClone:
    """
    Clone em memória com a mesma interface do GitClone.

    states: {tag: "applied" | "clean" | "unrelated"}; o patch só casa no
    nível `level`.
    """

    def __init__(self, tags, states=None, head_tags=None, level=1,
                 fail_checkout=(), fail_list=False, original="main"):
        self.tags = list(tags)
        self.states = dict(states or {})
        self.head_tags = list(head_tags if head_tags is not None else self.tags[:1])
        self.level = level
        self.fail_checkout = set(fail_checkout)
        self.fail_list = fail_list
        self.original = original
        self.current = original
        self.checkouts = []
        self.attempts = []

    def list_tags(self):
        if self.fail_list:
            raise VersionControlError("fatal: not a git repository")
        return list(self.tags)

    def tags_at_head(self):
        return list(self.head_tags)

    def head(self):
        return self.current

    def checkout(self, ref):
        if ref in self.fail_checkout:
            raise VersionControlError(f"error: pathspec '{ref}' did not match")
        self.checkouts.append(ref)
        self.current = ref

    def try_apply(self, patch_file, level, reverse=False):
        self.attempts.append((self.current, level, reverse))
        if level != self.level:
            return False
        state = self.states.get(self.current, "unrelated")
        if reverse:
            return state == "applied"
        return state == "clean"


@pytest.fixture
def fake_clone_factory():
    """Retorna (registrar, factory): registrar(path, clone) associa um fake a um caminho."""
    clones = {}

    def register(path, clone):
        clones[os.path.abspath(str(path))] = clone
        return clone

    def factory(path):
        return clones[os.path.abspath(str(path))]

    return register, factory


# ---------------------------
# Repositórios git reais
# ---------------------------

class GitRepo:
    def __init__(self, path):
        self.path = str(path)
        self._ts = 1_600_000_000
        os.makedirs(self.path, exist_ok=True)
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")

    def git(self, *args):
        self._ts += 60
        env = {
            **os.environ,
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@example.com",
            "GIT_AUTHOR_DATE": f"{self._ts} +0000",
            "GIT_COMMITTER_DATE": f"{self._ts} +0000",
        }
        proc = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false",
             "-c", "color.ui=never", "-c", "diff.noprefix=false", "-c", "diff.mnemonicPrefix=false", *args],
            cwd=self.path, env=env, capture_output=True, text=True, check=True,
        )
        return proc.stdout

    def write(self, rel, content):
        full = os.path.join(self.path, rel)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "w", encoding="utf-8") as f:
            f.write(content)

    def commit(self, message, tag=None):
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message)
        if tag:
            self.git("tag", tag)

    def rev(self, ref="HEAD"):
        return self.git("rev-parse", ref).strip()

    def snapshot(self):
        """Conteúdo de todos os arquivos fora de .git"""
        files = {}
        for base, dirs, names in os.walk(self.path):
            dirs[:] = [d for d in dirs if d != ".git"]
            for name in names:
                full = os.path.join(base, name)
                with open(full, "rb") as f:
                    files[os.path.relpath(full, self.path)] = f.read()
        return files


WIDGET_V1 = """<?php
function widget_render($items) {
  $out = '';
  foreach ($items as $item) {
    $out .= $item;
  }
  return $out;
}
"""

WIDGET_FIXED = WIDGET_V1.replace("$out .= $item;", "$out .= htmlspecialchars($item);")


@pytest.fixture
def widget_repo(tmp_path):
    """
    acme/widget com tags 1.2.0, 1.3.0, 1.3.1 e 1.3.2; a correção entra em
    1.3.1. O clone fica em 1.3.0 (versão instalada).
    """
    repo = GitRepo(tmp_path / "vendor" / "acme" / "widget")
    repo.write("src/widget.php", WIDGET_V1)
    repo.commit("initial", tag="1.2.0")
    repo.write("README.md", "Widget\n")
    repo.commit("readme", tag="1.3.0")
    repo.write("src/widget.php", WIDGET_FIXED)
    repo.commit("escape items", tag="1.3.1")
    repo.write("CHANGELOG.md", "1.3.2\n")
    repo.commit("changelog", tag="1.3.2")
    repo.git("checkout", "-q", "1.3.0")
    return repo


@pytest.fixture
def fix_patch(widget_repo, tmp_path):
    """A correção de 1.3.1 como patch no formato git (a/ b/, nível 1)."""
    path = tmp_path / "patches" / "fix.patch"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(widget_repo.git("diff", "1.3.0", "1.3.1", "--", "src/widget.php"))
    return str(path)
