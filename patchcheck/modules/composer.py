# composer.py
"""
Instalação das dependências a partir do fonte via Composer.

- grava o composer.json (sem o plugin de patches) no diretório de trabalho
- composer validate
- composer update --prefer-source (clones git completos em vendor/)
- composer show -P -f json para descobrir onde cada pacote foi instalado
"""

from __future__ import annotations

import json
import os
from typing import Dict, List

from patchcheck.modules import config, log, manifest, utils
from patchcheck.modules.dependency import PackagePatches, PatchDescriptor

logger = log.get_logger("composer")


class InstallError(Exception):
    pass


def _composer(args: List[str], workdir: str) -> str:
    cmd = [config.get("composer_bin"), *args]
    try:
        rc, out, err = utils.run(cmd, cwd=workdir, check=False)
    except OSError as e:
        raise InstallError(f"Não foi possível executar {cmd[0]}: {e}") from e
    if rc != 0:
        raise InstallError(f"'{' '.join(cmd)}' falhou ({rc}): {err.strip() or out.strip()}")
    return out


def write_composer_json(composer_json: dict, workdir: str) -> str:
    """Grava composer.json sem o plugin de patches em workdir."""
    path = os.path.join(workdir, "composer.json")
    try:
        utils.write_json(path, manifest.strip_patches_plugin(composer_json))
    except OSError as e:
        raise InstallError(f"Não foi possível gravar {path}: {e}") from e
    return path


def validate(workdir: str) -> None:
    _composer(["validate", "--no-interaction"], workdir)
    logger.info("composer.json is valid")


def install(workdir: str) -> None:
    logger.info("Installing dependencies from source, this will take quite some time...")
    args = ["update", "--no-interaction", *config.get("composer_update_args")]
    _composer(args, workdir)
    logger.info("Dependencies installed successfully")


def locations(workdir: str) -> Dict[str, str]:
    """Índice pacote -> caminho absoluto do clone instalado."""
    out = _composer(["show", "-P", "-f", "json"], workdir)
    try:
        data = json.loads(out)
    except ValueError as e:
        raise InstallError(f"Saída inválida de composer show: {e}") from e
    index = {}
    for item in data.get("installed", []):
        name, path = item.get("name"), item.get("path")
        if name and path:
            index[name] = os.path.normpath(os.path.join(workdir, path))
    return index


def build_patch_set(patches: Dict[str, List[PatchDescriptor]],
                    index: Dict[str, str]) -> Dict[str, PackagePatches]:
    """
    Junta os patches declarados com o índice de instalação.
    Pacotes que o composer não instalou ficam com path "" e serão
    ignorados pelo walker com um aviso.
    """
    return {
        package: PackagePatches(path=index.get(package, ""), patches=list(descriptors))
        for package, descriptors in patches.items()
    }
