#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
modules/workspace.py — Diretório de trabalho descartável

- Criado limpo a cada execução (composer.json modificado, vendor/, patches baixados)
- Removido na saída, inclusive em caminhos de erro
- keep=True mantém o diretório para depuração
"""

import os

from patchcheck.modules import config, log, utils
from patchcheck.modules.manifest import ConfigurationError

logger = log.get_logger("workspace")


class Workspace:
    def __init__(self, path: str | None = None, keep: bool | None = None):
        """
        :param path: diretório de trabalho (default: config work_dir)
        :param keep: não remover ao sair (default: config keep_work_dir)
        """
        self.path = os.path.abspath(path or config.get("work_dir"))
        self.keep = config.get("keep_work_dir") if keep is None else keep

    @property
    def patches_dir(self) -> str:
        return os.path.join(self.path, "patches")

    def create(self) -> str:
        logger.info("Criando diretório de trabalho %s", self.path)
        try:
            utils.clean_dir(self.path)
        except OSError as e:
            raise ConfigurationError(f"Não foi possível criar o diretório de trabalho {self.path}: {e}") from e
        return self.path

    def cleanup(self) -> None:
        if self.keep:
            logger.info("Mantendo diretório de trabalho %s", self.path)
            return
        if os.path.exists(self.path):
            logger.info("Removing working directory...")
            try:
                utils.rm(self.path)
            except OSError as e:
                raise ConfigurationError(f"Não foi possível remover {self.path}: {e}") from e

    def __enter__(self):
        self.create()
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.cleanup()
        except ConfigurationError as e:
            # não mascarar o erro original
            if exc_type is None:
                raise
            logger.warning("%s", e)
        return False
