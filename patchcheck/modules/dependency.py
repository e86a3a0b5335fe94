#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
modules/dependency.py — Modelo de dados das dependências com patches

- Dependency: pacote instalado (nome, clone local, versão instalada)
- PatchDescriptor: patch declarado para um pacote
- PackagePatches: entrada do orquestrador (clone + lista de patches)
- release_family() / in_family(): família de releases de uma versão
"""

from __future__ import annotations
import os
import re
from dataclasses import dataclass, field, replace
from typing import List


# ---------------------------------------------------------------------
# Família de releases
# ---------------------------------------------------------------------

def release_family(version: str) -> str:
    """
    Remove o último componente separado por ponto da versão:
      9.4.2        -> 9.4
      8.x-1.5      -> 8.x-1
      9.4.0-beta1  -> 9.4
    Versões sem ponto ("7", "v2") são a própria família; um prefixo vazio
    casaria com todas as tags do repositório.
    Versão vazia retorna "".
    """
    version = (version or "").strip()
    if not version:
        return ""
    head, sep, _ = version.rpartition(".")
    if not sep or not head:
        return version
    return head


def in_family(tag: str, family: str) -> bool:
    """
    A tag pertence à família quando contém o prefixo em fronteira de
    componente: 9.4 casa com 9.4.0, v9.4.1 e 9.4.0-rc1, mas não com
    9.40.0 nem 19.4.1.
    """
    if not family:
        return False
    pattern = r"(?<![\d.])" + re.escape(family) + r"(?=[.\-]|$)"
    return re.search(pattern, tag) is not None


# ---------------------------------------------------------------------
# Modelos de dados
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Dependency:
    """
    Pacote instalado a partir do fonte:
      name: nome do pacote (ex.: drupal/core)
      path: caminho absoluto do clone git descartável ("" se não instalado)
      version: versão instalada (tag apontando para HEAD, "" se desconhecida)
    """
    name: str
    path: str = ""
    version: str = ""

    def exists(self) -> bool:
        return bool(self.path) and os.path.isdir(self.path)

    def with_version(self, version: str) -> "Dependency":
        return replace(self, version=version or "")

    @property
    def family(self) -> str:
        return release_family(self.version)


@dataclass(frozen=True)
class PatchDescriptor:
    """Patch declarado: descrição legível, caminho absoluto e pacote dono."""
    description: str
    patch_file: str
    package: str


@dataclass
class PackagePatches:
    path: str = ""
    patches: List[PatchDescriptor] = field(default_factory=list)

    def dependency(self, name: str) -> Dependency:
        return Dependency(name=name, path=self.path)


__all__ = ["release_family", "Dependency", "PatchDescriptor", "PackagePatches"]
