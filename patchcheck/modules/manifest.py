#!/usr/bin/env python3
# -*- coding: utf-8

"""
manifest.py — Leitura dos patches declarados no composer.json

Formatos aceitos (cweagans/composer-patches):
  extra.patches = {"vendor/pkg": {"descrição": "patches/fix.patch"}}
  extra.patches = {"vendor/pkg": [{"description": "...", "url": "..."}]}
  extra.patches-file = "composer.patches.json"  (com chave "patches")
Caminhos relativos são resolvidos contra a raiz do projeto; URLs http(s)
são baixadas para o diretório de trabalho.
"""

import copy
import os

import requests

from patchcheck.modules import config, log, utils
from patchcheck.modules.dependency import PatchDescriptor

logger = log.get_logger("manifest")


class ConfigurationError(Exception):
    """Erro ao carregar ou validar composer.json / lista de patches"""
    pass


def preflight(root: str) -> dict:
    """Verifica a raiz do projeto e retorna o composer.json carregado."""
    if not os.path.isdir(root):
        raise ConfigurationError(f"Raiz de projeto inválida: {root}")
    logger.info("Found project root")

    composer_path = os.path.join(root, "composer.json")
    if not os.path.isfile(composer_path):
        raise ConfigurationError("composer.json not found in project root")
    logger.info("Found composer.json")

    try:
        data = utils.load_json(composer_path)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"composer.json is no valid json file: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("composer.json is no valid json file: esperado um objeto")
    logger.info("composer.json is a valid JSON file")

    extra = data.get("extra")
    if not isinstance(extra, dict) or not (extra.get("patches") or extra.get("patches-file")):
        raise ConfigurationError("composer.json does not list any patches")
    logger.info("composer.json has a list of patches")
    return data


def _declared(composer_json: dict, root: str) -> dict:
    extra = composer_json.get("extra") or {}
    if extra.get("patches"):
        return extra["patches"]

    if not isinstance(extra.get("patches-file"), str):
        raise ConfigurationError("extra.patches-file deve ser um caminho")
    patches_file = os.path.join(root, extra["patches-file"])
    try:
        data = utils.load_json(patches_file)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"patches-file inválido {patches_file}: {e}") from e
    if not isinstance(data, dict) or not data.get("patches"):
        raise ConfigurationError(f"patches-file {patches_file} não tem a chave 'patches'")
    return data["patches"]


def _entries(package: str, value) -> list[tuple[str, str]]:
    """Normaliza os dois formatos para [(descrição, referência)]"""
    if isinstance(value, dict):
        items = list(value.items())
    elif isinstance(value, list):
        items = []
        for item in value:
            if not isinstance(item, dict) or "url" not in item:
                raise ConfigurationError(f"Patch inválido para {package}: {item!r}")
            items.append((item.get("description") or item["url"], item["url"]))
    else:
        raise ConfigurationError(f"Lista de patches inválida para {package}")

    for description, ref in items:
        if not isinstance(ref, str) or not ref.strip():
            raise ConfigurationError(f"Patch '{description}' de {package} sem arquivo")
    return items


def load_patches(composer_json: dict, root: str) -> dict:
    """
    Retorna {pacote: [(descrição, referência)]} na ordem de declaração.
    A referência ainda não foi resolvida (pode ser URL).
    """
    declared = _declared(composer_json, root)
    if not isinstance(declared, dict):
        raise ConfigurationError("A lista de patches deve ser um objeto {pacote: patches}")
    return {package: _entries(package, value) for package, value in sorted(declared.items())}


def resolve_patch_file(ref: str, root: str, download_dir: str) -> str:
    """Caminho absoluto local de um patch (baixando se for URL)."""
    if utils.is_url(ref):
        try:
            return utils.download(ref, download_dir)
        except requests.RequestException as e:
            raise ConfigurationError(f"Não foi possível baixar o patch {ref}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Não foi possível gravar o patch {ref} em {download_dir}: {e}") from e

    path = ref if os.path.isabs(ref) else os.path.join(root, ref)
    path = os.path.abspath(path)
    if not os.path.isfile(path):
        raise ConfigurationError(f"Arquivo de patch não encontrado: {path}")
    return path


def resolve_patches(declared: dict, root: str, download_dir: str) -> dict:
    """{pacote: [(descrição, ref)]} -> {pacote: [PatchDescriptor]} com caminhos absolutos"""
    resolved = {}
    for package, entries in declared.items():
        resolved[package] = [
            PatchDescriptor(description, resolve_patch_file(ref, root, download_dir), package)
            for description, ref in entries
        ]
    return resolved


def strip_patches_plugin(composer_json: dict) -> dict:
    """
    Cópia do composer.json sem o plugin de patches e sem a lista de
    patches, para que o composer instale os fontes originais.
    """
    plugin = config.get("patches_plugin")
    data = copy.deepcopy(composer_json)
    for section in ("require", "require-dev"):
        if isinstance(data.get(section), dict):
            data[section].pop(plugin, None)
    extra = data.get("extra")
    if isinstance(extra, dict):
        extra.pop("patches", None)
        extra.pop("patches-file", None)
        if not extra:
            data.pop("extra")
    allow = (data.get("config") or {}).get("allow-plugins")
    if isinstance(allow, dict):
        allow.pop(plugin, None)
    return data


__all__ = [
    "ConfigurationError", "preflight", "load_patches", "resolve_patch_file", "resolve_patches",
    "strip_patches_plugin",
]
