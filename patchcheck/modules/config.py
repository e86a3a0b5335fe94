#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
config.py — Módulo de configuração do patchcheck

- Suporta $PATCHCHECK_CONFIG > ~/.config/patchcheck/config.yml > /etc/patchcheck/config.yml > defaults
- Configuração em YAML
- Permite leitura, escrita, reset e listagem completa da config
"""

import logging
import os
import tempfile

import yaml

logger = logging.getLogger("patchcheck.config")

# Caminhos padrão
USER_CONFIG = os.path.expanduser("~/.config/patchcheck/config.yml")
SYSTEM_CONFIG = "/etc/patchcheck/config.yml"

# Valores padrão
DEFAULTS = {
    # Diretórios
    "work_dir": os.path.join(tempfile.gettempdir(), "patchcheck"),
    "keep_work_dir": False,
    "log_dir": os.path.expanduser("~/.local/state/patchcheck"),
    "log_file": True,

    # Ferramentas externas
    "git_bin": "git",
    "patch_bin": "patch",
    "composer_bin": "composer",
    "composer_update_args": [
        "--no-autoloader",
        "--no-scripts",
        "--prefer-source",
        "--ignore-platform-reqs",
    ],
    "patches_plugin": "cweagans/composer-patches",

    # Probing
    "max_strip_level": 4,
    "fuzz": 0,

    # Download de patches remotos (segundos)
    "download_timeout": 30,
}

_config = DEFAULTS.copy()


def _load_from(path: str) -> dict:
    """Carrega configuração de um arquivo YAML se existir."""
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignorando config ilegível %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignorando config %s: esperado um mapeamento", path)
        return {}
    return data


def load_config() -> dict:
    """Carrega config seguindo a hierarquia: env > user > system > defaults"""
    global _config

    # 1. Variável de ambiente
    env_path = os.getenv("PATCHCHECK_CONFIG")
    if env_path and os.path.exists(env_path):
        _config = {**DEFAULTS, **_load_from(env_path)}
        return _config

    # 2. Configuração do usuário
    if os.path.exists(USER_CONFIG):
        _config = {**DEFAULTS, **_load_from(USER_CONFIG)}
        return _config

    # 3. Configuração global
    if os.path.exists(SYSTEM_CONFIG):
        _config = {**DEFAULTS, **_load_from(SYSTEM_CONFIG)}
        return _config

    # 4. Defaults
    _config = DEFAULTS.copy()
    return _config


def _target_path(system: bool = False) -> str:
    if system:
        return SYSTEM_CONFIG
    return os.getenv("PATCHCHECK_CONFIG") or USER_CONFIG


def _save(cfg: dict, system: bool = False) -> None:
    """Salva configuração em YAML (usuário ou sistema)."""
    path = _target_path(system)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, default_flow_style=False, allow_unicode=True)


def get(key: str, default=None):
    """Obtém valor de uma chave da configuração (com fallback)."""
    if not _config:
        load_config()
    return _config.get(key, DEFAULTS.get(key, default))


def set(key: str, value, system: bool = False):
    """Define valor para uma chave e salva em config.yml."""
    cfg = load_config()
    cfg[key] = value
    _save(cfg, system=system)
    _config.update(cfg)


def all() -> dict:
    """Retorna configuração completa (merge de defaults + arquivo carregado)."""
    return load_config()


def reset(system: bool = False):
    """Restaura configuração para os valores padrão."""
    _save(DEFAULTS.copy(), system=system)
    load_config()


# Carrega config logo no import
load_config()
