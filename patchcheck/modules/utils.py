import hashlib
import json
import os
import shutil
import subprocess
from urllib.parse import urlparse

import requests

from patchcheck.modules import log, config


class ToolMissingError(Exception):
    """Ferramenta externa necessária não encontrada no PATH"""
    pass


# -------------------------
# Sistema de arquivos
# -------------------------
def ensure_dir(path: str):
    """Cria diretório se não existir"""
    os.makedirs(path, exist_ok=True)


def clean_dir(path: str):
    """Remove diretório se existir e recria vazio"""
    if os.path.isdir(path):
        shutil.rmtree(path)
    os.makedirs(path)


def rm(path: str):
    """Remove arquivo ou diretório"""
    if os.path.isdir(path):
        shutil.rmtree(path)
    elif os.path.isfile(path):
        os.remove(path)


# -------------------------
# Execução de comandos
# -------------------------
def run(cmd: list[str], cwd: str | None = None, env: dict | None = None, check=True, quiet=False):
    """Wrapper para rodar comandos com log"""
    rc, out, err = log.run_cmd(cmd, cwd=cwd, env=env, quiet=quiet)
    if check and rc != 0:
        raise subprocess.CalledProcessError(rc, cmd, out, err)
    return rc, out, err


def check_tools(keys: list[str]) -> dict:
    """
    Verifica se as ferramentas configuradas (git_bin, patch_bin, composer_bin...)
    estão no PATH. Retorna {chave: caminho absoluto}.
    """
    found = {}
    for key in keys:
        binary = config.get(key)
        path = shutil.which(binary) if binary else None
        if not path:
            raise ToolMissingError(f"'{binary}' é necessário para a execução ({key})")
        found[key] = path
    return found


# -------------------------
# Download
# -------------------------
def is_url(ref: str) -> bool:
    return urlparse(ref).scheme in ("http", "https")


def download(url: str, dest_dir: str, timeout: float | None = None) -> str:
    """
    Baixa um arquivo remoto para dest_dir e retorna o caminho local.
    O nome local leva um prefixo do sha1 da URL para evitar colisões
    entre patches com o mesmo nome de arquivo.
    """
    ensure_dir(dest_dir)
    name = os.path.basename(urlparse(url).path) or "download"
    prefix = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
    dest = os.path.join(dest_dir, f"{prefix}-{name}")

    if os.path.isfile(dest):
        log.debug("Arquivo já existe em cache: %s", dest)
        return dest

    if timeout is None:
        timeout = config.get("download_timeout")
    log.info("Baixando %s → %s", url, dest)
    partial = dest + ".part"
    with requests.get(url, stream=True, timeout=timeout) as r:
        r.raise_for_status()
        with open(partial, "wb") as f:
            for chunk in r.iter_content(chunk_size=8192):
                f.write(chunk)
    os.replace(partial, dest)
    return dest


# -------------------------
# Leitura de arquivos
# -------------------------
def load_json(path: str) -> dict:
    """Carrega JSON em dict"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str, data) -> None:
    """Grava JSON indentado"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4, ensure_ascii=False)
        f.write("\n")
