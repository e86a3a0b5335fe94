#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cli.py — CLI do patchcheck

  patchcheck check <raiz>            verifica os patches do composer.json contra as releases
  patchcheck probe <patch> <clone>   verifica um patch contra um clone git local
  patchcheck config get|set|list|reset
"""

from __future__ import annotations
import argparse
import os
import sys

import yaml

from patchcheck import __version__
from patchcheck.modules import (
    check as check_mod,
    composer as composer_mod,
    config as config_mod,
    log as log_mod,
    manifest as manifest_mod,
    probe as probe_mod,
    utils as utils_mod,
    vcs as vcs_mod,
    walker as walker_mod,
)
from patchcheck.modules.dependency import Dependency, PatchDescriptor
from patchcheck.modules.workspace import Workspace

# ANSI colors simples
C = {
    "reset": "\033[0m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
}

# Erros que encerram a execução
FATAL_ERRORS = (
    manifest_mod.ConfigurationError,
    vcs_mod.VersionControlError,
    composer_mod.InstallError,
    utils_mod.ToolMissingError,
    probe_mod.ProbeError,
)

RESULT_COLORS = {
    probe_mod.ProbeResult.ALREADY_APPLIED: "green",
    probe_mod.ProbeResult.APPLICABLE: "cyan",
    probe_mod.ProbeResult.NOT_APPLICABLE: "yellow",
}

logger = log_mod.get_logger("cli")


def color(text: str, col: str) -> str:
    return f"{C.get(col, '')}{text}{C['reset']}"


def _setup_logging(verbose: bool) -> None:
    log_mod.set_level("debug" if verbose else "info")


def _fail(e: Exception) -> int:
    logger.debug("Erro fatal", exc_info=True)
    print(color(f"[ERRO] {e}", "red"), file=sys.stderr)
    return 1


# ---------------------------
# Command handlers
# ---------------------------

def cmd_check(args):
    """
    patchcheck check <root> [--keep-work-dir] [--max-level N]
    """
    root = os.path.abspath(args.root)
    keep = True if args.keep_work_dir else None
    try:
        utils_mod.check_tools(["git_bin", "patch_bin", "composer_bin"])
        composer_json = manifest_mod.preflight(root)
        declared = manifest_mod.load_patches(composer_json, root)

        with Workspace(keep=keep) as ws:
            patches = manifest_mod.resolve_patches(declared, root, ws.patches_dir)
            composer_mod.write_composer_json(composer_json, ws.path)
            composer_mod.validate(ws.path)
            composer_mod.install(ws.path)
            index = composer_mod.locations(ws.path)
            patch_set = composer_mod.build_patch_set(patches, index)
            check_mod.run_and_report(patch_set, max_level=args.max_level)
    except FATAL_ERRORS as e:
        return _fail(e)

    print(color("[OK] Done!", "green"))
    return 0


def cmd_probe(args):
    """
    patchcheck probe <patch> <clone> [--tags] [--max-level N]
    """
    patch_file = os.path.abspath(args.patch)
    clone_path = os.path.abspath(args.clone)
    try:
        utils_mod.check_tools(["git_bin", "patch_bin"])
        if not os.path.isfile(patch_file):
            raise manifest_mod.ConfigurationError(f"Arquivo de patch não encontrado: {patch_file}")

        if not args.tags:
            result = probe_mod.probe(patch_file, vcs_mod.GitClone(clone_path), max_level=args.max_level)
            print(color(result.name, RESULT_COLORS[result]))
            return 0

        name = os.path.basename(clone_path.rstrip(os.sep))
        dependency = Dependency(name=name, path=clone_path)
        patch = PatchDescriptor(os.path.basename(patch_file), patch_file, name)
        for record in walker_mod.walk_releases(dependency, patch, max_level=args.max_level):
            if isinstance(record, walker_mod.TagReport):
                line = probe_mod.describe(record.result, record.tag)
                print(color(line, RESULT_COLORS[record.result]))
            else:
                print(color(record.message, "yellow"))
    except FATAL_ERRORS as e:
        return _fail(e)
    return 0


def cmd_config(args):
    """
    patchcheck config get <key>
    patchcheck config set <key> <value> [--system]
    patchcheck config list
    patchcheck config reset [--system]
    """
    act = args.action
    if act == "get":
        if not args.key:
            print("Uso: patchcheck config get <chave>")
            return 1
        print(config_mod.get(args.key))
        return 0
    elif act == "set":
        if not args.key or args.value is None:
            print("Uso: patchcheck config set <chave> <valor> [--system]")
            return 1
        # "4" -> 4, "false" -> False, "[a, b]" -> lista
        value = yaml.safe_load(args.value)
        config_mod.set(args.key, value, system=args.system)
        print(f"[OK] Configuração '{args.key}' definida para '{value}' ({'global' if args.system else 'usuário'})")
        return 0
    elif act == "list":
        for k, v in config_mod.all().items():
            print(f"{color(k, 'cyan')}: {v}")
        return 0
    elif act == "reset":
        config_mod.reset(system=args.system)
        print(f"[OK] Configuração restaurada para padrões {'globais' if args.system else 'de usuário'}")
        return 0
    print("Ação desconhecida:", act)
    return 1


# -----------------------------------------------------------------------------
# Build argument parser and connect commands
# -----------------------------------------------------------------------------

def build_parser():
    p = argparse.ArgumentParser(
        prog="patchcheck",
        description="Checks patches managed by Composer against package releases",
        epilog="Usage example:\n  $ patchcheck check /var/www/drupal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Modo verboso")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command")

    # check
    sc = sub.add_parser("check", help="Verificar os patches de um projeto composer")
    sc.add_argument("root", help="Raiz do projeto com composer.json")
    sc.add_argument("--keep-work-dir", action="store_true", help="Não remover o diretório de trabalho")
    sc.add_argument("--max-level", type=int, default=None, metavar="N",
                    help="Maior nível de strip (-pN) testado")
    sc.set_defaults(func=cmd_check)

    # probe
    sp = sub.add_parser("probe", help="Verificar um patch contra um clone git local")
    sp.add_argument("patch", help="Arquivo de patch")
    sp.add_argument("clone", help="Clone git da dependência")
    sp.add_argument("--tags", action="store_true",
                    help="Percorrer as tags da família da versão instalada")
    sp.add_argument("--max-level", type=int, default=None, metavar="N")
    sp.set_defaults(func=cmd_probe)

    # config
    scf = sub.add_parser("config", help="Gerenciar configuração do patchcheck")
    scf.add_argument("action", choices=["get", "set", "list", "reset"], help="Ação sobre a configuração")
    scf.add_argument("key", nargs="?", help="Chave da configuração")
    scf.add_argument("value", nargs="?", help="Valor (para set)")
    scf.add_argument("--system", action="store_true", help="Salvar/operar no config global (/etc)")
    scf.set_defaults(func=cmd_config)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _setup_logging(getattr(args, "verbose", False))
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
