import logging
import os
import subprocess
from logging.handlers import RotatingFileHandler
from datetime import datetime

from patchcheck.modules import config

# -------------------------
# Configuração inicial
# -------------------------
LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_root_logger = logging.getLogger("patchcheck")
_root_logger.setLevel(logging.DEBUG)  # captura tudo


class ColorFormatter(logging.Formatter):
    """Formata mensagens com cores para o console"""
    COLORS = {
        logging.DEBUG: "\033[36m",   # ciano
        logging.INFO: "\033[32m",    # verde
        logging.WARNING: "\033[33m", # amarelo
        logging.ERROR: "\033[31m",   # vermelho
        logging.CRITICAL: "\033[41m" # fundo vermelho
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.RESET)
        ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        module = f"[{record.name}]" if record.name != "patchcheck" else ""
        msg = super().format(record)
        return f"{color}[{ts}] {record.levelname.lower():<8}{module}{self.RESET} {msg}"


def _setup_handlers():
    """Configura handlers globais"""
    if _root_logger.handlers:
        return  # já configurado

    # Console
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(ColorFormatter("%(message)s"))
    _root_logger.addHandler(ch)

    if not config.get("log_file"):
        return

    # Arquivo
    log_dir = config.get("log_dir")
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError as e:
        _root_logger.warning("Log em arquivo desativado, não foi possível criar %s: %s", log_dir, e)
        return
    logfile = os.path.join(log_dir, "patchcheck.log")

    fh = RotatingFileHandler(logfile, maxBytes=10 * 1024 * 1024, backupCount=5)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        "%Y-%m-%d %H:%M:%S"
    ))
    _root_logger.addHandler(fh)


_setup_handlers()


# -------------------------
# API pública
# -------------------------
def get_logger(name: str = "patchcheck"):
    """Obtém sub-logger (ex.: log.get_logger("walker"))"""
    return _root_logger.getChild(name)


def set_level(level: str):
    """Altera nível do console (o arquivo continua em debug)"""
    lvl = LEVELS.get(level.lower())
    if lvl is None:
        raise ValueError(f"Nível inválido: {level}")
    for handler in _root_logger.handlers:
        if not isinstance(handler, RotatingFileHandler):
            handler.setLevel(lvl)


def run_cmd(cmd: list[str], cwd: str | None = None, env: dict | None = None, quiet: bool = False):
    """
    Executa comando externo registrando stdout/stderr.
    Retorna (returncode, stdout, stderr).

    quiet=True mantém tudo em debug; usado quando falhar é um resultado
    esperado (ex.: dry-run do patch).
    """
    logger = get_logger("cmd")
    logger.debug("Executando: %s (cwd=%s)", " ".join(cmd), cwd)

    process = subprocess.Popen(
        cmd,
        cwd=cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        # patches trazem cabeçalhos em qualquer encoding
        encoding="utf-8",
        errors="replace",
    )
    out, err = process.communicate()
    rc = process.returncode

    stdout_lines = out.splitlines()
    stderr_lines = err.splitlines()
    for line in stdout_lines:
        logger.debug("[stdout] %s", line.rstrip())
    err_level = logging.DEBUG if quiet or rc == 0 else logging.WARNING
    for line in stderr_lines:
        logger.log(err_level, "[stderr] %s", line.rstrip())

    if rc != 0 and not quiet:
        logger.error("Comando falhou com código %s: %s", rc, " ".join(cmd))

    return rc, "\n".join(stdout_lines), "\n".join(stderr_lines)


# Atalhos simples (sem precisar chamar get_logger)
def debug(msg, *args, **kwargs): _root_logger.debug(msg, *args, **kwargs)
def info(msg, *args, **kwargs): _root_logger.info(msg, *args, **kwargs)
