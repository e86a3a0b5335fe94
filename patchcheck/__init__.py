"""patchcheck — verifica patches do Composer contra as releases das dependências."""

__version__ = "1.0.0"
