"""Resolução das tags da família de releases de uma dependência."""

from __future__ import annotations

from patchcheck.modules import log
from patchcheck.modules.dependency import Dependency, in_family

logger = log.get_logger("tags")


def installed_version(clone) -> str:
    """Primeira tag apontando para HEAD do clone; "" se HEAD não tem tag."""
    tags = clone.tags_at_head()
    if len(tags) > 1:
        logger.debug("HEAD tem várias tags (%s), usando %s", ", ".join(tags), tags[0])
    return tags[0] if tags else ""


def resolve(dependency: Dependency, clone) -> list[str]:
    """
    Tags da mesma família (major.minor) da versão instalada, na ordem de
    criação. Versão desconhecida retorna lista vazia.
    Falha na listagem propaga VersionControlError.
    """
    family = dependency.family
    if not family:
        return []
    return [tag for tag in clone.list_tags() if in_family(tag, family)]
