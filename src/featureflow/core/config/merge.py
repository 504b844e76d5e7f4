"""
Deep-merge de configuração do featureflow.

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total
    - escalar → sobrescrita direta
    - None no override → sobrescrita direta (desliga um valor explicitamente)
    - conflito de tipos → ConfigTypeConflictError

O merge é puramente funcional: nenhum input é mutado.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from .errors import ConfigTypeConflictError


# caminhos podem ser informados como str ou Path
_PATH_TYPES = (str, PurePath)


def deep_merge(
    base: Dict[str, Any],
    override: Dict[str, Any],
    *,
    _path: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Combina `base` com `override`, produzindo um novo dicionário.

    Args:
        base (Dict[str, Any]): Configuração base (defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se uma mesma chave possuir tipos
            incompatíveis entre base e override. A mensagem contém o
            caminho pontuado da chave (ex.: `artifacts.persist`).
    """
    path = list(_path or [])

    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts em '{'.'.join(path) or '<root>'}', recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        key_path = path + [str(key)]

        if key not in result or result[key] is None or override_value is None:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value, _path=key_path)
            continue

        if isinstance(base_value, list) and isinstance(override_value, list):
            result[key] = deepcopy(override_value)
            continue

        if isinstance(base_value, _PATH_TYPES) and isinstance(override_value, _PATH_TYPES):
            result[key] = deepcopy(override_value)
            continue

        # bool é subclasse de int: comparar o tipo exato evita aceitar
        # `persist: 1` no lugar de `persist: true`
        if type(base_value) is not type(override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{'.'.join(key_path)}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        result[key] = deepcopy(override_value)

    return result


__all__ = ["deep_merge"]
