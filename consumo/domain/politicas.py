"""
Políticas de classificação usadas pelo registro de consumo e pelo painel.

Este módulo contém funções puras que encapsulam as regras de limiar:
percentual de uso do limite diário de uma ferramenta, nível de alerta
correspondente e verificação de estoque baixo. Não dependem do store,
o que permite testá-las isoladamente.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from consumo.domain.models import TipoAlerta


CEM = Decimal("100")


def percentual(parte: Decimal, total: Decimal) -> Decimal:
    """Retorna ``parte / total * 100``; ``0`` quando ``total`` não é positivo.

    Nunca levanta divisão por zero: janelas vazias e limites zerados
    reportam simplesmente 0%.
    """
    if total is None or total <= 0:
        return Decimal("0")
    return (Decimal(parte) / Decimal(total)) * CEM


def nivel_uso_ferramenta(pct: Decimal, limiar_alerta: Decimal = Decimal("90")) -> Optional[TipoAlerta]:
    """Classifica o uso diário de uma ferramenta.

    Regras:
        - ``pct >= 100``                  → ``TipoAlerta.CRITICAL``
        - ``limiar_alerta <= pct < 100``  → ``TipoAlerta.WARNING``
        - abaixo do limiar                → ``None`` (sem alerta)

    Args:
        pct: Consumo do dia em % do limite diário.
        limiar_alerta: Percentual a partir do qual o aviso é emitido.

    Returns:
        O tipo de alerta a emitir, ou ``None``.
    """
    if pct >= CEM:
        return TipoAlerta.CRITICAL
    if pct >= limiar_alerta:
        return TipoAlerta.WARNING
    return None


def estoque_baixo(estoque: Decimal, limiar: Decimal = Decimal("50")) -> bool:
    """``True`` quando o estoque está no limiar ou abaixo dele (inclusive negativo)."""
    return Decimal(estoque) <= Decimal(limiar)
