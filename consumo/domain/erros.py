"""
Exceções do domínio de consumo.

"Não encontrado" não é exceção: o store devolve ``None``/``False``.
"""

from __future__ import annotations

from decimal import Decimal


class ErroConsumo(Exception):
    """Erro base do sistema."""


class ErroValidacao(ErroConsumo, ValueError):
    """Entrada malformada ou incompleta. Nenhuma mutação é feita."""


class CapacidadeExcedida(ErroConsumo):
    """O consumo ultrapassaria o limite diário da ferramenta."""

    def __init__(self, ferramenta_codigo: str, limite: Decimal, diario: Decimal, quantidade: Decimal):
        self.ferramenta_codigo = ferramenta_codigo
        self.limite = limite
        self.diario = diario
        self.quantidade = quantidade
        super().__init__(
            f"Este consumo ultrapassaria o limite diário da ferramenta "
            f"{ferramenta_codigo} ({limite})"
        )
