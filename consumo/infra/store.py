# consumo/infra/store.py
"""
Store em memória: coleções chaveadas por id para todas as entidades.

Coleções:
- usuarios, lojas, calibres, ferramentas, produtos, clientes
- consumos, alertas, atividades

Regras:
- Ids são inteiros positivos, sequenciais por coleção, nunca reutilizados.
- ``listar`` devolve em ordem de inserção; atividades saem da mais nova
  para a mais antiga.
- "Não encontrado" é ``None`` (obter/atualizar) ou ``False`` (remover).
- Não há cascata nem unicidade imposta: quem chama decide o que verificar.

O store é um objeto comum, criado na inicialização da aplicação (ou em
cada teste) e passado explicitamente aos casos de uso.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from consumo.domain.erros import ErroValidacao
from consumo.domain.models import (
    Alerta,
    Atividade,
    Calibre,
    Cliente,
    Consumo,
    Entidade,
    Ferramenta,
    Loja,
    Produto,
    Usuario,
)
from consumo.infra.logger import log_store_operation
from consumo.infra.travas import TravasPorChave


COLECOES: Dict[str, Type] = {
    "usuarios": Usuario,
    "lojas": Loja,
    "calibres": Calibre,
    "ferramentas": Ferramenta,
    "produtos": Produto,
    "clientes": Cliente,
    "consumos": Consumo,
    "alertas": Alerta,
    "atividades": Atividade,
}

# Consumos são imutáveis depois de criados
_SOMENTE_INSERCAO = {"consumos"}


def _dia(d: date) -> date:
    return d.date() if isinstance(d, datetime) else d


class EntityStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.travas = TravasPorChave()
        self._dados: Dict[str, Dict[int, Any]] = {nome: {} for nome in COLECOES}
        self._proximo_id: Dict[str, int] = {nome: 1 for nome in COLECOES}

    # -------------------------
    # CRUD genérico
    # -------------------------

    def _colecao(self, colecao: str) -> Dict[int, Any]:
        try:
            return self._dados[colecao]
        except KeyError:
            raise ErroValidacao(f"coleção desconhecida: {colecao!r}")

    def criar(self, colecao: str, dados: Dict[str, Any]) -> Entidade:
        """Atribui o próximo id da coleção, armazena e devolve o registro."""
        registros = self._colecao(colecao)
        cls = COLECOES[colecao]
        dados = {k: v for k, v in dados.items() if k != "id"}
        with self._lock:
            novo_id = self._proximo_id[colecao]
            try:
                ent = cls(id=novo_id, **dados)
            except TypeError as e:
                raise ErroValidacao(f"dados inválidos para {colecao}: {e}")
            registros[novo_id] = ent
            self._proximo_id[colecao] = novo_id + 1
        log_store_operation(colecao, "CREATE", 1, id=novo_id)
        return ent

    def obter(self, colecao: str, entidade_id: int) -> Optional[Entidade]:
        return self._colecao(colecao).get(entidade_id)

    def atualizar(self, colecao: str, entidade_id: int, **parcial: Any) -> Optional[Entidade]:
        """Mescla os campos de ``parcial`` no registro existente."""
        registros = self._colecao(colecao)
        if colecao in _SOMENTE_INSERCAO:
            raise ErroValidacao(f"registros de {colecao} não podem ser alterados")
        parcial.pop("id", None)
        with self._lock:
            atual = registros.get(entidade_id)
            if atual is None:
                return None
            try:
                novo = replace(atual, **parcial)
            except TypeError as e:
                raise ErroValidacao(f"campos inválidos para {colecao}: {e}")
            registros[entidade_id] = novo
        log_store_operation(colecao, "UPDATE", 1, id=entidade_id, campos=sorted(parcial))
        return novo

    def remover(self, colecao: str, entidade_id: int) -> bool:
        registros = self._colecao(colecao)
        with self._lock:
            existia = registros.pop(entidade_id, None) is not None
        log_store_operation(colecao, "DELETE", int(existia), id=entidade_id)
        return existia

    def listar(self, colecao: str, filtro: Optional[Callable[[Any], bool]] = None) -> List[Entidade]:
        with self._lock:
            itens = list(self._colecao(colecao).values())
        if filtro is not None:
            itens = [e for e in itens if filtro(e)]
        if colecao == "atividades":
            itens.sort(key=lambda a: (a.date, a.id), reverse=True)
        return itens

    def contar(self, colecao: str) -> int:
        return len(self._colecao(colecao))

    # -------------------------
    # Snapshot (usado por infra.snapshot)
    # -------------------------

    def proximo_id(self, colecao: str) -> int:
        self._colecao(colecao)
        return self._proximo_id[colecao]

    def restaurar(self, colecao: str, registros: Iterable[Entidade], proximo_id: Optional[int] = None) -> None:
        """Substitui o conteúdo de uma coleção, preservando os ids dados."""
        alvo = self._colecao(colecao)
        with self._lock:
            alvo.clear()
            for ent in registros:
                alvo[ent.id] = ent
            maior = max(alvo, default=0)
            self._proximo_id[colecao] = max(proximo_id or 1, maior + 1)
        log_store_operation(colecao, "RESTORE", len(alvo))

    # -------------------------
    # Consultas
    # -------------------------

    def usuario_por_username(self, username: str) -> Optional[Usuario]:
        return next(iter(self.listar("usuarios", lambda u: u.username == username)), None)

    def clientes_por_loja(self, loja_id: int) -> List[Cliente]:
        return self.listar("clientes", lambda c: c.store_id == loja_id)

    def produtos_por_loja(self, loja_id: int) -> List[Produto]:
        return self.listar("produtos", lambda p: p.store_id == loja_id)

    def produtos_por_calibre(self, calibre_id: int) -> List[Produto]:
        return self.listar("produtos", lambda p: p.caliber_id == calibre_id)

    def consumos_por_cliente(self, cliente_id: int) -> List[Consumo]:
        return self.listar("consumos", lambda c: c.client_id == cliente_id)

    def consumos_por_ferramenta(self, ferramenta_id: int) -> List[Consumo]:
        return self.listar("consumos", lambda c: c.tool_id == ferramenta_id)

    def consumos_por_loja(self, loja_id: int) -> List[Consumo]:
        return self.listar("consumos", lambda c: c.store_id == loja_id)

    def consumos_por_produto(self, produto_id: int) -> List[Consumo]:
        return self.listar("consumos", lambda c: c.product_id == produto_id)

    def consumos_entre(self, inicio: datetime, fim: datetime) -> List[Consumo]:
        """Consumos com ``inicio <= data <= fim`` (ambos inclusivos)."""
        return self.listar("consumos", lambda c: inicio <= c.date <= fim)

    def consumo_diario_ferramenta(self, ferramenta_id: int, dia: date) -> Decimal:
        """Soma das quantidades da ferramenta no dia civil de ``dia``."""
        alvo = _dia(dia)
        total = Decimal("0")
        for c in self.consumos_por_ferramenta(ferramenta_id):
            if c.date.date() == alvo:
                total += c.quantity
        return total
