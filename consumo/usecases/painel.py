# consumo/usecases/painel.py
"""
Painel (dashboard): agregações somente leitura.
- estatísticas gerais (contagens + consumo do dia)
- consumo por loja (janela de dias)
- consumo por calibre (janela de dias, % do total, cor da paleta)
- consumo do dia por ferramenta (% do limite diário)

Janela: ``[agora - dias, agora]``, inclusiva. ``dias <= 0`` devolve todos
os baldes zerados.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from consumo.config import DEFAULTS, DefaultConfig
from consumo.domain.models import Consumo
from consumo.domain.politicas import percentual
from consumo.infra.store import EntityStore


ZERO = Decimal("0")

# Tendências sem histórico de cadastro: valores fixos exibidos nos cards
_TENDENCIAS_FIXAS = {
    "variacao_produtos": "12%",
    "variacao_clientes": "8%",
    "variacao_ferramentas": "5%",
}


def _soma(consumos: List[Consumo]) -> Decimal:
    return sum((c.quantity for c in consumos), ZERO)


def _consumos_do_dia(store: EntityStore, dia: datetime) -> List[Consumo]:
    inicio = dia.replace(hour=0, minute=0, second=0, microsecond=0)
    fim = inicio + timedelta(days=1) - timedelta(microseconds=1)
    return store.consumos_entre(inicio, fim)


def _consumos_na_janela(store: EntityStore, dias: int, agora: datetime) -> List[Consumo]:
    if dias <= 0:
        return []
    return store.consumos_entre(agora - timedelta(days=dias), agora)


def estatisticas_painel(store: EntityStore, agora: Optional[datetime] = None) -> Dict[str, Any]:
    """Contagens e consumo total do dia corrente.

    ``variacao_consumo`` compara hoje com ontem (em %); ``None`` quando
    ontem não teve consumo.
    """
    agora = agora or datetime.now()
    hoje = _soma(_consumos_do_dia(store, agora))
    ontem = _soma(_consumos_do_dia(store, agora - timedelta(days=1)))
    variacao = None
    if ontem > 0:
        variacao = round((hoje - ontem) / ontem * 100, 1)
    return {
        "total_produtos": store.contar("produtos"),
        "total_clientes": store.contar("clientes"),
        "total_ferramentas": store.contar("ferramentas"),
        "consumo_diario": hoje,
        "consumo_diario_fmt": f"{hoje} kg",
        "variacao_consumo": variacao,
        **_TENDENCIAS_FIXAS,
    }


def consumo_por_loja(store: EntityStore, dias: int = DEFAULTS.dias_janela,
                     agora: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Uma linha por loja, inclusive lojas sem consumo na janela."""
    agora = agora or datetime.now()
    consumos = _consumos_na_janela(store, dias, agora)
    out: List[Dict[str, Any]] = []
    for loja in store.listar("lojas"):
        out.append({
            "loja_id": loja.id,
            "loja": loja.name,
            "consumo": _soma([c for c in consumos if c.store_id == loja.id]),
        })
    return out


def consumo_por_calibre(store: EntityStore, dias: int = DEFAULTS.dias_janela,
                        agora: Optional[datetime] = None,
                        config: DefaultConfig = DEFAULTS) -> List[Dict[str, Any]]:
    """Consumo por calibre, com participação (%) no total da janela.

    O total é a soma de todos os consumos da janela; consumos de produtos
    sem calibre cadastrado entram no total, mas em nenhum balde.
    """
    agora = agora or datetime.now()
    consumos = _consumos_na_janela(store, dias, agora)
    total = _soma(consumos)
    produtos = store.listar("produtos")
    paleta = config.paleta

    out: List[Dict[str, Any]] = []
    for idx, calibre in enumerate(store.listar("calibres")):
        ids = {p.id for p in produtos if p.caliber_id == calibre.id}
        consumo = _soma([c for c in consumos if c.product_id in ids])
        out.append({
            "calibre_id": calibre.id,
            "calibre": calibre.name,
            "consumo": consumo,
            "percentual": percentual(consumo, total),
            "cor": paleta[idx % len(paleta)],
        })
    return out


def consumo_diario_ferramentas(store: EntityStore, agora: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Consumo de hoje por ferramenta, com o % usado do limite diário."""
    agora = agora or datetime.now()
    out: List[Dict[str, Any]] = []
    for f in store.listar("ferramentas"):
        diario = store.consumo_diario_ferramenta(f.id, agora)
        out.append({
            "ferramenta_id": f.id,
            "codigo": f.code,
            "consumo": diario,
            "limite": Decimal(f.max_daily_consumption),
            "percentual": percentual(diario, Decimal(f.max_daily_consumption)),
        })
    return out
