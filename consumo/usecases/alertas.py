# consumo/usecases/alertas.py
"""
UC: Alertas e atividades.

- criar_alerta / resolver_alerta / listar_alertas
- criar_atividade / listar_atividades_recentes

Chamado de forma síncrona pelo registro de consumo e diretamente pela CLI
(criação manual e resolução de alertas). Não há agendador.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Union

from consumo.domain.erros import ErroValidacao
from consumo.domain.models import Alerta, Atividade, Referencia, TipoAlerta, TipoAtividade
from consumo.infra.logger import log_alerta, log_system_event
from consumo.infra.store import EntityStore


def _tipo_alerta(tipo: Union[str, TipoAlerta]) -> TipoAlerta:
    try:
        return TipoAlerta(tipo)
    except ValueError:
        raise ErroValidacao(f"tipo de alerta inválido: {tipo!r} (use critical, warning ou info)")


def _tipo_atividade(tipo: Union[str, TipoAtividade]) -> TipoAtividade:
    try:
        return TipoAtividade(tipo)
    except ValueError:
        raise ErroValidacao(f"tipo de atividade inválido: {tipo!r}")


def criar_alerta(
    store: EntityStore,
    tipo: Union[str, TipoAlerta],
    mensagem: str,
    referencia: Referencia,
    relogio: Callable[[], datetime] = datetime.now,
) -> Alerta:
    """Cria um alerta não resolvido, datado no momento da criação."""
    if not mensagem or not str(mensagem).strip():
        raise ErroValidacao("mensagem do alerta é obrigatória")
    if referencia is None:
        raise ErroValidacao("alerta precisa referenciar uma entidade")
    alerta = store.criar("alertas", {
        "date": relogio(),
        "type": _tipo_alerta(tipo),
        "message": str(mensagem).strip(),
        "referencia": referencia,
        "resolved": False,
    })
    log_alerta("create", alerta.type.value, alerta.message,
               id=alerta.id, entity_type=referencia.tipo, entity_id=referencia.id)
    return alerta


def resolver_alerta(store: EntityStore, alerta_id: int) -> Optional[Alerta]:
    """Marca o alerta como resolvido. ``None`` se não existir."""
    alerta = store.atualizar("alertas", alerta_id, resolved=True)
    if alerta is None:
        log_system_event("alerta_nao_encontrado", {"id": alerta_id}, level="warning")
        return None
    log_alerta("resolve", alerta.type.value, alerta.message, id=alerta.id)
    return alerta


def listar_alertas(store: EntityStore, ativos: bool = False) -> List[Alerta]:
    if ativos:
        return listar_alertas_ativos(store)
    return store.listar("alertas")


def listar_alertas_ativos(store: EntityStore) -> List[Alerta]:
    return store.listar("alertas", lambda a: not a.resolved)


def criar_atividade(
    store: EntityStore,
    tipo: Union[str, TipoAtividade],
    mensagem: str,
    referencia: Optional[Referencia] = None,
    relogio: Callable[[], datetime] = datetime.now,
) -> Atividade:
    return store.criar("atividades", {
        "date": relogio(),
        "type": _tipo_atividade(tipo),
        "message": mensagem,
        "referencia": referencia,
    })


def listar_atividades_recentes(store: EntityStore, limite: Optional[int] = None) -> List[Atividade]:
    """Atividades da mais nova para a mais antiga, truncadas em ``limite``."""
    atividades = store.listar("atividades")
    if limite is None:
        return atividades
    return atividades[:max(int(limite), 0)]
