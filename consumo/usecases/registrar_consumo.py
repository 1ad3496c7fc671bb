# consumo/usecases/registrar_consumo.py
"""
UC: Registrar CONSUMO (único e em lote).

Fluxo de ``registrar_consumo``:
1) Valida o pedido (ids positivos, quantidade > 0, data opcional).
2) Trava ferramenta e produto; lê ferramenta, cliente e produto.
3) Se a ferramenta existe, soma o consumo do dia civil do evento e rejeita
   com ``CapacidadeExcedida`` se ``diario + quantidade > limite``.
4) Grava o consumo (imutável).
5) Efeitos derivados, apenas se cliente, produto e ferramenta existem:
   atividade, alerta de limite da ferramenta, baixa de estoque e alerta de
   estoque crítico.

Obs.:
- Ferramenta inexistente => sem teto aplicado (não é erro).
- Referências pendentes => o consumo é gravado mas os efeitos são pulados
  (com aviso no log), a menos que ``exigir_referencias`` esteja ligado.
- No limite (>= 100%) o alerta crítico aponta para o CLIENTE; no estoque
  baixo aponta para o PRODUTO.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from consumo.config import DEFAULTS, DefaultConfig
from consumo.adapters.parsers import parse_data, parse_decimal
from consumo.adapters.planilha_loader import load_consumos_planilha
from consumo.domain.erros import CapacidadeExcedida, ErroConsumo, ErroValidacao
from consumo.domain.models import (
    Cliente,
    Consumo,
    Ferramenta,
    Produto,
    RefCliente,
    RefFerramenta,
    RefProduto,
    TipoAlerta,
    TipoAtividade,
)
from consumo.domain.politicas import estoque_baixo, nivel_uso_ferramenta, percentual
from consumo.infra.logger import (
    log_consumo, log_file_operation, log_system_event, log_transaction, print_system
)
from consumo.infra.store import EntityStore
from consumo.usecases.alertas import criar_alerta, criar_atividade


@dataclass
class PedidoConsumo:
    cliente_id: int
    produto_id: int
    ferramenta_id: int
    loja_id: int
    quantidade: Decimal
    data: Optional[datetime] = None


# Chaves aceitas em dicts vindos da CLI, de JSON ou de planilhas
_ALIASES = {
    "cliente_id": ("cliente_id", "client_id", "clientId", "cliente"),
    "produto_id": ("produto_id", "product_id", "productId", "produto"),
    "ferramenta_id": ("ferramenta_id", "tool_id", "toolId", "ferramenta"),
    "loja_id": ("loja_id", "store_id", "storeId", "loja"),
    "quantidade": ("quantidade", "quantity", "qtd"),
    "data": ("data", "date"),
}


def _primeiro(d: Dict[str, Any], chaves) -> Any:
    for k in chaves:
        if d.get(k) is not None:
            return d[k]
    return None


def _to_id(nome: str, val: Any) -> int:
    if isinstance(val, bool):
        raise ErroValidacao(f"{nome} inválido: {val!r}")
    if isinstance(val, int):
        i = val
    else:
        # planilhas costumam trazer "3.0"
        try:
            d = Decimal(str(val).strip())
        except InvalidOperation:
            raise ErroValidacao(f"{nome} inválido: {val!r}")
        if not d.is_finite() or d != d.to_integral_value():
            raise ErroValidacao(f"{nome} inválido: {val!r}")
        i = int(d)
    if i <= 0:
        raise ErroValidacao(f"{nome} deve ser um inteiro positivo (recebido {i})")
    return i


def pedido_de_dict(d: Dict[str, Any]) -> PedidoConsumo:
    """Monta um PedidoConsumo a partir de um dict com chaves em PT ou EN."""
    campos = {nome: _primeiro(d, chaves) for nome, chaves in _ALIASES.items()}
    faltando = [k for k, v in campos.items() if v is None and k != "data"]
    if faltando:
        raise ErroValidacao(f"campos obrigatórios ausentes: {', '.join(faltando)}")
    return validar_pedido(PedidoConsumo(**campos))


def validar_pedido(pedido: PedidoConsumo) -> PedidoConsumo:
    """Normaliza tipos e valida o pedido. Levanta ``ErroValidacao``."""
    quantidade = parse_decimal(pedido.quantidade)
    if quantidade is None:
        raise ErroValidacao(f"quantidade inválida: {pedido.quantidade!r}")
    if quantidade <= 0:
        raise ErroValidacao(f"quantidade deve ser maior que zero (recebido {quantidade})")
    data = None
    if pedido.data is not None:
        data = parse_data(pedido.data)
        if data is None:
            raise ErroValidacao(f"data inválida: {pedido.data!r}")
    return PedidoConsumo(
        cliente_id=_to_id("cliente_id", pedido.cliente_id),
        produto_id=_to_id("produto_id", pedido.produto_id),
        ferramenta_id=_to_id("ferramenta_id", pedido.ferramenta_id),
        loja_id=_to_id("loja_id", pedido.loja_id),
        quantidade=quantidade,
        data=data,
    )


def _alerta_limite(
    store: EntityStore,
    ferramenta: Ferramenta,
    cliente: Cliente,
    data: datetime,
    config: DefaultConfig,
    relogio: Callable[[], datetime],
) -> None:
    limite = Decimal(ferramenta.max_daily_consumption)
    if limite <= 0:
        return
    diario = store.consumo_diario_ferramenta(ferramenta.id, data)
    pct = percentual(diario, limite)
    nivel = nivel_uso_ferramenta(pct, config.limiar_alerta_pct)
    if nivel is TipoAlerta.WARNING:
        criar_alerta(
            store, TipoAlerta.WARNING,
            f"Ferramenta {ferramenta.code} a {pct:.0f}% do limite diário",
            RefFerramenta(ferramenta.id), relogio=relogio,
        )
    elif nivel is TipoAlerta.CRITICAL:
        criar_alerta(
            store, TipoAlerta.CRITICAL,
            f"{cliente.name} ultrapassou o limite de consumo da ferramenta {ferramenta.code}",
            RefCliente(cliente.id), relogio=relogio,
        )


def _baixar_estoque(
    store: EntityStore,
    produto: Produto,
    quantidade: Decimal,
    config: DefaultConfig,
    relogio: Callable[[], datetime],
) -> Produto:
    novo_estoque = Decimal(produto.stock) - quantidade
    produto = store.atualizar("produtos", produto.id, stock=novo_estoque)
    if not estoque_baixo(novo_estoque, config.limiar_estoque_baixo):
        return produto
    calibre = store.obter("calibres", produto.caliber_id)
    loja = store.obter("lojas", produto.store_id)
    if calibre is None or loja is None:
        log_system_event("estoque_baixo_sem_calibre_ou_loja", {
            "produto_id": produto.id, "estoque": str(novo_estoque)
        }, level="warning")
        return produto
    criar_alerta(
        store, TipoAlerta.CRITICAL,
        f"Estoque crítico - Produto {calibre.name} - {loja.name}",
        RefProduto(produto.id), relogio=relogio,
    )
    return produto


def registrar_consumo(
    store: EntityStore,
    pedido: PedidoConsumo,
    config: DefaultConfig = DEFAULTS,
    relogio: Callable[[], datetime] = datetime.now,
) -> Consumo:
    """Registra um consumo aplicando o teto diário da ferramenta.

    Levanta ``ErroValidacao`` para entrada malformada e
    ``CapacidadeExcedida`` quando o teto seria ultrapassado; em ambos os
    casos nada é gravado.
    """
    log_system_event("registrar_consumo_start")
    try:
        pedido = validar_pedido(pedido)
        data = pedido.data or relogio()
        q = pedido.quantidade

        with store.travas.segurar(("ferramenta", pedido.ferramenta_id), ("produto", pedido.produto_id)):
            ferramenta = store.obter("ferramentas", pedido.ferramenta_id)
            cliente = store.obter("clientes", pedido.cliente_id)
            produto = store.obter("produtos", pedido.produto_id)

            pendentes = [nome for nome, ent in (
                ("cliente", cliente), ("produto", produto), ("ferramenta", ferramenta)
            ) if ent is None]
            if pendentes and config.exigir_referencias:
                raise ErroValidacao(f"referências inexistentes: {', '.join(pendentes)}")

            if ferramenta is not None:
                limite = Decimal(ferramenta.max_daily_consumption)
                diario = store.consumo_diario_ferramenta(ferramenta.id, data)
                if diario + q > limite:
                    log_consumo("reject", ferramenta.id, q, diario=str(diario), limite=str(limite))
                    raise CapacidadeExcedida(ferramenta.code, limite, diario, q)

            consumo = store.criar("consumos", {
                "date": data,
                "client_id": pedido.cliente_id,
                "product_id": pedido.produto_id,
                "tool_id": pedido.ferramenta_id,
                "store_id": pedido.loja_id,
                "quantity": q,
            })
            log_consumo("insert", pedido.ferramenta_id, q, id=consumo.id, cliente_id=pedido.cliente_id)

            if pendentes:
                log_consumo("skip_effects", pedido.ferramenta_id, q, id=consumo.id, pendentes=pendentes)
                log_system_event("consumo_com_referencias_pendentes", {
                    "consumo_id": consumo.id, "pendentes": pendentes
                }, level="warning")
            else:
                criar_atividade(
                    store, TipoAtividade.CONSUMPTION,
                    f"{cliente.name} consumiu {q} {produto.unit} de produto usando a ferramenta {ferramenta.code}",
                    RefCliente(cliente.id), relogio=relogio,
                )
                _alerta_limite(store, ferramenta, cliente, data, config, relogio)
                _baixar_estoque(store, produto, q, config, relogio)

        log_transaction("registrar_consumo", {"ferramenta_id": pedido.ferramenta_id}, result={"id": consumo.id})
        return consumo
    except ErroConsumo as e:
        log_transaction("registrar_consumo", {"pedido": repr(pedido)}, error=str(e))
        log_system_event("registrar_consumo_error", {"error": str(e)}, level="error")
        raise


def run_consumo_lote(
    store: EntityStore,
    path: str,
    config: DefaultConfig = DEFAULTS,
    relogio: Callable[[], datetime] = datetime.now,
) -> Dict[str, Any]:
    """Lê uma planilha (XLSX/CSV) de consumos e registra linha a linha.

    Falhas por linha (validação ou teto) são coletadas em ``erros`` e não
    interrompem o lote.
    """
    log_system_event("consumo_lote_start", {"file_path": path})
    rows: List[Dict[str, Any]] = load_consumos_planilha(path)
    log_file_operation("import", path, rows_processed=len(rows))

    registros: List[Consumo] = []
    erros: List[Dict[str, Any]] = []
    for row in rows:
        linha = row.get("linha")
        try:
            registros.append(registrar_consumo(store, pedido_de_dict(row), config=config, relogio=relogio))
        except ErroConsumo as e:
            erros.append({"linha": linha, "mensagem": str(e)})
            print_system(f">> Linha {linha}: {e}")

    result = {
        "tipo": "Consumos",
        "arquivo": path,
        "total": len(rows),
        "sucessos": len(registros),
        "erros": erros,
        "registros": registros,
    }
    log_transaction("consumo_lote", {"file": path, "rows_count": len(rows)},
                    result={"sucessos": len(registros), "erros": len(erros)})
    return result
