import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from consumo.config import DEFAULTS
from consumo.domain.erros import CapacidadeExcedida, ErroValidacao
from consumo.domain.models import RefCliente, RefFerramenta, RefProduto, TipoAlerta, TipoAtividade
from consumo.infra.store import EntityStore
from consumo.usecases.registrar_consumo import (
    PedidoConsumo,
    pedido_de_dict,
    registrar_consumo,
)
from consumo.usecases.painel import consumo_por_loja, estatisticas_painel

AGORA = datetime(2026, 10, 19, 14, 30)


def relogio():
    return AGORA


def _seed(limite="100", estoque="1000"):
    store = EntityStore()
    loja = store.criar("lojas", {"name": "Loja 1", "location": "São Paulo", "manager": "Gerente 1"})
    calibre = store.criar("calibres", {"name": "Calibre A", "description": "Pequeno"})
    ferramenta = store.criar("ferramentas", {
        "code": "XYZ-123", "name": "Ferramenta XYZ", "max_daily_consumption": Decimal(limite),
    })
    cliente = store.criar("clientes", {"name": "Cliente A", "store_id": loja.id})
    produto = store.criar("produtos", {
        "name": "Produto A1", "caliber_id": calibre.id, "store_id": loja.id,
        "unit": "kg", "stock": Decimal(estoque),
    })
    return store, loja, calibre, ferramenta, cliente, produto


def _pedido(cliente, produto, ferramenta, loja, quantidade, data=None):
    return PedidoConsumo(
        cliente_id=cliente.id, produto_id=produto.id, ferramenta_id=ferramenta.id,
        loja_id=loja.id, quantidade=quantidade, data=data,
    )


def _registrar(store, pedido, **kw):
    return registrar_consumo(store, pedido, relogio=relogio, **kw)


# -------------------------
# teto diário
# -------------------------

def test_segundo_consumo_que_ultrapassa_o_teto_e_rejeitado():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "60"))

    with pytest.raises(CapacidadeExcedida) as exc:
        _registrar(store, _pedido(cliente, produto, ferramenta, loja, "50"))

    assert exc.value.ferramenta_codigo == "XYZ-123"
    assert exc.value.limite == Decimal("100")
    assert "XYZ-123" in str(exc.value) and "100" in str(exc.value)
    assert store.consumo_diario_ferramenta(ferramenta.id, AGORA) == Decimal("60")
    assert len(store.listar("consumos")) == 1
    assert store.obter("produtos", produto.id).stock == Decimal("940")


def test_consumo_exatamente_no_teto_e_aceito():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "40"))
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "60"))
    assert store.consumo_diario_ferramenta(ferramenta.id, AGORA) == Decimal("100")


def test_consumo_de_ontem_nao_conta_para_o_teto_de_hoje():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "80", data=AGORA - timedelta(days=1)))
    consumo = _registrar(store, _pedido(cliente, produto, ferramenta, loja, "80"))
    assert consumo.date == AGORA
    assert store.consumo_diario_ferramenta(ferramenta.id, AGORA) == Decimal("80")


def test_teto_usa_o_dia_do_evento_e_nao_o_dia_corrente():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    ontem = AGORA - timedelta(days=1)
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "70", data=ontem.replace(hour=8)))
    with pytest.raises(CapacidadeExcedida):
        _registrar(store, _pedido(cliente, produto, ferramenta, loja, "40", data=ontem.replace(hour=23, minute=59)))


def test_ferramenta_inexistente_nao_aplica_teto():
    store, loja, _, _, cliente, produto = _seed()
    consumo = _registrar(store, PedidoConsumo(
        cliente_id=cliente.id, produto_id=produto.id, ferramenta_id=99,
        loja_id=loja.id, quantidade="5000",
    ))
    assert consumo.id == 1
    assert store.listar("alertas") == []
    assert store.listar("atividades") == []


# -------------------------
# alertas de limite
# -------------------------

def test_92_por_cento_gera_um_aviso_na_ferramenta():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "92"))

    alertas = store.listar("alertas")
    assert len(alertas) == 1
    assert alertas[0].type is TipoAlerta.WARNING
    assert alertas[0].referencia == RefFerramenta(ferramenta.id)
    assert "92%" in alertas[0].message
    assert alertas[0].resolved is False
    assert alertas[0].date == AGORA


@pytest.mark.parametrize("quantidade,esperado", [
    ("89", None),
    ("90", TipoAlerta.WARNING),
    ("99.9", TipoAlerta.WARNING),
    ("100", TipoAlerta.CRITICAL),
])
def test_limiares_de_uso_da_ferramenta(quantidade, esperado):
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, quantidade))
    tipos = [a.type for a in store.listar("alertas")]
    assert tipos == ([] if esperado is None else [esperado])


def test_100_por_cento_gera_alerta_critico_no_cliente():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "100"))

    alertas = store.listar("alertas")
    assert len(alertas) == 1
    assert alertas[0].type is TipoAlerta.CRITICAL
    assert alertas[0].referencia == RefCliente(cliente.id)
    assert "Cliente A" in alertas[0].message


def test_limite_zero_rejeita_qualquer_consumo():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="0")
    with pytest.raises(CapacidadeExcedida):
        _registrar(store, _pedido(cliente, produto, ferramenta, loja, "0.1"))


# -------------------------
# estoque
# -------------------------

def test_baixa_de_estoque_e_alerta_de_estoque_critico():
    store, loja, calibre, ferramenta, cliente, produto = _seed(limite="100", estoque="60")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "15"))

    assert store.obter("produtos", produto.id).stock == Decimal("45")
    alertas = store.listar("alertas")
    assert len(alertas) == 1
    alerta = alertas[0]
    assert alerta.type is TipoAlerta.CRITICAL
    assert alerta.referencia == RefProduto(produto.id)
    assert calibre.name in alerta.message
    assert loja.name in alerta.message


def test_estoque_acima_do_limiar_nao_gera_alerta():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100", estoque="66")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "15"))
    assert store.obter("produtos", produto.id).stock == Decimal("51")
    assert store.listar("alertas") == []


def test_estoque_pode_ficar_negativo():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100", estoque="10")
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "30"))
    assert store.obter("produtos", produto.id).stock == Decimal("-20")


def test_alerta_de_estoque_pulado_sem_calibre():
    store, loja, calibre, ferramenta, cliente, produto = _seed(limite="100", estoque="60")
    store.remover("calibres", calibre.id)
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "15"))
    assert store.obter("produtos", produto.id).stock == Decimal("45")
    assert store.listar("alertas") == []


def test_limiar_de_estoque_configuravel():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100", estoque="100")
    config = replace(DEFAULTS, limiar_estoque_baixo=Decimal("90"))
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "15"), config=config)
    assert [a.referencia for a in store.listar("alertas")] == [RefProduto(produto.id)]


# -------------------------
# atividade e referências pendentes
# -------------------------

def test_consumo_gera_atividade_do_cliente():
    store, loja, _, ferramenta, cliente, produto = _seed()
    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "12.5"))

    atividades = store.listar("atividades")
    assert len(atividades) == 1
    assert atividades[0].type is TipoAtividade.CONSUMPTION
    assert atividades[0].referencia == RefCliente(cliente.id)
    assert "Cliente A" in atividades[0].message
    assert "12.5" in atividades[0].message
    assert "XYZ-123" in atividades[0].message


def test_cliente_inexistente_grava_consumo_sem_efeitos():
    store, loja, _, ferramenta, _, produto = _seed(limite="100", estoque="60")
    consumo = _registrar(store, PedidoConsumo(
        cliente_id=42, produto_id=produto.id, ferramenta_id=ferramenta.id,
        loja_id=loja.id, quantidade="95",
    ))
    assert store.obter("consumos", consumo.id) == consumo
    assert store.obter("produtos", produto.id).stock == Decimal("60")
    assert store.listar("alertas") == []
    assert store.listar("atividades") == []
    # o teto continua valendo mesmo sem cliente
    assert store.consumo_diario_ferramenta(ferramenta.id, AGORA) == Decimal("95")


def test_referencias_exigidas_viram_erro_de_validacao():
    store, loja, _, ferramenta, _, produto = _seed()
    config = replace(DEFAULTS, exigir_referencias=True)
    with pytest.raises(ErroValidacao):
        _registrar(store, PedidoConsumo(
            cliente_id=42, produto_id=produto.id, ferramenta_id=ferramenta.id,
            loja_id=loja.id, quantidade="10",
        ), config=config)
    assert store.listar("consumos") == []


# -------------------------
# validação
# -------------------------

@pytest.mark.parametrize("quantidade", ["0", "-5", "abc", None, "", "12abc", "12 kg"])
def test_quantidade_invalida(quantidade):
    store, loja, _, ferramenta, cliente, produto = _seed()
    with pytest.raises(ErroValidacao):
        _registrar(store, _pedido(cliente, produto, ferramenta, loja, quantidade))
    assert store.listar("consumos") == []


def test_quantidade_em_notacao_cientifica_e_lida_inteira():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="2000", estoque="5000")
    consumo = _registrar(store, _pedido(cliente, produto, ferramenta, loja, "1e3"))
    assert consumo.quantity == Decimal("1000")
    assert store.obter("produtos", produto.id).stock == Decimal("4000")


def test_ids_invalidos():
    store, *_ = _seed()
    with pytest.raises(ErroValidacao):
        _registrar(store, PedidoConsumo(cliente_id=0, produto_id=1, ferramenta_id=1, loja_id=1, quantidade="1"))
    with pytest.raises(ErroValidacao):
        _registrar(store, PedidoConsumo(cliente_id="x", produto_id=1, ferramenta_id=1, loja_id=1, quantidade="1"))


def test_pedido_de_dict_aceita_chaves_em_ingles_e_portugues():
    p = pedido_de_dict({"clientId": 1, "productId": "2", "tool_id": 3.0, "loja_id": "4",
                        "quantity": "12,5", "date": "19/10/2026"})
    assert (p.cliente_id, p.produto_id, p.ferramenta_id, p.loja_id) == (1, 2, 3, 4)
    assert p.quantidade == Decimal("12.5")
    assert p.data == datetime(2026, 10, 19)

    with pytest.raises(ErroValidacao) as exc:
        pedido_de_dict({"cliente_id": 1, "quantidade": "3"})
    assert "produto_id" in str(exc.value)


def test_data_com_fuso_e_gravada_em_horario_local_e_entra_no_painel():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    evento = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    local = evento.astimezone().replace(tzinfo=None)

    consumo = _registrar(store, _pedido(cliente, produto, ferramenta, loja, "30", data=evento))
    assert consumo.date == local
    assert consumo.date.tzinfo is None
    assert store.consumo_diario_ferramenta(ferramenta.id, local) == Decimal("30")

    linhas = consumo_por_loja(store, dias=7, agora=local + timedelta(hours=1))
    assert linhas[0]["consumo"] == Decimal("30")
    assert estatisticas_painel(store, agora=local)["consumo_diario"] == Decimal("30")

    _registrar(store, _pedido(cliente, produto, ferramenta, loja, "10", data="2026-10-19T12:00:00+00:00"))
    assert store.consumo_diario_ferramenta(ferramenta.id, local) == Decimal("40")


# -------------------------
# concorrência
# -------------------------

def test_registros_concorrentes_nao_ultrapassam_o_teto():
    store, loja, _, ferramenta, cliente, produto = _seed(limite="100")
    barreira = threading.Barrier(10)
    aceitos, rejeitados = [], []

    def worker():
        barreira.wait()
        try:
            aceitos.append(_registrar(store, _pedido(cliente, produto, ferramenta, loja, "20")))
        except CapacidadeExcedida:
            rejeitados.append(1)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(aceitos) == 5
    assert len(rejeitados) == 5
    assert store.consumo_diario_ferramenta(ferramenta.id, AGORA) == Decimal("100")
    assert store.obter("produtos", produto.id).stock == Decimal("900")
    assert len({c.id for c in aceitos}) == 5
