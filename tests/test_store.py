from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from consumo.domain.erros import ErroValidacao
from consumo.domain.models import Loja, TipoAtividade
from consumo.infra.store import EntityStore


AGORA = datetime(2026, 10, 19, 10, 0)


def _loja(store, nome="Loja 1"):
    return store.criar("lojas", {"name": nome, "location": "São Paulo"})


def test_criar_atribui_ids_sequenciais_por_colecao():
    store = EntityStore()
    a = _loja(store, "Loja 1")
    b = _loja(store, "Loja 2")
    c = store.criar("calibres", {"name": "Calibre A"})
    assert (a.id, b.id, c.id) == (1, 2, 1)
    assert isinstance(a, Loja)
    assert store.obter("lojas", 2) == b


def test_criar_ignora_id_informado():
    store = EntityStore()
    loja = store.criar("lojas", {"id": 99, "name": "Loja X"})
    assert loja.id == 1
    assert store.obter("lojas", 99) is None


def test_ids_nao_sao_reutilizados_apos_remocao():
    store = EntityStore()
    _loja(store, "Loja 1")
    segunda = _loja(store, "Loja 2")
    assert store.remover("lojas", segunda.id) is True
    terceira = _loja(store, "Loja 3")
    assert terceira.id == 3


def test_nao_encontrado_nao_levanta():
    store = EntityStore()
    assert store.obter("lojas", 1) is None
    assert store.atualizar("lojas", 1, name="X") is None
    assert store.remover("lojas", 1) is False


def test_atualizar_mescla_campos():
    store = EntityStore()
    loja = _loja(store)
    nova = store.atualizar("lojas", loja.id, manager="Gerente 9", id=123)
    assert nova.id == loja.id
    assert nova.name == "Loja 1"
    assert nova.manager == "Gerente 9"
    assert nova.location == "São Paulo"
    assert store.obter("lojas", loja.id) == nova


def test_campos_desconhecidos_viram_erro_de_validacao():
    store = EntityStore()
    loja = _loja(store)
    with pytest.raises(ErroValidacao):
        store.atualizar("lojas", loja.id, cor="azul")
    with pytest.raises(ErroValidacao):
        store.criar("lojas", {"nome": "sem name"})


def test_colecao_desconhecida():
    store = EntityStore()
    with pytest.raises(ErroValidacao):
        store.listar("pedidos")


def test_consumos_sao_imutaveis():
    store = EntityStore()
    c = store.criar("consumos", {
        "date": AGORA, "client_id": 1, "product_id": 1, "tool_id": 1,
        "store_id": 1, "quantity": Decimal("10"),
    })
    with pytest.raises(ErroValidacao):
        store.atualizar("consumos", c.id, quantity=Decimal("1"))
    assert store.obter("consumos", c.id).quantity == Decimal("10")


def test_listar_em_ordem_de_insercao_e_sem_efeito_colateral():
    store = EntityStore()
    for nome in ("Loja 1", "Loja 2", "Loja 3"):
        _loja(store, nome)
    primeira = store.listar("lojas")
    segunda = store.listar("lojas")
    assert [x.name for x in primeira] == ["Loja 1", "Loja 2", "Loja 3"]
    assert primeira == segunda
    assert [x.name for x in store.listar("lojas", lambda x: x.id != 2)] == ["Loja 1", "Loja 3"]


def test_atividades_da_mais_nova_para_a_mais_antiga():
    store = EntityStore()
    for i, delta in enumerate((2, 0, 1)):
        store.criar("atividades", {
            "date": AGORA - timedelta(hours=delta),
            "type": TipoAtividade.OTHER,
            "message": f"a{i}",
        })
    assert [a.message for a in store.listar("atividades")] == ["a1", "a2", "a0"]


def test_consultas_por_relacionamento():
    store = EntityStore()
    l1, l2 = _loja(store, "Loja 1"), _loja(store, "Loja 2")
    store.criar("clientes", {"name": "Cliente A", "store_id": l1.id})
    store.criar("clientes", {"name": "Cliente B", "store_id": l2.id})
    store.criar("produtos", {"name": "P1", "caliber_id": 1, "store_id": l2.id})
    store.criar("usuarios", {"username": "admin", "password": "x", "name": "Admin"})

    assert [c.name for c in store.clientes_por_loja(l1.id)] == ["Cliente A"]
    assert [p.name for p in store.produtos_por_loja(l2.id)] == ["P1"]
    assert [p.name for p in store.produtos_por_calibre(1)] == ["P1"]
    assert store.usuario_por_username("admin").role == "user"
    assert store.usuario_por_username("ninguem") is None


def test_consumos_entre_e_consumo_diario():
    store = EntityStore()
    base = {"client_id": 1, "product_id": 1, "store_id": 1}
    store.criar("consumos", {**base, "tool_id": 1, "date": AGORA.replace(hour=0), "quantity": Decimal("10")})
    store.criar("consumos", {**base, "tool_id": 1, "date": AGORA.replace(hour=23, minute=59), "quantity": Decimal("5.5")})
    store.criar("consumos", {**base, "tool_id": 1, "date": AGORA - timedelta(days=1), "quantity": Decimal("70")})
    store.criar("consumos", {**base, "tool_id": 2, "date": AGORA, "quantity": Decimal("30")})

    assert store.consumo_diario_ferramenta(1, AGORA) == Decimal("15.5")
    assert store.consumo_diario_ferramenta(1, AGORA.date()) == Decimal("15.5")
    assert store.consumo_diario_ferramenta(3, AGORA) == Decimal("0")

    janela = store.consumos_entre(AGORA - timedelta(days=1), AGORA)
    assert sorted(c.quantity for c in janela) == [Decimal("10"), Decimal("30"), Decimal("70")]
