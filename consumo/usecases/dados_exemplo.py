"""
UC: popular o store com o conjunto de dados de demonstração.

3 lojas, 4 calibres, 3 ferramentas, 6 clientes, 6 produtos, dois consumos
(hoje e ontem) e alguns alertas/atividades iniciais.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from consumo.domain.models import RefCliente, RefFerramenta, RefLoja, RefProduto
from consumo.infra.logger import log_system_event
from consumo.infra.store import EntityStore
from consumo.usecases.alertas import criar_alerta, criar_atividade
from consumo.usecases.registrar_consumo import PedidoConsumo, registrar_consumo


def popular_dados_exemplo(store: EntityStore, agora: Optional[datetime] = None) -> EntityStore:
    agora = agora or datetime.now()
    relogio = lambda: agora  # noqa: E731

    store.criar("usuarios", {"username": "admin", "password": "admin", "name": "Administrador", "role": "admin"})

    lojas = [
        store.criar("lojas", {"name": f"Loja {i}", "location": cidade, "manager": f"Gerente {i}"})
        for i, cidade in enumerate(("São Paulo", "Campinas", "Santos"), start=1)
    ]

    calibres = [
        store.criar("calibres", {"name": f"Calibre {letra}", "description": desc})
        for letra, desc in (
            ("A", "Produto pequeno"),
            ("B", "Produto médio"),
            ("C", "Produto grande"),
            ("D", "Produto extra grande"),
        )
    ]
    cal = {c.name[-1]: c for c in calibres}

    ferramentas = [
        store.criar("ferramentas", {
            "code": code, "name": name, "description": desc,
            "max_daily_consumption": Decimal(limite),
        })
        for code, name, desc, limite in (
            ("XYZ-123", "Ferramenta XYZ", "Ferramenta padrão", "100"),
            ("ABC-456", "Ferramenta ABC", "Ferramenta avançada", "150"),
            ("DEF-789", "Ferramenta DEF", "Ferramenta especializada", "200"),
        )
    ]

    clientes = []
    for idx, letra in enumerate("ABCDEF"):
        loja = lojas[idx // 2]
        clientes.append(store.criar("clientes", {
            "name": f"Cliente {letra}",
            "email": f"cliente{letra.lower()}@example.com",
            "phone": f"11 4000-00{idx:02d}",
            "store_id": loja.id,
        }))

    produtos = []
    for nome, letra, loja, estoque in (
        ("Produto A1", "A", lojas[0], "200"),
        ("Produto B1", "B", lojas[0], "300"),
        ("Produto A2", "A", lojas[1], "250"),
        ("Produto C2", "C", lojas[1], "180"),
        ("Produto B3", "B", lojas[2], "210"),
        ("Produto D3", "D", lojas[2], "170"),
    ):
        produtos.append(store.criar("produtos", {
            "name": nome,
            "caliber_id": cal[letra].id,
            "store_id": loja.id,
            "unit": "kg",
            "stock": Decimal(estoque),
            "description": f"Produto {letra} na {loja.name}",
        }))

    registrar_consumo(store, PedidoConsumo(
        cliente_id=clientes[0].id, produto_id=produtos[0].id, ferramenta_id=ferramentas[0].id,
        loja_id=lojas[0].id, quantidade=Decimal("50"), data=agora,
    ), relogio=relogio)
    registrar_consumo(store, PedidoConsumo(
        cliente_id=clientes[2].id, produto_id=produtos[2].id, ferramenta_id=ferramentas[1].id,
        loja_id=lojas[1].id, quantidade=Decimal("120"), data=agora - timedelta(days=1),
    ), relogio=relogio)

    criar_alerta(store, "critical", f"Estoque crítico - Produto Calibre A - {lojas[0].name}",
                 RefProduto(produtos[0].id), relogio=relogio)
    criar_alerta(store, "warning", "Ferramenta DEF-789 a 92% do limite diário",
                 RefFerramenta(ferramentas[2].id), relogio=relogio)
    criar_alerta(store, "info", "Manutenção prevista - Ferramenta XYZ-123 - Amanhã",
                 RefFerramenta(ferramentas[0].id), relogio=relogio)

    criar_atividade(store, "order", "Cliente A pediu 50kg de produto (Calibre B)",
                    RefCliente(clientes[0].id), relogio=relogio)
    criar_atividade(store, "alert", f"{lojas[1].name} com estoque baixo de Calibre A",
                    RefLoja(lojas[1].id), relogio=relogio)

    log_system_event("dados_exemplo_carregados", {"lojas": len(lojas), "produtos": len(produtos)})
    return store
