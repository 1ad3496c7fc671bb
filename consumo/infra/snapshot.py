# consumo/infra/snapshot.py
"""
Exportação/importação do store.

- JSON: todas as coleções + contadores de id (``salvar`` / ``carregar``).
- CSV: apenas consumos, para uso em outras ferramentas (``exportar_consumos_csv``).

Formato JSON:
    {"versao": 1,
     "colecoes": {"lojas": {"proximo_id": 4, "registros": [{...}, ...]}, ...}}
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

import pandas as pd

from consumo.domain.erros import ErroValidacao
from consumo.domain.models import TipoAlerta, TipoAtividade, como_dict, referencia_de
from consumo.infra.logger import log_file_operation
from consumo.infra.store import COLECOES, EntityStore

VERSAO = 1

_DECIMAIS = {"max_daily_consumption", "stock", "quantity"}
_DATAS = {"date"}
_ENUMS = {"alertas": TipoAlerta, "atividades": TipoAtividade}


def _de_dict(colecao: str, d: Dict[str, Any]):
    d = dict(d)
    for k in _DECIMAIS & d.keys():
        if d[k] is not None:
            d[k] = Decimal(str(d[k]))
    for k in _DATAS & d.keys():
        if d[k] is not None:
            d[k] = datetime.fromisoformat(d[k])
    if colecao in _ENUMS:
        d["type"] = _ENUMS[colecao](d["type"])
        d["referencia"] = referencia_de(d.pop("entity_type", None), d.pop("entity_id", None))
    return COLECOES[colecao](**d)


def exportar(store: EntityStore) -> Dict[str, Any]:
    return {
        "versao": VERSAO,
        "colecoes": {
            nome: {
                "proximo_id": store.proximo_id(nome),
                "registros": [como_dict(e) for e in sorted(store.listar(nome), key=lambda e: e.id)],
            }
            for nome in COLECOES
        },
    }


def importar(dados: Dict[str, Any], store: EntityStore = None) -> EntityStore:
    if dados.get("versao") != VERSAO:
        raise ErroValidacao(f"versão de snapshot não suportada: {dados.get('versao')!r}")
    store = store or EntityStore()
    for nome, bloco in dados.get("colecoes", {}).items():
        if nome not in COLECOES:
            raise ErroValidacao(f"coleção desconhecida no snapshot: {nome!r}")
        try:
            registros = [_de_dict(nome, r) for r in bloco.get("registros", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise ErroValidacao(f"registro inválido em {nome}: {e}")
        store.restaurar(nome, registros, bloco.get("proximo_id"))
    return store


def salvar(store: EntityStore, path: str) -> None:
    dados = exportar(store)
    Path(path).write_text(json.dumps(dados, ensure_ascii=False, indent=2), encoding="utf-8")
    total = sum(len(b["registros"]) for b in dados["colecoes"].values())
    log_file_operation("export", path, rows_processed=total)


def carregar(path: str) -> EntityStore:
    try:
        dados = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ErroValidacao(f"snapshot inválido em {path}: {e}")
    store = importar(dados)
    log_file_operation("import", path)
    return store


def exportar_consumos_csv(store: EntityStore, path: str) -> int:
    """Grava os consumos em CSV; retorna o número de linhas."""
    linhas = [como_dict(c) for c in store.listar("consumos")]
    colunas = ["id", "date", "client_id", "product_id", "tool_id", "store_id", "quantity"]
    pd.DataFrame(linhas, columns=colunas).to_csv(path, index=False)
    log_file_operation("export", path, rows_processed=len(linhas))
    return len(linhas)
