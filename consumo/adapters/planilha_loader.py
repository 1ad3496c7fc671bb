# consumo/adapters/planilha_loader.py
"""
Loader de planilhas (XLSX ou CSV) de CONSUMOS.

Esta função:
- lê a planilha usando pandas (XLSX via openpyxl; CSV com separador detectado);
- normaliza cabeçalhos (acentos, variações, sinônimos);
- retorna lista de dicionários com as chaves esperadas pelo registro de consumo.

Observações:
- Não valida ids nem quantidades: isso é feito por ``pedido_de_dict``.
- Datas são normalizadas para ISO (YYYY-MM-DDTHH:MM:SS) quando possível.
- Cada linha carrega ``linha`` = número da linha na planilha (cabeçalho = 1).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from consumo.adapters.parsers import para_horario_local


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


_ALIASES = {
    "cliente": "cliente_id",
    "cliente id": "cliente_id",
    "id cliente": "cliente_id",
    "client id": "cliente_id",
    "clientid": "cliente_id",

    "produto": "produto_id",
    "produto id": "produto_id",
    "id produto": "produto_id",
    "product id": "produto_id",
    "productid": "produto_id",

    "ferramenta": "ferramenta_id",
    "ferramenta id": "ferramenta_id",
    "id ferramenta": "ferramenta_id",
    "tool id": "ferramenta_id",
    "toolid": "ferramenta_id",

    "loja": "loja_id",
    "loja id": "loja_id",
    "id loja": "loja_id",
    "store id": "loja_id",
    "storeid": "loja_id",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",
    "quantidade kg": "quantidade",
    "quantity": "quantidade",

    "data": "data",
    "data consumo": "data",
    "data do consumo": "data",
    "date": "data",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key.replace(" ", "_"))
    return df.rename(columns=new_cols)


def _safe_get(row: Dict[str, Any], key: str) -> Optional[str]:
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


def _to_datetime_iso(val: Optional[str]) -> Optional[str]:
    """Converte texto de data para ISO; mantém o texto original se não reconhecer."""
    if val is None:
        return None
    d = pd.to_datetime(val, dayfirst=not re.match(r"^\d{4}-", val), errors="coerce")
    if pd.isna(d):
        return val
    return para_horario_local(d.to_pydatetime()).isoformat()


def _read(path: str) -> pd.DataFrame:
    suffix = Path(path).suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls"):
        return pd.read_excel(path, dtype=str)
    return pd.read_csv(path, dtype=str, sep=None, engine="python")


# ---------------------------
# loader público
# ---------------------------

def load_consumos_planilha(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX/CSV de CONSUMOS.

    Campos de saída (chaves do dict por linha):
      - linha: int (número da linha na planilha)
      - cliente_id, produto_id, ferramenta_id, loja_id: str | None
      - quantidade: str | None  (não convertemos para Decimal aqui)
      - data: ISO datetime | None
    """
    df = _normalize_columns(_read(path))
    out: List[Dict[str, Any]] = []
    for idx, row in enumerate(df.to_dict(orient="records")):
        rec = {
            "linha": idx + 2,
            "cliente_id": _safe_get(row, "cliente_id"),
            "produto_id": _safe_get(row, "produto_id"),
            "ferramenta_id": _safe_get(row, "ferramenta_id"),
            "loja_id": _safe_get(row, "loja_id"),
            "quantidade": _safe_get(row, "quantidade"),
            "data": _to_datetime_iso(_safe_get(row, "data")),
        }
        # ignora linhas totalmente vazias
        if all(v is None for k, v in rec.items() if k != "linha"):
            continue
        out.append(rec)
    return out
