"""
Utilidades de parsing para quantidades e datas digitadas pelo usuário.

Quantidades chegam da CLI e das planilhas em formatos variados
("15", "12,5", "12.5 kg", "1.250,75 KG"). O objetivo é extrair de forma
robusta um ``Decimal`` e, quando houver, a unidade abreviada.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

_NUM = r"[-+]?\d+(?:[.,]\d+)*(?:[eE][-+]?\d+)?"
_NUM_RE = re.compile(_NUM)
_QTD_RE = re.compile(rf"({_NUM})\s*([A-Za-z]+)?")

_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d/%m/%y",
)


def _normaliza_numero(s: str) -> str:
    # "1.250,75" -> "1250.75"; "1,250.75" -> "1250.75"; "12,5" -> "12.5"
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            return s.replace(".", "").replace(",", ".")
        return s.replace(",", "")
    return s.replace(",", ".")


def _to_decimal(num: str) -> Optional[Decimal]:
    try:
        d = Decimal(_normaliza_numero(num))
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    # "1e3" -> 1000; expoentes além da precisão do contexto são rejeitados
    if "e" in num.lower() and d == d.to_integral_value():
        try:
            d = d.quantize(Decimal(1))
        except InvalidOperation:
            return None
    return d


def parse_decimal(val: Any) -> Optional[Decimal]:
    """Converte ``val`` em ``Decimal``; ``None`` se não for possível.

    Aceita vírgula ou ponto como separador decimal e notação científica.
    O texto inteiro precisa ser um número: "12abc" ou "12 kg" dão ``None``
    (para quantidades com unidade use ``parse_quantidade``). Valores não
    finitos (NaN, infinito) são rejeitados.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, Decimal):
        return val if val.is_finite() else None
    if isinstance(val, int):
        return Decimal(val)
    if isinstance(val, float):
        d = Decimal(str(val))
        return d if d.is_finite() else None
    s = str(val).strip()
    if not _NUM_RE.fullmatch(s):
        return None
    return _to_decimal(s)


def parse_quantidade(txt: Any) -> Tuple[Optional[Decimal], Optional[str]]:
    """Interpreta uma quantidade com unidade opcional.

    Exemplos:
        "15"        → (Decimal("15"), None)
        "12,5 kg"   → (Decimal("12.5"), "KG")
        "1.250,75 KG" → (Decimal("1250.75"), "KG")
        "12 kg extra" → (None, None)

    Returns:
        Uma tupla (numero, unidade). Qualquer valor que não possa ser
        determinado será retornado como None.
    """
    if txt is None:
        return None, None
    m = _QTD_RE.fullmatch(str(txt).strip())
    if not m:
        return None, None
    unidade = m.group(2).upper() if m.group(2) else None
    return _to_decimal(m.group(1)), unidade


def parse_data(val: Any) -> Optional[datetime]:
    """Converte texto/objeto em ``datetime`` (naive, horário local).

    Datas com fuso são convertidas para o horário local antes de perder o
    fuso. Datas sem hora ficam à meia-noite. Retorna ``None`` se não
    reconhecer.
    """
    if val is None:
        return None
    if isinstance(val, datetime):
        return para_horario_local(val)
    s = str(val).strip()
    if not s:
        return None
    try:
        return para_horario_local(datetime.fromisoformat(s))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def para_horario_local(d: datetime) -> datetime:
    """``datetime`` com fuso -> horário local naive; naive fica como está."""
    if d.tzinfo is None:
        return d
    return d.astimezone().replace(tzinfo=None)
