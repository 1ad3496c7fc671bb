# consumo/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observações importantes:
- Todas as entidades são imutáveis (frozen); o EntityStore é o único que
  produz versões atualizadas via `dataclasses.replace`.
- Entidades só guardam chaves estrangeiras inteiras, resolvidas por busca
  no store no momento da leitura.
- Alertas e atividades apontam para outras entidades por uma referência
  tipada (RefLoja, RefCliente, ...), nunca por um par (tipo, id) solto.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from consumo.domain.erros import ErroValidacao


class TipoAlerta(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class TipoAtividade(str, Enum):
    ORDER = "order"
    CONSUMPTION = "consumption"
    ALERT = "alert"
    OTHER = "other"


# -------------------------
# Referências tipadas
# -------------------------

@dataclass(frozen=True)
class RefLoja:
    id: int
    tipo: ClassVar[str] = "store"


@dataclass(frozen=True)
class RefCliente:
    id: int
    tipo: ClassVar[str] = "client"


@dataclass(frozen=True)
class RefFerramenta:
    id: int
    tipo: ClassVar[str] = "tool"


@dataclass(frozen=True)
class RefProduto:
    id: int
    tipo: ClassVar[str] = "product"


@dataclass(frozen=True)
class RefCalibre:
    id: int
    tipo: ClassVar[str] = "caliber"


Referencia = Union[RefLoja, RefCliente, RefFerramenta, RefProduto, RefCalibre]

_REFS = {cls.tipo: cls for cls in (RefLoja, RefCliente, RefFerramenta, RefProduto, RefCalibre)}


def referencia_de(tipo: Optional[str], entidade_id: Optional[int]) -> Optional[Referencia]:
    """Reconstrói uma referência a partir do par serializado (entity_type, entity_id)."""
    if tipo is None and entidade_id is None:
        return None
    cls = _REFS.get(str(tipo).strip().lower()) if tipo is not None else None
    if cls is None:
        raise ErroValidacao(f"tipo de entidade desconhecido: {tipo!r}")
    try:
        return cls(int(entidade_id))
    except (TypeError, ValueError):
        raise ErroValidacao(f"id de entidade inválido: {entidade_id!r}")


# -------------------------
# Entidades
# -------------------------

@dataclass(frozen=True)
class Usuario:
    """Usuário do painel (apenas cadastro; não há autenticação)."""
    id: int
    username: str
    password: str
    name: str
    role: str = "user"


@dataclass(frozen=True)
class Loja:
    id: int
    name: str
    location: Optional[str] = None
    manager: Optional[str] = None


@dataclass(frozen=True)
class Calibre:
    """Classificação de tamanho/categoria de produto."""
    id: int
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Ferramenta:
    """Ferramenta com teto de consumo diário (em kg)."""
    id: int
    code: str
    name: str
    max_daily_consumption: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class Produto:
    id: int
    name: str
    caliber_id: int
    store_id: int
    unit: str = "kg"
    stock: Decimal = Decimal("0")
    description: Optional[str] = None


@dataclass(frozen=True)
class Cliente:
    id: int
    name: str
    store_id: int
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class Consumo:
    """Evento de uso: cliente consumiu `quantity` kg de um produto com uma ferramenta."""
    id: int
    date: datetime
    client_id: int
    product_id: int
    tool_id: int
    store_id: int
    quantity: Decimal


@dataclass(frozen=True)
class Alerta:
    id: int
    date: datetime
    type: TipoAlerta
    message: str
    referencia: Referencia
    resolved: bool = False


@dataclass(frozen=True)
class Atividade:
    id: int
    date: datetime
    type: TipoAtividade
    message: str
    referencia: Optional[Referencia] = None


Entidade = Union[Usuario, Loja, Calibre, Ferramenta, Produto, Cliente, Consumo, Alerta, Atividade]


def como_dict(ent: Any) -> Dict[str, Any]:
    """Converte uma entidade em dict serializável (Decimal -> str, datetime -> ISO)."""
    out: Dict[str, Any] = {}
    for f in fields(ent):
        val = getattr(ent, f.name)
        if f.name == "referencia":
            out["entity_type"] = val.tipo if val is not None else None
            out["entity_id"] = val.id if val is not None else None
            continue
        if isinstance(val, Decimal):
            val = str(val)
        elif isinstance(val, datetime):
            val = val.isoformat()
        elif isinstance(val, Enum):
            val = val.value
        out[f.name] = val
    return out
