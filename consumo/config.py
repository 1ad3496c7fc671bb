"""
Configurações globais e valores padrão do painel de consumo.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple


# Caminho padrão do snapshot JSON usado pela CLI
DADOS_PATH = os.path.join(os.getcwd(), "dados.json")

# Paleta usada no gráfico de consumo por calibre
PALETA_CALIBRES: Tuple[str, ...] = ("#1976D2", "#388E3C", "#F57C00", "#D32F2F")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    limiar_estoque_baixo: Decimal = Decimal("50")  # em unidades do produto (kg)
    limiar_alerta_pct: Decimal = Decimal("90")     # % do limite diário da ferramenta
    dias_janela: int = 7                           # janela padrão dos gráficos
    limite_atividades: int = 10                    # atividades recentes no painel
    exigir_referencias: bool = False               # True => cliente/produto/ferramenta inexistentes viram erro
    paleta: Tuple[str, ...] = field(default=PALETA_CALIBRES)


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
