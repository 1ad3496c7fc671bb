# consumo/adapters/cli.py
"""
CLI do painel de consumo (Typer).

Comandos principais:
- seed                          -> grava um snapshot com os dados de demonstração
- lojas|calibres|ferramentas|clientes|produtos list/add/update/delete
- consumo registrar|listar|lotes -> registra consumos (único ou planilha)
- alertas listar|criar|resolver
- atividades                    -> atividades recentes
- painel stats|lojas|calibres|ferramentas
- exportar <arquivo.json|.csv>

Todos os comandos aceitam ``--dados`` (snapshot JSON). Se o arquivo não
existir, o store começa com os dados de demonstração. Comandos que alteram
dados gravam o snapshot de volta ao final.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from consumo.config import DADOS_PATH, DEFAULTS
from consumo.adapters.parsers import parse_data, parse_decimal
from consumo.domain.erros import ErroConsumo, ErroValidacao
from consumo.domain.models import como_dict, referencia_de
from consumo.infra import snapshot
from consumo.infra.store import EntityStore
from consumo.usecases.alertas import (
    criar_alerta,
    listar_alertas,
    listar_atividades_recentes,
    resolver_alerta,
)
from consumo.usecases.dados_exemplo import popular_dados_exemplo
from consumo.usecases.painel import (
    consumo_diario_ferramentas,
    consumo_por_calibre,
    consumo_por_loja,
    estatisticas_painel,
)
from consumo.usecases.registrar_consumo import PedidoConsumo, registrar_consumo, run_consumo_lote


app = typer.Typer(help="Painel de Consumo: CLI")
console = Console()

DadosOpt = typer.Option(DADOS_PATH, "--dados", help="Caminho do snapshot JSON")
JsonOpt = typer.Option(False, "--json", help="Saída em JSON")


# -----------------------
# util
# -----------------------

def _jsonable(obj: Any) -> Any:
    if isinstance(obj, list):
        return [_jsonable(o) for o in obj]
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if hasattr(obj, "__dataclass_fields__"):
        return como_dict(obj)
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return obj


def _print_json(obj) -> None:
    typer.echo(json.dumps(_jsonable(obj), ensure_ascii=False, indent=2))


def _fmt(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, Decimal):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y %H:%M")
    if isinstance(val, bool):
        return "sim" if val else "não"
    return str(val)


def _display_table(data: Any, title: str = "Resultado", as_json: bool = False) -> None:
    """Exibe os dados em tabelas formatadas usando Rich (ou JSON)."""
    if as_json:
        _print_json(data)
        return

    data = [como_dict(d) for d in data] if isinstance(data, list) and data and hasattr(data[0], "__dataclass_fields__") else data
    if hasattr(data, "__dataclass_fields__"):
        data = como_dict(data)

    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        columns = list(data[0].keys())
        for column in columns:
            if column in ("consumo", "quantity", "stock", "limite", "percentual", "max_daily_consumption"):
                table.add_column(column, justify="right")
            elif column == "date":
                table.add_column(column, justify="center")
            else:
                table.add_column(column)
        for row in data:
            values = []
            for col in columns:
                val = row.get(col)
                if col == "type" and val == "critical":
                    values.append(f"[bold red]{val}[/]")
                elif col == "type" and val == "warning":
                    values.append(f"[bold yellow]{val}[/]")
                else:
                    values.append(_fmt(val))
            table.add_row(*values)
        console.print(table)
        return

    # Lote
    if isinstance(data, dict) and "registros" in data and "total" in data:
        panel_content = [
            f"Total de registros: {data['total']}",
            f"Processados com sucesso: {data.get('sucessos', 0)}",
        ]
        if data.get("erros"):
            panel_content.append(f"Erros: {len(data['erros'])}")
        console.print(Panel("\n".join(panel_content), title=f"{data.get('tipo', 'Registros')} em Lote"))
        if data.get("erros"):
            erro_table = Table(title="Erros Encontrados")
            erro_table.add_column("Linha")
            erro_table.add_column("Erro")
            for erro in data["erros"]:
                erro_table.add_row(str(erro.get("linha", "?")), erro.get("mensagem", "Erro desconhecido"))
            console.print(erro_table)
        return

    if isinstance(data, dict):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Campo")
        table.add_column("Valor")
        for chave, valor in data.items():
            table.add_row(str(chave), _fmt(valor))
        console.print(table)
        return

    _print_json(data)


def _falha(msg: str) -> None:
    typer.echo(f"Erro: {msg}", err=True)
    raise typer.Exit(code=1)


def _abrir(dados_path: str) -> EntityStore:
    if Path(dados_path).exists():
        try:
            return snapshot.carregar(dados_path)
        except ErroValidacao as e:
            _falha(str(e))
    return popular_dados_exemplo(EntityStore())


@contextmanager
def _sessao(dados_path: str, gravar: bool = True) -> Iterator[EntityStore]:
    """Abre o store, executa o bloco e (se ``gravar``) salva o snapshot."""
    store = _abrir(dados_path)
    try:
        yield store
    except ErroConsumo as e:
        _falha(str(e))
    if gravar:
        snapshot.salvar(store, dados_path)


def _decimal_opt(nome: str, val: Optional[str]) -> Optional[Decimal]:
    if val is None:
        return None
    d = parse_decimal(val)
    if d is None:
        raise ErroValidacao(f"{nome} inválido: {val!r}")
    return d


def _sem_nulos(**campos: Any) -> Dict[str, Any]:
    return {k: v for k, v in campos.items() if v is not None}


def _atualizar(store: EntityStore, colecao: str, entidade_id: int, campos: Dict[str, Any], titulo: str) -> None:
    if not campos:
        _falha("nada a alterar. Informe pelo menos um campo.")
    ent = store.atualizar(colecao, entidade_id, **campos)
    if ent is None:
        _falha(f"{titulo} {entidade_id} não encontrado(a)")
    _display_table(ent, title=f"{titulo} atualizado(a)")


def _crud_basico(sub: typer.Typer, colecao: str, titulo: str) -> None:
    """Registra ``list`` e ``delete`` num sub-app de cadastro."""

    @sub.command("list")
    def _list(dados_path: str = DadosOpt, as_json: bool = JsonOpt):
        with _sessao(dados_path, gravar=False) as store:
            _display_table(store.listar(colecao), title=titulo, as_json=as_json)

    @sub.command("delete")
    def _delete(entidade_id: int = typer.Argument(...), dados_path: str = DadosOpt):
        with _sessao(dados_path) as store:
            if not store.remover(colecao, entidade_id):
                _falha(f"{titulo} {entidade_id} não encontrado(a)")
            typer.echo(f">> {titulo} {entidade_id} removido(a).")


# -----------------------
# seed / exportar
# -----------------------

@app.command("seed")
def cmd_seed(
    dados_path: str = DadosOpt,
    forcar: bool = typer.Option(False, "--forcar", help="Sobrescreve um snapshot existente"),
):
    """Grava um snapshot com os dados de demonstração."""
    if Path(dados_path).exists() and not forcar:
        _falha(f"{dados_path} já existe (use --forcar para sobrescrever)")
    snapshot.salvar(popular_dados_exemplo(EntityStore()), dados_path)
    typer.echo(f">> Dados de demonstração gravados em: {dados_path}")


@app.command("exportar")
def cmd_exportar(
    destino: str = typer.Argument(..., help="Arquivo .json (tudo) ou .csv (consumos)"),
    dados_path: str = DadosOpt,
):
    """Exporta os dados para JSON ou CSV."""
    with _sessao(dados_path, gravar=False) as store:
        if destino.lower().endswith(".csv"):
            n = snapshot.exportar_consumos_csv(store, destino)
            typer.echo(f">> {n} consumos exportados para {destino}")
        else:
            snapshot.salvar(store, destino)
            typer.echo(f">> Dados exportados para {destino}")


# -----------------------
# cadastros
# -----------------------

lojas_app = typer.Typer(help="Cadastro de lojas")
app.add_typer(lojas_app, name="lojas")
_crud_basico(lojas_app, "lojas", "Loja")


@lojas_app.command("add")
def cmd_loja_add(
    nome: str = typer.Option(..., "--nome"),
    local: Optional[str] = typer.Option(None, "--local"),
    gerente: Optional[str] = typer.Option(None, "--gerente"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        if store.listar("lojas", lambda x: x.name == nome):
            raise ErroValidacao(f"já existe loja com nome {nome!r}")
        _display_table(store.criar("lojas", {"name": nome, "location": local, "manager": gerente}), title="Loja criada")


@lojas_app.command("update")
def cmd_loja_update(
    loja_id: int = typer.Argument(...),
    nome: Optional[str] = typer.Option(None, "--nome"),
    local: Optional[str] = typer.Option(None, "--local"),
    gerente: Optional[str] = typer.Option(None, "--gerente"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        _atualizar(store, "lojas", loja_id, _sem_nulos(name=nome, location=local, manager=gerente), "Loja")


calibres_app = typer.Typer(help="Cadastro de calibres")
app.add_typer(calibres_app, name="calibres")
_crud_basico(calibres_app, "calibres", "Calibre")


@calibres_app.command("add")
def cmd_calibre_add(
    nome: str = typer.Option(..., "--nome"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        if store.listar("calibres", lambda c: c.name == nome):
            raise ErroValidacao(f"já existe calibre com nome {nome!r}")
        _display_table(store.criar("calibres", {"name": nome, "description": descricao}), title="Calibre criado")


@calibres_app.command("update")
def cmd_calibre_update(
    calibre_id: int = typer.Argument(...),
    nome: Optional[str] = typer.Option(None, "--nome"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        _atualizar(store, "calibres", calibre_id, _sem_nulos(name=nome, description=descricao), "Calibre")


ferramentas_app = typer.Typer(help="Cadastro de ferramentas")
app.add_typer(ferramentas_app, name="ferramentas")
_crud_basico(ferramentas_app, "ferramentas", "Ferramenta")


@ferramentas_app.command("add")
def cmd_ferramenta_add(
    codigo: str = typer.Option(..., "--codigo"),
    nome: str = typer.Option(..., "--nome"),
    limite: str = typer.Option(..., "--limite", help="Consumo máximo diário (kg)"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        lim = _decimal_opt("limite", limite)
        if lim < 0:
            raise ErroValidacao("limite não pode ser negativo")
        if store.listar("ferramentas", lambda f: f.code == codigo):
            raise ErroValidacao(f"já existe ferramenta com código {codigo!r}")
        ferramenta = store.criar("ferramentas", {
            "code": codigo, "name": nome, "description": descricao, "max_daily_consumption": lim,
        })
        _display_table(ferramenta, title="Ferramenta criada")


@ferramentas_app.command("update")
def cmd_ferramenta_update(
    ferramenta_id: int = typer.Argument(...),
    codigo: Optional[str] = typer.Option(None, "--codigo"),
    nome: Optional[str] = typer.Option(None, "--nome"),
    limite: Optional[str] = typer.Option(None, "--limite"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        lim = _decimal_opt("limite", limite)
        if lim is not None and lim < 0:
            raise ErroValidacao("limite não pode ser negativo")
        campos = _sem_nulos(code=codigo, name=nome, description=descricao, max_daily_consumption=lim)
        _atualizar(store, "ferramentas", ferramenta_id, campos, "Ferramenta")


clientes_app = typer.Typer(help="Cadastro de clientes")
app.add_typer(clientes_app, name="clientes")
_crud_basico(clientes_app, "clientes", "Cliente")


@clientes_app.command("add")
def cmd_cliente_add(
    nome: str = typer.Option(..., "--nome"),
    loja_id: int = typer.Option(..., "--loja"),
    email: Optional[str] = typer.Option(None, "--email"),
    telefone: Optional[str] = typer.Option(None, "--telefone"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        cliente = store.criar("clientes", {"name": nome, "store_id": loja_id, "email": email, "phone": telefone})
        _display_table(cliente, title="Cliente criado")


@clientes_app.command("update")
def cmd_cliente_update(
    cliente_id: int = typer.Argument(...),
    nome: Optional[str] = typer.Option(None, "--nome"),
    loja_id: Optional[int] = typer.Option(None, "--loja"),
    email: Optional[str] = typer.Option(None, "--email"),
    telefone: Optional[str] = typer.Option(None, "--telefone"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        campos = _sem_nulos(name=nome, store_id=loja_id, email=email, phone=telefone)
        _atualizar(store, "clientes", cliente_id, campos, "Cliente")


produtos_app = typer.Typer(help="Cadastro de produtos")
app.add_typer(produtos_app, name="produtos")
_crud_basico(produtos_app, "produtos", "Produto")


@produtos_app.command("add")
def cmd_produto_add(
    nome: str = typer.Option(..., "--nome"),
    calibre_id: int = typer.Option(..., "--calibre"),
    loja_id: int = typer.Option(..., "--loja"),
    estoque: str = typer.Option("0", "--estoque"),
    unidade: str = typer.Option("kg", "--unidade"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        produto = store.criar("produtos", {
            "name": nome, "caliber_id": calibre_id, "store_id": loja_id,
            "stock": _decimal_opt("estoque", estoque), "unit": unidade, "description": descricao,
        })
        _display_table(produto, title="Produto criado")


@produtos_app.command("update")
def cmd_produto_update(
    produto_id: int = typer.Argument(...),
    nome: Optional[str] = typer.Option(None, "--nome"),
    calibre_id: Optional[int] = typer.Option(None, "--calibre"),
    loja_id: Optional[int] = typer.Option(None, "--loja"),
    estoque: Optional[str] = typer.Option(None, "--estoque"),
    unidade: Optional[str] = typer.Option(None, "--unidade"),
    descricao: Optional[str] = typer.Option(None, "--descricao"),
    dados_path: str = DadosOpt,
):
    with _sessao(dados_path) as store:
        campos = _sem_nulos(
            name=nome, caliber_id=calibre_id, store_id=loja_id,
            stock=_decimal_opt("estoque", estoque), unit=unidade, description=descricao,
        )
        _atualizar(store, "produtos", produto_id, campos, "Produto")


# -----------------------
# consumo
# -----------------------

consumo_app = typer.Typer(help="Registro de consumo")
app.add_typer(consumo_app, name="consumo")


@consumo_app.command("registrar")
def cmd_consumo_registrar(
    cliente_id: int = typer.Option(..., "--cliente"),
    produto_id: int = typer.Option(..., "--produto"),
    ferramenta_id: int = typer.Option(..., "--ferramenta"),
    loja_id: int = typer.Option(..., "--loja"),
    quantidade: str = typer.Option(..., "--quantidade", help="Em kg, ex.: 12,5"),
    data: Optional[str] = typer.Option(None, "--data", help="YYYY-MM-DD[THH:MM] ou DD/MM/AAAA"),
    dados_path: str = DadosOpt,
    as_json: bool = JsonOpt,
):
    """Registra um consumo, respeitando o limite diário da ferramenta."""
    with _sessao(dados_path) as store:
        consumo = registrar_consumo(store, PedidoConsumo(
            cliente_id=cliente_id, produto_id=produto_id, ferramenta_id=ferramenta_id,
            loja_id=loja_id, quantidade=quantidade, data=data,
        ))
        _display_table(consumo, title="Consumo Registrado", as_json=as_json)


@consumo_app.command("listar")
def cmd_consumo_listar(
    cliente_id: Optional[int] = typer.Option(None, "--cliente"),
    ferramenta_id: Optional[int] = typer.Option(None, "--ferramenta"),
    loja_id: Optional[int] = typer.Option(None, "--loja"),
    produto_id: Optional[int] = typer.Option(None, "--produto"),
    inicio: Optional[str] = typer.Option(None, "--inicio"),
    fim: Optional[str] = typer.Option(None, "--fim"),
    dados_path: str = DadosOpt,
    as_json: bool = JsonOpt,
):
    """Lista consumos, com filtros opcionais (combinados com E)."""
    with _sessao(dados_path, gravar=False) as store:
        ini = parse_data(inicio) if inicio else None
        fi = parse_data(fim) if fim else None
        if (inicio and ini is None) or (fim and fi is None):
            raise ErroValidacao("data de início/fim inválida")

        def _filtro(c) -> bool:
            return ((cliente_id is None or c.client_id == cliente_id)
                    and (ferramenta_id is None or c.tool_id == ferramenta_id)
                    and (loja_id is None or c.store_id == loja_id)
                    and (produto_id is None or c.product_id == produto_id)
                    and (ini is None or c.date >= ini)
                    and (fi is None or c.date <= fi))

        _display_table(store.listar("consumos", _filtro), title="Consumos", as_json=as_json)


@consumo_app.command("lotes")
def cmd_consumo_lotes(
    path: str = typer.Argument(..., help="Caminho do XLSX/CSV de CONSUMOS"),
    dados_path: str = DadosOpt,
):
    """Registra consumos em lote a partir de uma planilha."""
    with _sessao(dados_path) as store:
        info = run_consumo_lote(store, path)
        _display_table(info, title="Processamento de Consumos em Lote")


# -----------------------
# alertas / atividades
# -----------------------

alertas_app = typer.Typer(help="Alertas")
app.add_typer(alertas_app, name="alertas")


@alertas_app.command("listar")
def cmd_alertas_listar(
    ativos: bool = typer.Option(False, "--ativos", help="Apenas não resolvidos"),
    dados_path: str = DadosOpt,
    as_json: bool = JsonOpt,
):
    with _sessao(dados_path, gravar=False) as store:
        _display_table(listar_alertas(store, ativos=ativos), title="Alertas", as_json=as_json)


@alertas_app.command("criar")
def cmd_alertas_criar(
    tipo: str = typer.Option(..., "--tipo", help="critical | warning | info"),
    mensagem: str = typer.Option(..., "--mensagem"),
    entidade: str = typer.Option(..., "--entidade", help="store | client | tool | product | caliber"),
    entidade_id: int = typer.Option(..., "--entidade-id"),
    dados_path: str = DadosOpt,
):
    """Cria um alerta manual."""
    with _sessao(dados_path) as store:
        alerta = criar_alerta(store, tipo, mensagem, referencia_de(entidade, entidade_id))
        _display_table(alerta, title="Alerta criado")


@alertas_app.command("resolver")
def cmd_alertas_resolver(alerta_id: int = typer.Argument(...), dados_path: str = DadosOpt):
    with _sessao(dados_path) as store:
        if resolver_alerta(store, alerta_id) is None:
            _falha(f"alerta {alerta_id} não encontrado")
        typer.echo(f">> Alerta {alerta_id} resolvido.")


@app.command("atividades")
def cmd_atividades(
    limite: int = typer.Option(DEFAULTS.limite_atividades, "--limite", help="Quantidade máxima de atividades"),
    dados_path: str = DadosOpt,
    as_json: bool = JsonOpt,
):
    """Atividades da mais recente para a mais antiga."""
    with _sessao(dados_path, gravar=False) as store:
        _display_table(listar_atividades_recentes(store, limite), title="Atividades", as_json=as_json)


# -----------------------
# painel
# -----------------------

painel_app = typer.Typer(help="Indicadores do painel")
app.add_typer(painel_app, name="painel")

DiasOpt = typer.Option(DEFAULTS.dias_janela, "--dias", help="Janela em dias")


@painel_app.command("stats")
def cmd_painel_stats(dados_path: str = DadosOpt, as_json: bool = JsonOpt):
    with _sessao(dados_path, gravar=False) as store:
        _display_table(estatisticas_painel(store), title="Painel", as_json=as_json)


@painel_app.command("lojas")
def cmd_painel_lojas(dias: int = DiasOpt, dados_path: str = DadosOpt, as_json: bool = JsonOpt):
    with _sessao(dados_path, gravar=False) as store:
        _display_table(consumo_por_loja(store, dias), title=f"Consumo por Loja ({dias} dias)", as_json=as_json)


@painel_app.command("calibres")
def cmd_painel_calibres(dias: int = DiasOpt, dados_path: str = DadosOpt, as_json: bool = JsonOpt):
    with _sessao(dados_path, gravar=False) as store:
        _display_table(consumo_por_calibre(store, dias), title=f"Consumo por Calibre ({dias} dias)", as_json=as_json)


@painel_app.command("ferramentas")
def cmd_painel_ferramentas(dados_path: str = DadosOpt, as_json: bool = JsonOpt):
    with _sessao(dados_path, gravar=False) as store:
        _display_table(consumo_diario_ferramentas(store), title="Uso diário das ferramentas", as_json=as_json)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
