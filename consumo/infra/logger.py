"""
Sistema de logging para transações do painel de consumo.

Este módulo configura e fornece loggers para registrar todas as operações
críticas do sistema, incluindo registros de consumo, alertas emitidos e
operações no store em memória.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = False
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado na primeira mensagem
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs (na pasta do módulo)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = BASE_DIR / "logs"

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "consumos": LOGS_DIR / "consumos.log",
    "alertas": LOGS_DIR / "alertas.log",
    "store": LOGS_DIR / "store.log",
    "system": LOGS_DIR / "system.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('consumo.transacoes', str(LOG_FILES["transactions"]))
consumo_logger = setup_logger('consumo.consumos', str(LOG_FILES["consumos"]))
alerta_logger = setup_logger('consumo.alertas', str(LOG_FILES["alertas"]))
store_logger = setup_logger('consumo.store', str(LOG_FILES["store"]))
system_logger = setup_logger('consumo.sistema', str(LOG_FILES["system"]))


def _ativo() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (registrar_consumo, consumo_lote, ...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _ativo():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_consumo(action: str, ferramenta_id: Any, quantidade: Any, **kwargs) -> None:
    """
    Log específico para registros de consumo.

    Args:
        action: Ação realizada (insert, reject, skip_effects, ...)
        ferramenta_id: Ferramenta usada
        quantidade: Quantidade consumida
        **kwargs: Dados adicionais
    """
    if not _ativo():
        return
    log_data = {
        "action": action,
        "ferramenta_id": ferramenta_id,
        "quantidade": str(quantidade),
        **kwargs
    }
    consumo_logger.info(f"CONSUMO_{action.upper()}: {log_data}")

def log_alerta(action: str, tipo: str, mensagem: str, **kwargs) -> None:
    """Log de alertas emitidos e resolvidos."""
    if not _ativo():
        return
    log_data = {"action": action, "tipo": tipo, "mensagem": mensagem, **kwargs}
    level = logging.WARNING if tipo == "critical" else logging.INFO
    alerta_logger.log(level, f"ALERTA_{action.upper()}: {log_data}")

def log_store_operation(colecao: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no store em memória.

    Args:
        colecao: Nome da coleção
        operation: Operação (CREATE, UPDATE, DELETE)
        affected_rows: Número de registros afetados
        **kwargs: Dados adicionais
    """
    if not _ativo():
        return
    log_data = {
        "colecao": colecao,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    store_logger.info(f"STORE_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _ativo():
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação/exportação).

    Args:
        operation: Tipo de operação (import, export)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not _ativo():
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, consumos, alertas, store, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    if not _ativo():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"
