"""
Travas por chave para seções críticas do registro de consumo.

Cada chave (ex.: ``("ferramenta", 3)``) tem seu próprio ``threading.Lock``.
``segurar`` adquire várias chaves sempre na mesma ordem, evitando deadlock
entre duas requisições que disputam as mesmas ferramenta e produto.

A trava de uma chave só existe enquanto alguém a segura ou espera por ela.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List


class _Entrada:
    __slots__ = ("trava", "usuarios")

    def __init__(self) -> None:
        self.trava = threading.Lock()
        self.usuarios = 0


class TravasPorChave:
    def __init__(self) -> None:
        self._guarda = threading.Lock()
        self._travas: Dict[Hashable, _Entrada] = {}

    def __len__(self) -> int:
        with self._guarda:
            return len(self._travas)

    def _reservar(self, chave: Hashable) -> threading.Lock:
        with self._guarda:
            entrada = self._travas.get(chave)
            if entrada is None:
                entrada = self._travas[chave] = _Entrada()
            entrada.usuarios += 1
            return entrada.trava

    def _devolver(self, chave: Hashable) -> None:
        with self._guarda:
            entrada = self._travas[chave]
            entrada.usuarios -= 1
            if entrada.usuarios == 0:
                del self._travas[chave]

    @contextmanager
    def segurar(self, *chaves: Hashable) -> Iterator[None]:
        """Context manager que mantém todas as ``chaves`` travadas no bloco."""
        ordenadas = sorted(set(chaves), key=repr)
        reservadas: List[Hashable] = []
        adquiridas: List[threading.Lock] = []
        try:
            for chave in ordenadas:
                trava = self._reservar(chave)
                reservadas.append(chave)
                trava.acquire()
                adquiridas.append(trava)
            yield
        finally:
            for trava in reversed(adquiridas):
                trava.release()
            for chave in reversed(reservadas):
                self._devolver(chave)
