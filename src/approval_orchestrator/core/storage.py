# src/approval_orchestrator/core/storage.py
"""Armazenamento de artefatos por URI (v1).

O core só precisa de um identificador de localização (URI) para ler e
escrever documentos JSON: requisições de callback escritas pelo engine e
payloads de decisão depositados pelo aprovador.

Durabilidade, criptografia e controle de acesso são responsabilidade do
colaborador externo. Este módulo define o contrato (`ArtifactStore`) e duas
implementações in-process:

- InMemoryArtifactStore: dicionário indexado pela URI (testes, execução local)
- LocalArtifactStore: arquivos sob um diretório raiz

Mapeamento de URIs do LocalArtifactStore:
- `file:///abs/path.json` → o próprio caminho
- `<scheme>://bucket/key` → `<root>/<bucket>/<key>`
- caminho simples          → relativo a `<root>`
"""

from __future__ import annotations

import json
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union
from urllib.parse import urlparse


def join_uri(base: str, *parts: str) -> str:
    """Concatena segmentos a uma URI base com exatamente um `/` entre eles."""
    out = base.rstrip("/")
    for part in parts:
        out = f"{out}/{part.strip('/')}"
    return out


class ArtifactStore(Protocol):
    """Contrato mínimo de armazenamento usado pelo engine."""

    def put_json(self, uri: str, document: Dict[str, Any]) -> None:
        ...

    def get_json(self, uri: str) -> Optional[Dict[str, Any]]:
        """Retorna o documento ou None se nada foi depositado em `uri`."""
        ...


class InMemoryArtifactStore:
    """Store em memória, thread-safe, indexada pela URI completa."""

    def __init__(self) -> None:
        self._objects: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def put_json(self, uri: str, document: Dict[str, Any]) -> None:
        with self._lock:
            self._objects[uri] = deepcopy(document)

    def get_json(self, uri: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._objects.get(uri)
        return None if doc is None else deepcopy(doc)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._objects)


class LocalArtifactStore:
    """Store canônica em disco (JSON UTF-8, chaves ordenadas)."""

    def __init__(self, *, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, uri: str) -> Path:
        parsed = urlparse(uri)
        if parsed.scheme == "file":
            return Path(parsed.path)
        if parsed.scheme:
            return self.root / parsed.netloc / parsed.path.lstrip("/")
        return self.root / uri

    def put_json(self, uri: str, document: Dict[str, Any]) -> None:
        path = self.path_for(uri)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(document, ensure_ascii=False, sort_keys=True, indent=2),
            encoding="utf-8",
        )

    def get_json(self, uri: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(uri)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))
