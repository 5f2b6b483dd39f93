# src/approval_orchestrator/core/config/hashing.py
"""
Hashing canônico de documentos do orquestrador.

O mesmo algoritmo identifica três coisas distintas:
    - a configuração efetiva do orquestrador
    - a definição de pipeline registrada (registrada no manifest da execução)
    - a chave de idempotência de um start (pipeline + parâmetros identificadores)

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Codificação UTF-8
    - SHA-256

Invariantes:
    - Documentos estruturalmente equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
"""


import json
import hashlib
from typing import Any, Dict, Mapping


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico de um documento (dict) JSON-serializável.

    Args:
        config (Dict[str, Any]): Documento a ser identificado.

    Returns:
        str: Hash SHA-256 hexadecimal do documento.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """

    if not isinstance(config, dict):
        raise TypeError(
            f"Documento para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_idempotency_key(pipeline_name: str, identity: Mapping[str, Any]) -> str:
    """
    Deriva a chave de idempotência de um start.

    A chave combina o nome do pipeline com os parâmetros que identificam
    a requisição (ex.: ModelPackageArn + ModelApprovalStatus). A ordem das
    chaves em `identity` não altera o resultado.
    """
    if not isinstance(pipeline_name, str) or not pipeline_name.strip():
        raise ValueError("pipeline_name must be a non-empty string")
    return compute_config_hash(
        {
            "pipeline": pipeline_name,
            "identity": {str(k): identity[k] for k in identity},
        }
    )
