"""
Exceptions for Stockledger.

All errors are StockError with a structured code for programmatic handling.
"""

from typing import Any


class BaseError(Exception):
    """
    Exception carrying a code from a closed set plus context data.

    Subclasses declare ``_default_messages``; constructing an error with a
    code that is not listed there raises ValueError.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        if code not in self._default_messages:
            raise ValueError(f"Unknown error code for {type(self).__name__}: {code!r}")
        self.code = code
        self.message = message or self._default_messages[code]
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, data={self.data!r})"


class StockError(BaseError):
    """
    Structured exception for stock ledger operations.

    Usage:
        try:
            service.register_movement(product.pk, 'exit', 10, 'sale', actor)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Só tem {e.available} em estoque")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'PRODUCT_NOT_FOUND': 'Produto não encontrado',
        'MOVEMENT_NOT_FOUND': 'Movimento não encontrado',
        'INVALID_REASON': 'Motivo inválido para este tipo de movimento',
        'INVALID_QUANTITY': 'Quantidade inválida (deve ser inteira e positiva)',
        'INVALID_PAGINATION': 'Paginação inválida',
        'INSUFFICIENT_STOCK': 'Estoque insuficiente',
        'AUDIT_IMMUTABLE': 'Movimentos de estoque não podem ser alterados ou removidos (auditoria)',
        'CONCURRENCY_CONFLICT': 'Modificação concorrente detectada',
        'UNEXPECTED': 'Erro inesperado ao processar o movimento',
    }

    CLIENT_ERRORS = frozenset({
        'PRODUCT_NOT_FOUND',
        'MOVEMENT_NOT_FOUND',
        'INVALID_REASON',
        'INVALID_QUANTITY',
        'INVALID_PAGINATION',
        'INSUFFICIENT_STOCK',
        'AUDIT_IMMUTABLE',
    })

    TRANSIENT_ERRORS = frozenset({'CONCURRENCY_CONFLICT'})

    @property
    def is_client_error(self) -> bool:
        """True when the caller sent something the ledger must refuse."""
        return self.code in self.CLIENT_ERRORS

    @property
    def is_transient(self) -> bool:
        """True when retrying the same request may succeed."""
        return self.code in self.TRANSIENT_ERRORS

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None))) else str(v)
                for k, v in self.data.items()
            }
        }
