from __future__ import annotations

from contextvars import ContextVar, Token

_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_TENANT_ID_CTX: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_USER_ID_CTX: ContextVar[str | None] = ContextVar("user_id", default=None)

_ContextTokens = tuple[Token, Token, Token]


def bind_request_context(*, request_id: str | None = None) -> _ContextTokens:
    """Abre um contexto limpo para a requisição e devolve os tokens para reset."""
    return (
        _REQUEST_ID_CTX.set(request_id),
        _TENANT_ID_CTX.set(None),
        _USER_ID_CTX.set(None),
    )


def set_request_identity(*, tenant_id: str | None = None, user_id: str | None = None) -> None:
    if tenant_id is not None:
        _TENANT_ID_CTX.set(tenant_id)
    if user_id is not None:
        _USER_ID_CTX.set(user_id)


def reset_request_context(tokens: _ContextTokens) -> None:
    request_token, tenant_token, user_token = tokens
    _REQUEST_ID_CTX.reset(request_token)
    _TENANT_ID_CTX.reset(tenant_token)
    _USER_ID_CTX.reset(user_token)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_tenant_id() -> str | None:
    return _TENANT_ID_CTX.get()


def get_user_id() -> str | None:
    return _USER_ID_CTX.get()
