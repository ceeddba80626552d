from __future__ import annotations

from typing import Iterable


class ThemeError(Exception):
    pass


class ThemeValidationError(ThemeError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ThemeNotFoundError(ThemeError):
    def __init__(self, tenant_id: int | None, theme_id: str | None = None) -> None:
        if theme_id is None:
            message = f"Nenhum tema configurado para o tenant {tenant_id}"
        else:
            message = f"Tema {theme_id} não encontrado"
        super().__init__(message)
        self.tenant_id = tenant_id
        self.theme_id = theme_id


class ThemeConflictError(ThemeError):
    """Mais de um tema ativo para o mesmo tenant; reparado na leitura."""

    def __init__(self, tenant_id: int, active_ids: Iterable[str]) -> None:
        self.tenant_id = tenant_id
        self.active_ids = list(active_ids)
        super().__init__(
            f"tenant {tenant_id} has {len(self.active_ids)} active themes: {','.join(self.active_ids)}"
        )


class ThemeStorageError(ThemeError):
    pass
