"""Autenticação opcional via header X-API-Key."""
from fastapi import Header, HTTPException, Request, status


def verify_api_key(request: Request, x_api_key: str = Header(default=None)) -> None:
    """Valida API key se configurada em `Settings.api_key`; se não houver, permite acesso."""
    expected = request.app.state.settings.api_key
    if expected is None:
        return
    if x_api_key != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
