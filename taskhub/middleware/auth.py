from fastapi import Request
from fastapi.responses import JSONResponse

PROTECTED_PATHS = ["/tasks", "/users", "/auth/me"]

def _has_bearer(request: Request) -> bool:
    auth = request.headers.get("Authorization", "")
    return auth.startswith("Bearer ") and bool(auth.split(" ", 1)[1].strip())

async def auth_middleware(request: Request, call_next):
    path = request.url.path

    # token verification itself happens in get_current_user
    if request.method == "OPTIONS" or not any(path == p or path.startswith(p + "/") for p in PROTECTED_PATHS):
        return await call_next(request)

    if not _has_bearer(request):
        return JSONResponse(
            status_code=401,
            content={"detail": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await call_next(request)
