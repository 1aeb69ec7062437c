from fastapi import Request, HTTPException, status

# Trust the X-User-ID header set by the gateway.
# The gateway has already authenticated the caller; northstar is private.

def get_current_user_id(request: Request) -> str:
    """
    Extract the caller's user id from gateway headers.
    """
    user_id = request.headers.get("x-user-id")
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header (are you calling through gateway?)",
        )
    return user_id.strip()
