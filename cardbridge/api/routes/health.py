from fastapi import APIRouter, Request, Response


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
def readiness(request: Request, response: Response) -> dict:
    """Readiness probe - returns 503 until the broker link is subscribed."""
    broker = request.app.state.broker
    clients = request.app.state.hub.count
    if not broker.connected:
        response.status_code = 503
        return {"status": "not_ready", "broker": "disconnected", "clients": clients}
    return {"status": "ready", "broker": "connected", "clients": clients}
