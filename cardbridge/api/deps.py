"""
FastAPI dependencies resolving the per-application bridge components.
"""
from fastapi import Request, WebSocket

from cardbridge.services.fanout.hub import ClientHub
from cardbridge.services.reconciliation.engine import ReconciliationEngine


def get_engine(request: Request) -> ReconciliationEngine:
    return request.app.state.engine


def get_hub(request: Request) -> ClientHub:
    return request.app.state.hub


def get_ws_hub(websocket: WebSocket) -> ClientHub:
    return websocket.app.state.hub
