from fastapi import Request

from domain.engine import LedgerEngine


def get_engine(request: Request) -> LedgerEngine:
    return request.app.state.engine
