"""FastAPI dependencies"""

from fastapi import Request

from onchain_budget.container import AppContainer


def get_container(request: Request) -> AppContainer:
    return request.app.state.container
