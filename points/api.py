from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging, get_settings
from .models import AddTransactionsResponse, BalanceResponse, SpendRequest, SpendResponse
from .service import InvalidAmount, InvalidTransaction, PointsService


def create_app(service: Optional[PointsService] = None) -> FastAPI:
    settings = get_settings()
    points_service = service or PointsService()

    app = FastAPI(
        title=settings.app_title,
        description="Event-sourced points ledger with oldest-first spending",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "points-ledger"}

    @app.post("/transactions", response_model=AddTransactionsResponse, tags=["Transactions"])
    def add_transactions(payload: Any = Body(None)) -> AddTransactionsResponse:
        if not payload:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing request payload")
        try:
            points_service.add_transactions(payload)
        except InvalidTransaction as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return AddTransactionsResponse()

    @app.put("/transactions", response_model=SpendResponse, tags=["Transactions"])
    def spend_points(request: Optional[SpendRequest] = None) -> SpendResponse:
        if request is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing request payload")
        if request.points is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing points field")
        try:
            return SpendResponse(data=points_service.spend_points(request.points))
        except InvalidAmount as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    @app.get("/transactions", response_model=BalanceResponse, tags=["Transactions"])
    def get_balances() -> BalanceResponse:
        return BalanceResponse(data=dict(points_service.get_balances()))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
