"""FastAPI app with Strawberry GraphQL."""

import logging
import os

from fastapi import FastAPI
from strawberry.fastapi import GraphQLRouter

from app.schema import schema

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Cashflow Valuation API", version="0.1.0")
graphql_app = GraphQLRouter(schema)
app.include_router(graphql_app, prefix="/graphql")


@app.get("/health")
def health() -> dict[str, str]:
    """Health check for load balancers and Docker."""
    return {"status": "ok"}
