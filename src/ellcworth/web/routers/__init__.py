from ellcworth.web.routers.metadata import router as metadata_router
from ellcworth.web.routers.shipments import router as shipments_router

__all__ = [
    "metadata_router",
    "shipments_router",
]
