from src.controller.auth import AuthController
from src.controller.document import DocumentController
from src.routers.router import Router

auth_route = Router(router=AuthController.router, prefix="/auth")
document_route = Router(router=DocumentController.router, prefix="/documents")

__all__ = [
    "auth_route",
    "document_route",
]
