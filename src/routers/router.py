from fastapi import APIRouter


class Router:
    """Keyword arguments for app.include_router(**route.__dict__)"""

    def __init__(self, router: APIRouter, prefix: str, tags: list[str] | None = None):
        self.router = router
        self.prefix = prefix
        if tags is not None:
            self.tags = tags
