"""HTTP middleware applied in tripzi.main."""

from tripzi.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
