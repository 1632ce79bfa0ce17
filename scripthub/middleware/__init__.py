from scripthub.middleware.request_timing import RequestTimingMiddleware

__all__ = ["RequestTimingMiddleware"]
