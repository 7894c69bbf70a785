from .request_batcher import BatcherClosed, RequestBatcher

__all__ = ["BatcherClosed", "RequestBatcher"]
